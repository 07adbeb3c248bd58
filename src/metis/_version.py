"""Version of the installed METIS distribution."""

from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    try:
        return version("metis-structure")
    except PackageNotFoundError:
        return "0.0.0"
