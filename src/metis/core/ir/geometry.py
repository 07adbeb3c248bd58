"""
Geometry primitives for METIS IR.

This module contains the 2-D vector used for every position on the mission
map and the mutable counter threaded through the layout pass.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class Vector2D(BaseModel):
    """
    Immutable point in layout units.

    Arithmetic returns new vectors, so a position can be shared between a
    prototype, its slots and its relationship lines without aliasing.

    Attributes:
        x: Horizontal coordinate (grows to the right)
        y: Vertical coordinate (grows downward)
    """

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0

    def translate(self, x: float = 0.0, y: float = 0.0) -> Vector2D:
        """Return this vector moved by the given offsets."""
        return Vector2D(x=self.x + x, y=self.y + y)

    def translate_x(self, x: float) -> Vector2D:
        """Return this vector moved horizontally."""
        return Vector2D(x=self.x + x, y=self.y)

    def translate_y(self, y: float) -> Vector2D:
        """Return this vector moved vertically."""
        return Vector2D(x=self.x, y=self.y + y)

    def __add__(self, other: Vector2D) -> Vector2D:
        return Vector2D(x=self.x + other.x, y=self.y + other.y)

    def __sub__(self, other: Vector2D) -> Vector2D:
        return Vector2D(x=self.x - other.x, y=self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2D:
        return Vector2D(x=self.x * scalar, y=self.y * scalar)

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g})"


@dataclass
class Counter:
    """Mutable integer counter shared across recursive calls."""

    count: int = 0

    def increment(self, amount: int = 1) -> int:
        """Increase the count and return the new value."""
        self.count += amount
        return self.count

    def decrement(self, amount: int = 1) -> int:
        """Decrease the count and return the new value."""
        self.count -= amount
        return self.count

    def reset(self, count: int = 0) -> None:
        self.count = count


__all__ = ["Counter", "Vector2D"]
