"""
Geometric Primitives for the electrode axis and scene anchors.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Vector:
    """
    A vector in 3D space representing direction and magnitude.
    """
    x: float
    y: float
    z: float = 0.0

    def __mul__(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar, self.z * scalar)


@dataclass(frozen=True)
class Point:
    """A geometric point in 3D scene space."""
    x: float
    y: float
    z: float = 0.0

    def __add__(self, other: Vector) -> Point:
        # Point + Vector = Point (Translation)
        if isinstance(other, Vector):
            return Point(self.x + other.x, self.y + other.y, self.z + other.z)
        raise TypeError("Can only add a Vector to a Point.")

    def __sub__(self, other: Point) -> Vector:
        # Point - Point = Vector (Direction)
        if isinstance(other, Point):
            return Vector(self.x - other.x, self.y - other.y, self.z - other.z)
        raise TypeError("Can only subtract a Point from a Point.")

    def lerp(self, other: Point, t: float) -> Point:
        """Linear interpolation towards `other` (t=0 -> self, t=1 -> other)."""
        return self + (other - self) * t

    def midpoint(self, other: Point) -> Point:
        return self.lerp(other, 0.5)

    @staticmethod
    def from_sequence(values: Sequence[float]) -> Point:
        if len(values) != 3:
            raise ValueError(f"Expected 3 coordinates, got {len(values)}.")
        return Point(float(values[0]), float(values[1]), float(values[2]))
