"""
vector2d.py
===========
Plain 2-D vector maths for the galaxy generator.

``Vector`` is an immutable value type with the usual arithmetic operators.
``DataPoint`` pairs a vector with an arbitrary payload (during generation the
payload is a ``NodeType``; afterwards callers typically map it to a colour).

Usage
-----
    from vector2d import Vector
    v = Vector.polar(16.0, math.pi / 8)
    dp = v.with_data("arm")
    coloured = dp.map(lambda t: (255, 0, 0))
"""

from __future__ import annotations

import dataclasses
import math
from typing import Callable, Generic, Iterator, TypeVar

T = TypeVar("T")
U = TypeVar("U")


# ---------------------------------------------------------------------------
# Vector
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Vector:
    """2-D float vector.

    Supports ``v + w``, ``v - w``, ``-v``, ``v * k``, ``k * v`` and ``v / k``.
    Multiplication by another vector is deliberately not overloaded; use
    :meth:`dot`.
    """

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def polar(cls, radius: float, angle: float) -> "Vector":
        """Vector of length *radius* pointing at *angle* (radians)."""
        return cls(math.cos(angle), math.sin(angle)) * radius

    # ---- arithmetic ----

    def __add__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(self.x - other.x, self.y - other.y)

    def __neg__(self) -> "Vector":
        return Vector(-self.x, -self.y)

    def __mul__(self, k: float) -> "Vector":
        if isinstance(k, Vector):
            return NotImplemented
        return Vector(self.x * k, self.y * k)

    __rmul__ = __mul__

    def __truediv__(self, k: float) -> "Vector":
        if isinstance(k, Vector):
            return NotImplemented
        return Vector(self.x / k, self.y / k)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    # ---- geometry ----

    def dot(self, other: "Vector") -> float:
        return self.x * other.x + self.y * other.y

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self) -> "Vector":
        """Unit vector with the same direction.

        Raises
        ------
        ValueError
            If the vector has zero length (direction undefined).
        """
        length = self.length()
        if length == 0.0:
            raise ValueError("cannot normalise a zero-length vector")
        return self / length

    def perpendicular(self) -> "Vector":
        """Rotate by +90°: ``(x, y) -> (-y, x)``, so ``v.dot(v.perpendicular()) == 0``."""
        return Vector(-self.y, self.x)

    def distance(self, other: "Vector") -> float:
        return (self - other).length()

    # ---- conversions ----

    def with_data(self, data: T) -> "DataPoint[T]":
        return DataPoint(self, data)


# ---------------------------------------------------------------------------
# Annotated point
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class DataPoint(Generic[T]):
    """A :class:`Vector` carrying a payload in ``data``."""

    point: Vector
    data: T

    @property
    def x(self) -> float:
        return self.point.x

    @property
    def y(self) -> float:
        return self.point.y

    def map(self, f: Callable[[T], U]) -> "DataPoint[U]":
        """Return a copy whose payload is ``f(data)``; the position is unchanged."""
        return DataPoint(self.point, f(self.data))
