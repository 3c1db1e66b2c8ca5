# models.py
from __future__ import annotations

from collections.abc import Iterator
import math

SPRING_KINDS = ("structural", "bending", "shear")


class Vector2:
    __slots__ = ["x", "y"]

    def __init__(self, x: float, y: float) -> None:
        self.x, self.y = x, y

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector2):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __repr__(self) -> str:
        return f"Vector2({self.x}, {self.y})"

    def length(self) -> float:
        return math.sqrt(self.x**2 + self.y**2)

    def distance(self, other: Vector2) -> float:
        return (other - self).length()


class Particle:
    def __init__(self, x: float, y: float, pinned: bool = False) -> None:
        self.pos = Vector2(x, y)
        self.prev_pos = Vector2(x, y)  # Equal to pos: zero initial velocity
        self.force = Vector2(0.0, 0.0)
        self.pinned = pinned  # If True, integration and relaxation skip this particle
        self.mass = 1.0


class Spring:
    """Distance constraint between two particles, addressed by index."""

    def __init__(
        self,
        a: int,
        b: int,
        rest_length: float,
        kind: str = "structural",
    ) -> None:
        if a == b:
            raise ValueError(f"Spring endpoints must differ, got {a} twice")
        if rest_length <= 0:
            raise ValueError(f"Spring rest length must be positive, got {rest_length}")
        if kind not in SPRING_KINDS:
            raise ValueError(f"Unknown spring kind {kind!r}")
        self.a = a
        self.b = b
        self.rest_length = rest_length
        self.kind = kind
