# config.py
"""
Simulation parameters.

A ClothConfig is handed to the simulation every frame. Only width and
height force a topology rebuild; spacing and origin are picked up by the
next rebuild, everything else applies immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

# Panel ranges: (min, max) for every adjustable field
PANEL_RANGES: dict[str, tuple[float, float]] = {
    "width": (4, 64),
    "height": (4, 64),
    "cut_radius": (10.0, 50.0),
    "gravity": (0.0, 2000.0),  # y component only
    "stiffness": (0.1, 1.0),
    "tear_threshold": (1.1, 10.0),
    "iterations": (1, 20),
}

TOPOLOGY_FIELDS = ("width", "height")
INT_FIELDS = ("width", "height", "iterations")


@dataclass(frozen=True)
class ClothConfig:
    width: int = 40
    height: int = 25
    spacing: float = 15.0
    origin: tuple[float, float] = (300.0, 50.0)
    gravity: tuple[float, float] = (0.0, 980.0)
    stiffness: float = 0.9
    tear_threshold: float = 4.5
    iterations: int = 5
    cut_radius: float = 10.0

    def validate(self) -> None:
        """Raise ValueError if the config breaks the simulation's input contract."""
        if self.width < 2 or self.height < 2:
            raise ValueError(f"Grid must be at least 2x2, got {self.width}x{self.height}")
        if self.spacing <= 0:
            raise ValueError(f"spacing must be positive, got {self.spacing}")
        if not 0.0 < self.stiffness <= 1.0:
            raise ValueError(f"stiffness must be in (0, 1], got {self.stiffness}")
        if self.tear_threshold <= 1.0:
            raise ValueError(f"tear_threshold must exceed 1, got {self.tear_threshold}")
        if self.iterations < 1:
            raise ValueError(f"iterations must be at least 1, got {self.iterations}")
        if self.cut_radius <= 0:
            raise ValueError(f"cut_radius must be positive, got {self.cut_radius}")

    def topology_key(self) -> tuple[int, ...]:
        return tuple(getattr(self, f) for f in TOPOLOGY_FIELDS)

    def adjusted(self, name: str, delta: float) -> ClothConfig:
        """Return a copy with `name` moved by `delta`, clamped to its panel range."""
        lo, hi = PANEL_RANGES[name]

        if name == "gravity":
            gx, gy = self.gravity
            return replace(self, gravity=(gx, float(min(hi, max(lo, gy + delta)))))

        value = min(hi, max(lo, getattr(self, name) + delta))
        value = int(round(value)) if name in INT_FIELDS else float(value)
        return replace(self, **{name: value})
