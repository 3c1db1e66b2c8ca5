# simulation.py
"""
Single owner of the live cloth and its configuration.

Per frame: rebuild if the grid size changed, step the physics (forces,
integration, tear/relax), cut, then apply pointer drag. Everything runs
on the caller's thread, one frame at a time.
"""

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from tearcloth.config import ClothConfig
from tearcloth.interaction import InteractionController, PointerState
from tearcloth.mesh.grid import generate_grid
from tearcloth.solver import ClothSolver
from tearcloth.types import MASK, POSITIONS


@dataclass(frozen=True)
class RenderSnapshot:
    segments: np.ndarray  # (num_springs, 2, 2) endpoint pairs, spring order
    positions: POSITIONS  # (num_particles, 2)
    pinned: MASK  # (num_particles,)
    torn_total: int = 0
    cut_total: int = 0
    is_exploded: bool = False

    def particles(self) -> Iterator[tuple[tuple[float, float], bool]]:
        """Yield (position, pinned) per particle in index order."""
        for pos, pinned in zip(self.positions, self.pinned):
            yield (float(pos[0]), float(pos[1])), bool(pinned)


def build_cloth(config: ClothConfig) -> ClothSolver:
    config.validate()
    particles, springs = generate_grid(
        config.width, config.height, config.spacing, config.origin
    )
    return ClothSolver(particles, springs, config.width, config.height, config.spacing)


class ClothSimulation:
    def __init__(self, config: ClothConfig | None = None) -> None:
        self.config = config if config is not None else ClothConfig()
        self.cloth = build_cloth(self.config)
        self.interaction = InteractionController()
        self.frame_count = 0

    def reset(self) -> None:
        """Discard the cloth and rebuild it from the current config."""
        print(f"[Simulation] Reset {self.config.width}x{self.config.height}")
        self._rebuild(self.config)

    def update(
        self,
        config: ClothConfig,
        pointer: PointerState | None = None,
        dt: float = 1.0 / 60.0,
    ) -> None:
        """Advance one frame under `config`.

        Raises ValueError, before touching any state, if `config` is invalid.
        """
        config.validate()
        if pointer is None:
            pointer = PointerState()

        if config.topology_key() != self.config.topology_key():
            print(f"[Simulation] Resizing to {config.width}x{config.height}")
            self._rebuild(config)
        self.config = config

        self.cloth.step(
            dt,
            config.gravity,
            config.iterations,
            config.stiffness,
            config.tear_threshold,
        )

        if pointer.cut_held:
            self.cloth.cut(pointer.position, config.cut_radius)

        self.interaction.update(self.cloth, pointer)
        self.frame_count += 1

    def render_snapshot(self) -> RenderSnapshot:
        return RenderSnapshot(
            segments=self.cloth.segments(),
            positions=self.cloth.pos.copy(),
            pinned=self.cloth.pinned_mask.copy(),
            torn_total=self.cloth.torn_total,
            cut_total=self.cloth.cut_total,
            is_exploded=self.cloth.is_exploded,
        )

    def _rebuild(self, config: ClothConfig) -> None:
        # Build first: an invalid config leaves the current cloth in place
        cloth = build_cloth(config)
        self.cloth = cloth
        self.config = config
        self.interaction.release()
