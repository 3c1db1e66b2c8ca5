# interaction.py
from dataclasses import dataclass

from tearcloth.solver import ClothSolver

# Selection only happens within 20 units of the cursor
PICK_RADIUS_SQ = 400.0


@dataclass(frozen=True)
class PointerState:
    """Pointer input for one frame, polled by the presentation layer."""

    position: tuple[float, float] = (0.0, 0.0)
    select_pressed: bool = False
    select_held: bool = False
    select_released: bool = False
    cut_held: bool = False
    over_ui: bool = False


class InteractionController:
    """
    Idle / Dragging state machine for picking and dragging particles.

    Pinned particles can be dragged too: dragging writes positions
    directly and never goes through the integrator or the solver.
    """

    def __init__(self) -> None:
        self.selected: int | None = None

    @property
    def is_dragging(self) -> bool:
        return self.selected is not None

    def release(self) -> None:
        self.selected = None

    def update(self, cloth: ClothSolver, pointer: PointerState) -> None:
        if pointer.select_pressed and not pointer.over_ui:
            idx, dist_sq = cloth.nearest_particle(pointer.position)
            if dist_sq < PICK_RADIUS_SQ:
                self.selected = idx

        if pointer.select_held and self.selected is not None:
            # The cloth may have been rebuilt under a stale selection
            if 0 <= self.selected < cloth.num_particles:
                cloth.drag(self.selected, pointer.position)
            else:
                self.selected = None

        if pointer.select_released:
            self.selected = None
