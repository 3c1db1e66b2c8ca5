# solver.py
"""
Cloth solver: Verlet integration, iterative spring relaxation with
tearing, and cursor cutting over a structure-of-arrays particle store.
"""

from collections.abc import Sequence

from numba import njit, prange  # type: ignore
import numpy as np

from tearcloth.geometry import segment_distance
from tearcloth.models import Particle, Spring
from tearcloth.types import INDEX, MASK, POSITIONS

# Longest frame the integrator will take; slower frames are clamped
MAX_DT = 1.0 / 30.0

# ===============================
# PHYSICS KERNELS
# ===============================


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def accumulate_force(force: POSITIONS, gx: float, gy: float) -> None:
    """Add a uniform external force to every particle."""
    for i in prange(len(force)):
        force[i, 0] += gx
        force[i, 1] += gy


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def integrate_verlet(
    pos: POSITIONS,
    prev_pos: POSITIONS,
    force: POSITIONS,
    mass: np.ndarray,
    pinned_mask: MASK,
    dt: float,
) -> None:
    """Position Verlet: velocity is implied by pos - prev_pos."""
    dt_sq = dt * dt
    for i in prange(len(pos)):
        if not pinned_mask[i]:
            inv_mass = 1.0 / mass[i]

            vx = pos[i, 0] - prev_pos[i, 0]
            vy = pos[i, 1] - prev_pos[i, 1]

            prev_pos[i, 0] = pos[i, 0]
            prev_pos[i, 1] = pos[i, 1]

            pos[i, 0] += vx + force[i, 0] * inv_mass * dt_sq
            pos[i, 1] += vy + force[i, 1] * inv_mass * dt_sq

        force[i, 0] = 0.0
        force[i, 1] = 0.0


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def intact_springs(
    pos: POSITIONS,
    spring_i: INDEX,
    spring_j: INDEX,
    rest_lengths: np.ndarray,
    tear_threshold: float,
) -> MASK:
    """True for every spring stretched less than rest_length * tear_threshold."""
    keep = np.empty(len(spring_i), dtype=np.bool_)
    for s in prange(len(spring_i)):
        a = spring_i[s]
        b = spring_j[s]
        dx = pos[b, 0] - pos[a, 0]
        dy = pos[b, 1] - pos[a, 1]
        keep[s] = np.sqrt(dx * dx + dy * dy) < rest_lengths[s] * tear_threshold
    return keep


@njit(fastmath=True, cache=True)  # type: ignore
def relax_springs(
    pos: POSITIONS,
    spring_i: INDEX,
    spring_j: INDEX,
    rest_lengths: np.ndarray,
    stiffness: float,
    pinned_mask: MASK,
) -> None:
    """
    One Gauss-Seidel sweep over all springs.

    Springs are processed in list order and each correction is visible to
    the springs after it, so this loop must stay sequential.
    """
    for s in range(len(spring_i)):
        a = spring_i[s]
        b = spring_j[s]

        dx = pos[b, 0] - pos[a, 0]
        dy = pos[b, 1] - pos[a, 1]
        dist = np.sqrt(dx * dx + dy * dy)
        if dist == 0.0:
            continue

        diff = (dist - rest_lengths[s]) / dist
        off_x = dx * 0.5 * diff * stiffness
        off_y = dy * 0.5 * diff * stiffness

        if not pinned_mask[a]:
            pos[a, 0] += off_x
            pos[a, 1] += off_y

        if not pinned_mask[b]:
            pos[b, 0] -= off_x
            pos[b, 1] -= off_y


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def uncut_springs(
    pos: POSITIONS,
    spring_i: INDEX,
    spring_j: INDEX,
    px: float,
    py: float,
    radius: float,
) -> MASK:
    """True for every spring whose segment stays farther than radius from (px, py)."""
    keep = np.empty(len(spring_i), dtype=np.bool_)
    for s in prange(len(spring_i)):
        a = spring_i[s]
        b = spring_j[s]
        d = segment_distance(px, py, pos[a, 0], pos[a, 1], pos[b, 0], pos[b, 1])
        keep[s] = d > radius
    return keep


# ===============================
# SOLVER CLASS
# ===============================


class ClothSolver:
    """
    Owns one cloth: the particle store, the live spring set and the grid
    dimensions it was built from.

    Springs are only ever removed (tearing, cutting), never added back.
    A new topology means a new ClothSolver.
    """

    def __init__(
        self,
        particles: list[Particle],
        springs: list[Spring],
        width: int = 0,
        height: int = 0,
        spacing: float = 0.0,
    ) -> None:
        self.width = width
        self.height = height
        self.spacing = spacing

        self.pos = np.array(
            [[p.pos.x, p.pos.y] for p in particles], dtype=np.float64
        ).reshape(-1, 2)
        self.prev_pos = np.array(
            [[p.prev_pos.x, p.prev_pos.y] for p in particles], dtype=np.float64
        ).reshape(-1, 2)
        self.force = np.array(
            [[p.force.x, p.force.y] for p in particles], dtype=np.float64
        ).reshape(-1, 2)
        self.mass = np.array([p.mass for p in particles], dtype=np.float64)
        self.pinned_mask = np.array([p.pinned for p in particles], dtype=np.bool_)

        # Springs
        self.spring_i = np.array([s.a for s in springs], dtype=np.int32)
        self.spring_j = np.array([s.b for s in springs], dtype=np.int32)
        self.rest_lengths = np.array([s.rest_length for s in springs], dtype=np.float64)

        # Endpoints are checked once here so the kernels can index freely
        n = len(particles)
        for s in springs:
            if not (0 <= s.a < n and 0 <= s.b < n):
                raise ValueError(f"Spring ({s.a}, {s.b}) references a particle outside 0..{n - 1}")

        if np.any(self.mass <= 0):
            raise ValueError("Particle mass must be positive")

        # Diagnostics
        self.torn_total = 0
        self.cut_total = 0
        self.steps_stable = 0
        self.is_exploded = False

        print(f"[Solver] Initialized: {n} particles, {len(springs)} springs")

    @property
    def num_particles(self) -> int:
        return len(self.pos)

    @property
    def num_springs(self) -> int:
        return len(self.spring_i)

    # ------------------------
    # Frame step
    # ------------------------

    def apply_forces(self, gravity: Sequence[float]) -> None:
        accumulate_force(self.force, float(gravity[0]), float(gravity[1]))

    def integrate(self, dt: float) -> None:
        integrate_verlet(
            self.pos, self.prev_pos, self.force, self.mass, self.pinned_mask, dt
        )

    def relax(self, iterations: int, stiffness: float, tear_threshold: float) -> int:
        """Tear then relax, `iterations` times. Returns the number of springs torn."""
        torn = 0
        for _ in range(iterations):
            keep = intact_springs(
                self.pos, self.spring_i, self.spring_j, self.rest_lengths, tear_threshold
            )
            torn += self._retain(keep)

            relax_springs(
                self.pos,
                self.spring_i,
                self.spring_j,
                self.rest_lengths,
                stiffness,
                self.pinned_mask,
            )

        self.torn_total += torn
        return torn

    def step(
        self,
        dt: float,
        gravity: Sequence[float],
        iterations: int,
        stiffness: float,
        tear_threshold: float,
    ) -> None:
        """Advance one frame: forces, integration, tear/relax iterations."""
        if self.is_exploded:
            return

        dt = min(dt, MAX_DT)

        self.apply_forces(gravity)
        self.integrate(dt)
        self.relax(iterations, stiffness, tear_threshold)

        if not np.isfinite(self.pos).all():
            self.is_exploded = True
            print("[Solver] Warning: Simulation became unstable!")
            print(f"  Stable for {self.steps_stable} steps, reset to continue")
        else:
            self.steps_stable += 1

    # ------------------------
    # Interaction
    # ------------------------

    def cut(self, point: Sequence[float], radius: float) -> int:
        """Remove every spring within `radius` of `point`. Returns the number removed."""
        keep = uncut_springs(
            self.pos,
            self.spring_i,
            self.spring_j,
            float(point[0]),
            float(point[1]),
            radius,
        )
        removed = self._retain(keep)
        self.cut_total += removed
        return removed

    def drag(self, idx: int, point: Sequence[float]) -> None:
        """Move a particle to `point`; its old position becomes prev_pos so release keeps the motion."""
        self.prev_pos[idx] = self.pos[idx]
        self.pos[idx] = point

    def nearest_particle(self, point: Sequence[float]) -> tuple[int, float]:
        """Index of the particle closest to `point` and its squared distance."""
        if self.num_particles == 0:
            return -1, float("inf")
        d_sq = np.sum((self.pos - np.asarray(point, dtype=np.float64)) ** 2, axis=1)
        idx = int(np.argmin(d_sq))
        return idx, float(d_sq[idx])

    # ------------------------
    # Output
    # ------------------------

    def segments(self) -> np.ndarray:
        """Endpoint positions of every live spring, shape (num_springs, 2, 2)."""
        return np.stack((self.pos[self.spring_i], self.pos[self.spring_j]), axis=1)

    def _retain(self, keep: MASK) -> int:
        removed = int(len(keep) - np.count_nonzero(keep))
        if removed:
            # Boolean indexing preserves the relative order of survivors
            self.spring_i = self.spring_i[keep]
            self.spring_j = self.spring_j[keep]
            self.rest_lengths = self.rest_lengths[keep]
        return removed
