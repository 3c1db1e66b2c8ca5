# grid.py
"""
Rectangular cloth mesh generation.

Each grid cell emits, where the target exists:
1. Structural springs to the right and lower neighbours (resist stretch)
2. Bending springs two cells right and two cells down (resist folding)
3. Both diagonals of the cell (resist shear)

Springs are emitted in that order cell by cell, row-major. The solver
relaxes them sequentially, so this order is part of the result.
"""

import math

from tearcloth.models import Particle, Spring, Vector2
from tearcloth.types import GEN_GRID


def generate_grid(
    width: int,
    height: int,
    spacing: float,
    origin: tuple[float, float] = (0.0, 0.0),
) -> GEN_GRID:
    """
    Generate a hanging cloth grid.

    Args:
        width: Particles per row (>= 2)
        height: Particles per column (>= 2)
        spacing: Distance between neighbouring particles (> 0)
        origin: Position of particle (0, 0); the top row is pinned

    Returns:
        (particles, springs) tuple, particles row-major (index = y*width + x)
    """
    if width < 2 or height < 2:
        raise ValueError(f"Grid must be at least 2x2, got {width}x{height}")
    if spacing <= 0:
        raise ValueError(f"spacing must be positive, got {spacing}")

    start = Vector2(*origin)
    particles: list[Particle] = []
    springs: list[Spring] = []

    # 1. PARTICLES, top row pinned
    for y in range(height):
        for x in range(width):
            pos = start + Vector2(x, y) * spacing
            particles.append(Particle(pos.x, pos.y, pinned=y == 0))

    # 2. SPRINGS
    diagonal = spacing * math.sqrt(2)
    for y in range(height):
        for x in range(width):
            i = y * width + x

            if x < width - 1:
                springs.append(Spring(i, i + 1, spacing, "structural"))
            if x < width - 2:
                springs.append(Spring(i, i + 2, spacing * 2, "bending"))
            if y < height - 1:
                springs.append(Spring(i, i + width, spacing, "structural"))
            if y < height - 2:
                springs.append(Spring(i, i + 2 * width, spacing * 2, "bending"))
            if x < width - 1 and y < height - 1:
                springs.append(Spring(i, i + width + 1, diagonal, "shear"))
                springs.append(Spring(i + 1, i + width, diagonal, "shear"))

    print(f"[Grid] Generated {len(particles)} particles ({width}x{height})")

    structural = sum(1 for s in springs if s.kind == "structural")
    bending = sum(1 for s in springs if s.kind == "bending")
    shear = sum(1 for s in springs if s.kind == "shear")
    print(f"[Grid] Generated {len(springs)} springs")
    print(f"  Structural: {structural}")
    print(f"  Bending:    {bending}")
    print(f"  Shear:      {shear}")

    return particles, springs
