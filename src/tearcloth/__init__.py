"""
Tearable Cloth Simulation Package

An interactive 2D cloth built from a mass-spring grid, integrated with
Verlet steps and relaxed iteratively. Springs tear under strain and can
be cut with the cursor.
"""

from .config import ClothConfig
from .models import Particle, Spring, Vector2
from .simulation import ClothSimulation, RenderSnapshot

__version__ = "0.1.0"

__all__ = [
    "Vector2",
    "Particle",
    "Spring",
    "ClothConfig",
    "ClothSimulation",
    "RenderSnapshot",
]
