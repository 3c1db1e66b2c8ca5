import numpy as np
from numpy.typing import NDArray

from tearcloth.models import Particle, Spring

POSITIONS = NDArray[np.float64]
INDEX = NDArray[np.int32]
MASK = NDArray[np.bool_]
GEN_GRID = tuple[list[Particle], list[Spring]]
PROJ = NDArray[np.float32]
