"""
Die Roboter: URDF robot-arm control with pivots, inverse kinematics and grip
tracking.

Pivots expose friendly control ranges for the joints of a URDF model; the
kinematics run on JAX.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from . import io
from .robot import InitializationStatus, LoadOptions, Movable, Robot, RobotError, RobotNotInitializedError
from .robots import ROBOTS, SO101, LeKiwi

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "Robot",
    "LoadOptions",
    "Movable",
    "InitializationStatus",
    "RobotError",
    "RobotNotInitializedError",
    "SO101",
    "LeKiwi",
    "ROBOTS",
]
