"""
Rigid-body transform helpers used by the URDF loader, forward kinematics and
the gripper tracker.

- SO(3) rotations (so3 module)
- SE(3) poses (se3 module)
"""

from . import so3
from . import se3

__all__ = [
    "so3",
    "se3",
]
