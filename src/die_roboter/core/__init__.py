"""Core robot data structures.

``RobotModel`` and its records describe a parsed robot; ``JointState`` holds
the joint positions of a loaded one.
"""

from .joint_state import JointState
from .robot_model import Geometry, Joint, JointLimit, Link, RobotModel, Visual

__all__ = ["RobotModel", "Link", "Joint", "JointLimit", "Visual", "Geometry", "JointState"]
