"""Forward kinematics over a RobotModel.

Link poses are expressed in the robot's root-link frame. The robot
controller composes them with the base pose to place links in the world.
"""

from typing import Dict

import jax
import jax.numpy as jnp
from jax import Array

from .core import RobotModel
from .transforms import se3


def forward_kinematics(robot: RobotModel, q: Array) -> Dict[str, Array]:
    """Compute the pose of every link.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint positions of shape (num_dof,), ordered as robot.joint_names

    Returns:
        Dictionary mapping link names to their 4x4 poses in the root frame
    """
    world_transforms = forward_kinematics_world(robot, q)
    return {name: world_transforms[i] for i, name in enumerate(robot.link_names)}


def forward_kinematics_world(robot: RobotModel, q: Array) -> Array:
    """Array form of forward_kinematics.

    Returns:
        Array of shape (num_links, 4, 4), indexed like robot.link_names
    """
    num_links = len(robot.link_names)

    # Scatter actuated positions onto the links their joints move
    q_full = jnp.zeros(num_links).at[robot.actuated_joint_to_link_idx].set(q)

    transforms = jnp.identity(4)[None].repeat(num_links, axis=0)

    def scan_body(carry, i):
        T_root_to_parent = carry[robot.parent_indices[i]]
        T_parent_to_child = robot.joint_transforms[i] @ se3.exp(robot.joint_axes[i] * q_full[i])
        return carry.at[i].set(T_root_to_parent @ T_parent_to_child), None

    if num_links == 1:
        return transforms

    # Links are breadth-first, so a parent is always computed before its children
    final_transforms, _ = jax.lax.scan(scan_body, transforms, jnp.arange(1, num_links))
    return final_transforms


def link_pose(robot: RobotModel, q: Array, link_name: str) -> Array:
    """Pose of a single link in the root frame."""
    try:
        link_idx = robot.link_names.index(link_name)
    except ValueError:
        raise ValueError(f"Link '{link_name}' not found in robot model")
    return forward_kinematics_world(robot, q)[link_idx]
