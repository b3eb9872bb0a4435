"""Robot description records produced by the URDF loader.

``RobotModel`` is an immutable PyTree: the descriptive records (links, joints,
names, colours) are static fields, the kinematic tables are JAX arrays so the
model can be passed straight into jitted forward kinematics.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from flax import struct
from jax import Array

Vec3 = Tuple[float, float, float]
RGBA = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Geometry:
    """Shape of a visual or collision element.

    ``kind`` is one of ``mesh``, ``box``, ``cylinder`` or ``sphere``; only the
    parameters relevant to that kind are set.
    """
    kind: str
    filename: Optional[str] = None
    mesh_type: Optional[str] = None
    scale: Vec3 = (1.0, 1.0, 1.0)
    size: Optional[Vec3] = None
    radius: Optional[float] = None
    length: Optional[float] = None


@dataclass(frozen=True)
class Visual:
    """A ``<visual>`` or ``<collision>`` element of a link."""
    geometry: Optional[Geometry] = None
    origin_xyz: Vec3 = (0.0, 0.0, 0.0)
    origin_rpy: Vec3 = (0.0, 0.0, 0.0)
    color_rgba: Optional[RGBA] = None


@dataclass(frozen=True)
class Link:
    name: str
    visuals: Tuple[Visual, ...] = ()
    collisions: Tuple[Visual, ...] = ()


@dataclass(frozen=True)
class JointLimit:
    """``<limit>`` of a joint.

    ``lower``/``upper`` stay ``None`` when the attribute is absent so callers
    can tell an unspecified bound from a zero one.
    """
    lower: Optional[float] = None
    upper: Optional[float] = None
    effort: float = 0.0
    velocity: float = 0.0


@dataclass(frozen=True)
class Joint:
    name: str
    type: str
    parent: str
    child: str
    origin_xyz: Vec3 = (0.0, 0.0, 0.0)
    origin_rpy: Vec3 = (0.0, 0.0, 0.0)
    axis: Vec3 = (0.0, 0.0, 1.0)
    limit: Optional[JointLimit] = None

    @property
    def is_actuated(self) -> bool:
        return self.type != "fixed"


@struct.dataclass
class RobotModel:
    """Immutable PyTree representation of a parsed URDF robot.

    Attributes:
        name: ``name`` attribute of the ``<robot>`` element.
        links: Link records in document order.
        joints: Joint records in document order, fixed joints included.
        link_names: Link names in breadth-first order from the root link.
                    Index i of every kinematic array refers to link_names[i].
        joint_names: Names of the actuated (non-fixed) joints, document order.
        colors: Named materials as (name, rgba) pairs.
        parent_indices: (num_links,) parent link index; the root parents itself.
        joint_transforms: (num_links, 4, 4) joint origin of each link's parent
                          joint, identity for the root.
        joint_axes: (num_links, 6) twist axis [v, w] of each link's parent
                    joint, zero for fixed joints and the root.
        actuated_joint_to_link_idx: (num_dof,) link index driven by each
                                    actuated joint.
    """
    name: str = struct.field(pytree_node=False)
    links: Tuple[Link, ...] = struct.field(pytree_node=False)
    joints: Tuple[Joint, ...] = struct.field(pytree_node=False)
    link_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    colors: Tuple[Tuple[str, RGBA], ...] = struct.field(pytree_node=False)
    parent_indices: Array
    joint_transforms: Array
    joint_axes: Array
    actuated_joint_to_link_idx: Array

    @property
    def link_map(self) -> Dict[str, Link]:
        return {link.name: link for link in self.links}

    @property
    def joint_map(self) -> Dict[str, Joint]:
        return {joint.name: joint for joint in self.joints}

    @property
    def root_link(self) -> str:
        return self.link_names[0]

    @property
    def num_dof(self) -> int:
        return len(self.joint_names)
