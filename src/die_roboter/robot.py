"""Robot controller: pivots, joints, base pose and physics wiring.

A ``Robot`` owns its pivot table and, once ``load_model`` has completed, the
joint state of its URDF model. Pivot values are user-facing numbers; they
reach the joints through the pivot's linear range mapping.

Typical use::

    robot = SO101()
    await robot.load_model(LoadOptions(physics=world))
    robot.set_pivot_value("shoulder_pan", 50)
"""

import functools
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

import jax.numpy as jnp
import numpy as np
from jax import Array

from .chain import link_pose
from .core import JointState, RobotModel
from .gripper import (
    COLLISION_FLAG_KINEMATIC,
    GRIPPER_PART_A,
    GripTracker,
    PhysicsBody,
)
from .io import fetch_urdf
from .pivots import Pivot, PivotConfig, PivotMap
from .transforms import se3, so3

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]

# Scene-graph rotation that turns a Z-up URDF into the Y-up world
BASE_ROTATION: Vec3 = (math.pi / 2, math.pi, 0.0)


class RobotError(RuntimeError):
    """Robot controller used out of order."""


class RobotNotInitializedError(RobotError):
    """A joint-level operation was called before the model finished loading."""


class InitializationStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    INITIALIZED = "initialized"


@dataclass(frozen=True)
class LinkPhysics:
    """Collision box attached to a link.

    Attributes:
        size: Box extents (x, y, z) in model units.
        offset: Box centre relative to the link origin.
        gripper_part: ``"a"`` or ``"b"`` for the two gripper jaws, else None.
    """
    size: Vec3 = (0.01, 0.01, 0.01)
    offset: Vec3 = (0.0, 0.0, 0.0)
    gripper_part: Optional[str] = None


class PhysicsWorld(Protocol):
    """The physics engine a robot registers its link bodies with."""

    def add_link(self, link_name: str, physics: LinkPhysics) -> PhysicsBody:
        ...


@dataclass(frozen=True)
class LoadOptions:
    """Options for ``Robot.load_model``.

    Attributes:
        scale: Uniform scale applied to the model (default 15).
        position: World offset of the robot base (default origin).
        rotation: Euler XYZ angles added on top of BASE_ROTATION.
        mesh_prefix: Folder that mesh paths in the URDF resolve against.
        physics: World to register link collision bodies with; None skips
                 physics wiring entirely.
        timeout: Seconds to wait for the URDF; None waits indefinitely.
    """
    scale: float = 15.0
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    mesh_prefix: str = ""
    physics: Optional[PhysicsWorld] = None
    timeout: Optional[float] = None


class Movable(ABC):
    """Something that can be driven around the floor plane."""

    @abstractmethod
    def move_by(self, dx: float, dz: float) -> None:
        """Translate along the world X and Z axes."""

    @abstractmethod
    def rotate_by(self, delta: float) -> None:
        """Turn about the vertical axis by ``delta`` radians."""


class Robot(Movable):
    """A URDF robot controlled through pivots.

    Args:
        name: Display name of the robot.
        model_path: URL or file path of the URDF.
        pivot_configs: Static pivot table, one entry per controllable joint.
        link_physics: Collision boxes keyed by link name.
    """

    def __init__(self, name: str, model_path: str,
                 pivot_configs: Iterable[PivotConfig] = (),
                 link_physics: Optional[Mapping[str, LinkPhysics]] = None):
        self.name = name
        self.model_path = model_path
        self.link_physics: Dict[str, LinkPhysics] = dict(link_physics or {})

        self._pivot_map = PivotMap.from_configs(pivot_configs)
        self._status = InitializationStatus.UNINITIALIZED
        self._joint_state: Optional[JointState] = None
        self.model: Optional[RobotModel] = None

        self.scale = 1.0
        self.position = np.zeros(3)
        self.rotation = np.array(BASE_ROTATION)

        self.link_bodies: Dict[str, PhysicsBody] = {}
        self.gripper_link: Optional[str] = None
        self.grip_tracker = GripTracker(self._gripper_pose)

        self._controls: List[Any] = []
        self._disposed = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, status={self._status.value})"

    @property
    def initialization_status(self) -> InitializationStatus:
        return self._status

    @property
    def pivots(self) -> Mapping[str, Pivot]:
        """Read-only view of the pivot table."""
        return self._pivot_map.view()

    @property
    def joints(self) -> Optional[JointState]:
        """Joint set of the loaded model, None before loading."""
        return self._joint_state

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_model(self, options: LoadOptions = LoadOptions()) -> RobotModel:
        """Fetch and parse the URDF, then bring pivots and joints in sync.

        Pivot ranges are replaced by the parsed joint limits and every pivot's
        current value is applied once, so the pose matches the pivot table.

        Raises:
            RobotError: If the robot was already loaded (or is loading).
        """
        if self._status is not InitializationStatus.UNINITIALIZED:
            raise RobotError(f"Robot '{self.name}' is {self._status.value}; it can only be loaded once")

        self._status = InitializationStatus.LOADING
        model = await fetch_urdf(self.model_path, prefix=options.mesh_prefix,
                                 timeout=options.timeout)

        self.scale = options.scale
        self.position = np.array(options.position, dtype=float)
        self.rotation = np.array(BASE_ROTATION) + np.array(options.rotation, dtype=float)

        self.model = model
        self._joint_state = JointState(model)
        self._pivot_map.apply_joint_limits(self._joint_state)

        for name, pivot in list(self._pivot_map.items()):
            self.set_pivot_value(name, pivot.value)

        self._status = InitializationStatus.INITIALIZED

        if options.physics is not None:
            self._attach_physics(options.physics)

        logger.info("Loaded robot '%s' (%d links, %d actuated joints)",
                    self.name, len(model.link_names), model.num_dof)
        return model

    def _attach_physics(self, world: PhysicsWorld) -> None:
        link_names = set(self.model.link_names)
        for link_name, physics in self.link_physics.items():
            if link_name not in link_names:
                logger.warning("Link '%s' has physics configured but is not in the model", link_name)
                continue

            body = world.add_link(link_name, physics)
            body.set_collision_flags(COLLISION_FLAG_KINEMATIC)
            self.link_bodies[link_name] = body

            if physics.gripper_part is None:
                continue
            if physics.gripper_part == GRIPPER_PART_A:
                self.gripper_link = link_name
            body.on_collision(functools.partial(self._on_gripper_contact, physics.gripper_part))

    def _on_gripper_contact(self, part: str, other: Any, event: str) -> None:
        if self._disposed:
            return
        self.grip_tracker.on_contact(part, other, event)

    # ------------------------------------------------------------------
    # Joints
    # ------------------------------------------------------------------

    def _require_model(self) -> JointState:
        if self._joint_state is None:
            raise RobotNotInitializedError("robot must be initialized before calling this function")
        return self._joint_state

    def _refresh_physics(self) -> None:
        for body in self.link_bodies.values():
            body.need_update = True
        self.grip_tracker.update_positions()

    def set_joint_value(self, joint_name: str, *values: float) -> bool:
        """Set one joint directly, in radians (or metres for prismatic joints).

        Returns:
            False if the model has no such actuated joint.

        Raises:
            RobotNotInitializedError: Before ``load_model`` has produced a model.
        """
        joints = self._require_model()
        ok = joints.set_value(joint_name, *values)
        self._refresh_physics()
        return ok

    def set_joint_values(self, values: Mapping[str, float]) -> bool:
        """Set several joints in one update; True only if all were found."""
        joints = self._require_model()
        ok = joints.set_values(values)
        self._refresh_physics()
        return ok

    # ------------------------------------------------------------------
    # Pivots
    # ------------------------------------------------------------------

    def set_pivot_value(self, name: str, value: float) -> bool:
        """Set a pivot and drive its joint with the mapped value.

        ``value`` is not clamped to the pivot's range; values outside it map
        past the joint limits.

        Returns:
            False if the pivot does not exist, otherwise the result of the
            joint update.
        """
        if name not in self._pivot_map:
            logger.error("Pivot '%s' not found", name)
            return False

        pivot = self._pivot_map[name]
        joint_value = pivot.to_joint_value(value)
        ok = self.set_joint_value(pivot.joint_name, joint_value)
        self._pivot_map.update(name, value=value, joint_value=joint_value)
        return ok

    def set_pivot_values(self, values: Mapping[str, float]) -> bool:
        """Set several pivots and apply their joints in one batch.

        Unknown pivots are logged and make the result False; the remaining
        pivots are still applied.
        """
        success = True
        joint_values: Dict[str, float] = {}

        for name, value in values.items():
            if name not in self._pivot_map:
                logger.error("Pivot '%s' not found", name)
                success = False
                continue
            pivot = self._pivot_map[name]
            joint_value = pivot.to_joint_value(value)
            joint_values[pivot.joint_name] = joint_value
            self._pivot_map.update(name, value=value, joint_value=joint_value)

        if joint_values:
            success = self.set_joint_values(joint_values) and success
        return success

    # ------------------------------------------------------------------
    # Poses
    # ------------------------------------------------------------------

    def base_transform(self) -> Array:
        """Rigid part of the base pose (rotation and position, no scale)."""
        return se3.from_position_and_rotation(jnp.asarray(self.position),
                                              so3.from_euler_xyz(jnp.asarray(self.rotation)))

    def link_world_pose(self, link_name: str) -> Array:
        """World pose of a link.

        The model scale stretches link positions but leaves orientations
        untouched, so the result is always a rigid transform.
        """
        joints = self._require_model()
        T_link = link_pose(self.model, joints.positions(), link_name)
        T_scaled = se3.from_position_and_rotation(self.scale * se3.get_position(T_link),
                                                  se3.get_rotation(T_link))
        return se3.multiply(self.base_transform(), T_scaled)

    def _gripper_pose(self) -> Array:
        if self.gripper_link is None:
            raise RobotError(f"Robot '{self.name}' has no gripper part A")
        return self.link_world_pose(self.gripper_link)

    def move_by(self, dx: float, dz: float) -> None:
        self.position[0] += dx
        self.position[2] += dz
        self._refresh_physics()

    def rotate_by(self, delta: float) -> None:
        self.rotation[2] += delta
        self._refresh_physics()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def attach_control(self, control: Any) -> None:
        """Register a control loop to be stopped by ``dispose``."""
        self._controls.append(control)

    def dispose(self) -> None:
        """Stop attached control loops and let go of physics objects."""
        if self._disposed:
            return
        self._disposed = True
        for control in self._controls:
            control.stop()
        self._controls.clear()
        self.grip_tracker.release_all()
        self.link_bodies.clear()
        logger.debug("Disposed robot '%s'", self.name)
