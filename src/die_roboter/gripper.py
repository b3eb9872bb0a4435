"""Grip detection from gripper contacts.

There is no grasp constraint in the physics engine, so grasping is
approximated: an object touched by both gripper parts at once is "gripped".
It stops being simulated on its own and is carried rigidly by gripper part A
until either part loses contact with it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol, Set

from jax import Array

from .transforms import se3

logger = logging.getLogger(__name__)

# Collision flags understood by the physics world
COLLISION_FLAG_DYNAMIC = 0
COLLISION_FLAG_KINEMATIC = 2

GRIPPER_PART_A = "a"
GRIPPER_PART_B = "b"

CONTACT_START = "start"
CONTACT_END = "end"


class PhysicsBody(Protocol):
    """Rigid body handle owned by the physics world."""
    need_update: bool

    def set_collision_flags(self, flags: int) -> None:
        ...

    def on_collision(self, callback: Callable[[Any, str], None]) -> None:
        ...


class GrippableObject(Protocol):
    """Scene object that can be picked up.

    ``pose`` is the object's 4x4 world pose; writing it moves the object.
    """
    name: str
    grippable: bool
    pose: Array
    body: PhysicsBody


@dataclass
class GrippedObject:
    obj: Any
    offset: Array  # object pose in gripper A's frame at grip time


class GripTracker:
    """Tracks contacts of the two gripper parts and the objects they hold.

    Args:
        gripper_pose: Returns the current 4x4 world pose of gripper part A.
    """

    def __init__(self, gripper_pose: Callable[[], Array]):
        self.gripper_pose = gripper_pose
        self.touched: Dict[str, Set[str]] = {GRIPPER_PART_A: set(), GRIPPER_PART_B: set()}
        self.gripped: Dict[str, GrippedObject] = {}

    @staticmethod
    def _other(part: str) -> str:
        return GRIPPER_PART_B if part == GRIPPER_PART_A else GRIPPER_PART_A

    def on_contact(self, part: str, obj: GrippableObject, event: str) -> None:
        """Collision callback for one gripper part.

        Contacts with the ground or with non-grippable objects are ignored.
        """
        if part not in self.touched:
            raise ValueError(f"Unknown gripper part '{part}'")
        if obj.name == "ground" or not getattr(obj, "grippable", False):
            return

        if event == CONTACT_START:
            self.touched[part].add(obj.name)
            if obj.name in self.touched[self._other(part)]:
                self.grip(obj)
        elif event == CONTACT_END:
            self.touched[part].discard(obj.name)
            self.release(obj.name)

    def grip(self, obj: GrippableObject) -> None:
        """Attach ``obj`` to gripper A at its current relative pose."""
        offset = se3.relative(self.gripper_pose(), obj.pose)
        self.gripped[obj.name] = GrippedObject(obj=obj, offset=offset)
        obj.body.set_collision_flags(COLLISION_FLAG_KINEMATIC)
        logger.info("gripped %s", obj.name)

    def release(self, name: str) -> bool:
        """Detach an object and hand it back to the physics simulation."""
        entry = self.gripped.pop(name, None)
        if entry is None:
            return False
        entry.obj.body.set_collision_flags(COLLISION_FLAG_DYNAMIC)
        logger.info("ungripped %s", name)
        return True

    def release_all(self) -> None:
        for name in list(self.gripped):
            self.release(name)
        for touched in self.touched.values():
            touched.clear()

    def is_gripped(self, name: str) -> bool:
        return name in self.gripped

    def update_positions(self) -> None:
        """Move every gripped object along with gripper A."""
        if not self.gripped:
            return
        T_gripper = self.gripper_pose()
        for entry in self.gripped.values():
            entry.obj.pose = se3.multiply(T_gripper, entry.offset)
            entry.obj.body.need_update = True
