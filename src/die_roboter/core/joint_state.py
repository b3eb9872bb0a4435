"""Mutable joint positions for a loaded RobotModel."""

import logging
from typing import Iterator, Mapping, Optional

import jax.numpy as jnp
import numpy as np
from jax import Array

from .robot_model import Joint, RobotModel

logger = logging.getLogger(__name__)


class JointState(Mapping[str, Joint]):
    """The physical joint set of a robot.

    Behaves as a read-only mapping from joint name to ``Joint`` record (every
    joint in the model, fixed ones included) and stores one position per
    actuated joint. Positions are stored exactly as given; limit enforcement
    belongs to the caller.
    """

    def __init__(self, robot: RobotModel):
        self.robot = robot
        self._joints = robot.joint_map
        self._index = {name: i for i, name in enumerate(robot.joint_names)}
        self._q = np.zeros(len(robot.joint_names))

    def __getitem__(self, name: str) -> Joint:
        return self._joints[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._joints)

    def __len__(self) -> int:
        return len(self._joints)

    def value(self, name: str) -> Optional[float]:
        """Current position of an actuated joint, ``None`` if there is none."""
        idx = self._index.get(name)
        if idx is None:
            return None
        return float(self._q[idx])

    def set_value(self, name: str, *values: float) -> bool:
        """Set a joint position.

        Single-DOF joints use the first value and ignore the rest.

        Returns:
            ``False`` when ``name`` is not an actuated joint of the model or
            no value was given, ``True`` otherwise.
        """
        idx = self._index.get(name)
        if idx is None:
            logger.debug("Ignoring value for unknown or fixed joint '%s'", name)
            return False
        if not values:
            return False
        self._q[idx] = float(values[0])
        return True

    def set_values(self, values: Mapping[str, float]) -> bool:
        ok = True
        for name, value in values.items():
            if isinstance(value, (list, tuple)):
                ok = self.set_value(name, *value) and ok
            else:
                ok = self.set_value(name, value) and ok
        return ok

    def positions(self) -> Array:
        """Positions of the actuated joints, in ``robot.joint_names`` order."""
        return jnp.asarray(self._q)
