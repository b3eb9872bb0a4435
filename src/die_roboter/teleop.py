"""Joystick, rotation and gamepad driving of a robot base.

``MovementControl`` turns control state into ``Movable.move_by`` /
``rotate_by`` calls; ``ControlLoop`` runs one of its step methods at a fixed
cadence on the event loop. Steps with zero input issue no motion, so loops
can run continuously.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .robot import Movable

logger = logging.getLogger(__name__)

POSITION_STEP = 0.06
DEAD_ZONE = 0.15
GAMEPAD_POLL_INTERVAL = 0.06
FRAME_INTERVAL = 1 / 60
ROTATION_SPEED = math.pi / 360
ROTATION_TRIGGER_SCALE = math.pi / 180

MOVE_EPSILON = 1e-3
ROTATE_EPSILON = 1e-5


@dataclass
class GamepadButton:
    pressed: bool = False
    value: float = 0.0


def _axis(axes: Sequence[float], index: int) -> float:
    return axes[index] if index < len(axes) else 0.0


class MovementControl:
    """Control state for driving a Movable.

    Attributes:
        vector_x, vector_z: Manual joystick deflection in [-1, 1].
        rotation_direction: Manual rotation, -1, 0 or 1.
        gamepad_influence: Rotation per step from the gamepad triggers.
    """

    def __init__(self, movable: Movable):
        self.movable = movable
        self.vector_x = 0.0
        self.vector_z = 0.0
        self.rotation_direction = 0
        self.gamepad_influence = 0.0

    def set_vector(self, x: float, z: float) -> None:
        self.vector_x = x
        self.vector_z = z

    def apply_joystick_motion(self) -> bool:
        dx = self.vector_x * POSITION_STEP
        dz = self.vector_z * POSITION_STEP
        if abs(dx) > MOVE_EPSILON or abs(dz) > MOVE_EPSILON:
            self.movable.move_by(dx, dz)
            return True
        return False

    def apply_rotation_motion(self) -> bool:
        delta = self.rotation_direction * ROTATION_SPEED + self.gamepad_influence
        if abs(delta) > ROTATE_EPSILON:
            self.movable.rotate_by(delta)
            return True
        return False

    def apply_gamepad(self, axes: Optional[Sequence[float]],
                      buttons: Sequence[GamepadButton] = ()) -> bool:
        """Apply one gamepad sample.

        Right stick (axes 2 and 3) translates; triggers (axes 4/5 or
        buttons 6/7) set the rotation influence. ``axes=None`` means no
        gamepad is connected.

        Returns:
            True if the sample moved the robot.
        """
        if axes is None:
            self.gamepad_influence = 0.0
            return False

        axis_x = _axis(axes, 2)
        axis_z = _axis(axes, 3)
        dx = axis_x * POSITION_STEP if abs(axis_x) > DEAD_ZONE else 0.0
        dz = axis_z * POSITION_STEP if abs(axis_z) > DEAD_ZONE else 0.0

        moved = False
        if dx != 0 or dz != 0:
            self.movable.move_by(dx, dz)
            moved = True

        left = max(_axis(axes, 4), buttons[6].value if len(buttons) > 6 else 0.0)
        right = max(_axis(axes, 5), buttons[7].value if len(buttons) > 7 else 0.0)
        self.gamepad_influence = (right - left) * ROTATION_TRIGGER_SCALE
        return moved


class ControlLoop:
    """Calls ``step`` every ``interval`` seconds until stopped.

    A step that raises is logged and the loop carries on with the next tick.
    Must be started from a running event loop.
    """

    def __init__(self, step: Callable[[], object], interval: float = FRAME_INTERVAL):
        self.step = step
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "ControlLoop":
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    async def _run(self) -> None:
        while True:
            try:
                self.step()
            except Exception:
                logger.exception("Control step %r failed", self.step)
            await asyncio.sleep(self.interval)

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
