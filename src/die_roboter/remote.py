"""JSON messages for driving a robot from a remote peer.

Wire format::

    {"type": "move", "data": {"dx": 0.1, "dz": 0.0}, "timestamp": 1700000000000}

Transport is up to the caller; this module only decodes messages and applies
them to a robot.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Union

from .robot import Robot

logger = logging.getLogger(__name__)

MESSAGE_TYPES = ("move", "rotate", "joint", "gripper", "ping")


@dataclass(frozen=True)
class RobotControlMessage:
    type: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = 0.0


def decode_message(raw: Union[str, bytes, Mapping[str, Any]]) -> RobotControlMessage:
    """Parse a message from JSON text, bytes or an already decoded dict.

    Raises:
        ValueError: Malformed JSON, or a missing or unknown ``type``.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed control message: {e}") from e

    if not isinstance(raw, Mapping):
        raise ValueError("Control message must be a JSON object")

    msg_type = raw.get("type")
    if msg_type not in MESSAGE_TYPES:
        raise ValueError(f"Unknown control message type: {msg_type!r}")

    data = raw.get("data") or {}
    if not isinstance(data, Mapping):
        raise ValueError("Control message 'data' must be an object")

    return RobotControlMessage(type=msg_type, data=dict(data),
                               timestamp=raw.get("timestamp", 0.0))


def encode_message(message: RobotControlMessage) -> str:
    """Serialize ``message``, stamping it with the current time in ms."""
    return json.dumps({
        "type": message.type,
        "data": message.data,
        "timestamp": int(time.time() * 1000),
    })


class RemoteControlDispatcher:
    """Applies decoded control messages to a robot."""

    def __init__(self, robot: Robot):
        self.robot = robot

    def handle(self, message: RobotControlMessage) -> bool:
        """Apply one message.

        Returns:
            True if the message was applied. False if the robot is not loaded
            yet, a required field is missing, or the pivot does not exist.
        """
        if self.robot.joints is None:
            logger.warning("Robot '%s' is not loaded; dropping %s message",
                           self.robot.name, message.type)
            return False

        data = message.data
        try:
            if message.type == "move":
                self.robot.move_by(float(data["dx"]), float(data["dz"]))
                return True
            if message.type == "rotate":
                self.robot.rotate_by(float(data["delta"]))
                return True
            if message.type == "joint":
                return self.robot.set_pivot_value(data["jointName"], float(data["value"]))
            if message.type == "gripper":
                if "gripper" not in self.robot.pivots:
                    logger.warning("Robot '%s' has no gripper pivot", self.robot.name)
                    return False
                return self.robot.set_pivot_value("gripper", float(data["value"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring %s message with bad data %r: %s", message.type, data, e)
            return False

        if message.type == "ping":
            logger.debug("ping at %s", message.timestamp)
            return True

        logger.warning("Unknown control message type: %s", message.type)
        return False
