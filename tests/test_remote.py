"""Tests for the remote control message codec and dispatcher."""

import asyncio
import json
import logging
import time

import pytest

from die_roboter import SO101, LoadOptions, Robot
from die_roboter.remote import RemoteControlDispatcher, RobotControlMessage, decode_message, encode_message


@pytest.fixture
def robot(so101_urdf):
    robot = SO101(model_path=so101_urdf)
    asyncio.run(robot.load_model(LoadOptions()))
    return robot


@pytest.fixture
def dispatcher(robot):
    return RemoteControlDispatcher(robot)


def test_decode_json_text():
    message = decode_message('{"type": "move", "data": {"dx": 0.1, "dz": -0.2}, "timestamp": 12}')
    assert message == RobotControlMessage("move", {"dx": 0.1, "dz": -0.2}, 12)


def test_decode_bytes_and_dict():
    raw = {"type": "ping", "timestamp": 5}
    assert decode_message(json.dumps(raw).encode()) == decode_message(raw)
    assert decode_message(raw).data == {}


@pytest.mark.parametrize("raw", [
    "{not json",
    "[1, 2]",
    '{"data": {}}',
    '{"type": "jump", "data": {}}',
    '{"type": "move", "data": [1, 2]}',
])
def test_decode_rejects_bad_messages(raw):
    with pytest.raises(ValueError):
        decode_message(raw)


def test_encode_stamps_time():
    before = int(time.time() * 1000)
    encoded = json.loads(encode_message(RobotControlMessage("rotate", {"delta": 0.1})))

    assert encoded["type"] == "rotate"
    assert encoded["data"] == {"delta": 0.1}
    assert encoded["timestamp"] >= before


def test_move_and_rotate(dispatcher, robot):
    start = robot.position.copy()

    assert dispatcher.handle(RobotControlMessage("move", {"dx": 1.0, "dz": 2.0}))
    assert dispatcher.handle(RobotControlMessage("rotate", {"delta": 0.25}))

    assert robot.position[0] == pytest.approx(start[0] + 1.0)
    assert robot.position[2] == pytest.approx(start[2] + 2.0)
    assert robot.rotation[2] == pytest.approx(0.25)


def test_joint_message_sets_pivot(dispatcher, robot):
    assert dispatcher.handle(RobotControlMessage("joint", {"jointName": "shoulder_lift", "value": 100}))
    assert robot.joints.value("Pitch") == pytest.approx(1.57)


def test_joint_message_unknown_pivot(dispatcher):
    assert dispatcher.handle(RobotControlMessage("joint", {"jointName": "tail", "value": 1})) is False


def test_gripper_message(dispatcher, robot):
    assert dispatcher.handle(RobotControlMessage("gripper", {"value": 0}))
    assert robot.joints.value("Jaw") == pytest.approx(-0.17)


def test_gripper_message_without_gripper_pivot(so101_urdf, caplog):

    robot = Robot("armless", so101_urdf)
    asyncio.run(robot.load_model())
    with caplog.at_level(logging.WARNING):
        assert RemoteControlDispatcher(robot).handle(RobotControlMessage("gripper", {"value": 0})) is False
    assert "no gripper pivot" in caplog.text


def test_missing_fields_are_ignored(dispatcher, robot, caplog):
    start = robot.position.copy()
    with caplog.at_level(logging.WARNING):
        assert dispatcher.handle(RobotControlMessage("move", {"dx": 1.0})) is False
        assert dispatcher.handle(RobotControlMessage("joint", {"value": 1.0})) is False
        assert dispatcher.handle(RobotControlMessage("rotate", {"delta": "fast"})) is False
    assert (robot.position == start).all()
    assert "Ignoring move message" in caplog.text


def test_ping(dispatcher):
    assert dispatcher.handle(RobotControlMessage("ping", {}, 42)) is True


def test_unknown_type_is_logged(dispatcher, caplog):
    with caplog.at_level(logging.WARNING):
        assert dispatcher.handle(RobotControlMessage("dance")) is False
    assert "dance" in caplog.text


def test_messages_before_load_are_dropped(so101_urdf, caplog):
    """An unloaded robot ignores every message and is left untouched."""
    robot = SO101(model_path=so101_urdf)
    dispatcher = RemoteControlDispatcher(robot)
    start = robot.position.copy()

    with caplog.at_level(logging.WARNING):
        assert dispatcher.handle(RobotControlMessage("move", {"dx": 1.0, "dz": 0.0})) is False
        assert dispatcher.handle(RobotControlMessage("rotate", {"delta": 0.5})) is False
        assert dispatcher.handle(RobotControlMessage("joint", {"jointName": "shoulder_lift", "value": 10})) is False
        assert dispatcher.handle(RobotControlMessage("gripper", {"value": 10})) is False

    assert (robot.position == start).all()
    assert robot.pivots["shoulder_lift"].value == 0
    assert "not loaded" in caplog.text
