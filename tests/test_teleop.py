"""Tests for joystick, rotation and gamepad control."""

import asyncio
import logging
import math

import pytest

from die_roboter.robot import Movable
from die_roboter.teleop import (
    DEAD_ZONE,
    POSITION_STEP,
    ROTATION_SPEED,
    ROTATION_TRIGGER_SCALE,
    ControlLoop,
    GamepadButton,
    MovementControl,
)


class RecordingBase(Movable):
    def __init__(self):
        self.moves = []
        self.rotations = []

    def move_by(self, dx, dz):
        self.moves.append((dx, dz))

    def rotate_by(self, delta):
        self.rotations.append(delta)


@pytest.fixture
def base():
    return RecordingBase()


@pytest.fixture
def control(base):
    return MovementControl(base)


def test_idle_controls_do_nothing(control, base):
    for _ in range(3):
        assert control.apply_joystick_motion() is False
        assert control.apply_rotation_motion() is False
        assert control.apply_gamepad([0.0] * 6) is False
    assert base.moves == []
    assert base.rotations == []


def test_joystick_motion(control, base):
    control.set_vector(1.0, -0.5)
    assert control.apply_joystick_motion() is True
    assert base.moves == [pytest.approx((POSITION_STEP, -0.5 * POSITION_STEP))]


def test_tiny_joystick_deflection_ignored(control, base):
    control.set_vector(0.01, 0.01)
    assert control.apply_joystick_motion() is False
    assert base.moves == []


def test_rotation_motion(control, base):
    control.rotation_direction = -1
    assert control.apply_rotation_motion() is True
    assert base.rotations == [pytest.approx(-ROTATION_SPEED)]


def test_gamepad_stick_dead_zone(control, base):
    assert control.apply_gamepad([0.0, 0.0, DEAD_ZONE / 2, -DEAD_ZONE / 2]) is False
    assert base.moves == []

    assert control.apply_gamepad([0.0, 0.0, 0.5, -DEAD_ZONE / 2]) is True
    assert base.moves == [pytest.approx((0.5 * POSITION_STEP, 0.0))]


def test_gamepad_triggers_drive_rotation(control, base):
    buttons = [GamepadButton() for _ in range(8)]
    buttons[7] = GamepadButton(pressed=True, value=1.0)

    control.apply_gamepad([0.0, 0.0, 0.0, 0.0, 0.25, 0.0], buttons)
    assert control.gamepad_influence == pytest.approx(0.75 * ROTATION_TRIGGER_SCALE)

    control.apply_rotation_motion()
    assert base.rotations == [pytest.approx(0.75 * ROTATION_TRIGGER_SCALE)]


def test_trigger_axes_without_buttons(control):
    control.apply_gamepad([0.0, 0.0, 0.0, 0.0, 1.0, 0.0])
    assert control.gamepad_influence == pytest.approx(-math.pi / 180)


def test_disconnected_gamepad_resets_influence(control, base):
    control.apply_gamepad([0.0, 0.0, 0.0, 0.0, 0.0, 1.0])
    control.apply_gamepad(None)

    assert control.gamepad_influence == 0.0
    assert control.apply_rotation_motion() is False


def test_control_loop_runs_until_stopped():
    calls = []

    async def run():
        loop = ControlLoop(lambda: calls.append(1), interval=0.001).start()
        assert loop.running
        await asyncio.sleep(0.05)
        loop.stop()
        count = len(calls)
        await asyncio.sleep(0.01)
        return loop, count

    loop, count = asyncio.run(run())
    assert count > 1
    assert len(calls) == count
    assert not loop.running


def test_control_loop_survives_failing_step(caplog):
    """A step that raises is logged and the loop keeps polling."""
    calls = []

    def step():
        calls.append(1)
        raise RuntimeError("bad sample")

    async def run():
        loop = ControlLoop(step, interval=0.001).start()
        await asyncio.sleep(0.05)
        still_running = loop.running
        loop.stop()
        return still_running

    with caplog.at_level(logging.ERROR):
        still_running = asyncio.run(run())

    assert still_running
    assert len(calls) > 1
    assert "bad sample" in caplog.text
