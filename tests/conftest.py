"""Physics fakes shared by the robot and gripper tests."""

from pathlib import Path

import jax.numpy as jnp
import pytest

FIXTURES = Path(__file__).parent / "fixtures"


class FakeBody:
    def __init__(self, name):
        self.name = name
        self.need_update = False
        self.flags = []
        self.callbacks = []

    def set_collision_flags(self, flags):
        self.flags.append(flags)

    def on_collision(self, callback):
        self.callbacks.append(callback)

    def touch(self, other, event="start"):
        for callback in self.callbacks:
            callback(other, event)


class FakeWorld:
    def __init__(self):
        self.bodies = {}
        self.physics = {}

    def add_link(self, link_name, physics):
        body = FakeBody(link_name)
        self.bodies[link_name] = body
        self.physics[link_name] = physics
        return body


class FakeObject:
    def __init__(self, name, pose=None, grippable=True):
        self.name = name
        self.grippable = grippable
        self.pose = jnp.eye(4) if pose is None else pose
        self.body = FakeBody(name)


@pytest.fixture
def so101_urdf():
    return str(FIXTURES / "so101_arm.urdf")


@pytest.fixture
def world():
    return FakeWorld()


@pytest.fixture
def make_object():
    return FakeObject
