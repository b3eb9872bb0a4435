"""Tests for the transforms module."""

import math

import jax
import jax.numpy as jnp
import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from die_roboter.transforms import se3, so3


def test_quaternion_to_matrix_identity():
    """Identity quaternion gives the identity matrix."""
    matrix = so3.from_quaternion(jnp.array([1.0, 0.0, 0.0, 0.0]))
    np.testing.assert_allclose(matrix, jnp.eye(3), rtol=1e-6, atol=1e-6)


def test_quaternion_to_matrix_jit():
    """from_quaternion works under jit."""
    jitted_func = jax.jit(so3.from_quaternion)
    quat = jnp.array([0.7071068, 0.0, 0.7071068, 0.0])  # 90° around Y
    matrix = jitted_func(quat)
    expected = jnp.array([[0.0, 0.0, 1.0], [0.0, 1.0, 0.0], [-1.0, 0.0, 0.0]])
    np.testing.assert_allclose(matrix, expected, rtol=1e-6, atol=1e-6)


def test_transform_compose():
    """Composed transforms apply right to left."""
    t1 = se3.from_position_and_rotation(jnp.array([1.0, 0.0, 0.0]), jnp.eye(3))

    # Translation by [0, 1, 0] + 90° rotation around Z
    R_z90 = so3.from_quaternion(jnp.array([0.7071068, 0.0, 0.0, 0.7071068]))
    t2 = se3.from_position_and_rotation(jnp.array([0.0, 1.0, 0.0]), R_z90)

    transformed = se3.apply(se3.multiply(t1, t2), jnp.array([1.0, 0.0, 0.0]))
    np.testing.assert_allclose(transformed, jnp.array([1.0, 2.0, 0.0]), rtol=1e-6, atol=1e-6)


def test_from_position_and_rotation_batched():
    """Batched positions broadcast against a single rotation."""
    positions = jnp.tile(jnp.array([1.0, 2.0, 3.0]), (10, 1))
    transforms = se3.from_position_and_rotation(positions, jnp.eye(3))

    assert transforms.shape == (10, 4, 4)
    np.testing.assert_allclose(transforms[:, :3, 3], positions)
    np.testing.assert_allclose(transforms[:, 3, :], jnp.tile(jnp.array([0.0, 0.0, 0.0, 1.0]), (10, 1)))


def test_so3_exp_identity():
    """Zero axis-angle gives identity."""
    np.testing.assert_allclose(so3.exp(jnp.zeros(3)), jnp.eye(3), rtol=1e-6, atol=1e-6)


def test_so3_exp_quarter_turn():
    """exp of pi/2 about Z rotates X onto Y."""
    R = so3.exp(jnp.array([0.0, 0.0, math.pi / 2]))
    np.testing.assert_allclose(R @ jnp.array([1.0, 0.0, 0.0]), jnp.array([0.0, 1.0, 0.0]), atol=1e-9)


def test_so3_inverse():
    """R @ inverse(R) is identity."""
    R = so3.exp(jnp.array([0.1, 0.2, 0.3]))
    np.testing.assert_allclose(R @ so3.inverse(R), jnp.eye(3), rtol=1e-6, atol=1e-6)


def test_from_rpy_single_axes():
    """Each rpy component rotates about its own fixed axis."""
    np.testing.assert_allclose(so3.from_rpy(jnp.array([0.3, 0.0, 0.0])),
                               so3.exp(jnp.array([0.3, 0.0, 0.0])), atol=1e-9)
    np.testing.assert_allclose(so3.from_rpy(jnp.array([0.0, 0.3, 0.0])),
                               so3.exp(jnp.array([0.0, 0.3, 0.0])), atol=1e-9)
    np.testing.assert_allclose(so3.from_rpy(jnp.array([0.0, 0.0, 0.3])),
                               so3.exp(jnp.array([0.0, 0.0, 0.3])), atol=1e-9)


def test_from_rpy_order():
    """URDF rpy applies roll first, so R = Rz @ Ry @ Rx."""
    roll, pitch, yaw = 0.1, -0.4, 0.7
    expected = (so3.exp(jnp.array([0.0, 0.0, yaw]))
                @ so3.exp(jnp.array([0.0, pitch, 0.0]))
                @ so3.exp(jnp.array([roll, 0.0, 0.0])))
    np.testing.assert_allclose(so3.from_rpy(jnp.array([roll, pitch, yaw])), expected, atol=1e-9)


def test_from_euler_xyz_order():
    """Scene-graph Euler XYZ is R = Rx @ Ry @ Rz."""
    a, b, c = 0.2, 0.5, -0.3
    expected = (so3.exp(jnp.array([a, 0.0, 0.0]))
                @ so3.exp(jnp.array([0.0, b, 0.0]))
                @ so3.exp(jnp.array([0.0, 0.0, c])))
    np.testing.assert_allclose(so3.from_euler_xyz(jnp.array([a, b, c])), expected, atol=1e-9)


def test_se3_exp_pure_rotation():
    """A rotation-only twist leaves the origin in place."""
    T = se3.exp(jnp.array([0.0, 0.0, 0.0, 0.0, 0.0, 0.5]))
    np.testing.assert_allclose(se3.get_position(T), jnp.zeros(3), atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T), so3.exp(jnp.array([0.0, 0.0, 0.5])), atol=1e-12)


def test_se3_exp_pure_translation():
    """A translation-only twist translates by its linear part."""
    T = se3.exp(jnp.array([0.1, -0.2, 0.3, 0.0, 0.0, 0.0]))
    np.testing.assert_allclose(se3.get_position(T), jnp.array([0.1, -0.2, 0.3]), atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T), jnp.eye(3), atol=1e-12)


def test_relative_pose():
    """relative() expresses a pose in another frame, multiply() undoes it."""
    T_ref = se3.from_position_and_rotation(jnp.array([1.0, 0.0, 0.0]),
                                           so3.exp(jnp.array([0.0, 0.0, math.pi / 2])))
    T = se3.from_position_and_rotation(jnp.array([1.0, 1.0, 0.0]), jnp.eye(3))

    offset = se3.relative(T_ref, T)

    # One unit along world Y is one unit along the reference frame's -X
    np.testing.assert_allclose(se3.get_position(offset), jnp.array([1.0, 0.0, 0.0]), atol=1e-9)
    np.testing.assert_allclose(se3.multiply(T_ref, offset), T, atol=1e-9)


@given(st.integers(min_value=0, max_value=100))
@settings(deadline=None, max_examples=20)
def test_transform_inverse_property(seed):
    """Applying a transform and then its inverse returns the original points."""
    key1, key2, key3 = jax.random.split(jax.random.PRNGKey(seed), 3)

    positions = jax.random.uniform(key1, (5, 3), minval=-5.0, maxval=5.0)
    quats = jax.random.uniform(key2, (5, 4), minval=-1.0, maxval=1.0)
    transforms = se3.from_position_and_rotation(positions, so3.from_quaternion(quats))
    inverse_transforms = se3.inverse(transforms)

    points = jax.random.uniform(key3, (10, 3), minval=-10.0, maxval=10.0)
    transformed = jax.vmap(lambda T: se3.apply(T, points))(transforms)
    back = jax.vmap(lambda T, pts: se3.apply(T, pts))(inverse_transforms, transformed)

    np.testing.assert_allclose(back, jnp.broadcast_to(points[None], (5, 10, 3)), rtol=1e-5, atol=1e-5)


def test_matrix_to_quaternion_identity():
    """Identity matrix gives the identity quaternion."""
    quat = so3.to_quaternion(jnp.eye(3))
    np.testing.assert_allclose(quat, jnp.array([1.0, 0.0, 0.0, 0.0]), rtol=1e-6, atol=1e-6)


def test_matrix_to_quaternion_half_turn():
    """A half turn has w = 0 and uses a diagonal-based branch."""
    quat = so3.to_quaternion(so3.exp(jnp.array([0.0, jnp.pi, 0.0])))
    np.testing.assert_allclose(jnp.abs(quat), jnp.array([0.0, 0.0, 1.0, 0.0]), atol=1e-9)


@given(st.integers(min_value=0, max_value=100))
@settings(deadline=None, max_examples=20)
def test_quaternion_roundtrip(seed):
    """quaternion -> matrix -> quaternion gives the same rotation."""
    quat = jax.random.uniform(jax.random.PRNGKey(seed), (4,), minval=-1.0, maxval=1.0)
    quat = quat / jnp.linalg.norm(quat)

    quat2 = so3.to_quaternion(so3.from_quaternion(quat))

    # q and -q are the same rotation
    assert jnp.abs(jnp.sum(quat * quat2)) > 0.999
    assert quat2[0] >= 0
