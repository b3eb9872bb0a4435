"""SO(3) rotation helpers in JAX.

Rotations are plain (..., 3, 3) matrices. Every function is pure and
broadcasts over leading batch dimensions.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def skew_symmetric(v: Array) -> Array:
    """Cross-product matrix [v]_x of a (..., 3) vector."""
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def exp(axis_angle: Array) -> Array:
    """
    Rotation matrix from an axis-angle vector (Rodrigues' formula).

    Args:
        axis_angle: (..., 3) rotation axis scaled by the angle in radians

    Returns:
        (..., 3, 3) rotation matrices
    """
    angle = jnp.linalg.norm(axis_angle, axis=-1, keepdims=True)
    tiny = angle < 1e-8

    # Series expansion keeps the zero rotation finite
    cos_a = jnp.where(tiny, 1.0 - 0.5 * angle**2, jnp.cos(angle))
    sin_a = jnp.where(tiny, angle - angle**3 / 6.0, jnp.sin(angle))
    axis = jnp.where(tiny, axis_angle, axis_angle / jnp.where(tiny, 1.0, angle))

    K = skew_symmetric(axis)
    eye = jnp.broadcast_to(jnp.eye(3, dtype=axis_angle.dtype), axis_angle.shape[:-1] + (3, 3))

    return eye + sin_a[..., None] * K + (1.0 - cos_a)[..., None] * jnp.matmul(K, K)


def _rot_x(a: Array) -> Array:
    c, s = jnp.cos(a), jnp.sin(a)
    one, zero = jnp.ones_like(a), jnp.zeros_like(a)
    return jnp.stack([
        jnp.stack([one, zero, zero], axis=-1),
        jnp.stack([zero, c, -s], axis=-1),
        jnp.stack([zero, s, c], axis=-1),
    ], axis=-2)


def _rot_y(a: Array) -> Array:
    c, s = jnp.cos(a), jnp.sin(a)
    one, zero = jnp.ones_like(a), jnp.zeros_like(a)
    return jnp.stack([
        jnp.stack([c, zero, s], axis=-1),
        jnp.stack([zero, one, zero], axis=-1),
        jnp.stack([-s, zero, c], axis=-1),
    ], axis=-2)


def _rot_z(a: Array) -> Array:
    c, s = jnp.cos(a), jnp.sin(a)
    one, zero = jnp.ones_like(a), jnp.zeros_like(a)
    return jnp.stack([
        jnp.stack([c, -s, zero], axis=-1),
        jnp.stack([s, c, zero], axis=-1),
        jnp.stack([zero, zero, one], axis=-1),
    ], axis=-2)


def from_rpy(rpy: Array) -> Array:
    """
    Rotation matrix from URDF roll-pitch-yaw angles.

    URDF applies roll about X, then pitch about Y, then yaw about Z, all in
    the fixed frame, so R = Rz(yaw) @ Ry(pitch) @ Rx(roll).

    Args:
        rpy: (..., 3) array of [roll, pitch, yaw] in radians

    Returns:
        (..., 3, 3) rotation matrices
    """
    rpy = jnp.asarray(rpy, dtype=jnp.float64)
    return _rot_z(rpy[..., 2]) @ _rot_y(rpy[..., 1]) @ _rot_x(rpy[..., 0])


def from_euler_xyz(angles: Array) -> Array:
    """
    Rotation matrix from intrinsic XYZ Euler angles, R = Rx @ Ry @ Rz.

    This is the convention scene graphs use for an object's ``rotation``
    triple, and the one the robot base pose is expressed in.
    """
    angles = jnp.asarray(angles, dtype=jnp.float64)
    return _rot_x(angles[..., 0]) @ _rot_y(angles[..., 1]) @ _rot_z(angles[..., 2])


def from_quaternion(quaternions: Array) -> Array:
    """
    Rotation matrices from (w, x, y, z) quaternions.

    Quaternions are normalised first, so non-unit input is accepted.
    """
    q = quaternions / jnp.linalg.norm(quaternions, axis=-1, keepdims=True)
    w, x, y, z = jnp.moveaxis(q, -1, 0)

    return jnp.stack([
        jnp.stack([1 - 2*(y*y + z*z), 2*(x*y - w*z), 2*(x*z + w*y)], axis=-1),
        jnp.stack([2*(x*y + w*z), 1 - 2*(x*x + z*z), 2*(y*z - w*x)], axis=-1),
        jnp.stack([2*(x*z - w*y), 2*(y*z + w*x), 1 - 2*(x*x + y*y)], axis=-1)
    ], axis=-2)


def inverse(R: Array) -> Array:
    """Inverse rotation, which for SO(3) is the transpose."""
    return jnp.swapaxes(R, -1, -2)


def to_quaternion(R: Array) -> Array:
    """
    (w, x, y, z) quaternions from rotation matrices, with ``w >= 0``.

    Each candidate below is proportional to the quaternion; the one built on
    the largest of (trace, R00, R11, R22) is numerically safest.
    """
    R = jnp.asarray(R)
    m00, m01, m02 = R[..., 0, 0], R[..., 0, 1], R[..., 0, 2]
    m10, m11, m12 = R[..., 1, 0], R[..., 1, 1], R[..., 1, 2]
    m20, m21, m22 = R[..., 2, 0], R[..., 2, 1], R[..., 2, 2]
    trace = m00 + m11 + m22

    candidates = jnp.stack([
        jnp.stack([1.0 + trace, m21 - m12, m02 - m20, m10 - m01], axis=-1),
        jnp.stack([m21 - m12, 1.0 + m00 - m11 - m22, m01 + m10, m02 + m20], axis=-1),
        jnp.stack([m02 - m20, m01 + m10, 1.0 - m00 + m11 - m22, m12 + m21], axis=-1),
        jnp.stack([m10 - m01, m02 + m20, m12 + m21, 1.0 - m00 - m11 + m22], axis=-1),
    ], axis=-2)

    best = jnp.argmax(jnp.stack([trace, m00, m11, m22], axis=-1), axis=-1)
    q = jnp.take_along_axis(candidates, best[..., None, None], axis=-2)[..., 0, :]
    q = q / jnp.linalg.norm(q, axis=-1, keepdims=True)
    return jnp.where(q[..., :1] < 0, -q, q)
