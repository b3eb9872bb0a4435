"""SE(3) rigid-body poses as (..., 4, 4) homogeneous matrices.

Twists are 6-vectors ordered [vx, vy, vz, wx, wy, wz]: linear part first,
angular part last, which is also how joint axes are stored on RobotModel.
"""

import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array

def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Build homogeneous transforms from positions and rotation matrices.

    Args:
        p: (..., 3) translation
        R: (..., 3, 3) rotation

    Returns:
        (..., 4, 4) transforms; batch shapes of ``p`` and ``R`` broadcast
    """
    p = jnp.asarray(p)
    R = jnp.asarray(R)
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    dtype = jnp.result_type(p.dtype, R.dtype)

    T = jnp.zeros(batch_shape + (4, 4), dtype=dtype)
    T = T.at[..., :3, :3].set(jnp.broadcast_to(R, batch_shape + (3, 3)))
    T = T.at[..., :3, 3].set(jnp.broadcast_to(p, batch_shape + (3,)))
    T = T.at[..., 3, 3].set(1.0)
    return T

def exp(twist: Array) -> Array:
    """
    Exponential map from a twist to a rigid transform.

    A pure rotation twist ([0, 0, 0, w]) yields a rotation about the origin,
    a pure translation twist ([v, 0, 0, 0]) yields a translation by ``v``.
    Small rotation angles use series coefficients to stay finite.

    Args:
        twist: (..., 6) array [vx, vy, vz, wx, wy, wz]

    Returns:
        (..., 4, 4) transforms
    """
    v, w = twist[..., :3], twist[..., 3:]
    angle = jnp.linalg.norm(w, axis=-1, keepdims=True)
    angle_sq = angle * angle
    tiny = angle < 1e-6
    safe_sq = jnp.where(tiny, 1.0, angle_sq)
    safe_angle = jnp.where(tiny, 1.0, angle)

    # (1 - cos t) / t^2 and (t - sin t) / t^3
    a = jnp.where(tiny, 0.5 - angle_sq / 24.0, (1.0 - jnp.cos(angle)) / safe_sq)
    b = jnp.where(tiny, 1.0 / 6.0 - angle_sq / 120.0,
                  (angle - jnp.sin(angle)) / (safe_sq * safe_angle))

    K = so3.skew_symmetric(w)
    eye = jnp.broadcast_to(jnp.eye(3, dtype=twist.dtype), K.shape)
    V = eye + a[..., None] * K + b[..., None] * jnp.matmul(K, K)

    t = jnp.einsum("...ij,...j->...i", V, v)
    return from_position_and_rotation(t, so3.exp(w))

def multiply(T1: Array, T2: Array) -> Array:
    """Composition T1 @ T2 (apply T2 first, then T1)."""
    return jnp.matmul(T1, T2)

def inverse(T: Array) -> Array:
    """Rigid inverse [[R^T, -R^T t], [0, 1]]."""
    R_inv = so3.inverse(T[..., :3, :3])
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, T[..., :3, 3])
    return from_position_and_rotation(t_inv, R_inv)

def relative(T_ref: Array, T: Array) -> Array:
    """
    Pose of ``T`` expressed in the frame of ``T_ref``.

    ``multiply(T_ref, relative(T_ref, T))`` reproduces ``T``.
    """
    return multiply(inverse(T_ref), T)

def apply(T: Array, points: Array) -> Array:
    """Transform (..., 3) points by (..., 4, 4) transforms."""
    ones = jnp.ones_like(points[..., 0:1])
    points_h = jnp.concatenate([points, ones], axis=-1)
    return jnp.einsum("...ij,...j->...i", T, points_h)[..., :3]

def get_position(T: Array) -> Array:
    return T[..., :3, 3]

def get_rotation(T: Array) -> Array:
    return T[..., :3, :3]
