"""Closed-form inverse kinematics for the arm's shoulder/elbow plane.

The shoulder-lift and elbow-flex joints of the arm move the wrist inside a
vertical plane, which makes them a 2-link planar chain. The solver returns
the single elbow branch the arm's joint directions use: the law-of-cosines
elbow angle is reflected to ``2*pi - theta2`` before the shoulder angle is
derived from it.
"""

import logging
import math
from typing import Dict, Mapping, NamedTuple, Optional, Tuple

import jax
import jax.numpy as jnp

from .mapping import map_value
from .pivots import Pivot

logger = logging.getLogger(__name__)

TWO_PI = 2 * math.pi


class IKSolution(NamedTuple):
    """Joint angles in radians, both in [0, 2*pi)."""
    theta1: float
    theta2: float


def _normalize(theta):
    # mod can round a tiny negative angle up to exactly 2*pi
    theta = jnp.mod(theta, TWO_PI)
    return jnp.where(theta >= TWO_PI, 0.0, theta)


@jax.jit
def _two_link_angles(x, y, l1, l2):
    distance_sq = x * x + y * y
    cos_theta2 = (distance_sq - l1 * l1 - l2 * l2) / (2 * l1 * l2)
    theta2 = jnp.arccos(jnp.clip(cos_theta2, -1.0, 1.0))
    theta2 = TWO_PI - theta2

    k1 = l1 + l2 * jnp.cos(theta2)
    k2 = l2 * jnp.sin(theta2)
    theta1 = jnp.arctan2(y, x) - jnp.arctan2(k2, k1)

    return _normalize(theta1), _normalize(theta2)


def inverse_kinematics_2link(x: float, y: float, l1: float, l2: float) -> Optional[IKSolution]:
    """Solve a 2-link planar arm for a target point.

    Args:
        x: Target coordinate along the reach axis.
        y: Target coordinate along the height axis.
        l1: Length of the first (shoulder) link.
        l2: Length of the second (elbow) link.

    Returns:
        IKSolution with ``theta1`` (shoulder) and ``theta2`` (elbow, relative
        to the first link), or ``None`` when the target is out of reach or a
        link has zero length.
        Callers should keep their previous joint angles on ``None``.
    """
    if l1 * l2 == 0:
        return None

    distance = math.sqrt(x * x + y * y)
    if distance > l1 + l2 or distance < abs(l1 - l2):
        return None

    theta1, theta2 = _two_link_angles(float(x), float(y), float(l1), float(l2))
    return IKSolution(float(theta1), float(theta2))


def _wrap_into(theta: float, lower: float, upper: float) -> float:
    """Shift ``theta`` by whole turns towards [lower, upper]."""
    while theta < lower:
        theta += TWO_PI
    while theta > upper:
        theta -= TWO_PI
    return theta


def ik_to_pivot_values(solution: IKSolution, shoulder_lift: Pivot,
                       elbow_flex: Pivot) -> Dict[str, float]:
    """Convert an IK solution to user values for the shoulder and elbow pivots.

    Each angle is flipped to the joint's rotation sense (``2*pi - theta``),
    brought into the pivot's physical range by whole turns, and projected
    onto the pivot's user range with the sign the arm's joints expect.
    """
    shoulder_theta = _wrap_into(TWO_PI - solution.theta1,
                                shoulder_lift.mapped_lower, shoulder_lift.mapped_upper)
    elbow_theta = _wrap_into(TWO_PI - solution.theta2,
                             elbow_flex.mapped_lower, elbow_flex.mapped_upper)

    return {
        shoulder_lift.name: -map_value(shoulder_theta, shoulder_lift.mapped_lower,
                                       shoulder_lift.mapped_upper, shoulder_lift.lower,
                                       shoulder_lift.upper),
        elbow_flex.name: -map_value(elbow_theta, elbow_flex.mapped_lower,
                                    elbow_flex.mapped_upper, elbow_flex.lower, elbow_flex.upper),
    }


def planar_control_values(pivots: Mapping[str, Pivot], position_y: float, theta: float,
                          circle_size: float, z_range: Tuple[float, float] = (0.0, 10.0),
                          link_lengths: Tuple[float, float] = (1.0, 1.0)) -> Dict[str, float]:
    """Pivot values for one update of the planar control pad.

    Args:
        pivots: The robot's pivot table.
        position_y: Vertical pad position in [-1, 1]; -1 is the top.
        theta: Pad heading in [0, pi], drives ``shoulder_pan``.
        circle_size: Reach control, interpreted inside ``z_range``.
        z_range: (min, max) of ``circle_size``.
        link_lengths: (shoulder, elbow) link lengths of the IK model.

    Returns:
        Values keyed by pivot name, ready for ``Robot.set_pivot_values``.
        ``shoulder_lift``/``elbow_flex`` are absent when the target is out
        of reach.
    """
    values: Dict[str, float] = {}

    pan = pivots.get("shoulder_pan")
    if pan is not None:
        values[pan.name] = pan.lower + (theta / math.pi) * (pan.upper - pan.lower)

    shoulder_lift = pivots.get("shoulder_lift")
    elbow_flex = pivots.get("elbow_flex")
    if shoulder_lift is None or elbow_flex is None:
        return values

    target_height = 1.0 - position_y
    z_min, z_max = z_range
    if z_max == z_min:
        logger.debug("Empty reach range %r", z_range)
        return values
    target_reach = (circle_size - z_min) / (z_max - z_min) * 2

    solution = inverse_kinematics_2link(target_reach, target_height, *link_lengths)
    if solution is None:
        logger.debug("Planar target (%.3f, %.3f) out of reach", target_reach, target_height)
        return values

    values.update(ik_to_pivot_values(solution, shoulder_lift, elbow_flex))
    return values
