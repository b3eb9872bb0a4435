"""SO101 arm, the first robot in the Die Roboter series.

Pivot names follow the LeRobot SO100 leader teleoperator; every pivot but
the gripper uses a -100..100 range.
"""

from typing import Optional, Tuple

from ..pivots import PivotConfig
from ..robot import LinkPhysics, Robot

SO101_URDF_URL = "https://cdn.jsdelivr.net/gh/therealadityashankar/die-roboter/urdf/so101.urdf"

# Collision boxes are authored at 10x model scale
_BOX_UNIT = 0.1


def box(dimensions: Tuple[float, float, float],
        offset: Tuple[float, float, float] = (0.0, 0.0, 0.0),
        unit: float = _BOX_UNIT, **kwargs) -> LinkPhysics:
    return LinkPhysics(
        size=tuple(d * unit for d in dimensions),
        offset=tuple(o * unit for o in offset),
        **kwargs,
    )


SO101_PIVOTS = (
    PivotConfig("shoulder_pan", "Rotation", value=0, lower=-100, upper=100),
    PivotConfig("shoulder_lift", "Pitch", value=0, lower=-100, upper=100),
    PivotConfig("elbow_flex", "Elbow", value=0, lower=-100, upper=100),
    PivotConfig("wrist_flex", "Wrist_Pitch", value=0, lower=-100, upper=100),
    PivotConfig("wrist_roll", "Wrist_Roll", value=0, lower=-100, upper=100),
    PivotConfig("gripper", "Jaw", value=50, lower=0, upper=100),
)

SO101_LINK_PHYSICS = {
    "shoulder": box((.6, .4, .7), (-0.25, 0, 0)),
    "upper_arm": box((1.3, .3, .7), (-0.4, 0, 0.2)),
    "lower_arm": box((1.3, .3, .7), (-0.4, 0, 0.2)),
    "wrist": box((0.3, .8, .7), (0, -0.2, 0.2)),
    "gripper": box((0.2, .8, .7), (-0.2, 0, -0.65), gripper_part="a"),
    "moving_jaw_so101_v1": box((0.2, .8, .7), (0, -0.5, 0.2), gripper_part="b"),
    "baseframe": box((0.7, .7, .7), (0, 0, 0.34)),
}


class SO101(Robot):
    def __init__(self, model_path: Optional[str] = None):
        super().__init__(
            name="SO101",
            model_path=model_path or SO101_URDF_URL,
            pivot_configs=SO101_PIVOTS,
            link_physics=SO101_LINK_PHYSICS,
        )
