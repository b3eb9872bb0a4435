"""LeKiwi mobile base arm.

The arm has the SO101 joints under the CAD export's joint and link names.
Its collision boxes are the SO101 boxes with axes permuted to the LeKiwi link
frames and nudged onto the meshes.
"""

from typing import Optional

from ..pivots import PivotConfig
from ..robot import Robot
from .so101 import box

LEKIWI_URDF_PATH = "urdf/lekiwi/LeKiwi.urdf"

LEKIWI_PIVOTS = (
    PivotConfig("gripper", "STS3215_03a-v1-4_Revolute-57", value=0, lower=0, upper=100),
    PivotConfig("shoulder_pan", "STS3215_03a-v1_Revolute-45", value=0, lower=-100, upper=100),
    PivotConfig("shoulder_lift", "STS3215_03a-v1-1_Revolute-49", value=0, lower=-100, upper=100),
    PivotConfig("elbow_flex", "STS3215_03a-v1-2_Revolute-51", value=0, lower=-100, upper=100),
    PivotConfig("wrist_flex", "STS3215_03a-v1-3_Revolute-53", value=0, lower=-100, upper=100),
    PivotConfig("wrist_roll", "STS3215_03a_Wrist_Roll-v1_Revolute-55", value=0, lower=-100, upper=100),
)

LEKIWI_LINK_PHYSICS = {
    "Moving_Jaw_08d-v1": box((0.02, 0.07, 0.08), (0.0, 0.03, -0.03), unit=1.0, gripper_part="a"),
    "SO_ARM100_08k_116_Square-v1": box((0.07, 0.13, 0.03), (-0.025, -0.05, 0.005), unit=1.0),
    "Rotation_Pitch_08i-v1": box((0.06, 0.04, 0.07), (0.005, -0.03, 0.0), unit=1.0),
    "Wrist_Roll_Pitch_08i-v1": box((0.07, 0.03, 0.08), (-0.04, -0.02, -0.03), unit=1.0),
    "SO_ARM100_08k_Mirror-v1": box((0.07, 0.13, 0.03), (-0.025, 0.05, 0.005), unit=1.0),
    "Wrist_Roll_08c-v1": box((0.02, 0.07, 0.08), (-0.005, 0.04, -0.04), unit=1.0, gripper_part="b"),
}


class LeKiwi(Robot):
    def __init__(self, model_path: Optional[str] = None):
        super().__init__(
            name="LeKiwi",
            model_path=model_path or LEKIWI_URDF_PATH,
            pivot_configs=LEKIWI_PIVOTS,
            link_physics=LEKIWI_LINK_PHYSICS,
        )
