"""Pivots: user-facing controls bound to physical joints.

A pivot exposes a friendly range (e.g. -100..100) for one joint and maps it
onto the joint's physical range. Until a model is loaded the physical range
is the user range itself; ``PivotMap.apply_joint_limits`` replaces it with
the limits parsed from the URDF.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional

from .core import Joint
from .mapping import map_value

logger = logging.getLogger(__name__)

DEFAULT_LOWER_LIMIT = -math.pi
DEFAULT_UPPER_LIMIT = math.pi


@dataclass(frozen=True)
class PivotConfig:
    """One row of a robot's static pivot table.

    Attributes:
        name: Control name shown to users, e.g. ``shoulder_pan``.
        joint_name: URDF joint the pivot drives.
        value: Initial value, inside [lower, upper].
        lower: Lower bound of the user range.
        upper: Upper bound of the user range.
    """
    name: str
    joint_name: str
    value: float
    lower: float
    upper: float


@dataclass(frozen=True)
class Pivot:
    name: str
    joint_name: str
    value: float
    lower: float
    upper: float
    mapped_lower: float
    mapped_upper: float
    joint_value: Optional[float] = None

    @classmethod
    def from_config(cls, config: PivotConfig) -> "Pivot":
        return cls(
            name=config.name,
            joint_name=config.joint_name,
            value=config.value,
            lower=config.lower,
            upper=config.upper,
            mapped_lower=config.lower,
            mapped_upper=config.upper,
        )

    def to_joint_value(self, value: float) -> float:
        return map_value(value, self.lower, self.upper, self.mapped_lower, self.mapped_upper)


class PivotMap(Mapping[str, Pivot]):
    """Name -> Pivot table.

    Pivots are immutable records; updates replace the stored record. The
    robot controller owns the only instance and hands out read-only views.
    """

    def __init__(self, pivots: Iterable[Pivot] = ()):
        self._pivots: Dict[str, Pivot] = {p.name: p for p in pivots}

    @classmethod
    def from_configs(cls, configs: Iterable[PivotConfig]) -> "PivotMap":
        return cls(Pivot.from_config(c) for c in configs)

    def __getitem__(self, name: str) -> Pivot:
        return self._pivots[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._pivots)

    def __len__(self) -> int:
        return len(self._pivots)

    def view(self) -> Mapping[str, Pivot]:
        """Live read-only view of the table."""
        return MappingProxyType(self._pivots)

    def update(self, name: str, **changes) -> Pivot:
        pivot = dataclasses.replace(self._pivots[name], **changes)
        self._pivots[name] = pivot
        return pivot

    def map_to_joint(self, name: str, value: float) -> float:
        return self._pivots[name].to_joint_value(value)

    def apply_joint_limits(self, joints: Mapping[str, Joint]) -> None:
        """Adopt the physical range of each pivot's joint.

        A bound missing from the URDF falls back to -pi / +pi with a warning.
        A pivot whose joint does not exist keeps its range and stays inert.
        """
        for pivot in list(self._pivots.values()):
            joint = joints.get(pivot.joint_name)
            if joint is None:
                logger.warning("Joint '%s' not found for pivot '%s'. This pivot will not function correctly.",
                               pivot.joint_name, pivot.name)
                continue

            limit = joint.limit
            lower = limit.lower if limit is not None else None
            upper = limit.upper if limit is not None else None

            if lower is None:
                logger.warning("Joint '%s' has no lower limit defined in URDF. Using default value of %.4f.",
                               pivot.joint_name, DEFAULT_LOWER_LIMIT)
                lower = DEFAULT_LOWER_LIMIT
            if upper is None:
                logger.warning("Joint '%s' has no upper limit defined in URDF. Using default value of %.4f.",
                               pivot.joint_name, DEFAULT_UPPER_LIMIT)
                upper = DEFAULT_UPPER_LIMIT

            self.update(pivot.name, mapped_lower=lower, mapped_upper=upper)
