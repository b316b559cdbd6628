from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ActivityType = Literal["moving", "stationary"]

MOVING_FLAG_THRESHOLD_MPS = 0.5
MOVING_ACTIVITY_THRESHOLD_MPS = 2.0
MPS_TO_KMH = 3.6


@dataclass(frozen=True, slots=True)
class Motion:
    is_moving: bool
    activity_type: ActivityType


def classify_motion(speed_mps: float | None) -> Motion:
    # The flag and the label use separate thresholds: 0.5 < speed <= 2.0 is
    # flagged moving but labelled stationary. Keep both as they are.
    speed = speed_mps or 0.0
    return Motion(
        is_moving=speed > MOVING_FLAG_THRESHOLD_MPS,
        activity_type="moving" if speed > MOVING_ACTIVITY_THRESHOLD_MPS else "stationary",
    )


def mps_to_kmh(speed_mps: float | None) -> float:
    if not speed_mps:
        return 0.0
    return speed_mps * MPS_TO_KMH
