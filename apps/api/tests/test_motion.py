from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fieldsales.tracking.emitter import build_sample
from fieldsales.tracking.motion import classify_motion, mps_to_kmh
from fieldsales.tracking.sampler import PositionFix


@pytest.mark.parametrize(
    ("speed", "is_moving", "activity_type"),
    [
        (None, False, "stationary"),
        (0.0, False, "stationary"),
        (0.4, False, "stationary"),
        (0.5, False, "stationary"),
        (1.0, True, "stationary"),
        (2.0, True, "stationary"),
        (3.0, True, "moving"),
    ],
)
def test_classify_motion_thresholds(speed: float | None, is_moving: bool, activity_type: str) -> None:
    motion = classify_motion(speed)
    assert motion.is_moving is is_moving
    assert motion.activity_type == activity_type


def test_speed_is_persisted_in_kmh() -> None:
    assert mps_to_kmh(10) == pytest.approx(36.0)
    assert mps_to_kmh(None) == 0.0


def test_build_sample_normalizes_reading() -> None:
    fix = PositionFix(
        latitude=24.86,
        longitude=67.01,
        accuracy=12.0,
        speed=10.0,
        heading=270.0,
        timestamp=datetime.now(timezone.utc),
    )

    sample = build_sample("rep-1", fix, battery_level=0.42)

    assert sample.user_id == "rep-1"
    assert (sample.lat, sample.lng) == (24.86, 67.01)
    assert sample.speed == pytest.approx(36.0)
    assert sample.heading == 270.0
    assert sample.battery_level == pytest.approx(42.0)
    assert sample.is_moving is True
    assert sample.activity_type == "moving"


def test_build_sample_without_speed_or_battery() -> None:
    fix = PositionFix(latitude=1.0, longitude=2.0, accuracy=30.0)

    sample = build_sample("rep-1", fix)

    assert sample.speed == 0.0
    assert sample.battery_level is None
    assert sample.is_moving is False
    assert sample.activity_type == "stationary"
