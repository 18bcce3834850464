#!/usr/bin/env python3
"""
Slope/speed correlation

Relates terrain grade, average speed and heart rate zone for a run of
consecutive records. An activity is cut into fixed-size windows of records
and each window yields at most one SlopeSpeed sample.
"""
from typing import Iterator, List, Optional, Sequence

import structlog

from ..exceptions import DerivationError, derivation_error
from ..models import HeartrateZone, Record, Session, SlopeSpeed, UserPreferences

logger = structlog.get_logger(__name__)

# Grades are kept in steps of 0.05
SLOPE_STEPS_PER_UNIT = 20
MAX_ABS_SLOPE = 1.0
MAX_ABS_SPEED = 99.999


def round_slope(slope: float) -> float:
    """Round a grade to the nearest 0.05, halves away from zero"""
    scaled = slope * SLOPE_STEPS_PER_UNIT
    rounded = int(abs(scaled) + 0.5)
    return (rounded if scaled >= 0 else -rounded) / SLOPE_STEPS_PER_UNIT


def round_speed(speed: float) -> float:
    """Round to three decimals and clamp to the storable range"""
    scaled = speed * 1000.0
    rounded = int(abs(scaled) + 0.5)
    value = (rounded if scaled >= 0 else -rounded) / 1000.0
    return max(-MAX_ABS_SPEED, min(MAX_ABS_SPEED, value))


def resolve_sport(sessions: Sequence[Session], timestamp) -> Optional[str]:
    """Sport of the first session whose [start, end) interval contains timestamp"""
    for session in sessions:
        if session.contains(timestamp):
            return session.sport
    return None


def slope_speed_from_records(records: Sequence[Record], sessions: Sequence[Session],
                             user_id: int, preferences: UserPreferences) -> SlopeSpeed:
    """
    Derive one slope/speed sample from a time ordered run of records.

    Only records reporting distance, altitude, speed and heart rate are used.

    Raises:
        DerivationError: fewer than two qualifying records, no distance
            covered, or a slope outside [-1, 1]
    """
    qualifying = [r for r in records if r.qualifies_for_slope]
    if len(qualifying) < 2:
        raise derivation_error("insufficient data", qualifying=len(qualifying))

    first, last = qualifying[0], qualifying[-1]
    covered = last.distance - first.distance
    if covered == 0:
        raise derivation_error("No distance covered in range", distance=first.distance)

    slope = round_slope((last.altitude - first.altitude) / covered)
    if slope > MAX_ABS_SLOPE or slope < -MAX_ABS_SLOPE:
        raise derivation_error("Slope outside of valid range", slope=slope)

    average_speed = round_speed(sum(r.speed for r in qualifying) / len(qualifying))
    mean_heartrate = sum(r.heartrate for r in qualifying) // len(qualifying)
    zone = HeartrateZone.classify(
        mean_heartrate, preferences.aerobic_threshold, preferences.anaerobic_threshold
    )

    return SlopeSpeed(
        user_id=user_id,
        start_time=first.timestamp,
        sport=resolve_sport(sessions, first.timestamp),
        slope=slope,
        average_speed=average_speed,
        heartrate_zone=zone,
    )


def record_windows(records: Sequence[Record], window_size: int) -> Iterator[Sequence[Record]]:
    """Consecutive, non-overlapping windows of at most window_size records"""
    if window_size < 2:
        raise ValueError("window_size must be at least 2")
    for start in range(0, len(records), window_size):
        yield records[start:start + window_size]


def derive_slope_speeds(records: Sequence[Record], sessions: Sequence[Session], user_id: int,
                        preferences: UserPreferences, window_size: int) -> List[SlopeSpeed]:
    """
    Derive the slope/speed samples of a whole activity.

    Windows that raise DerivationError are dropped; the rest of the activity
    is unaffected.
    """
    samples: List[SlopeSpeed] = []
    dropped = 0
    for window in record_windows(records, window_size):
        try:
            samples.append(slope_speed_from_records(window, sessions, user_id, preferences))
        except DerivationError as e:
            dropped += 1
            logger.debug("Dropping slope/speed window", reason=e.message,
                         start_time=str(window[0].timestamp))
    logger.debug("Derived slope/speed samples", samples=len(samples), dropped=dropped)
    return samples
