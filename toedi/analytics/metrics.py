#!/usr/bin/env python3
"""
Activity metrics - average heart rate and training load

Training load counts how many minutes were spent at each exact heart rate,
weights each bucket with the user's fitted curve ``c * exp(tau * hr) + 1``
and sums the weighted minutes. Samples at or below 55% of the user's max
heart rate do not contribute.
"""
import math
from dataclasses import replace
from typing import Optional, Sequence

import numpy as np
import structlog

from ..models import Activity, UserPreferences

logger = structlog.get_logger(__name__)

# Share of max heart rate a sample must exceed to count towards load
LOAD_HEARTRATE_FLOOR = 0.55
# Records are sampled once per second
SECONDS_PER_SAMPLE = 1.0


def average_heartrate(heartrates: Sequence[int]) -> Optional[int]:
    """Mean of the reported heart rates truncated to whole beats, None if there are none"""
    if len(heartrates) == 0:
        return None
    return int(sum(heartrates) // len(heartrates))


def calculate_load(heartrates: Sequence[int], preferences: Optional[UserPreferences] = None) -> int:
    """
    Calculate training load from a series of per-second heart rate samples.

    Args:
        heartrates: Heart rate of each sample
        preferences: Thresholds and fitted curve, defaults when omitted

    Returns:
        Load rounded to the nearest integer
    """
    preferences = preferences or UserPreferences.default()
    samples = np.asarray(heartrates, dtype=float)
    samples = samples[samples > preferences.max_heartrate * LOAD_HEARTRATE_FLOOR]
    if samples.size == 0:
        return 0

    values, counts = np.unique(samples, return_counts=True)
    minutes = counts * SECONDS_PER_SAMPLE / 60.0
    weights = preferences.c * np.exp(preferences.tau * values) + 1.0
    total = float(np.sum(weights * minutes))
    return int(math.floor(total + 0.5))


def derive_activity_metrics(activity: Activity, heartrates: Sequence[int],
                            preferences: UserPreferences) -> Activity:
    """
    Return a copy of the activity with average heart rate and load filled in.

    Both stay None when no record reported a heart rate.
    """
    avg = average_heartrate(heartrates)
    if avg is None:
        logger.debug("No heart rate samples, skipping load", start_time=str(activity.start_time))
        return replace(activity, avg_heartrate=None, load=None)
    load = calculate_load(heartrates, preferences)
    return replace(activity, avg_heartrate=avg, load=load)
