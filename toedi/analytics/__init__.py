"""
Analytics - metrics derived from parsed activities
"""
from .metrics import average_heartrate, calculate_load, derive_activity_metrics
from .curve_fit import curve_fit, anchor_points
from .slope_speed import (
    slope_speed_from_records, derive_slope_speeds, record_windows, resolve_sport,
    round_slope, round_speed,
)

__all__ = [
    'average_heartrate', 'calculate_load', 'derive_activity_metrics',
    'curve_fit', 'anchor_points',
    'slope_speed_from_records', 'derive_slope_speeds', 'record_windows', 'resolve_sport',
    'round_slope', 'round_speed',
]
