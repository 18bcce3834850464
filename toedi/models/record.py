"""
Record - a single timestamped telemetry sample
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

# Signed 32-bit semicircles per degree
SEMICIRCLES_PER_DEGREE = 2 ** 32 / 360.0


def int_to_coord(value: int) -> float:
    """Convert a semicircle encoded latitude/longitude to degrees"""
    return value / SEMICIRCLES_PER_DEGREE


@dataclass
class Record:
    timestamp: datetime
    heartrate: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance: Optional[float] = None
    speed: Optional[float] = None
    altitude: Optional[float] = None

    @property
    def qualifies_for_slope(self) -> bool:
        """All inputs of the slope/speed correlation are present"""
        return (
            self.distance is not None
            and self.altitude is not None
            and self.speed is not None
            and self.heartrate is not None
        )
