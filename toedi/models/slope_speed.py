"""
Slope/speed samples and heart rate zones
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class HeartrateZone(str, Enum):
    """Three zones partitioned by the aerobic and anaerobic thresholds"""
    ZONE1 = "zone1"
    ZONE2 = "zone2"
    ZONE3 = "zone3"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def classify(cls, heartrate: int, aerobic_threshold: int, anaerobic_threshold: int) -> "HeartrateZone":
        if heartrate < aerobic_threshold:
            return cls.ZONE1
        if heartrate >= anaerobic_threshold:
            return cls.ZONE3
        return cls.ZONE2


@dataclass
class SlopeSpeed:
    """Derived point correlating terrain grade, average speed and heart rate zone"""
    user_id: int
    start_time: datetime
    slope: float
    average_speed: float
    heartrate_zone: HeartrateZone
    sport: Optional[str] = None
