#!/usr/bin/env python3
"""
Field source table - which decoded field names feed each canonical field

Every (RecordKind, CanonicalField) pair maps to an ordered tuple of accepted
source names; the first name present in a message wins. The table is checked
for completeness when this module is imported.
"""
from enum import Enum
from typing import Dict, Tuple

from ..models.base import RecordKind


class ValueType(Enum):
    """Expected python type of a resolved value"""
    TIMESTAMP = "timestamp"
    HEARTRATE = "heartrate"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    SEMICIRCLE = "semicircle"


class CanonicalField(Enum):
    """Canonical record fields and the type each resolves to"""
    START_TIME = ("start_time", ValueType.TIMESTAMP)
    END_TIME = ("end_time", ValueType.TIMESTAMP)
    TIMESTAMP = ("timestamp", ValueType.TIMESTAMP)
    DURATION = ("duration", ValueType.FLOAT)
    SPORT = ("sport", ValueType.STRING)
    DISTANCE = ("distance", ValueType.FLOAT)
    CALORIES = ("calories", ValueType.INTEGER)
    AVERAGE_HEARTRATE = ("average_heartrate", ValueType.HEARTRATE)
    MIN_HEARTRATE = ("min_heartrate", ValueType.HEARTRATE)
    MAX_HEARTRATE = ("max_heartrate", ValueType.HEARTRATE)
    AVERAGE_POWER = ("average_power", ValueType.INTEGER)
    ASCENT = ("ascent", ValueType.INTEGER)
    DESCENT = ("descent", ValueType.INTEGER)
    AVERAGE_SPEED = ("average_speed", ValueType.FLOAT)
    MAX_SPEED = ("max_speed", ValueType.FLOAT)
    HEARTRATE = ("heartrate", ValueType.HEARTRATE)
    LATITUDE = ("latitude", ValueType.SEMICIRCLE)
    LONGITUDE = ("longitude", ValueType.SEMICIRCLE)
    SPEED = ("speed", ValueType.FLOAT)
    ALTITUDE = ("altitude", ValueType.FLOAT)

    def __init__(self, attribute: str, value_type: ValueType):
        self.attribute = attribute
        self.value_type = value_type


F = CanonicalField

_SEGMENT_SOURCES: Dict[CanonicalField, Tuple[str, ...]] = {
    F.START_TIME: ('start_time',),
    F.END_TIME: ('timestamp',),
    F.SPORT: ('sport',),
    F.AVERAGE_HEARTRATE: ('avg_heart_rate',),
    F.MIN_HEARTRATE: ('min_heart_rate',),
    F.MAX_HEARTRATE: ('max_heart_rate',),
    F.CALORIES: ('calories', 'total_calories'),
    F.DISTANCE: ('distance', 'total_distance'),
    F.ASCENT: ('ascent', 'total_ascent'),
    F.DESCENT: ('descent', 'total_descent'),
    F.AVERAGE_POWER: ('avg_power',),
    F.AVERAGE_SPEED: ('avg_speed', 'enhanced_avg_speed'),
    F.MAX_SPEED: ('max_speed', 'enhanced_max_speed'),
}

FIELD_SOURCES: Dict[RecordKind, Dict[CanonicalField, Tuple[str, ...]]] = {
    RecordKind.ACTIVITY: {
        F.START_TIME: ('timestamp', 'local_timestamp'),
        F.DURATION: ('total_timer_time',),
    },
    RecordKind.SESSION: dict(_SEGMENT_SOURCES),
    RecordKind.LAP: dict(_SEGMENT_SOURCES),
    RecordKind.RECORD: {
        F.TIMESTAMP: ('timestamp',),
        F.HEARTRATE: ('heart_rate',),
        F.LATITUDE: ('position_lat',),
        F.LONGITUDE: ('position_long',),
        F.ALTITUDE: ('enhanced_altitude', 'altitude'),
        F.DISTANCE: ('enhanced_distance', 'distance'),
        F.SPEED: ('enhanced_speed', 'speed'),
    },
}

# Fields whose absence fails the message
MANDATORY_FIELDS: Dict[RecordKind, Tuple[CanonicalField, ...]] = {
    RecordKind.ACTIVITY: (F.START_TIME, F.DURATION),
    RecordKind.SESSION: (F.START_TIME, F.END_TIME),
    RecordKind.LAP: (F.START_TIME, F.END_TIME),
    RecordKind.RECORD: (F.TIMESTAMP,),
}

# Canonical fields each typed record is built from
EXPECTED_FIELDS: Dict[RecordKind, Tuple[CanonicalField, ...]] = {
    RecordKind.ACTIVITY: (F.START_TIME, F.DURATION),
    RecordKind.SESSION: tuple(_SEGMENT_SOURCES),
    RecordKind.LAP: tuple(_SEGMENT_SOURCES),
    RecordKind.RECORD: (
        F.TIMESTAMP, F.HEARTRATE, F.LATITUDE, F.LONGITUDE,
        F.ALTITUDE, F.DISTANCE, F.SPEED,
    ),
}


def sources_for(kind: RecordKind, canonical: CanonicalField) -> Tuple[str, ...]:
    """Ordered source names for a canonical field of a record kind"""
    try:
        return FIELD_SOURCES[kind][canonical]
    except KeyError:
        raise KeyError(f"{canonical.attribute} is not a field of {kind.value}") from None


def validate_field_table() -> None:
    """Check that every kind declares a non-empty source list for each of its fields"""
    for kind in RecordKind:
        if kind not in FIELD_SOURCES:
            raise RuntimeError(f"no field sources declared for {kind.value}")
        declared = FIELD_SOURCES[kind]
        for canonical in EXPECTED_FIELDS[kind]:
            sources = declared.get(canonical)
            if not sources:
                raise RuntimeError(f"{kind.value}.{canonical.attribute} has no source fields")
            if len(set(sources)) != len(sources):
                raise RuntimeError(f"{kind.value}.{canonical.attribute} lists a source twice")
        for canonical in MANDATORY_FIELDS[kind]:
            if canonical not in EXPECTED_FIELDS[kind]:
                raise RuntimeError(f"{kind.value}.{canonical.attribute} is mandatory but not expected")
        extra = set(declared) - set(EXPECTED_FIELDS[kind])
        if extra:
            names = sorted(c.attribute for c in extra)
            raise RuntimeError(f"{kind.value} declares unused fields: {names}")


validate_field_table()
