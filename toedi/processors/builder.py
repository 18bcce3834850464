#!/usr/bin/env python3
"""
Typed Record Builder - turns one decoded (kind, field bag) pair into a typed record
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

import structlog

from ..exceptions import ParseError, parse_error
from ..models import Activity, Lap, Record, RecordKind, Session, int_to_coord
from ..models.session import SegmentSummary
from .fields import (
    CanonicalField, ValueType, EXPECTED_FIELDS, MANDATORY_FIELDS, sources_for,
)

logger = structlog.get_logger(__name__)

TypedRecord = Union[Activity, Session, Lap, Record]
FieldBag = Mapping[str, Any]

_MISSING = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce(value: Any, value_type: ValueType) -> Any:
    """Convert a raw decoded value, returning _MISSING when the type does not match"""
    if value_type is ValueType.TIMESTAMP:
        if not isinstance(value, datetime):
            return _MISSING
        # FIT timestamps are UTC
        return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value
    if value_type in (ValueType.HEARTRATE, ValueType.INTEGER):
        if isinstance(value, int) and not isinstance(value, bool):
            return int(value)
        return _MISSING
    if value_type is ValueType.FLOAT:
        return float(value) if _is_number(value) else _MISSING
    if value_type is ValueType.STRING:
        return value if isinstance(value, str) else _MISSING
    if value_type is ValueType.SEMICIRCLE:
        if isinstance(value, int) and not isinstance(value, bool):
            return int_to_coord(value)
        return _MISSING
    raise ValueError(f"unknown value type {value_type}")


class TypedRecordBuilder:
    """
    Builds Activity, Session, Lap and Record instances from decoded field bags.

    Field lookup walks the source list of each canonical field in order and
    takes the first name that is present with a value. Optional fields that
    are missing or carry a value of the wrong type resolve to None; mandatory
    fields raise ParseError instead.
    """

    def __init__(self):
        self._builders: Dict[RecordKind, Callable[[FieldBag], TypedRecord]] = {
            RecordKind.ACTIVITY: self.build_activity,
            RecordKind.SESSION: self.build_session,
            RecordKind.LAP: self.build_lap,
            RecordKind.RECORD: self.build_record,
        }

    def build(self, kind: Union[str, RecordKind], fields: FieldBag) -> Optional[TypedRecord]:
        """
        Build the typed record for a message.

        Returns None for message kinds that are not one of the four record kinds.
        """
        if not isinstance(kind, RecordKind):
            try:
                kind = RecordKind.from_message_name(kind)
            except ValueError:
                logger.debug("Ignoring unrecognized message kind", kind=kind)
                return None
        return self._builders[kind](fields)

    def resolve(self, kind: RecordKind, canonical: CanonicalField, fields: FieldBag) -> Optional[Any]:
        """Resolve one canonical field, None if absent or mistyped"""
        value = self._lookup(kind, canonical, fields)
        if value is _MISSING:
            return None
        return value

    def resolve_required(self, kind: RecordKind, canonical: CanonicalField, fields: FieldBag) -> Any:
        """Resolve a mandatory field, raising ParseError naming it when missing or mistyped"""
        sources = sources_for(kind, canonical)
        raw = self._raw(sources, fields)
        if raw is _MISSING:
            raise parse_error(
                f"no {'/'.join(sources)} in {kind.value}",
                kind=kind.value, field=canonical.attribute,
            )
        value = _coerce(raw, canonical.value_type)
        if value is _MISSING:
            raise parse_error(
                f"{canonical.attribute} field of {kind.value} is not a {canonical.value_type.value}",
                kind=kind.value, field=canonical.attribute, value_type=type(raw).__name__,
            )
        return value

    def build_activity(self, fields: FieldBag) -> Activity:
        kind = RecordKind.ACTIVITY
        start_time = self.resolve_required(kind, CanonicalField.START_TIME, fields)
        duration = self.resolve_required(kind, CanonicalField.DURATION, fields)
        if duration < 0:
            raise parse_error("total_timer_time is negative", kind=kind.value,
                              field=CanonicalField.DURATION.attribute, duration=duration)
        return Activity(
            start_time=start_time,
            end_time=start_time + timedelta(seconds=duration),
            duration=duration,
        )

    def build_session(self, fields: FieldBag) -> Session:
        return self._build_segment(RecordKind.SESSION, Session, fields)

    def build_lap(self, fields: FieldBag) -> Lap:
        return self._build_segment(RecordKind.LAP, Lap, fields)

    def build_record(self, fields: FieldBag) -> Record:
        kind = RecordKind.RECORD
        values = self._resolve_all(kind, fields)
        return Record(**values)

    def _build_segment(self, kind: RecordKind, cls: type, fields: FieldBag) -> SegmentSummary:
        values = self._resolve_all(kind, fields)
        return cls(**values)

    def _resolve_all(self, kind: RecordKind, fields: FieldBag) -> Dict[str, Any]:
        mandatory = MANDATORY_FIELDS[kind]
        values = {}
        for canonical in EXPECTED_FIELDS[kind]:
            if canonical in mandatory:
                values[canonical.attribute] = self.resolve_required(kind, canonical, fields)
            else:
                values[canonical.attribute] = self.resolve(kind, canonical, fields)
        return values

    def _lookup(self, kind: RecordKind, canonical: CanonicalField, fields: FieldBag) -> Any:
        raw = self._raw(sources_for(kind, canonical), fields)
        if raw is _MISSING:
            return _MISSING
        return _coerce(raw, canonical.value_type)

    @staticmethod
    def _raw(sources, fields: FieldBag) -> Any:
        for name in sources:
            value = fields.get(name)
            if value is not None:
                return value
        return _MISSING


__all__ = ['TypedRecordBuilder', 'TypedRecord', 'FieldBag', 'ParseError']
