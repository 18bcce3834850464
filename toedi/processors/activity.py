#!/usr/bin/env python3
"""
Activity Processor - groups decoded messages of one file into typed collections
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import structlog

from ..exceptions import ParseError, structural_error
from ..models import Activity, Lap, Record, RecordKind, Session
from .builder import FieldBag, TypedRecordBuilder

logger = structlog.get_logger(__name__)


@dataclass
class ParsedActivity:
    """Typed content of one uploaded file, not yet derived or stored"""
    activity: Activity
    sessions: List[Session] = field(default_factory=list)
    laps: List[Lap] = field(default_factory=list)
    records: List[Record] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def heartrates(self) -> List[int]:
        """Heart rate of every record that reported one, in record order"""
        return [r.heartrate for r in self.records if r.heartrate is not None]


class ActivityProcessor:
    """
    Builds a ParsedActivity out of a decoded message stream.

    A file must contain exactly one Activity message; anything else is a
    StructuralError. A ParseError on the Activity message is fatal too.
    Session, Lap and Record messages that fail to parse are logged and
    skipped. Other message kinds are ignored.
    """

    def __init__(self, builder: Optional[TypedRecordBuilder] = None):
        self.builder = builder or TypedRecordBuilder()

    def process(self, messages: Iterable[Tuple[str, FieldBag]]) -> ParsedActivity:
        activity: Optional[Activity] = None
        sessions: List[Session] = []
        laps: List[Lap] = []
        records: List[Record] = []
        skipped: List[str] = []
        ignored = 0

        for name, fields in messages:
            try:
                kind = RecordKind.from_message_name(name)
            except ValueError:
                ignored += 1
                logger.debug("Ignoring message", kind=name)
                continue

            if kind is RecordKind.ACTIVITY:
                if activity is not None:
                    raise structural_error("Found more than one activity")
                activity = self.builder.build_activity(fields)
                continue

            try:
                typed = self.builder.build(kind, fields)
            except ParseError as e:
                skipped.append(f"{kind.value}: {e.message}")
                logger.warning("Skipping unparseable message", kind=kind.value,
                               field=e.field, error=e.message)
                continue

            if kind is RecordKind.RECORD:
                records.append(typed)
            elif kind is RecordKind.SESSION:
                sessions.append(typed)
            else:
                laps.append(typed)

        if activity is None:
            raise structural_error("No activity found in fit file, may be corrupt")

        logger.info(
            "Parsed activity messages",
            records=len(records), sessions=len(sessions), laps=len(laps),
            skipped=len(skipped), ignored=ignored,
        )
        return ParsedActivity(
            activity=activity,
            sessions=sessions,
            laps=laps,
            records=records,
            skipped=skipped,
        )
