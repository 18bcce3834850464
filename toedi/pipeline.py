"""
Ingest-and-derive pipeline for uploaded FIT files.

One call takes the raw bytes of a file and a user id and runs

    decode -> type -> derive activity metrics -> derive slope/speed -> persist

A file passes or fails as a whole. The result reports the message of the
first fatal error; on failure nothing has been written.
"""

import time
from typing import Iterable, Optional, Tuple

import structlog

from .analytics import derive_activity_metrics, derive_slope_speeds
from .config import Settings
from .exceptions import ToediError
from .processors import (
    ActivityProcessor, ProcessingResult, ProcessingStatus, decode_fit_bytes,
)
from .processors.builder import FieldBag
from .storage import IngestionUnit, PersistenceCoordinator, SessionFactory, get_user_preferences

logger = structlog.get_logger(__name__)


class FitIngestionPipeline:
    """Runs the full ingestion of one file for one user."""

    def __init__(self, settings: Settings, session_factory: SessionFactory,
                 processor: Optional[ActivityProcessor] = None):
        self.settings = settings
        self.session_factory = session_factory
        self.processor = processor or ActivityProcessor()
        self.coordinator = PersistenceCoordinator(session_factory)

    def process(self, data: bytes, user_id: int) -> ProcessingResult:
        """Decode and ingest the raw bytes of a FIT file."""
        start = time.time()
        try:
            messages = decode_fit_bytes(data)
        except ToediError as e:
            return self.failed(e, user_id, start)
        return self._ingest(messages, user_id, start)

    def process_messages(self, messages: Iterable[Tuple[str, FieldBag]], user_id: int) -> ProcessingResult:
        """Ingest an already decoded message stream."""
        return self._ingest(messages, user_id, time.time())

    def _ingest(self, messages: Iterable[Tuple[str, FieldBag]], user_id: int,
                start: float) -> ProcessingResult:
        log = logger.bind(user_id=user_id)
        try:
            parsed = self.processor.process(messages)

            db = self.session_factory()
            try:
                preferences = get_user_preferences(db, user_id, parsed.activity.start_time)
            finally:
                db.close()

            activity = derive_activity_metrics(parsed.activity, parsed.heartrates, preferences)
            slope_speeds = derive_slope_speeds(
                parsed.records,
                parsed.sessions,
                user_id,
                preferences,
                self.settings.ingestion.slope_window_records,
            )

            unit = IngestionUnit(
                activity=activity,
                sessions=parsed.sessions,
                laps=parsed.laps,
                records=parsed.records,
                slope_speeds=slope_speeds,
            )
            stored = self.coordinator.persist(unit, user_id)
        except ToediError as e:
            return self.failed(e, user_id, start)

        result = ProcessingResult(
            status=ProcessingStatus.COMPLETED,
            activity_id=stored.activity_id,
            message="Activity stored",
            record_counts=unit.counts(),
            skipped_records=len(parsed.skipped),
            processing_time=time.time() - start,
        )
        for skipped in parsed.skipped:
            result.add_warning(f"Skipped {skipped}")

        log.info("Ingested activity", activity_id=stored.activity_id, load=stored.load,
                 avg_heartrate=stored.avg_heartrate, processing_time=result.processing_time)
        return result

    def failed(self, error: ToediError, user_id: int, start: Optional[float] = None) -> ProcessingResult:
        """Failed result carrying the message of the fatal error."""
        start = start if start is not None else time.time()
        logger.error("Ingestion failed", user_id=user_id, error_type=type(error).__name__,
                     error=str(error))
        return ProcessingResult(
            status=ProcessingStatus.FAILED,
            message=str(error),
            processing_time=time.time() - start,
        )
