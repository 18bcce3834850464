#!/usr/bin/env python3
"""
Processing result types shared by the processors and the ingestion pipeline
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ProcessingStatus(Enum):
    """Processing status enumeration"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ProcessingResult:
    """
    Outcome of ingesting one uploaded file.

    A file either passes as a whole or fails with the message of the first
    fatal error; partial success is never reported.
    """
    status: ProcessingStatus = ProcessingStatus.PENDING
    activity_id: Optional[int] = None
    message: str = ""
    record_counts: Dict[str, int] = field(default_factory=dict)
    skipped_records: int = 0
    warnings: List[str] = field(default_factory=list)
    processing_time: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.status is ProcessingStatus.COMPLETED

    def add_warning(self, warning: str):
        """Add warning"""
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'activity_id': self.activity_id,
            'message': self.message,
            'record_counts': dict(self.record_counts),
            'skipped_records': self.skipped_records,
            'warnings': list(self.warnings),
            'processing_time': self.processing_time,
        }
