#!/usr/bin/env python3
"""
Processors module - decoding and typing of uploaded activity files
"""

from .interface import ProcessingStatus, ProcessingResult
from .fields import CanonicalField, ValueType, FIELD_SOURCES, MANDATORY_FIELDS, sources_for
from .builder import TypedRecordBuilder, TypedRecord
from .decoder import decode_fit_bytes
from .activity import ActivityProcessor, ParsedActivity

__all__ = [
    'ProcessingStatus', 'ProcessingResult',
    'CanonicalField', 'ValueType', 'FIELD_SOURCES', 'MANDATORY_FIELDS', 'sources_for',
    'TypedRecordBuilder', 'TypedRecord',
    'decode_fit_bytes',
    'ActivityProcessor', 'ParsedActivity',
]
