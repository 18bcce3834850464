#!/usr/bin/env python3
"""
FIT decoder adapter using fitparse

Turns an uploaded byte buffer into a list of (message name, field bag)
pairs. Everything downstream only sees these plain pairs.
"""
from io import BytesIO
from typing import Any, Dict, List, Tuple, Union, IO

from fitparse import FitFile, FitParseError
import structlog

from ..exceptions import parse_error

logger = structlog.get_logger(__name__)

DecodedMessage = Tuple[str, Dict[str, Any]]


def decode_fit_bytes(data: Union[bytes, IO[bytes]]) -> List[DecodedMessage]:
    """
    Decode a FIT file into (message name, {field name: value}) pairs.

    The whole file is decoded before anything is returned, so a corrupt file
    fails here rather than halfway through building records.

    Raises:
        ParseError: the file could not be read
    """
    source = BytesIO(data) if isinstance(data, (bytes, bytearray)) else data
    messages: List[DecodedMessage] = []
    try:
        fitfile = FitFile(source)
        for message in fitfile.get_messages():
            fields = {
                field.name: field.value
                for field in message.fields
                if field.name is not None
            }
            messages.append((message.name, fields))
    except (FitParseError, EOFError, ValueError) as e:
        raise parse_error("Failed to read fit file", reason=str(e)) from e

    logger.debug("Decoded FIT file", messages=len(messages))
    return messages
