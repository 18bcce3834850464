"""
Custom exception classes for Toedi.

This module defines the exception hierarchy used by the ingestion pipeline.
Whether an error is fatal for an uploaded file depends on where it is raised:

- ParseError: missing or mistyped field (fatal only for the Activity message)
- StructuralError: zero or more than one Activity message in a file
- DerivationError: degenerate slope/speed input, drops a single sample
- InsertError: any persistence failure, aborts the whole transaction
- StoreError: the relational store could not be read
- FitError: the load curve could not be fitted, preferences stay unchanged
"""

from typing import Optional, Any, Dict


class ToediError(Exception):
    """
    Base exception for all Toedi errors.

    All custom exceptions in this package should inherit from this class.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigurationError(ToediError):
    """
    Raised when there are configuration-related errors.

    Examples:
    - Invalid database URL
    - Invalid ingestion settings
    """
    pass


class ParseError(ToediError):
    """
    Raised when a decoded message cannot be turned into a typed record.

    Examples:
    - Mandatory timestamp missing
    - Timestamp field that is not a date
    - The decoder could not read the file at all
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 kind: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message, details)
        self.kind = kind
        self.field = field


class StructuralError(ToediError):
    """
    Raised when a file does not contain exactly one Activity message.
    """
    pass


class DerivationError(ToediError):
    """
    Raised when a derived value cannot be computed from the given samples.

    Examples:
    - Fewer than two qualifying samples
    - No distance covered in the window
    - Slope outside of [-1, 1]
    """
    pass


class InsertError(ToediError):
    """
    Raised when writing to the relational store fails.
    """
    pass


class StoreError(ToediError):
    """
    Raised when reading from the relational store fails.

    Examples:
    - Database unreachable
    - Tables not created yet
    """
    pass


class FitError(ToediError):
    """
    Raised when the training load curve fit does not converge.
    """
    pass


# Convenience functions for creating common exceptions

def configuration_error(message: str, **details) -> ConfigurationError:
    """Create a configuration error with details."""
    return ConfigurationError(message, details)


def parse_error(message: str, kind: Optional[str] = None, field: Optional[str] = None,
                **details) -> ParseError:
    """Create a parse error naming the record kind and field."""
    if kind is not None:
        details.setdefault('kind', kind)
    if field is not None:
        details.setdefault('field', field)
    return ParseError(message, details, kind=kind, field=field)


def structural_error(message: str, **details) -> StructuralError:
    """Create a structural error with details."""
    return StructuralError(message, details)


def derivation_error(message: str, **details) -> DerivationError:
    """Create a derivation error with details."""
    return DerivationError(message, details)


def insert_error(message: str, **details) -> InsertError:
    """Create an insert error with details."""
    return InsertError(message, details)


def store_error(message: str, **details) -> StoreError:
    """Create a store read error with details."""
    return StoreError(message, details)


def fit_error(message: str, **details) -> FitError:
    """Create a curve fit error with details."""
    return FitError(message, details)
