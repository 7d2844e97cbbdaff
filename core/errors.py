"""
Validation errors raised by the projection engine.

Every error is a local input problem detected before any output is built;
the engine performs no I/O so none of these are retryable.
"""

from __future__ import annotations


class ProjectionError(ValueError):
    """Base class for engine validation failures."""


class InvalidTermError(ProjectionError):
    """Loan term is zero or negative."""


class InvalidHorizonError(ProjectionError):
    """Projection horizon is non-positive or exceeds the configured maximum."""


class InvalidRateError(ProjectionError):
    """Interest or growth rate is outside its allowed range."""


class MalformedInputError(ProjectionError):
    """A required numeric field is missing or cannot be parsed."""
