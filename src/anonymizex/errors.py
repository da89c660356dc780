"""Exceptions raised by the anonymization pipeline.

Per-region anomalies such as degenerate polygons are not errors; they are
skipped and reported. Everything here aborts the whole run.
"""

from __future__ import annotations


class AnonymizationError(Exception):
    """Base class for all fatal pipeline failures."""


class ImageDecodeError(AnonymizationError):
    """Source bytes could not be decoded into a pixel buffer."""


class ProcessingError(AnonymizationError):
    """Unexpected failure while anonymizing or compositing a region."""


class EncodeError(AnonymizationError):
    """The finished canvas could not be serialized."""
