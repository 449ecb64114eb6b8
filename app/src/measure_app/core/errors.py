from __future__ import annotations


class MeasureError(ValueError):
    """Base class for user-facing errors; the message is shown as a status line."""


class CalibrationError(MeasureError):
    """Raised when a calibration length is missing, non-numeric or not positive."""


class InvalidLengthError(MeasureError):
    """Raised when a wall/window length cannot be applied."""


class LoadError(MeasureError):
    """Raised for unsupported, oversized or undecodable documents and bad config files."""


class ExportError(MeasureError):
    """Raised when an export cannot be produced."""


class MergeError(MeasureError):
    """Raised when a polygon merge is not allowed."""
