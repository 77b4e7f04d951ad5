"""
Error Taxonomy
==============

Labeled error kinds shared by every inspection component.

Each exception carries an ErrorKind so that callers can surface a
failure as "kind + message" without inspecting exception types.

Propagation Rules:
    - NetworkError: recovered locally by best-effort callers
    - ManifestParseError: only raised by the strict manifest entry point
    - MediaError / StageTimeoutError / CanvasSecurityError / InternalError:
      terminal for a frame extraction run, reported as a failed result
"""

from enum import Enum


class ErrorKind(str, Enum):
    """
    Machine-readable error kinds.

    Values are the user-visible labels rendered next to a failure.
    """

    NETWORK = "NetworkError"
    PARSE = "ParseError"
    MEDIA = "MediaError"
    TIMEOUT = "TimeoutError"
    CANVAS_SECURITY = "CanvasSecurityError"
    INTERNAL = "InternalError"


class InspectorError(Exception):
    """Base class for all labeled inspection errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class NetworkError(InspectorError):
    """Raised when a fetch or probe fails."""

    kind = ErrorKind.NETWORK


class ManifestParseError(InspectorError):
    """Raised by strict manifest validation."""

    kind = ErrorKind.PARSE

    def __init__(self, issues: list) -> None:
        self.issues = list(issues)
        super().__init__("; ".join(self.issues) or "invalid manifest")


class MediaError(InspectorError):
    """Raised for engine-reported decode/seek failures and empty frames."""

    kind = ErrorKind.MEDIA


class StageTimeoutError(InspectorError):
    """Raised when a bounded stage exceeds its deadline."""

    kind = ErrorKind.TIMEOUT


class CanvasSecurityError(InspectorError):
    """Raised when pixel read-back is denied for cross-origin content."""

    kind = ErrorKind.CANVAS_SECURITY


class InternalError(InspectorError):
    """Raised when a required resource (e.g. rendering surface) is missing."""

    kind = ErrorKind.INTERNAL
