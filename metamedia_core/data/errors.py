"""
METAMEDIA CORE — Uplink Error Taxonomy
Rate-limit classification is decided once, where the upstream error is caught,
and carried upward as an ErrorKind.
"""
import json
from enum import Enum
from typing import Optional

from metamedia_core.data.models import Domain

RATE_LIMIT_MARKERS = ("429", "QUOTA", "RESOURCE_EXHAUSTED")


class ErrorKind(str, Enum):
    RATE_LIMITED = "RATE_LIMITED"
    OTHER = "OTHER"


class UplinkError(Exception):
    """Base class for failures talking to the generative upstream."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.OTHER):
        super().__init__(message)
        self.kind = kind

    @property
    def is_rate_limited(self) -> bool:
        return self.kind is ErrorKind.RATE_LIMITED


class UpstreamError(UplinkError):
    """Raised by an upstream adapter when a generation call fails."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.OTHER,
                 status_code: Optional[int] = None):
        super().__init__(message, kind)
        self.status_code = status_code


class FetchFailedError(UplinkError):
    """Raised by the acquisition client once retries are exhausted."""

    def __init__(self, domain: Domain, kind: ErrorKind, message: str = ""):
        super().__init__(message or f"{domain.value} fetch failed", kind)
        self.domain = domain


def _serialize(error: BaseException) -> str:
    payload = {
        "type": type(error).__name__,
        "message": str(error),
        "status": getattr(error, "status", None),
        "code": getattr(error, "code", None),
    }
    return json.dumps(payload, default=str).upper()


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify an arbitrary exception as rate-limited or not.
    Structured uplink errors keep their own kind; anything else falls back to
    scanning its serialized form for HTTP 429 / quota markers.
    """
    if isinstance(error, UplinkError):
        return error.kind

    for attr in ("status", "code", "status_code"):
        if getattr(error, attr, None) == 429:
            return ErrorKind.RATE_LIMITED

    serialized = _serialize(error)
    if any(marker in serialized for marker in RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMITED
    return ErrorKind.OTHER
