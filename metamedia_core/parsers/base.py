"""
METAMEDIA CORE — Base Record Parser Interface
All parsers turn one free-text upstream reply into a list of typed records.
Parsing is total: malformed input is dropped or defaulted, never raised.
"""
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, Sequence, Type, TypeVar

from metamedia_core.data.models import Domain
from metamedia_core.utils.helpers import normalize_token

E = TypeVar("E", bound=Enum)

_BULLET = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s+")


def _marker(name: str) -> "re.Pattern[str]":
    return re.compile(r"\b" + re.escape(name) + r"\s*:(?:\*\*)?", re.IGNORECASE)


def coerce_enum(value: Optional[str], enum_cls: Type[E], default: E) -> E:
    """Map a free-text token onto a closed enum, falling back to ``default``."""
    words = (value or "").split()
    token = normalize_token(words[0]) if words else ""
    try:
        return enum_cls(token)
    except ValueError:
        return default


def or_default(value: Optional[str], default: str) -> str:
    value = (value or "").strip().strip("*").strip()
    return value if value else default


class BaseRecordParser(ABC):
    """Abstract base class for all upstream text parsers."""

    domain: Domain

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def parse(self, text: str, **context: Any) -> List[Any]:
        """Parse one upstream reply. Must never raise on malformed text."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, domain={self.domain.value})"


class LineRecordParser(BaseRecordParser):
    """
    Colon-delimited single-line grammar, e.g. ``BTC:$91,200:+2.1%:UP``.
    Every non-empty line holding a colon is one record; fields are positional.
    With ``max_fields`` set, the last field keeps any further colons verbatim.
    """

    max_fields: Optional[int] = None

    def split_lines(self, text: str) -> List[List[str]]:
        maxsplit = self.max_fields - 1 if self.max_fields else -1
        rows = []
        for raw in (text or "").splitlines():
            line = _BULLET.sub("", raw).replace("**", "").strip()
            if not line or ":" not in line:
                continue
            rows.append([field.strip() for field in line.split(":", maxsplit)])
        return rows

    @staticmethod
    def field(fields: Sequence[str], index: int) -> Optional[str]:
        return fields[index] if index < len(fields) else None


class BlockRecordParser(BaseRecordParser):
    """
    Keyword-marked block grammar, e.g. ``TITLE: ... SUMMARY: ... CATEGORY: ...``.
    The first marker starts a record; the rest are split off in declared order.
    """

    record_marker: str = ""
    field_markers: Sequence[str] = ()

    def split_blocks(self, text: str) -> List[List[Optional[str]]]:
        """Return one list per record: the primary segment followed by one segment per field marker."""
        # Non-blank text before the first marker still counts as a record
        chunks = _marker(self.record_marker).split(text or "")
        blocks = []
        for chunk in chunks:
            if not chunk.strip():
                continue
            blocks.append(self._split_fields(chunk))
        return blocks

    def _split_fields(self, chunk: str) -> List[Optional[str]]:
        segments: List[Optional[str]] = []
        rest: Optional[str] = chunk
        for marker in self.field_markers:
            if rest is None:
                segments.append(None)
                continue
            parts = _marker(marker).split(rest, maxsplit=1)
            segments.append(parts[0].strip())
            # A missing marker leaves every later field empty
            rest = parts[1] if len(parts) > 1 else None
        segments.append(rest.strip() if rest is not None else None)
        return segments
