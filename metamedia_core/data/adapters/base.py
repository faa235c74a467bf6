"""
METAMEDIA CORE — Base Upstream Adapter Interface
All generative upstream adapters must implement this interface.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from metamedia_core.data.models import CitationSource

PLACEHOLDER_URI = "#"


@dataclass
class ToolCall:
    """A function invocation requested by the upstream model."""
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None


@dataclass
class ToolResult:
    call: ToolCall
    result: Dict[str, Any]


@dataclass
class RawCitation:
    title: Optional[str] = None
    uri: Optional[str] = None


@dataclass
class UpstreamReply:
    """Vendor-neutral view of one upstream response."""
    text: str = ""
    citations: List[RawCitation] = field(default_factory=list)
    tool_calls: List[ToolCall] = field(default_factory=list)

    def sources(self, default_title: str = "Source") -> List[CitationSource]:
        """Citation sources with placeholder or empty URIs removed."""
        result = []
        for citation in self.citations:
            uri = citation.uri or PLACEHOLDER_URI
            if uri == PLACEHOLDER_URI:
                continue
            result.append(CitationSource(title=citation.title or default_title, uri=uri))
        return result


class ChatChannel(ABC):
    """Stateful multi-turn conversation with the upstream model."""

    @abstractmethod
    async def send_message(self, message: str) -> UpstreamReply:
        pass

    @abstractmethod
    async def send_tool_results(self, results: List[ToolResult]) -> UpstreamReply:
        """Return all tool results of one round in a single batch."""
        pass


class BaseUpstreamAdapter(ABC):
    """Abstract base class for search-augmented generation backends."""

    def __init__(self, name: str):
        self.name = name
        self._client = None

    @abstractmethod
    async def connect(self) -> None:
        """Initialize client / session."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Clean up client / session."""
        pass

    @abstractmethod
    async def generate(self, prompt: str, system_instruction: str) -> UpstreamReply:
        """Run one search-grounded generation call."""
        pass

    @abstractmethod
    def create_chat(self, system_instruction: str,
                    function_declarations: List[Dict[str, Any]]) -> ChatChannel:
        """Open a new conversation with the given local tools exposed."""
        pass
