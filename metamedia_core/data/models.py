"""
METAMEDIA CORE — Data Models for Dashboard Intelligence
Canonical data structures used across the entire platform.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Any, Generic, TypeVar
from datetime import datetime
from enum import Enum


class Category(str, Enum):
    MARKETS = "MARKETS"
    MACRO = "MACRO"
    DEFI = "DEFI"
    ALTCOINS = "ALTCOINS"
    REGULATION = "REGULATION"
    POLITICS = "POLITICS"
    SOCIAL = "SOCIAL"


class Domain(str, Enum):
    TICKER = "ticker"
    MACRO = "macro"
    NEWS = "news"
    SOCIAL = "social"
    EVENTS = "events"


class MacroGroup(str, Enum):
    EQUITIES = "EQUITIES"
    COMMODITIES = "COMMODITIES"
    INDICATORS = "INDICATORS"
    CRYPTO_MACRO = "CRYPTO_MACRO"


class ImpactLevel(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MODERATE = "MODERATE"
    LOW = "LOW"


class Sentiment(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class EventStatus(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    STABLE = "STABLE"


class NodeState(str, Enum):
    ACTIVE = "ACTIVE"
    SYNCING = "SYNCING"
    OFFLINE = "OFFLINE"


class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


class CitationSource(BaseModel):
    """Web reference the upstream model used to ground its answer."""
    title: str
    uri: str


class MarketTick(BaseModel):
    """Single ticker quote as reported by the upstream model."""
    symbol: str
    price: str
    change_text: str
    is_positive: bool
    observed_at: Optional[str] = None


class MacroSignal(BaseModel):
    """Macro instrument reading with its assessed crypto impact."""
    group: MacroGroup
    label: str
    value: str
    change_text: str
    is_positive: bool
    impact: ImpactLevel
    context: str


class NewsStory(BaseModel):
    id: str
    title: str
    summary: str
    category: Category
    timestamp: str


class SocialPost(BaseModel):
    id: str
    user: str
    handle: str
    content: str
    sentiment: Sentiment
    timestamp: str = "LIVE"


class GlobalEvent(BaseModel):
    id: str
    label: str
    date: str
    status: EventStatus
    description: str


class ChatTurn(BaseModel):
    role: ChatRole
    text: str
    timestamp: str
    sources: Optional[List[CitationSource]] = None


class NodeStatus(BaseModel):
    """Health indicator for one acquisition node on the dashboard."""
    id: str
    label: str
    status: NodeState
    integrity: str


RecordT = TypeVar("RecordT")


class FetchResult(BaseModel, Generic[RecordT]):
    """One full-replace snapshot returned by an acquisition call."""
    domain: Domain
    records: List[RecordT] = Field(default_factory=list)
    sources: List[CitationSource] = Field(default_factory=list)
    fetched_at: datetime


class DomainView(BaseModel):
    """Read model the presentation layer consumes for one domain."""
    domain: Domain
    records: List[Any] = Field(default_factory=list)
    sources: List[CitationSource] = Field(default_factory=list)
    loading: bool = False
    last_sync_time: str = "NEVER"
    error: Optional[str] = None
