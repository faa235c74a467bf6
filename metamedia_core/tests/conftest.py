"""
METAMEDIA CORE — Test Configuration & Fixtures
Shared fixtures for all test modules. The upstream model is replaced by a
scripted fake so no test touches the network.
"""
import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Union

import pytest

from metamedia_core.config.settings import RefreshSettings, RetrySettings
from metamedia_core.data.acquisition import AcquisitionClient
from metamedia_core.data.adapters.base import (
    BaseUpstreamAdapter, ChatChannel, RawCitation, ToolResult, UpstreamReply,
)
from metamedia_core.data.models import Domain


TICKER_TEXT = (
    "BTC:$91,200:+2.1%:UP\n"
    "ETH:$3,100:-1.4%:DOWN\n"
    "Prices sourced from major exchanges\n"
)

MACRO_TEXT = (
    "EQUITIES:S&P 500:5,900:+0.4%:UP:HIGH:Risk-on tone supports crypto beta\n"
    "COMMODITIES:Gold:$2,650:-0.2%:DOWN:MODERATE:Haven demand cooling\n"
    "MYSTERY:DXY Index:104.2:+0.1%:up:EXTREME:Dollar firm\n"
)

NEWS_TEXT = (
    "TITLE: ETF Inflows Surge\n"
    "SUMMARY: Institutional demand rises.\n"
    "CATEGORY: MARKETS\n\n"
    "TITLE: Stablecoin Bill Advances\n"
    "SUMMARY: Senate committee vote passes.\n"
    "CATEGORY: REGULATION\n"
)

SOCIAL_TEXT = (
    "USER: Crypto Analyst\nHANDLE: @analyst\nCONTENT: BTC breaking out.\nSENTIMENT: BULLISH\n\n"
    "USER: Skeptic\nHANDLE: @bear\nCONTENT: Top is in.\nSENTIMENT: BEARISH\n"
)

EVENTS_TEXT = (
    "EVENT: FOMC Meeting\nDATE: Wed 14:00 ET\nSTATUS: CRITICAL\nINFO: Rate decision.\n\n"
    "EVENT: ETH Upgrade\nDATE: Friday\nSTATUS: unknown\nINFO: Testnet fork.\n"
)

CANNED_TEXT: Dict[Domain, str] = {
    Domain.TICKER: TICKER_TEXT,
    Domain.MACRO: MACRO_TEXT,
    Domain.NEWS: NEWS_TEXT,
    Domain.SOCIAL: SOCIAL_TEXT,
    Domain.EVENTS: EVENTS_TEXT,
}

# Order matters: the first marker found in the system instruction wins
DOMAIN_MARKERS = [
    (Domain.TICKER, "SYMBOL:PRICE"),
    (Domain.MACRO, "GROUP:LABEL"),
    (Domain.NEWS, "TITLE:"),
    (Domain.SOCIAL, "USER:"),
    (Domain.EVENTS, "EVENT:"),
]

DEFAULT_CITATIONS = [
    RawCitation(title="CoinDesk", uri="https://coindesk.example/markets"),
    RawCitation(title=None, uri="https://news.example/story"),
    RawCitation(title="Placeholder", uri="#"),
    RawCitation(title="Blank", uri=None),
]


def domain_of(system_instruction: str) -> Domain:
    for domain, marker in DOMAIN_MARKERS:
        if marker in system_instruction:
            return domain
    raise AssertionError(f"Unrecognised instruction: {system_instruction}")


class FakeChatChannel(ChatChannel):
    """Chat channel that replays scripted replies in order."""

    def __init__(self, script: List[Union[UpstreamReply, Exception]]):
        self.script = script
        self.messages: List[str] = []
        self.tool_batches: List[List[ToolResult]] = []

    def _next(self) -> UpstreamReply:
        if not self.script:
            return UpstreamReply(text="Standing by.")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def send_message(self, message: str) -> UpstreamReply:
        self.messages.append(message)
        return self._next()

    async def send_tool_results(self, results: List[ToolResult]) -> UpstreamReply:
        self.tool_batches.append(list(results))
        return self._next()


class FakeAdapter(BaseUpstreamAdapter):
    """Scripted stand-in for the generative upstream."""

    def __init__(self):
        super().__init__(name="fake")
        self.texts: Dict[Domain, str] = dict(CANNED_TEXT)
        self.citations: List[RawCitation] = list(DEFAULT_CITATIONS)
        self.errors: Dict[Domain, List[Exception]] = defaultdict(list)
        self.delays: Dict[Domain, float] = {}
        self.calls: List[Dict[str, Any]] = []
        self.chat_script: List[Union[UpstreamReply, Exception]] = []
        self.channels: List[FakeChatChannel] = []
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def generate(self, prompt: str, system_instruction: str) -> UpstreamReply:
        domain = domain_of(system_instruction)
        self.calls.append({
            "domain": domain,
            "prompt": prompt,
            "system_instruction": system_instruction,
            "at": asyncio.get_running_loop().time(),
        })
        delay = self.delays.get(domain)
        if delay:
            await asyncio.sleep(delay)
        if self.errors[domain]:
            raise self.errors[domain].pop(0)
        return UpstreamReply(text=self.texts[domain], citations=list(self.citations))

    def create_chat(self, system_instruction: str, function_declarations: List[Dict[str, Any]]) -> ChatChannel:
        channel = FakeChatChannel(self.chat_script)
        channel.system_instruction = system_instruction
        channel.declarations = function_declarations
        self.channels.append(channel)
        return channel

    def calls_for(self, domain: Domain) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["domain"] is domain]


class RecordingSleep:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def retry_settings():
    return RetrySettings(max_retries=3, initial_delay_seconds=4.0, backoff_multiplier=2.5)


@pytest.fixture
def acquisition_client(fake_adapter, recording_sleep, retry_settings):
    return AcquisitionClient(
        adapter=fake_adapter,
        retry_settings=retry_settings,
        sleep=recording_sleep,
    )


@pytest.fixture
def fast_refresh():
    """Refresh cadences shrunk to fractions of a second."""
    return RefreshSettings(
        ticker_interval_seconds=0.15,
        events_delay_seconds=0.05,
        social_interval_seconds=0.1,
        category_debounce_seconds=0.1,
        default_category="MARKETS",
        auto_refresh_social=True,
    )
