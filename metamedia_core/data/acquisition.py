"""
METAMEDIA CORE — Acquisition Client
One fetch operation per dashboard domain: compose the instruction, call the
search-grounded upstream under the retry policy, collect citations and hand the
reply text to the domain's record parser.
"""
import asyncio
from typing import Any, Dict, Optional

from metamedia_core.config.settings import RetrySettings, UpstreamSettings, get_settings
from metamedia_core.data.adapters.base import BaseUpstreamAdapter, UpstreamReply
from metamedia_core.data.adapters.gemini_adapter import GeminiAdapter
from metamedia_core.data.errors import FetchFailedError, classify_error
from metamedia_core.data.models import Category, Domain, FetchResult
from metamedia_core.data.retry import Sleeper, with_retry
from metamedia_core.parsers.registry import ParserRegistry, get_parser_registry
from metamedia_core.utils.helpers import epoch_millis, utc_now
from metamedia_core.utils.logger import get_logger

logger = get_logger("acquisition")


# ─── Prompt Catalogue ───────────────────────────────────────────

TICKER_FORMAT = "Format output as: 'SYMBOL:PRICE:CHANGE:DIRECTION(UP/DOWN)'. Be precise."

MACRO_PROMPT = (
    "Search for current real-time values of: S&P 500, Nasdaq 100, FTSE 100, Nikkei 225, "
    "DXY Index, US 10Y Bond Yield, Gold, Silver, Crude Oil, BTC Dominance, "
    "Total Crypto Market Cap, and US Fed Interest Rate. "
    "Assess their current impact on the digital asset ecosystem."
)
MACRO_FORMAT = (
    "Format strictly as: 'GROUP:LABEL:VALUE:CHANGE:DIRECTION(UP/DOWN):"
    "IMPACT(CRITICAL/HIGH/MODERATE/LOW):CONTEXT'. "
    "Groups must be EQUITIES, COMMODITIES, INDICATORS, or CRYPTO_MACRO."
)

NEWS_CONTEXT: Dict[Category, str] = {
    Category.MARKETS: "Global cryptocurrency markets and institutional Bitcoin/Ethereum ETFs.",
    Category.MACRO: "Global macroeconomic trends, inflation, central bank policies, and trad-fi indices.",
    Category.DEFI: "Decentralized Finance protocols and DEX volume trends.",
    Category.ALTCOINS: "Emerging layer-1/layer-2 blockchains and AI-centric digital assets.",
    Category.REGULATION: "Global crypto legislation and enforcement actions.",
    Category.POLITICS: "Geopolitical shifts affecting finance.",
    Category.SOCIAL: "Social media sentiment trends.",
}
NEWS_FORMAT = "Return: 'TITLE:', 'SUMMARY:', 'CATEGORY:'. Use high-density intelligence style."

SOCIAL_DEFAULT_PROMPT = "Search for the latest viral crypto social media posts from the last 12 hours."
SOCIAL_FORMAT = "Format: 'USER:', 'HANDLE:', 'CONTENT:', 'SENTIMENT:' (BULLISH/BEARISH/NEUTRAL)."

EVENTS_PROMPT = "Search for 5 high-impact upcoming crypto events this week."
EVENTS_FORMAT = "Format: 'EVENT:', 'DATE:', 'STATUS:', 'INFO:'."


def ticker_prompt(symbols) -> str:
    listed = ", ".join(symbols[:-1]) + f", and {symbols[-1]}" if len(symbols) > 1 else "".join(symbols)
    return (
        f"Get the current real-time prices and 24h percentage change for {listed}. "
        "Return in a list format."
    )


def news_prompt(category: Category) -> str:
    return (
        "Search for 5 major breaking news stories from the last 24 hours regarding: "
        f"{NEWS_CONTEXT[category]}"
    )


def social_prompt(query: Optional[str] = None) -> str:
    if query and query.strip():
        return f"Search X (Twitter) for recent viral posts regarding: {query.strip()}."
    return SOCIAL_DEFAULT_PROMPT


# ─── Client ─────────────────────────────────────────────────────

class AcquisitionClient:
    """
    Domain fetch operations over a generative upstream adapter.
    Every upstream call is wrapped in the rate-limit retry policy; once that
    budget is spent the failure surfaces as FetchFailedError.
    """

    def __init__(
        self,
        adapter: Optional[BaseUpstreamAdapter] = None,
        parsers: Optional[ParserRegistry] = None,
        upstream_settings: Optional[UpstreamSettings] = None,
        retry_settings: Optional[RetrySettings] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        settings = get_settings()
        self.upstream_settings = upstream_settings or settings.upstream
        self.retry_settings = retry_settings or settings.retry
        self.adapter = adapter or GeminiAdapter(self.upstream_settings)
        self.parsers = parsers or get_parser_registry()
        self._sleep = sleep
        self._calls: Dict[str, int] = {d.value: 0 for d in Domain}
        self._failures: Dict[str, int] = {d.value: 0 for d in Domain}

    async def initialize(self) -> None:
        await self.adapter.connect()

    async def shutdown(self) -> None:
        await self.adapter.disconnect()

    async def fetch_ticker(self) -> FetchResult:
        return await self._acquire(
            Domain.TICKER,
            ticker_prompt(self.upstream_settings.ticker_symbols),
            TICKER_FORMAT,
        )

    async def fetch_macro(self) -> FetchResult:
        return await self._acquire(Domain.MACRO, MACRO_PROMPT, MACRO_FORMAT)

    async def fetch_news(self, category: Category) -> FetchResult:
        return await self._acquire(
            Domain.NEWS,
            news_prompt(category),
            NEWS_FORMAT,
            category=category,
        )

    async def fetch_social(self, query: Optional[str] = None) -> FetchResult:
        return await self._acquire(Domain.SOCIAL, social_prompt(query), SOCIAL_FORMAT)

    async def fetch_events(self) -> FetchResult:
        return await self._acquire(Domain.EVENTS, EVENTS_PROMPT, EVENTS_FORMAT)

    async def _acquire(self, domain: Domain, prompt: str, system_instruction: str,
                       **parse_context: Any) -> FetchResult:
        self._calls[domain.value] += 1

        async def call() -> UpstreamReply:
            return await self.adapter.generate(prompt, system_instruction)

        try:
            reply = await with_retry(
                call,
                max_retries=self.retry_settings.max_retries,
                initial_delay=self.retry_settings.initial_delay_seconds,
                multiplier=self.retry_settings.backoff_multiplier,
                max_delay=self.retry_settings.max_delay_seconds,
                sleep=self._sleep,
            )
        except Exception as e:
            kind = classify_error(e)
            self._failures[domain.value] += 1
            logger.error("fetch_failed", domain=domain.value, kind=kind.value, error=str(e))
            raise FetchFailedError(domain, kind, str(e)) from e

        sources = reply.sources("Source")
        parse_context.setdefault("fetch_millis", epoch_millis())
        records = self.parsers.parser_for(domain).parse(reply.text, **parse_context)

        logger.info("fetch_completed", domain=domain.value,
                    records=len(records), sources=len(sources))
        return FetchResult(domain=domain, records=records, sources=sources, fetched_at=utc_now())

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "adapter": self.adapter.name,
            "calls": dict(self._calls),
            "failures": dict(self._failures),
        }


# Singleton
_client: Optional[AcquisitionClient] = None


def get_acquisition_client() -> AcquisitionClient:
    global _client
    if _client is None:
        _client = AcquisitionClient()
    return _client
