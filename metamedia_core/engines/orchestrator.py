"""
METAMEDIA CORE — Refresh Orchestrator
Owns the dashboard view state and every refresh cycle that feeds it:
staggered startup, ticker interval, debounced category loads, social
auto-refresh and manual resync.

Timers are asyncio tasks held by the orchestrator. Every reschedule cancels the
previous handle first, and shutdown() cancels all of them. Each domain carries a
monotonic request sequence; a response that is not the latest issued for its
domain is discarded.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from metamedia_core.config.settings import RefreshSettings, get_settings
from metamedia_core.data.acquisition import AcquisitionClient, get_acquisition_client
from metamedia_core.data.errors import ErrorKind, classify_error
from metamedia_core.data.models import (
    Category, CitationSource, Domain, DomainView, FetchResult, NodeState, NodeStatus,
)
from metamedia_core.utils.helpers import clock_time
from metamedia_core.utils.logger import get_logger

logger = get_logger("orchestrator")

COOLING_DOWN = "NODE_COOLING_DOWN: RETRY_IN_60S"
UPLINK_FAILURE = "UPLINK_FAILURE: PACKET_LOSS"

CONTENT_DOMAINS = (Domain.NEWS, Domain.MACRO, Domain.SOCIAL)

TICKER_TIMER = "ticker_interval"
EVENTS_TIMER = "events_delay"
STARTUP_TIMER = "startup"
CATEGORY_TIMER = "category_debounce"
SOCIAL_TIMER = "social_refresh"

FetchFactory = Callable[[], Awaitable[FetchResult]]


def content_domain(category: Category) -> Domain:
    """Which acquisition domain feeds the main panel for a category."""
    if category is Category.SOCIAL:
        return Domain.SOCIAL
    if category is Category.MACRO:
        return Domain.MACRO
    return Domain.NEWS


def error_message(kind: ErrorKind) -> str:
    return COOLING_DOWN if kind is ErrorKind.RATE_LIMITED else UPLINK_FAILURE


@dataclass
class DomainState:
    """Current snapshot and request bookkeeping for one domain."""
    domain: Domain
    records: List[Any] = field(default_factory=list)
    sources: List[CitationSource] = field(default_factory=list)
    loading: bool = False
    last_sync_time: str = "NEVER"
    error: Optional[str] = None
    sequence: int = 0
    request_key: Optional[str] = None
    discarded: int = 0

    def view(self) -> DomainView:
        return DomainView(
            domain=self.domain,
            records=list(self.records),
            sources=list(self.sources),
            loading=self.loading,
            last_sync_time=self.last_sync_time,
            error=self.error,
        )


class RefreshOrchestrator:
    """
    Coordinates all acquisition cycles over one shared view state.

    Only this class writes the view state. A trigger for a domain that already
    has the same request in flight joins it; a trigger with different
    parameters (another news category, another social query) cancels the
    superseded request before issuing its own.
    """

    def __init__(self, client: AcquisitionClient, settings: Optional[RefreshSettings] = None):
        self.client = client
        self.settings = settings or get_settings().refresh
        self.domains: Dict[Domain, DomainState] = {d: DomainState(domain=d) for d in Domain}
        self.active_category = Category(self.settings.default_category)
        self.auto_refresh_social = self.settings.auto_refresh_social
        self.error: Optional[str] = None
        self.last_sync_time = "NEVER"
        self._timers: Dict[str, asyncio.Task] = {}
        self._inflight: Dict[Domain, asyncio.Task] = {}
        self._started = False

    # ─── Lifecycle ──────────────────────────────────────────────

    async def start(self) -> asyncio.Task:
        """
        Begin the startup sequence and return its task. The ticker loads first;
        events follow after a fixed delay and the ticker interval starts once
        the first ticker load has finished. The initial category load goes
        through the usual debounce.
        """
        if self._started:
            return self._timers[STARTUP_TIMER]
        self._started = True
        await self.client.initialize()

        task = self._schedule(STARTUP_TIMER, self._startup_sequence())
        self._schedule_category_load()
        self._sync_social_timer(restart=True)
        logger.info("orchestrator_started", category=self.active_category.value,
                    auto_refresh_social=self.auto_refresh_social)
        return task

    async def _startup_sequence(self) -> None:
        await self.load_ticker()
        self._schedule(EVENTS_TIMER, self._delayed(self.settings.events_delay_seconds, self.load_events))
        self._schedule(TICKER_TIMER, self._ticker_loop())

    async def shutdown(self) -> None:
        """Cancel every timer and in-flight request. Safe to call repeatedly."""
        pending = list(self._timers.values()) + list(self._inflight.values())
        for name in list(self._timers):
            self._cancel_timer(name)
        for task in list(self._inflight.values()):
            task.cancel()
        current = asyncio.current_task()
        await asyncio.gather(*(t for t in pending if t is not current), return_exceptions=True)
        self._inflight.clear()
        for state in self.domains.values():
            state.loading = False
            state.request_key = None

        if self._started:
            self._started = False
            await self.client.shutdown()
            logger.info("orchestrator_stopped")

    # ─── Timers ─────────────────────────────────────────────────

    def _schedule(self, name: str, coro: Awaitable[Any]) -> asyncio.Task:
        self._cancel_timer(name)
        task = asyncio.ensure_future(coro)
        self._timers[name] = task
        return task

    def _cancel_timer(self, name: str) -> None:
        task = self._timers.pop(name, None)
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()

    def timer_active(self, name: str) -> bool:
        task = self._timers.get(name)
        return task is not None and not task.done()

    async def _delayed(self, delay: float, action: Callable[[], Awaitable[Any]]) -> None:
        await asyncio.sleep(delay)
        await action()

    async def _ticker_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.ticker_interval_seconds)
            await self.load_ticker()

    async def _social_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.social_interval_seconds)
            if self.domains[Domain.SOCIAL].loading:
                logger.debug("social_refresh_skipped_inflight")
                continue
            await self.load_content(Category.SOCIAL)

    def _schedule_category_load(self) -> None:
        self._schedule(
            CATEGORY_TIMER,
            self._delayed(self.settings.category_debounce_seconds, self.load_content),
        )

    def _sync_social_timer(self, restart: bool = False) -> None:
        wanted = self.active_category is Category.SOCIAL and self.auto_refresh_social
        if not wanted:
            self._cancel_timer(SOCIAL_TIMER)
            return
        if restart or not self.timer_active(SOCIAL_TIMER):
            self._schedule(SOCIAL_TIMER, self._social_loop())

    # ─── Inputs ─────────────────────────────────────────────────

    def set_category(self, category: Category) -> None:
        """Switch the active category; the content load is debounced."""
        category = Category(category)
        if category is self.active_category:
            return
        self.active_category = category
        logger.info("category_changed", category=category.value)
        self._schedule_category_load()
        self._sync_social_timer(restart=True)

    def set_auto_refresh(self, enabled: bool) -> None:
        if enabled == self.auto_refresh_social:
            return
        self.auto_refresh_social = enabled
        logger.info("social_auto_refresh_toggled", enabled=enabled)
        self._sync_social_timer(restart=True)

    async def manual_resync(self) -> bool:
        """Immediate reload of the active category. No-op while it is loading."""
        domain = content_domain(self.active_category)
        if self.domains[domain].loading:
            logger.info("manual_resync_ignored", domain=domain.value)
            return False
        return await self.load_content(self.active_category)

    async def search_social(self, query: str) -> bool:
        return await self.load_content(Category.SOCIAL, query)

    # ─── Fetch Paths ────────────────────────────────────────────

    async def load_ticker(self) -> bool:
        return await self._run(Domain.TICKER, "ticker", self.client.fetch_ticker)

    async def load_events(self) -> bool:
        return await self._run(Domain.EVENTS, "events", self.client.fetch_events)

    async def load_content(self, category: Optional[Category] = None,
                           query: Optional[str] = None) -> bool:
        domain, key, factory = self._content_request(category or self.active_category, query)
        return await self._run(domain, key, factory)

    def _content_request(self, category: Category,
                         query: Optional[str]) -> Tuple[Domain, str, FetchFactory]:
        domain = content_domain(category)
        if domain is Domain.SOCIAL:
            return domain, f"social:{query or ''}", lambda: self.client.fetch_social(query)
        if domain is Domain.MACRO:
            return domain, "macro", self.client.fetch_macro
        return domain, f"news:{category.value}", lambda: self.client.fetch_news(category)

    async def _run(self, domain: Domain, key: str, factory: FetchFactory) -> bool:
        task = self._start_fetch(domain, key, factory)
        # wait() leaves the fetch running if the caller itself is cancelled
        await asyncio.wait({task})
        if task.cancelled():
            return False
        return task.result()

    def _start_fetch(self, domain: Domain, key: str, factory: FetchFactory) -> asyncio.Task:
        state = self.domains[domain]
        current = self._inflight.get(domain)
        if current is not None and not current.done():
            if state.request_key == key:
                logger.debug("fetch_joined_inflight", domain=domain.value, key=key)
                return current
            logger.info("fetch_superseded", domain=domain.value,
                        previous=state.request_key, key=key)
            current.cancel()

        state.sequence += 1
        state.request_key = key
        state.loading = True
        if domain in CONTENT_DOMAINS:
            self.error = None
        task = asyncio.ensure_future(self._fetch(domain, state.sequence, factory))
        self._inflight[domain] = task
        return task

    async def _fetch(self, domain: Domain, sequence: int, factory: FetchFactory) -> bool:
        state = self.domains[domain]
        try:
            result = await factory()
        except Exception as e:
            if sequence != state.sequence:
                state.discarded += 1
                return False
            self._apply_failure(state, classify_error(e))
            return False
        finally:
            if sequence == state.sequence:
                state.loading = False
                state.request_key = None
                self._inflight.pop(domain, None)

        if sequence != state.sequence:
            state.discarded += 1
            logger.info("stale_response_discarded", domain=domain.value,
                        sequence=sequence, latest=state.sequence)
            return False
        self._apply_success(state, result)
        return True

    def _apply_success(self, state: DomainState, result: FetchResult) -> None:
        now = clock_time()
        state.error = None
        state.last_sync_time = now
        # An empty ticker reply keeps the last good quotes on screen
        if state.domain is Domain.TICKER and not result.records:
            logger.debug("ticker_empty_kept_previous")
            return
        state.records = list(result.records)
        state.sources = list(result.sources)
        if state.domain in CONTENT_DOMAINS:
            self.last_sync_time = now

    def _apply_failure(self, state: DomainState, kind: ErrorKind) -> None:
        message = error_message(kind)
        state.error = message
        if state.domain in CONTENT_DOMAINS:
            self.error = message
            logger.error("content_load_failed", domain=state.domain.value, kind=kind.value)
        else:
            logger.warning("node_busy", domain=state.domain.value, kind=kind.value)

    # ─── Read Model ─────────────────────────────────────────────

    @property
    def content_loading(self) -> bool:
        return self.domains[content_domain(self.active_category)].loading

    def view(self, domain: Domain) -> DomainView:
        return self.domains[Domain(domain)].view()

    def node_status(self) -> List[NodeStatus]:
        content = self.domains[content_domain(self.active_category)]
        ticker = self.domains[Domain.TICKER]
        social_syncing = self.active_category is Category.SOCIAL and content.loading

        def state_of(syncing: bool, failed: bool) -> NodeState:
            if syncing:
                return NodeState.SYNCING
            return NodeState.OFFLINE if failed else NodeState.ACTIVE

        return [
            NodeStatus(id="node_alpha", label="GROUNDING_NODE",
                       status=state_of(content.loading, content.error is not None), integrity="98.2%"),
            NodeStatus(id="node_beta", label="MARKET_DATA_L1",
                       status=state_of(ticker.loading, ticker.error is not None), integrity="99.9%"),
            NodeStatus(id="node_gamma", label="SOCIAL_INTERCEPT",
                       status=state_of(social_syncing, False), integrity="94.5%"),
        ]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "active_category": self.active_category.value,
            "auto_refresh_social": self.auto_refresh_social,
            "content_loading": self.content_loading,
            "last_sync_time": self.last_sync_time,
            "error": self.error,
            "nodes": [n.model_dump(mode="json") for n in self.node_status()],
            "domains": {d.value: s.view().model_dump(mode="json") for d, s in self.domains.items()},
        }

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "started": self._started,
            "timers": sorted(name for name in self._timers if self.timer_active(name)),
            "inflight": sorted(d.value for d, t in self._inflight.items() if not t.done()),
            "sequences": {d.value: s.sequence for d, s in self.domains.items()},
            "discarded": {d.value: s.discarded for d, s in self.domains.items()},
        }


# Singleton
_orchestrator: Optional[RefreshOrchestrator] = None


def get_orchestrator() -> RefreshOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = RefreshOrchestrator(get_acquisition_client())
    return _orchestrator
