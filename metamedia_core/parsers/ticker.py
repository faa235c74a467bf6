"""
METAMEDIA CORE — Market Ticker Parser
Grammar: ``SYMBOL:PRICE:CHANGE:DIRECTION`` per line.
"""
from typing import Any, List

from metamedia_core.data.models import Domain, MarketTick
from metamedia_core.parsers.base import LineRecordParser, or_default
from metamedia_core.utils.helpers import clock_time, is_up

UNKNOWN_SYMBOL = "ERR"


class TickerParser(LineRecordParser):
    domain = Domain.TICKER

    def __init__(self):
        super().__init__(name="ticker_parser")

    def parse(self, text: str, **context: Any) -> List[MarketTick]:
        observed_at = context.get("observed_at") or clock_time()
        ticks = []
        for fields in self.split_lines(text):
            symbol = or_default(self.field(fields, 0), UNKNOWN_SYMBOL)
            if symbol == UNKNOWN_SYMBOL:
                continue
            ticks.append(
                MarketTick(
                    symbol=symbol,
                    price=or_default(self.field(fields, 1), "$0.00"),
                    change_text=or_default(self.field(fields, 2), "0%"),
                    is_positive=is_up(self.field(fields, 3)),
                    observed_at=observed_at,
                )
            )
        return ticks
