"""
METAMEDIA CORE — Parser Registry
Maps each acquisition domain to the parser that interprets its upstream text.
A domain's parser can be swapped (e.g. for a structured-output parser) without
touching acquisition or orchestration code.
"""
from typing import Dict, List, Optional

from metamedia_core.data.models import Domain
from metamedia_core.parsers.base import BaseRecordParser
from metamedia_core.parsers.events import EventsParser
from metamedia_core.parsers.macro import MacroParser
from metamedia_core.parsers.news import NewsParser
from metamedia_core.parsers.social import SocialParser
from metamedia_core.parsers.ticker import TickerParser
from metamedia_core.utils.logger import get_logger

logger = get_logger("parser_registry")


class ParserRegistry:
    """Central registry of record parsers, one per domain."""

    def __init__(self):
        self._parsers: Dict[Domain, BaseRecordParser] = {}
        self._register_all()

    def _register_all(self) -> None:
        for parser in (TickerParser(), MacroParser(), NewsParser(), SocialParser(), EventsParser()):
            self._parsers[parser.domain] = parser
        logger.debug("parsers_registered", count=len(self._parsers),
                     names=[p.name for p in self._parsers.values()])

    def register(self, parser: BaseRecordParser) -> None:
        """Replace the parser for the parser's domain."""
        self._parsers[parser.domain] = parser
        logger.info("parser_replaced", domain=parser.domain.value, name=parser.name)

    def parser_for(self, domain: Domain) -> BaseRecordParser:
        parser = self._parsers.get(domain)
        if parser is None:
            raise KeyError(f"No parser registered for domain {domain.value}")
        return parser

    @property
    def parser_names(self) -> List[str]:
        return [p.name for p in self._parsers.values()]

    @property
    def count(self) -> int:
        return len(self._parsers)


# Singleton
_registry: Optional[ParserRegistry] = None


def get_parser_registry() -> ParserRegistry:
    global _registry
    if _registry is None:
        _registry = ParserRegistry()
    return _registry
