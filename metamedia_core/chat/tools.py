"""
METAMEDIA CORE — Local Intelligence Tools
Function declarations exposed to the chat model and their simulated lookups.
Unknown tools or metric keys answer with an ``{"error": ...}`` payload so the
conversation can continue.
"""
from typing import Any, Callable, Dict, List, Optional

from metamedia_core.utils.logger import get_logger

logger = get_logger("chat_tools")


MARKET_INDICATORS_DECLARATION: Dict[str, Any] = {
    "name": "get_market_indicators",
    "description": "Fetch global market sentiment and dominance indicators.",
    "parameters": {
        "type": "OBJECT",
        "properties": {
            "metric": {
                "type": "STRING",
                "description": 'Fetch: "SENTIMENT", "DOMINANCE", or "VOLUME".',
            }
        },
        "required": ["metric"],
    },
}

NETWORK_METRICS_DECLARATION: Dict[str, Any] = {
    "name": "get_network_metrics",
    "description": "Fetch real-time blockchain network metrics like GAS, WHALE_ALERTS, or LIQUIDATIONS.",
    "parameters": {
        "type": "OBJECT",
        "properties": {
            "metricType": {
                "type": "STRING",
                "description": 'The type of data: "GAS", "WHALES", "LIQUIDATIONS".',
            }
        },
        "required": ["metricType"],
    },
}

MARKET_INDICATORS: Dict[str, Dict[str, Any]] = {
    "SENTIMENT": {"value": 72, "label": "Greed", "trend": "Up"},
    "DOMINANCE": {"value": "55.1%", "asset": "BTC", "trend": "Rising"},
    "VOLUME": {"value": "$112B", "window": "24h", "change": "+8%"},
}

NETWORK_METRICS: Dict[str, Dict[str, Any]] = {
    "GAS": {"base": "22 gwei", "priority": "High", "status": "Moderate"},
    "WHALES": {"recent": "3 transfers > 10k BTC detected", "destination": "Cold Wallet", "risk": "Low"},
    "LIQUIDATIONS": {"total": "$142M", "side": "Shorts", "ratio": "68%"},
}


def get_market_indicators(metric: Optional[str] = None) -> Dict[str, Any]:
    return dict(MARKET_INDICATORS.get(str(metric or "").upper(), {"error": "Node busy"}))


def get_network_metrics(metricType: Optional[str] = None) -> Dict[str, Any]:
    return dict(NETWORK_METRICS.get(str(metricType or "").upper(), {"error": "Signal lost"}))


class ToolRegistry:
    """Fixed registry of locally executed chat tools."""

    def __init__(self):
        self._tools: Dict[str, Callable[..., Dict[str, Any]]] = {
            "get_market_indicators": lambda args: get_market_indicators(args.get("metric")),
            "get_network_metrics": lambda args: get_network_metrics(args.get("metricType")),
        }
        self._declarations = [MARKET_INDICATORS_DECLARATION, NETWORK_METRICS_DECLARATION]

    @property
    def declarations(self) -> List[Dict[str, Any]]:
        return list(self._declarations)

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def execute(self, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        logger.debug("tool_executing", tool=name, args=args)
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("tool_unknown", tool=name)
            return {"error": "Unknown tool"}
        return tool(args or {})
