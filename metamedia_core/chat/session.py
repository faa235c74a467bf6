"""
METAMEDIA CORE — Conversation Session
Multi-turn analyst chat with local tool-call round trips.

State machine per session:
    IDLE -> AWAITING_MODEL_RESPONSE -> (EXECUTING_TOOLS -> AWAITING_MODEL_RESPONSE)* -> IDLE

A send failure never corrupts the transcript: a fixed fallback model turn is
appended instead and the session returns to IDLE.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from metamedia_core.config.settings import get_settings
from metamedia_core.chat.tools import ToolRegistry
from metamedia_core.data.acquisition import get_acquisition_client
from metamedia_core.data.adapters.base import (
    BaseUpstreamAdapter, ChatChannel, ToolResult, UpstreamReply,
)
from metamedia_core.data.models import ChatRole, ChatTurn, CitationSource
from metamedia_core.utils.helpers import clock_time
from metamedia_core.utils.logger import get_logger

logger = get_logger("conversation")

GREETING = "METAMEDIA INTELLIGENCE UPLINK ESTABLISHED. ALL LIVE NODES SYNCED. READY FOR COMMAND INPUT."
LINK_ERROR = "NEURAL_LINK_ERROR: RE-SYNC REQUIRED."
EMPTY_REPLY = "COMM_LINK_ERROR"
TOOL_BUDGET_EXHAUSTED = "TOOL_BUDGET_EXHAUSTED: ANALYST TOOL ROUND LIMIT REACHED. REPHRASE OR NARROW THE REQUEST."

SYSTEM_INSTRUCTION = (
    "You are the METAMEDIA CORP Senior Intelligence Analyst.\n"
    "You have access to Google Search and proprietary network tools.\n"
    "Current Node Capabilities:\n"
    "- 'get_network_metrics': High-signal blockchain data (Gas, Whale moves).\n"
    "- 'get_market_indicators': Macro sentiment.\n"
    "Always emphasize data integrity and provide timestamps if possible."
)


class SessionState(str, Enum):
    IDLE = "IDLE"
    AWAITING_MODEL_RESPONSE = "AWAITING_MODEL_RESPONSE"
    EXECUTING_TOOLS = "EXECUTING_TOOLS"


class ToolBudgetExhausted(Exception):
    pass


class ConversationSession:
    """Stateful chat wrapper around an upstream chat channel."""

    def __init__(
        self,
        adapter: BaseUpstreamAdapter,
        tools: Optional[ToolRegistry] = None,
        max_tool_rounds: Optional[int] = None,
    ):
        self.adapter = adapter
        self.tools = tools or ToolRegistry()
        self.max_tool_rounds = (
            get_settings().chat.max_tool_rounds if max_tool_rounds is None else max_tool_rounds
        )
        self.state = SessionState.IDLE
        self.turns: List[ChatTurn] = [self._turn(ChatRole.MODEL, GREETING)]
        self._channel: Optional[ChatChannel] = None
        self._tool_rounds_total = 0

    @staticmethod
    def _turn(role: ChatRole, text: str,
              sources: Optional[List[CitationSource]] = None) -> ChatTurn:
        return ChatTurn(role=role, text=text, timestamp=clock_time(), sources=sources or None)

    @property
    def busy(self) -> bool:
        return self.state is not SessionState.IDLE

    async def send_user_message(self, text: str) -> Optional[ChatTurn]:
        """
        Send one user message and run tool rounds until the model answers.
        Returns the appended model turn, or None when the input is blank or a
        turn is already in progress.
        """
        if not text or not text.strip() or self.busy:
            logger.debug("chat_input_ignored", busy=self.busy)
            return None

        self.turns.append(self._turn(ChatRole.USER, text))
        self.state = SessionState.AWAITING_MODEL_RESPONSE
        try:
            reply = await self._converse(text)
            turn = self._turn(ChatRole.MODEL, reply.text or EMPTY_REPLY,
                              reply.sources("Grounding Point"))
        except ToolBudgetExhausted:
            logger.warning("chat_tool_budget_exhausted", max_rounds=self.max_tool_rounds)
            # The channel still holds unanswered tool calls; start clean next time
            self._channel = None
            turn = self._turn(ChatRole.MODEL, TOOL_BUDGET_EXHAUSTED)
        except Exception as e:
            logger.error("chat_send_failed", error=str(e))
            # The upstream history may end in an unanswered tool call
            self._channel = None
            turn = self._turn(ChatRole.MODEL, LINK_ERROR)
        finally:
            self.state = SessionState.IDLE

        self.turns.append(turn)
        return turn

    async def _converse(self, text: str) -> UpstreamReply:
        if self._channel is None:
            self._channel = self.adapter.create_chat(SYSTEM_INSTRUCTION, self.tools.declarations)

        reply = await self._channel.send_message(text)
        rounds = 0
        while reply.tool_calls:
            if rounds >= self.max_tool_rounds:
                raise ToolBudgetExhausted()
            rounds += 1
            self._tool_rounds_total += 1

            self.state = SessionState.EXECUTING_TOOLS
            results = [
                ToolResult(call=call, result=self.tools.execute(call.name, call.args))
                for call in reply.tool_calls
            ]
            logger.info("chat_tools_executed", round=rounds,
                        tools=[call.name for call in reply.tool_calls])

            self.state = SessionState.AWAITING_MODEL_RESPONSE
            reply = await self._channel.send_tool_results(results)
        return reply

    def transcript(self) -> List[Dict[str, Any]]:
        return [turn.model_dump(mode="json") for turn in self.turns]

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "turns": len(self.turns),
            "tool_rounds": self._tool_rounds_total,
        }


# Singleton
_session: Optional[ConversationSession] = None


def get_session() -> ConversationSession:
    global _session
    if _session is None:
        _session = ConversationSession(get_acquisition_client().adapter)
    return _session
