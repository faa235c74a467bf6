"""
METAMEDIA CORE — Google Gemini Upstream Adapter
Search-grounded generation and tool-calling chat over the google-genai SDK.
"""
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from metamedia_core.config.settings import UpstreamSettings, get_settings
from metamedia_core.data.adapters.base import (
    BaseUpstreamAdapter, ChatChannel, RawCitation, ToolCall, ToolResult, UpstreamReply,
)
from metamedia_core.data.errors import ErrorKind, UpstreamError, classify_error
from metamedia_core.utils.logger import get_logger

logger = get_logger("gemini_adapter")

SEARCH_TOOL = {"google_search": {}}


def _to_upstream_error(error: Exception) -> UpstreamError:
    code = getattr(error, "code", None)
    kind = classify_error(error)
    return UpstreamError(
        str(error),
        kind=kind,
        status_code=code if isinstance(code, int) else None,
    )


def _to_reply(response: Any) -> UpstreamReply:
    """Flatten a GenerateContentResponse into an UpstreamReply."""
    citations: List[RawCitation] = []
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        metadata = getattr(candidates[0], "grounding_metadata", None)
        chunks = getattr(metadata, "grounding_chunks", None) or []
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            if web is None:
                continue
            citations.append(RawCitation(title=web.title, uri=web.uri))

    tool_calls = [
        ToolCall(name=fc.name, args=dict(fc.args or {}), id=fc.id)
        for fc in (response.function_calls or [])
    ]

    return UpstreamReply(text=response.text or "", citations=citations, tool_calls=tool_calls)


class GeminiChatChannel(ChatChannel):
    """Wraps a google-genai async chat session."""

    def __init__(self, chat: Any):
        self._chat = chat

    async def send_message(self, message: str) -> UpstreamReply:
        try:
            response = await self._chat.send_message(message)
        except Exception as e:
            raise _to_upstream_error(e) from e
        return _to_reply(response)

    async def send_tool_results(self, results: List[ToolResult]) -> UpstreamReply:
        parts = [
            types.Part(
                function_response=types.FunctionResponse(
                    id=r.call.id,
                    name=r.call.name,
                    response={"result": r.result},
                )
            )
            for r in results
        ]
        try:
            response = await self._chat.send_message(parts)
        except Exception as e:
            raise _to_upstream_error(e) from e
        return _to_reply(response)


class GeminiAdapter(BaseUpstreamAdapter):
    """Gemini adapter — Google Search grounded generation."""

    def __init__(self, settings: Optional[UpstreamSettings] = None):
        super().__init__(name="gemini")
        self.settings = settings or get_settings().upstream

    async def connect(self) -> None:
        if not self.settings.api_key:
            logger.warning("gemini_no_api_key", msg="Upstream credential not configured")
            return
        self._client = genai.Client(api_key=self.settings.api_key)
        logger.info("gemini_adapter_connected", search_model=self.settings.search_model,
                    chat_model=self.settings.chat_model)

    async def disconnect(self) -> None:
        self._client = None
        logger.info("gemini_adapter_disconnected")

    def _require_client(self) -> genai.Client:
        if self._client is None:
            if not self.settings.api_key:
                raise UpstreamError("Upstream credential not configured", kind=ErrorKind.OTHER)
            self._client = genai.Client(api_key=self.settings.api_key)
        return self._client

    async def generate(self, prompt: str, system_instruction: str) -> UpstreamReply:
        client = self._require_client()
        config = {
            "tools": [SEARCH_TOOL],
            "system_instruction": system_instruction,
        }
        try:
            response = await client.aio.models.generate_content(
                model=self.settings.search_model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            raise _to_upstream_error(e) from e
        return _to_reply(response)

    def create_chat(self, system_instruction: str,
                    function_declarations: List[Dict[str, Any]]) -> ChatChannel:
        client = self._require_client()
        chat = client.aio.chats.create(
            model=self.settings.chat_model,
            config={
                "tools": [SEARCH_TOOL, {"function_declarations": function_declarations}],
                "system_instruction": system_instruction,
                "temperature": self.settings.chat_temperature,
            },
        )
        return GeminiChatChannel(chat)
