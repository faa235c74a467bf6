"""
METAMEDIA CORE — Social Feed Parser
Grammar: ``USER: ... HANDLE: ... CONTENT: ... SENTIMENT: ...`` blocks.
"""
from typing import Any, List

from metamedia_core.data.models import Domain, Sentiment, SocialPost
from metamedia_core.parsers.base import BlockRecordParser, coerce_enum, or_default

UNKNOWN_USER = "Unknown"


class SocialParser(BlockRecordParser):
    domain = Domain.SOCIAL
    record_marker = "USER"
    field_markers = ("HANDLE", "CONTENT", "SENTIMENT")

    def __init__(self):
        super().__init__(name="social_parser")

    def parse(self, text: str, **context: Any) -> List[SocialPost]:
        posts = []
        for index, (user, handle, content, sentiment) in enumerate(self.split_blocks(text)):
            user = or_default(user, UNKNOWN_USER)
            if user == UNKNOWN_USER:
                continue
            posts.append(
                SocialPost(
                    id=f"t-{index}",
                    user=user,
                    handle=or_default(handle, "@anon"),
                    content=or_default(content, "..."),
                    sentiment=coerce_enum(sentiment, Sentiment, Sentiment.NEUTRAL),
                    timestamp="LIVE",
                )
            )
        return posts
