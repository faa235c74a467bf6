"""
METAMEDIA CORE — Breaking News Parser
Grammar: ``TITLE: ... SUMMARY: ... CATEGORY: ...`` blocks.
"""
from typing import Any, List

from metamedia_core.data.models import Category, Domain, NewsStory
from metamedia_core.parsers.base import BlockRecordParser, or_default
from metamedia_core.utils.helpers import epoch_millis, short_time

UNKNOWN_TITLE = "Intelligence Update"


class NewsParser(BlockRecordParser):
    """
    Stories carry the category they were requested for. Any CATEGORY text the
    model writes is ignored.
    """

    domain = Domain.NEWS
    record_marker = "TITLE"
    field_markers = ("SUMMARY", "CATEGORY")

    def __init__(self):
        super().__init__(name="news_parser")

    def parse(self, text: str, **context: Any) -> List[NewsStory]:
        category = context.get("category", Category.MARKETS)
        fetch_millis = context.get("fetch_millis") or epoch_millis()
        timestamp = short_time()

        stories = []
        for index, (title, summary, _category_text) in enumerate(self.split_blocks(text)):
            title = or_default(title, UNKNOWN_TITLE)
            if title == UNKNOWN_TITLE:
                continue
            stories.append(
                NewsStory(
                    id=f"n-{index}-{fetch_millis}",
                    title=title,
                    summary=or_default(summary, "Data corrupted."),
                    category=category,
                    timestamp=timestamp,
                )
            )
        return stories
