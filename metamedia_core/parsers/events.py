"""
METAMEDIA CORE — Global Events Parser
Grammar: ``EVENT: ... DATE: ... STATUS: ... INFO: ...`` blocks.
"""
from typing import Any, List

from metamedia_core.data.models import Domain, EventStatus, GlobalEvent
from metamedia_core.parsers.base import BlockRecordParser, coerce_enum, or_default

UNKNOWN_EVENT = "Unknown"


class EventsParser(BlockRecordParser):
    domain = Domain.EVENTS
    record_marker = "EVENT"
    field_markers = ("DATE", "STATUS", "INFO")

    def __init__(self):
        super().__init__(name="events_parser")

    def parse(self, text: str, **context: Any) -> List[GlobalEvent]:
        events = []
        for index, (label, date, status, info) in enumerate(self.split_blocks(text)):
            label = or_default(label, UNKNOWN_EVENT)
            if label == UNKNOWN_EVENT:
                continue
            events.append(
                GlobalEvent(
                    id=f"e-{index}",
                    label=label,
                    date=or_default(date, "TBD"),
                    status=coerce_enum(status, EventStatus, EventStatus.STABLE),
                    description=or_default(info, "..."),
                )
            )
        return events
