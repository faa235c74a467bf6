"""
METAMEDIA CORE — Macro Signal Parser
Grammar: ``GROUP:LABEL:VALUE:CHANGE:DIRECTION:IMPACT:CONTEXT`` per line.
"""
from typing import Any, List

from metamedia_core.data.models import Domain, ImpactLevel, MacroGroup, MacroSignal
from metamedia_core.parsers.base import LineRecordParser, coerce_enum, or_default
from metamedia_core.utils.helpers import is_up

UNKNOWN_LABEL = "UNKNOWN"


class MacroParser(LineRecordParser):
    domain = Domain.MACRO
    # Context is free prose and may itself contain colons
    max_fields = 7

    def __init__(self):
        super().__init__(name="macro_parser")

    def parse(self, text: str, **context: Any) -> List[MacroSignal]:
        signals = []
        for fields in self.split_lines(text):
            label = or_default(self.field(fields, 1), UNKNOWN_LABEL)
            if label == UNKNOWN_LABEL:
                continue
            signals.append(
                MacroSignal(
                    group=coerce_enum(self.field(fields, 0), MacroGroup, MacroGroup.INDICATORS),
                    label=label,
                    value=or_default(self.field(fields, 2), "N/A"),
                    change_text=or_default(self.field(fields, 3), "0%"),
                    is_positive=is_up(self.field(fields, 4)),
                    impact=coerce_enum(self.field(fields, 5), ImpactLevel, ImpactLevel.LOW),
                    context=or_default(self.field(fields, 6), "Intelligence signal pending..."),
                )
            )
        return signals
