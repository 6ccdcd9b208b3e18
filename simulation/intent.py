"""Map a line of free text to a simulator command.

Checked in order: an analysis request naming a 0x address, then anything
shaped like a bare token address (a trade), then the status keyword, then
end phrases, then start phrases. Anything else is unrecognized.
"""

from __future__ import annotations

import re
from typing import Literal, NamedTuple

_ADDRESS_LIKE = re.compile(r"^0x\w*$", re.IGNORECASE)
_ADDRESS_IN_TEXT = re.compile(r"\b0x\w+", re.IGNORECASE)
_ANALYZE = re.compile(
    r"\b(analy[sz]e|analysis|evaluate|evaluation|insight|overview|recommend|opinion|advice"
    r"|should\s+(i\s+)?(buy|invest|sell)|what\s+do\s+you\s+think)\b",
    re.IGNORECASE,
)
_START = re.compile(
    r"\b(simulation( mode)?|start (sim|simulation)|begin (test|simulation)|enter simulation|simulate now)\b",
    re.IGNORECASE,
)
_END = re.compile(r"\bsimulation end\b|\bend simulation\b|\bend\b|\bstop\b|\bfinish\b", re.IGNORECASE)
_STATUS = re.compile(r"^\s*(status|portfolio)\s*$", re.IGNORECASE)


class Intent(NamedTuple):
    command: Literal["start", "trade", "analyze", "end", "status", "unknown"]
    argument: str = ""


def parse_intent(text: str) -> Intent:
    content = (text or "").strip()
    if not content:
        return Intent("unknown")
    if _ANALYZE.search(content):
        address = _ADDRESS_IN_TEXT.search(content)
        if address:
            return Intent("analyze", address.group(0).lower())
    if _ADDRESS_LIKE.match(content):
        # Malformed addresses are passed on so the orchestrator can reject them.
        return Intent("trade", content.lower())
    if _STATUS.match(content):
        return Intent("status")
    # "end simulation" also matches the start pattern's bare "simulation".
    if _END.search(content):
        return Intent("end")
    if _START.search(content):
        return Intent("start")
    return Intent("unknown")
