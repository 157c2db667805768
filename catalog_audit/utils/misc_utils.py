# catalog_audit/utils/misc_utils.py
import json
import time
from dataclasses import dataclass
from typing import Any, Optional

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class TimeWindow:
    """A ``[start, end]`` range in epoch seconds covering the last ``days`` days."""

    start: int
    end: int
    days: int

    @classmethod
    def last_days(cls, days: int, now: Optional[float] = None) -> "TimeWindow":
        end = int(now if now is not None else time.time())
        return cls(start=end - days * SECONDS_PER_DAY, end=end, days=days)


def parse_payload(raw: Optional[str]) -> Any:
    """Decodes a JSON body; ``None`` or blank text decodes to ``None``.

    Raises:
        ValueError: the body is not valid JSON.
    """
    if raw is None or not raw.strip():
        return None
    return json.loads(raw)
