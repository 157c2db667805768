from enum import Enum
from typing import Optional


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"

    @classmethod
    def parse(cls, value: Optional[str], default: "OutputFormat") -> "OutputFormat":
        """Resolves a user supplied format name, falling back to ``default``."""
        if value is None:
            return default
        try:
            return cls(value.strip().lower())
        except ValueError:
            return default


class TelemetrySignal(str, Enum):
    METRICS = "metrics"
    APM = "apm"
    LOGS = "logs"
