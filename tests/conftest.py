import sys
from pathlib import Path
from typing import Any, List, Tuple

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from loguru import logger  # noqa: E402
from pydantic import SecretStr  # noqa: E402

from catalog_audit.logging import setup as log_setup  # noqa: E402
from catalog_audit.models.credentials import Credentials  # noqa: E402


class RecordingLogger:
    """Stands in for the loguru logger and keeps (level, message) pairs."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, str]] = []

    def _record(self, level: str, message: str) -> None:
        self.records.append((level, message))

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._record("INFO", message)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._record("WARNING", message)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._record("ERROR", message)

    def success(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._record("SUCCESS", message)

    def messages(self, level: str) -> List[str]:
        return [message for lvl, message in self.records if lvl == level]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        api_key=SecretStr("api-key-0123456789"),
        app_key=SecretStr("app-key-9876543210"),
        site="datadoghq.eu",
    )


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks bound to captured streams and forget registered secrets."""
    yield
    logger.remove()
    log_setup.clear_secrets()
