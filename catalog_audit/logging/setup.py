import sys
import logging
from typing import Any, Protocol, Set

from loguru import logger

MASK = "********"

DEFAULT_FORMAT = "<level>[{level}]</level> {message}"
VERBOSE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Values that must never reach a log sink in cleartext
_secrets: Set[str] = set()


class AuditLogger(Protocol):
    """The subset of the loguru logger the pipelines depend on."""

    def info(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def success(self, message: str, *args: Any, **kwargs: Any) -> None: ...


def register_secret(value: str) -> None:
    """Masks ``value`` in every log record emitted from now on."""
    if value:
        _secrets.add(value)


def clear_secrets() -> None:
    _secrets.clear()


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        for secret in _secrets:
            if secret in value:
                value = value.replace(secret, MASK)
        return value
    if isinstance(value, dict):
        return {k: _mask(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_mask(item) for item in value]
    return value


def sensitive_data_filter(record: dict[str, Any]) -> bool:
    """Filter function to mask registered credentials in log records."""
    sensitive_keys = ["key", "token", "password", "secret"]

    record["message"] = _mask(record["message"])

    if "extra" in record and isinstance(record["extra"], dict):
        for extra_key, extra_value in record["extra"].items():
            if any(sk in extra_key.lower() for sk in sensitive_keys):
                record["extra"][extra_key] = MASK
            else:
                record["extra"][extra_key] = _mask(extra_value)

    return True  # Keep the record after masking


class InterceptHandler(logging.Handler):
    """Routes standard logging records (httpx, httpcore) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configures Loguru to write tagged diagnostics to standard error."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else level.upper(),
        format=VERBOSE_FORMAT if verbose else DEFAULT_FORMAT,
        colorize=None,  # Auto-detect: plain tags when stderr is not a terminal
        backtrace=verbose,
        diagnose=False,
        filter=sensitive_data_filter,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # httpx logs every request at INFO
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.debug(f"Logging initialized with level: {'DEBUG' if verbose else level}")
