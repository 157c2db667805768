import argparse
import shutil
import sys
from typing import Callable, List, Optional, Sequence

from loguru import logger
from rich.console import Console

from catalog_audit.config.settings import AppSettings, settings
from catalog_audit.logging.setup import AuditLogger

FORMAT_CHOICES = "json|table|csv"


class UsageError(Exception):
    """Raised by the argument parser for unknown options or bad values."""

    pass


class AuditArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors to the caller instead of exiting 2."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got '{value}'")
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got '{value}'")
    return parsed


def build_parser(
    prog: str,
    description: str,
    default_output: str,
    epilog: str,
    *,
    with_days: bool = False,
    defaults: AppSettings = settings,
) -> AuditArgumentParser:
    parser = AuditArgumentParser(
        prog=prog,
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="FORMAT",
        default=default_output,
        help=f"Output format ({FORMAT_CHOICES}) [default: {default_output}]",
    )
    parser.add_argument(
        "--op-vault",
        metavar="VAULT",
        default=defaults.op_vault,
        help="1Password vault name [default: %(default)s]",
    )
    parser.add_argument(
        "--op-item",
        metavar="ITEM",
        default=defaults.op_item,
        help="1Password item name [default: %(default)s]",
    )
    if with_days:
        parser.add_argument(
            "--days",
            metavar="DAYS",
            type=positive_int,
            default=defaults.days,
            help="Days of telemetry data to analyze [default: %(default)s]",
        )
    return parser


def parse_args(parser: AuditArgumentParser, argv: Optional[List[str]]) -> argparse.Namespace:
    """Parses ``argv``; usage errors print the usage and exit with status 1."""
    try:
        return parser.parse_args(argv)
    except UsageError as e:
        logger.error(str(e))
        parser.print_help(sys.stderr)
        raise SystemExit(1)


def missing_dependencies(
    tools: Sequence[str], which: Callable[[str], Optional[str]] = shutil.which
) -> List[str]:
    """Every tool in ``tools`` that cannot be found on PATH."""
    return [tool for tool in tools if which(tool) is None]


def check_dependencies(
    tools: Sequence[str],
    log: AuditLogger = logger,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> None:
    """Exits with status 1 after listing all missing executables at once."""
    missing = missing_dependencies(tools, which)
    if missing:
        log.error(
            "Missing required dependencies:\n"
            + "\n".join(f"  - {tool}" for tool in missing)
        )
        raise SystemExit(1)


def report_console() -> Console:
    """Console bound to stdout for report bodies."""
    return Console(
        file=sys.stdout,
        markup=False,
        emoji=False,
        highlight=False,
        soft_wrap=True,
    )


def emit_report(text: str, console: Optional[Console] = None) -> None:
    """Writes a finished report body to the console stream without rendering it."""
    stream = (console or report_console()).file
    stream.write(text)
    stream.flush()


def run_entry_point(main: Callable[[], int]) -> None:
    """Runs a command's ``main`` and exits with its status."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
