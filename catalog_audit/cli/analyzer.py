"""Finds services that emit telemetry but are missing from the service catalog.

Exit status is 1 when at least one service is missing, 0 otherwise.
"""

import asyncio
from typing import List, Optional

from loguru import logger

from catalog_audit.clients.base_client import DatadogApiError
from catalog_audit.clients.v1_client import DatadogV1Client
from catalog_audit.config.settings import settings
from catalog_audit.credentials.onepassword import CredentialError, OnePasswordProvider
from catalog_audit.extraction.catalog import fetch_catalog_services
from catalog_audit.extraction.telemetry import ServiceExtractor
from catalog_audit.logging.setup import AuditLogger, setup_logging
from catalog_audit.models.credentials import Credentials
from catalog_audit.models.service import ReconciliationResult
from catalog_audit.reconciliation.reconciler import reconcile
from catalog_audit.reporting.formatter import RECONCILIATION_DEFAULT, format_reconciliation
from catalog_audit.utils.misc_utils import TimeWindow

from .common import (
    build_parser,
    check_dependencies,
    emit_report,
    parse_args,
    run_entry_point,
)

PROG = "datadog-service-analyzer"

EXAMPLES = f"""\
examples:
    {PROG}
    {PROG} --output json --days 14
    {PROG} --op-vault production --op-item datadog-prod
"""


async def analyze_services(
    client: DatadogV1Client,
    window: TimeWindow,
    log: AuditLogger = logger,
) -> ReconciliationResult:
    """Compares telemetry services against the catalog, one request at a time.

    Raises:
        DatadogApiError: the service catalog could not be fetched.
    """
    telemetry = await ServiceExtractor(log=log).collect(client, window)
    catalog = await fetch_catalog_services(client, log=log)
    return reconcile(telemetry, catalog, log=log)


async def run_analysis(
    credentials: Credentials, days: int, now: Optional[float] = None
) -> ReconciliationResult:
    client = DatadogV1Client(credentials)
    try:
        return await analyze_services(client, TimeWindow.last_days(days, now))
    finally:
        await client.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser(
        PROG,
        "Analyzes Datadog telemetry to find services missing from service catalog.",
        RECONCILIATION_DEFAULT.value,
        EXAMPLES,
        with_days=True,
    )
    args = parse_args(parser, argv)
    setup_logging(settings.log_level, verbose=args.verbose)

    check_dependencies([settings.op_cli])

    try:
        credentials = OnePasswordProvider(args.op_vault, args.op_item).fetch()
        result = asyncio.run(run_analysis(credentials, args.days))
    except CredentialError as e:
        logger.error(str(e))
        return 1
    except DatadogApiError as e:
        logger.error(f"Failed to retrieve service catalog: {e}")
        return 1

    emit_report(format_reconciliation(result, args.output))

    if result.missing:
        logger.warning(f"{result.missing_count} services are missing from the service catalog")
        return 1
    logger.success("All telemetry services are registered in the service catalog")
    return 0


def cli() -> None:
    run_entry_point(main)


if __name__ == "__main__":
    cli()
