"""Lists service catalog entries with their owning team, org unit and links."""

import asyncio
from typing import List, Optional

from loguru import logger

from catalog_audit.clients.base_client import DatadogApiError
from catalog_audit.clients.v2_client import DatadogV2Client
from catalog_audit.config.settings import settings
from catalog_audit.credentials.onepassword import CredentialError, OnePasswordProvider
from catalog_audit.extraction.catalog import CatalogError, fetch_team_mappings
from catalog_audit.logging.setup import setup_logging
from catalog_audit.models.credentials import Credentials
from catalog_audit.models.service import TeamMapping
from catalog_audit.reporting.formatter import MAPPING_DEFAULT, format_mappings

from .common import (
    build_parser,
    check_dependencies,
    emit_report,
    parse_args,
    run_entry_point,
)

PROG = "service-team-mapper"

EXAMPLES = f"""\
examples:
    {PROG}
    {PROG} --output table
    {PROG} --op-vault production --op-item datadog-prod
"""


async def run_mapping(credentials: Credentials) -> List[TeamMapping]:
    client = DatadogV2Client(credentials)
    try:
        return await fetch_team_mappings(client)
    finally:
        await client.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser(
        PROG,
        "Generates a list of services mapped to teams from Datadog service catalog.",
        MAPPING_DEFAULT.value,
        EXAMPLES,
    )
    args = parse_args(parser, argv)
    setup_logging(settings.log_level, verbose=args.verbose)

    check_dependencies([settings.op_cli])

    try:
        credentials = OnePasswordProvider(args.op_vault, args.op_item).fetch()
        mappings = asyncio.run(run_mapping(credentials))
    except CredentialError as e:
        logger.error(str(e))
        return 1
    except (CatalogError, DatadogApiError) as e:
        logger.error(f"Failed to retrieve service catalog: {e}")
        return 1

    if not mappings:
        logger.warning("No services found in service catalog")
    else:
        logger.success(f"Mapped {len(mappings)} services")

    emit_report(format_mappings(mappings, args.output))
    return 0


def cli() -> None:
    run_entry_point(main)


if __name__ == "__main__":
    cli()
