import csv
import io
import json
from typing import Any, Dict, List, Optional, Sequence

from catalog_audit.models.enums import OutputFormat
from catalog_audit.models.service import MappingSummary, ReconciliationResult, TeamMapping

RECONCILIATION_DEFAULT = OutputFormat.TABLE
MAPPING_DEFAULT = OutputFormat.JSON

MISSING_STATUS = "missing_from_catalog"
NOT_AVAILABLE = "N/A"
NO_SERVICES_MESSAGE = "No services found."
ALL_REGISTERED_MESSAGE = (
    "✅ All services found in telemetry are registered in the service catalog!"
)

# Column widths of the mapping table: service, team, org_unit, description
COLUMN_WIDTHS = (30, 20, 15, 30)
DESCRIPTION_LIMIT = 30
DESCRIPTION_CUT = 27


def _to_json(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def _to_csv(header: Sequence[str], rows: List[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


# ----------------- reconciliation report -----------------


def reconciliation_document(result: ReconciliationResult) -> Dict[str, Any]:
    return {
        "summary": {
            "services_in_telemetry": result.telemetry_count,
            "services_in_catalog": result.catalog_count,
            "missing_from_catalog": result.missing_count,
        },
        "missing_services": list(result.missing),
    }


def _reconciliation_table(result: ReconciliationResult) -> str:
    lines = [
        "",
        "=== Datadog Service Analyzer Results ===",
        "",
        f"Services found in telemetry: {result.telemetry_count}",
        f"Services in service catalog: {result.catalog_count}",
        f"Services missing from catalog: {result.missing_count}",
        "",
    ]
    if result.missing:
        lines.append("Missing services:")
        lines.extend(f"  - {service}" for service in result.missing)
    else:
        lines.append(ALL_REGISTERED_MESSAGE)
    lines.append("")
    return "\n".join(lines) + "\n"


def format_reconciliation(
    result: ReconciliationResult, output: Optional[str] = None
) -> str:
    """Renders a reconciliation result; unknown formats render as a table."""
    fmt = OutputFormat.parse(output, RECONCILIATION_DEFAULT)
    if fmt is OutputFormat.JSON:
        return _to_json(reconciliation_document(result))
    if fmt is OutputFormat.CSV:
        return _to_csv(
            ["service_name", "status"],
            [[service, MISSING_STATUS] for service in result.missing],
        )
    return _reconciliation_table(result)


# ----------------- mapping report -----------------


def mapping_document(mappings: Sequence[TeamMapping]) -> Dict[str, Any]:
    return {
        "summary": MappingSummary.from_mappings(mappings).model_dump(),
        "services": [mapping.model_dump(mode="json") for mapping in mappings],
    }


def truncate_description(description: Optional[str]) -> str:
    text = description if description is not None else NOT_AVAILABLE
    if len(text) > DESCRIPTION_LIMIT:
        return text[:DESCRIPTION_CUT] + "..."
    return text


# Backslash escapes for characters that would split a table row
TABLE_CELL_ESCAPES = str.maketrans({"\\": "\\\\", "\t": "\\t", "\n": "\\n", "\r": "\\r"})


def table_cell(value: Optional[str]) -> str:
    """Renders an optional field as a single-line table cell."""
    text = value if value is not None else NOT_AVAILABLE
    return text.translate(TABLE_CELL_ESCAPES)


def _table_row(service: str, team: str, org_unit: str, description: str) -> str:
    w_service, w_team, w_org, _ = COLUMN_WIDTHS
    return f"{service:<{w_service}} {team:<{w_team}} {org_unit:<{w_org}} {description}"


def _mapping_table(mappings: Sequence[TeamMapping]) -> str:
    summary = MappingSummary.from_mappings(mappings)
    lines = [
        "",
        "=== Service Team Mappings ===",
        "",
        _table_row("SERVICE", "TEAM", "ORG_UNIT", "DESCRIPTION"),
        _table_row(*("-" * width for width in COLUMN_WIDTHS)),
    ]
    for mapping in mappings:
        lines.append(
            _table_row(
                table_cell(mapping.service),
                table_cell(mapping.team),
                table_cell(mapping.org_unit),
                table_cell(truncate_description(mapping.description)),
            )
        )
    lines.extend(
        [
            "",
            "Summary:",
            f"  Total services: {summary.total_services}",
            f"  Services with teams: {summary.services_with_teams}",
            f"  Services with org_units: {summary.services_with_org_units}",
            "",
        ]
    )
    return "\n".join(lines) + "\n"


def format_mappings(mappings: Sequence[TeamMapping], output: Optional[str] = None) -> str:
    """Renders team mappings; unknown formats render as JSON.

    An empty list still yields a complete JSON document, while table and CSV
    print a single notice line.
    """
    fmt = OutputFormat.parse(output, MAPPING_DEFAULT)
    if fmt is OutputFormat.JSON:
        return _to_json(mapping_document(mappings))
    if not mappings:
        return NO_SERVICES_MESSAGE + "\n"
    if fmt is OutputFormat.CSV:
        return _to_csv(
            ["service", "team", "org_unit", "description"],
            [
                [m.service, m.team or "", m.org_unit or "", m.description or ""]
                for m in mappings
            ],
        )
    return _mapping_table(mappings)
