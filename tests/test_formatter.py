import csv
import io
import json

from catalog_audit.models.service import ReconciliationResult, ServiceLink, TeamMapping
from catalog_audit.reporting.formatter import (
    ALL_REGISTERED_MESSAGE,
    NO_SERVICES_MESSAGE,
    format_mappings,
    format_reconciliation,
    table_cell,
    truncate_description,
)


def _result(telemetry: int, catalog: int, missing: list) -> ReconciliationResult:
    return ReconciliationResult(telemetry_count=telemetry, catalog_count=catalog, missing=missing)


MAPPINGS = [
    TeamMapping(
        service="api-gateway",
        team="platform",
        org_unit="core",
        description="Edge routing for every public endpoint we expose",
        links=[ServiceLink(name="Runbook", url="https://runbooks.example.com/gw")],
    ),
    TeamMapping(service="svc1", team="team-a", org_unit="core"),
    TeamMapping(service="worker", description="Batch jobs"),
]


# ----------------- reconciliation report -----------------


def test_reconciliation_json_matches_summary_shape() -> None:
    output = format_reconciliation(_result(3, 1, ["a", "c"]), "json")
    assert json.loads(output) == {
        "summary": {"services_in_telemetry": 3, "services_in_catalog": 1, "missing_from_catalog": 2},
        "missing_services": ["a", "c"],
    }
    assert list(json.loads(output)) == ["summary", "missing_services"]


def test_reconciliation_json_empty_missing_is_empty_array() -> None:
    document = json.loads(format_reconciliation(_result(0, 0, []), "json"))
    assert document["missing_services"] == []
    assert document["summary"]["missing_from_catalog"] == 0


def test_reconciliation_table_lists_missing_services() -> None:
    output = format_reconciliation(_result(3, 1, ["a", "c"]), "table")
    assert output.splitlines() == [
        "",
        "=== Datadog Service Analyzer Results ===",
        "",
        "Services found in telemetry: 3",
        "Services in service catalog: 1",
        "Services missing from catalog: 2",
        "",
        "Missing services:",
        "  - a",
        "  - c",
        "",
    ]


def test_reconciliation_table_success_sentence_when_nothing_missing() -> None:
    output = format_reconciliation(_result(0, 1, []), "table")
    assert "Services found in telemetry: 0" in output
    assert "Services in service catalog: 1" in output
    assert "Services missing from catalog: 0" in output
    assert ALL_REGISTERED_MESSAGE in output
    assert "Missing services:" not in output


def test_reconciliation_csv_rows() -> None:
    output = format_reconciliation(_result(3, 1, ["a", "c"]), "csv")
    assert output == "service_name,status\na,missing_from_catalog\nc,missing_from_catalog\n"


def test_reconciliation_csv_header_only_when_nothing_missing() -> None:
    assert format_reconciliation(_result(2, 2, []), "csv") == "service_name,status\n"


def test_reconciliation_unknown_format_falls_back_to_table() -> None:
    result = _result(1, 0, ["a"])
    assert format_reconciliation(result, "yaml") == format_reconciliation(result, "table")
    assert format_reconciliation(result) == format_reconciliation(result, "table")
    assert format_reconciliation(result, "JSON") == format_reconciliation(result, "json")


# ----------------- mapping report -----------------


def test_mapping_json_round_trip() -> None:
    document = json.loads(format_mappings(MAPPINGS, "json"))
    assert document["summary"] == {
        "total_services": 3,
        "services_with_teams": 2,
        "services_with_org_units": 2,
    }
    restored = [TeamMapping.model_validate(record) for record in document["services"]]
    assert restored == MAPPINGS
    assert document["services"][2] == {
        "service": "worker",
        "team": None,
        "org_unit": None,
        "description": "Batch jobs",
        "links": [],
    }


def test_mapping_json_for_empty_catalog() -> None:
    assert json.loads(format_mappings([], "json")) == {
        "summary": {"total_services": 0, "services_with_teams": 0, "services_with_org_units": 0},
        "services": [],
    }


def test_mapping_csv_renders_absent_fields_as_empty() -> None:
    single = [TeamMapping(service="svc1", team="team-a", org_unit="core")]
    assert format_mappings(single, "csv") == "service,team,org_unit,description\nsvc1,team-a,core,\n"


def test_mapping_csv_quotes_fields_with_commas() -> None:
    output = format_mappings([TeamMapping(service="svc", description='Reads, writes "stuff"')], "csv")
    rows = list(csv.reader(io.StringIO(output)))
    assert rows[1] == ["svc", "", "", 'Reads, writes "stuff"']


def test_mapping_table_layout() -> None:
    lines = format_mappings(MAPPINGS, "table").splitlines()
    assert lines[1] == "=== Service Team Mappings ==="
    assert lines[3] == f"{'SERVICE':<30} {'TEAM':<20} {'ORG_UNIT':<15} DESCRIPTION"
    assert lines[4] == f"{'-' * 30} {'-' * 20} {'-' * 15} {'-' * 30}"
    assert lines[5] == f"{'api-gateway':<30} {'platform':<20} {'core':<15} Edge routing for every publ..."
    assert lines[7] == f"{'worker':<30} {'N/A':<20} {'N/A':<15} Batch jobs"
    assert lines[-5:-1] == [
        "Summary:",
        "  Total services: 3",
        "  Services with teams: 2",
        "  Services with org_units: 2",
    ]


def test_mapping_table_missing_description_is_na() -> None:
    lines = format_mappings([TeamMapping(service="svc1", team="team-a", org_unit="core")], "table").splitlines()
    assert lines[5].endswith(" N/A")


def test_mapping_table_escapes_control_characters() -> None:
    mapping = TeamMapping(service="svc\tone", team="team\\a", description="first\nsecond\r\nthird")
    text = format_mappings([mapping], "table")
    lines = text.split("\n")

    assert lines[5] == (
        "svc\\tone".ljust(30)
        + " "
        + "team\\\\a".ljust(20)
        + " "
        + "N/A".ljust(15)
        + " first\\nsecond\\r\\nthird"
    )
    assert lines[6] == ""
    assert lines[7] == "Summary:"


def test_table_cell_escapes_like_tab_separated_output() -> None:
    assert table_cell(None) == "N/A"
    assert table_cell("plain") == "plain"
    assert table_cell("a\tb\nc\rd\\e") == "a\\tb\\nc\\rd\\\\e"


def test_truncate_description_boundaries() -> None:
    assert truncate_description("x" * 30) == "x" * 30
    assert truncate_description("x" * 31) == "x" * 27 + "..."
    assert truncate_description(None) == "N/A"


def test_mapping_empty_table_and_csv_print_notice() -> None:
    assert format_mappings([], "table") == NO_SERVICES_MESSAGE + "\n"
    assert format_mappings([], "csv") == NO_SERVICES_MESSAGE + "\n"


def test_mapping_unknown_format_falls_back_to_json() -> None:
    assert format_mappings(MAPPINGS, "xml") == format_mappings(MAPPINGS, "json")
    assert format_mappings(MAPPINGS) == format_mappings(MAPPINGS, "json")


def test_rendering_is_deterministic() -> None:
    assert format_mappings(MAPPINGS, "json") == format_mappings(list(MAPPINGS), "json")
    result = _result(3, 1, ["a", "c"])
    assert format_reconciliation(result, "csv") == format_reconciliation(result, "csv")
