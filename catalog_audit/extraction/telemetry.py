from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from catalog_audit.clients.base_client import DatadogApiError
from catalog_audit.clients.v1_client import DatadogV1Client
from catalog_audit.logging.setup import AuditLogger
from catalog_audit.models.enums import TelemetrySignal
from catalog_audit.reconciliation.reconciler import sorted_unique
from catalog_audit.utils.misc_utils import TimeWindow, parse_payload

SERVICE_TAG_PREFIX = "service:"


def _tag_suffixes(tags: Any, prefix: str) -> List[str]:
    """Returns the part after ``prefix`` for every string tag that starts with it."""
    if not isinstance(tags, list):
        return []
    return [tag[len(prefix):] for tag in tags if isinstance(tag, str) and tag.startswith(prefix)]


def metric_candidates(payload: Any) -> List[str]:
    """Service names from the ``service:`` tags of series whose metric mentions a service."""
    if not isinstance(payload, dict):
        return []
    series = payload.get("series")
    if not isinstance(series, list):
        return []

    candidates: List[str] = []
    for entry in series:
        if not isinstance(entry, dict):
            continue
        metric = entry.get("metric")
        if not isinstance(metric, str) or SERVICE_TAG_PREFIX not in metric:
            continue
        candidates.extend(_tag_suffixes(entry.get("tags"), SERVICE_TAG_PREFIX))
    return candidates


def apm_candidates(payload: Any) -> List[str]:
    if not isinstance(payload, list):
        return []
    return [
        entry["name"]
        for entry in payload
        if isinstance(entry, dict) and isinstance(entry.get("name"), str)
    ]


def log_candidates(payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        return []
    entries = payload.get("logs")
    if not isinstance(entries, list):
        return []

    candidates: List[str] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        attributes = entry.get("attributes")
        if not isinstance(attributes, dict):
            continue
        candidates.extend(_tag_suffixes(attributes.get("tags"), SERVICE_TAG_PREFIX))
    return candidates


CANDIDATE_EXTRACTORS = {
    TelemetrySignal.METRICS: metric_candidates,
    TelemetrySignal.APM: apm_candidates,
    TelemetrySignal.LOGS: log_candidates,
}


def merge_candidates(candidate_lists: Iterable[List[str]]) -> List[str]:
    """Concatenates per-signal candidates, drops empty names, dedups and sorts."""
    merged: List[str] = []
    for candidates in candidate_lists:
        merged.extend(candidates)
    return sorted_unique(name for name in merged if name)


class ServiceExtractor:
    """Collects service names observed across metrics, APM traces and logs."""

    def __init__(self, log: AuditLogger = logger):
        self.log = log

    def extract_signal(self, signal: TelemetrySignal, raw: Optional[str]) -> List[str]:
        """Candidates for one signal; malformed payloads contribute nothing."""
        try:
            payload = parse_payload(raw)
        except ValueError as e:
            self.log.info(f"Could not parse {signal.value} response, skipping: {e}")
            return []
        return CANDIDATE_EXTRACTORS[signal](payload)

    def extract(self, raw_by_signal: Dict[TelemetrySignal, Optional[str]]) -> List[str]:
        """Builds the telemetry service set from the raw body of each signal."""
        candidate_lists = [
            self.extract_signal(signal, raw_by_signal.get(signal))
            for signal in TelemetrySignal
        ]
        return merge_candidates(candidate_lists)

    async def collect(self, client: DatadogV1Client, window: TimeWindow) -> List[str]:
        """Fetches every signal in turn and extracts the merged service set.

        A signal that fails to fetch is logged and treated as empty; the other
        signals are still queried.
        """
        self.log.info(f"Discovering services from telemetry data (last {window.days} days)")
        fetchers = {
            TelemetrySignal.METRICS: lambda: client.query_metrics(window.start, window.end),
            TelemetrySignal.APM: lambda: client.list_apm_services(window.start, window.end),
            TelemetrySignal.LOGS: lambda: client.list_logs(window.start, window.end),
        }
        raw_by_signal: Dict[TelemetrySignal, Optional[str]] = {}
        for signal, fetch in fetchers.items():
            self.log.info(f"Checking {signal.value} for service names...")
            try:
                raw_by_signal[signal] = await fetch()
            except DatadogApiError as e:
                self.log.info(f"No services from {signal.value}: {e}")
                raw_by_signal[signal] = None

        services = self.extract(raw_by_signal)
        self.log.info(f"Found {len(services)} services in telemetry")
        return services
