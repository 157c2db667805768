from typing import Iterable, List

from loguru import logger

from catalog_audit.logging.setup import AuditLogger
from catalog_audit.models.service import ReconciliationResult


def sorted_unique(names: Iterable[str]) -> List[str]:
    """Deduplicates and sorts names by code point."""
    return sorted(set(names))


def missing_services(telemetry: Iterable[str], catalog: Iterable[str]) -> List[str]:
    """Names present in ``telemetry`` but not in ``catalog``.

    Both inputs are normalized to sorted unique sequences and walked in a
    single merge pass, so the output is sorted regardless of input order.
    Matching is exact: no case folding and no trimming.
    """
    observed = sorted_unique(telemetry)
    registered = sorted_unique(catalog)

    missing: List[str] = []
    i = 0
    for name in observed:
        while i < len(registered) and registered[i] < name:
            i += 1
        if i < len(registered) and registered[i] == name:
            continue
        missing.append(name)
    return missing


def reconcile(
    telemetry: Iterable[str], catalog: Iterable[str], log: AuditLogger = logger
) -> ReconciliationResult:
    observed = sorted_unique(telemetry)
    registered = sorted_unique(catalog)
    log.info("Analyzing service gaps...")
    return ReconciliationResult(
        telemetry_count=len(observed),
        catalog_count=len(registered),
        missing=missing_services(observed, registered),
    )
