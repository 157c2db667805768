from typing import Any, Dict, List, Optional

from loguru import logger

from catalog_audit.clients.v1_client import DatadogV1Client
from catalog_audit.clients.v2_client import DatadogV2Client
from catalog_audit.logging.setup import AuditLogger
from catalog_audit.models.service import ServiceLink, TeamMapping
from catalog_audit.reconciliation.reconciler import sorted_unique
from catalog_audit.utils.misc_utils import parse_payload

ORG_UNIT_TAG_PREFIX = "org_unit:"


class CatalogError(Exception):
    """Raised when the service catalog response is empty."""

    pass


def _entries(payload: Any) -> List[Dict[str, Any]]:
    """The ``attributes`` object of each entry under ``data``."""
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if not isinstance(data, list):
        return []
    return [
        entry["attributes"]
        for entry in data
        if isinstance(entry, dict) and isinstance(entry.get("attributes"), dict)
    ]


def catalog_service_names(raw: Optional[str], log: AuditLogger = logger) -> List[str]:
    """Service names declared in a v1 service-definitions listing.

    Malformed or empty payloads yield an empty list.
    """
    try:
        payload = parse_payload(raw)
    except ValueError as e:
        log.warning(f"Could not parse service catalog response: {e}")
        return []
    names = [attrs.get("service") for attrs in _entries(payload)]
    return sorted_unique(name for name in names if isinstance(name, str) and name)


def _first_team(contacts: Any) -> Optional[str]:
    if not isinstance(contacts, list):
        return None
    for contact in contacts:
        if isinstance(contact, dict) and contact.get("type") == "team":
            value = contact.get("contact")
            return value if isinstance(value, str) else None
    return None


def _org_unit(tags: Any) -> Optional[str]:
    if not isinstance(tags, list):
        return None
    for tag in tags:
        if isinstance(tag, str) and tag.startswith(ORG_UNIT_TAG_PREFIX):
            return tag[len(ORG_UNIT_TAG_PREFIX):]
    return None


def _links(raw_links: Any) -> List[ServiceLink]:
    if not isinstance(raw_links, list):
        return []
    return [
        ServiceLink(name=link["name"], url=link["url"])
        for link in raw_links
        if isinstance(link, dict)
        and isinstance(link.get("name"), str)
        and isinstance(link.get("url"), str)
    ]


def to_team_mapping(attributes: Dict[str, Any]) -> Optional[TeamMapping]:
    """Maps one v2 service definition to a TeamMapping, or None without a name."""
    service = attributes.get("name")
    if not isinstance(service, str) or not service:
        return None
    description = attributes.get("description")
    return TeamMapping(
        service=service,
        team=_first_team(attributes.get("contacts")),
        org_unit=_org_unit(attributes.get("tags")),
        description=description if isinstance(description, str) else None,
        links=_links(attributes.get("links")),
    )


def team_mappings(raw: Optional[str], log: AuditLogger = logger) -> List[TeamMapping]:
    """Enriched catalog records sorted by service name.

    Raises:
        CatalogError: the response body is empty.
    """
    if raw is None or not raw.strip():
        raise CatalogError("service catalog response was empty")
    try:
        payload = parse_payload(raw)
    except ValueError as e:
        log.warning(f"Could not parse service catalog response: {e}")
        return []

    mappings: List[TeamMapping] = []
    for attributes in _entries(payload):
        mapping = to_team_mapping(attributes)
        if mapping is None:
            log.warning("Skipping service definition without a name")
            continue
        mappings.append(mapping)
    return sorted(mappings, key=lambda m: m.service)


async def fetch_catalog_services(client: DatadogV1Client, log: AuditLogger = logger) -> List[str]:
    log.info("Retrieving service catalog")
    services = catalog_service_names(await client.list_service_definitions(), log=log)
    log.info(f"Found {len(services)} services in service catalog")
    return services


async def fetch_team_mappings(client: DatadogV2Client, log: AuditLogger = logger) -> List[TeamMapping]:
    log.info("Retrieving service catalog with team mappings")
    return team_mappings(await client.list_service_definitions(), log=log)
