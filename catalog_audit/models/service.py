from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ServiceLink(BaseModel):
    """A named link attached to a service definition."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class TeamMapping(BaseModel):
    """Catalog metadata for a single service."""

    service: str = Field(..., min_length=1, description="Service name from the catalog.")
    team: Optional[str] = Field(None, description="First contact of type 'team'.")
    org_unit: Optional[str] = Field(None, description="Value of the 'org_unit:' tag.")
    description: Optional[str] = None
    links: List[ServiceLink] = Field(default_factory=list)


class MappingSummary(BaseModel):
    total_services: int = 0
    services_with_teams: int = 0
    services_with_org_units: int = 0

    @classmethod
    def from_mappings(cls, mappings: Sequence[TeamMapping]) -> "MappingSummary":
        return cls(
            total_services=len(mappings),
            services_with_teams=sum(1 for m in mappings if m.team is not None),
            services_with_org_units=sum(1 for m in mappings if m.org_unit is not None),
        )


class ReconciliationResult(BaseModel):
    """Services seen in telemetry compared against the service catalog."""

    telemetry_count: int = Field(..., ge=0)
    catalog_count: int = Field(..., ge=0)
    # Sorted, unique, always a subset of the telemetry services
    missing: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def missing_count(self) -> int:
        return len(self.missing)
