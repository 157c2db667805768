from loguru import logger

from catalog_audit.config.settings import settings
from .base_client import BaseDatadogClient


class DatadogV1Client(BaseDatadogClient):
    """Telemetry and plain service-definition endpoints of the v1 API."""

    api_version: str = "v1"

    async def query_metrics(self, start: int, end: int) -> str:
        """Metric series for every metric in ``[start, end]`` (epoch seconds)."""
        logger.debug(f"Querying metrics from {start} to {end}")
        return await self.get_text(
            "/query", params={"query": "*", "from": start, "to": end}
        )

    async def list_apm_services(self, start: int, end: int) -> str:
        logger.debug(f"Listing APM services from {start} to {end}")
        return await self.get_text("/apm/services", params={"start": start, "end": end})

    async def list_logs(self, start: int, end: int, limit: int = 0) -> str:
        """Log entries in ``[start, end]``; the API expects milliseconds."""
        logger.debug(f"Listing logs from {start} to {end}")
        return await self.get_text(
            "/logs-queries/list",
            params={
                "query": "*",
                "time.from": start * 1000,
                "time.to": end * 1000,
                "limit": limit or settings.logs_limit,
            },
        )

    async def list_service_definitions(self) -> str:
        return await self.get_text("/service-definitions")
