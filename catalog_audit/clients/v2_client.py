from .base_client import BaseDatadogClient


class DatadogV2Client(BaseDatadogClient):
    """Service catalog endpoint of the v2 API, with contacts, tags and links."""

    api_version: str = "v2"

    async def list_service_definitions(self) -> str:
        return await self.get_text("/services/definitions")
