from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from catalog_audit.config.settings import settings
from catalog_audit.models.credentials import Credentials

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 500, 502, 503, 504}


class DatadogApiError(Exception):
    """Custom exception for Datadog API request errors."""

    pass


class AuthenticationError(DatadogApiError):
    """Exception raised for authentication failures (401, 403)."""

    pass


class RateLimitError(DatadogApiError):
    """Exception raised for rate limit errors (429)."""

    pass


class BaseDatadogClient:
    """Authenticated GET client for one version of the Datadog API."""

    api_version: str = ""

    def __init__(
        self,
        credentials: Credentials,
        client: Optional[httpx.AsyncClient] = None,
        attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.site = credentials.site
        self.attempts = attempts or settings.request_attempts
        self.client = client or httpx.AsyncClient(
            base_url=credentials.base_url,
            timeout=httpx.Timeout(timeout or settings.request_timeout),
            follow_redirects=True,
        )
        self.client.headers.update(
            {
                "DD-API-KEY": credentials.api_key.get_secret_value(),
                "DD-APPLICATION-KEY": credentials.app_key.get_secret_value(),
                "Content-Type": "application/json",
            }
        )

    def _path(self, endpoint: str) -> str:
        return f"/api/{self.api_version}{endpoint}"

    async def get_text(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> str:
        """Issues a GET against ``endpoint`` and returns the raw response body."""
        response = await self._make_request(self._path(endpoint), params=params)
        return response.text

    async def _make_request(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """Makes a GET request.

        Transport errors and RETRYABLE_STATUS_CODES are retried up to ``attempts``
        times in total. 401, 403 and 429 fail immediately.
        """
        logger.debug(f"GET {path} on {self.site}", params=params)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((httpx.RequestError, httpx.HTTPStatusError)),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._send(path, params)
        except httpx.HTTPStatusError as e:
            logger.debug(f"Giving up on {path} after status {e.response.status_code}")
            raise DatadogApiError(
                f"HTTP error {e.response.status_code} from {path}"
            ) from e
        except httpx.RequestError as e:
            logger.debug(f"Giving up on {path} after transport error: {e}")
            raise DatadogApiError(f"Request to {path} failed: {e}") from e
        return response

    async def _send(self, path: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        response = await self.client.get(path, params=params)

        if response.status_code in {401, 403}:
            logger.debug(f"Authentication error ({response.status_code}) for {path}")
            raise AuthenticationError(
                f"Authentication failed ({response.status_code}) for {path}"
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            logger.debug(f"Rate limit hit (429) for {path}. Retry-After: {retry_after}")
            raise RateLimitError(f"Rate limited on {path}")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code in RETRYABLE_STATUS_CODES:
                raise  # Re-raise to trigger tenacity retry
            raise DatadogApiError(f"HTTP error {e.response.status_code} from {path}") from e

        logger.debug(f"Request successful: {response.status_code} for {path}")
        return response

    async def close(self) -> None:
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.debug(f"Closed HTTP client for API {self.api_version}")
