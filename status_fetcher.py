"""
HTTP client for the backend status API.

Performs exactly one request per call and normalises every transport,
HTTP, and decoding problem into a :class:`exceptions.FetchError`.
Retrying is left to the next scheduled poll.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from config import PanelConfig
from exceptions import (
    FetchConnectionError,
    FetchDecodeError,
    FetchError,
    FetchServiceError,
    FetchTimeoutError,
)
from models import StatusSnapshot

logger = logging.getLogger("status_panel.fetcher")

_MAX_DETAIL_CHARS = 200


class StatusFetcher:
    """Fetches one :class:`StatusSnapshot` from the status service."""

    def __init__(
        self,
        config: PanelConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize status fetcher.

        Args:
            config: Panel configuration (default: from environment variables)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.config = config or PanelConfig()
        self._transport = transport

    @property
    def endpoint(self) -> str:
        """Endpoint key used when logging calls made by this fetcher."""
        return self.config.status_endpoint

    @property
    def url(self) -> str:
        return self.config.status_url

    async def fetch(self) -> StatusSnapshot:
        """
        Retrieve the current status snapshot.

        Returns:
            The decoded snapshot

        Raises:
            FetchTimeoutError: Request timed out
            FetchConnectionError: Cannot connect to the service
            FetchServiceError: Service returned an error status
            FetchDecodeError: Body is not a valid status payload
        """
        logger.debug("Fetching status from %s", self.url)

        try:
            response = await self._execute_request()
        except httpx.HTTPStatusError as e:
            raise self._service_error(e) from e
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(self.config.request_timeout) from e
        except httpx.TransportError as e:
            raise FetchConnectionError(self.config.api_base_url, e) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(str(e) or e.__class__.__name__) from e

        return self._parse_response(response)

    async def _execute_request(self) -> httpx.Response:
        """Execute the HTTP GET request against the status endpoint."""
        async with httpx.AsyncClient(
            timeout=self.config.request_timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            response = await client.get(
                self.url, headers={"Accept": "application/json"}
            )
            response.raise_for_status()
            return response

    def _service_error(self, error: httpx.HTTPStatusError) -> FetchServiceError:
        status_code = error.response.status_code
        detail = error.response.text.strip()[:_MAX_DETAIL_CHARS]
        return FetchServiceError(status_code, detail or error.response.reason_phrase)

    def _parse_response(self, response: httpx.Response) -> StatusSnapshot:
        """Decode and validate the response body."""
        try:
            data: Any = response.json()
        except ValueError as e:
            raise FetchDecodeError("response body is not JSON") from e

        if not isinstance(data, dict):
            raise FetchDecodeError(
                f"expected a JSON object, got {type(data).__name__}"
            )

        try:
            snapshot = StatusSnapshot.from_payload(data)
        except ValidationError as e:
            raise FetchDecodeError(
                f"{e.error_count()} validation error(s)"
            ) from e

        logger.info(
            "Status loaded: status=%s uptime=%ds modules=%d",
            snapshot.status,
            snapshot.uptime,
            len(snapshot.modules),
            extra={"endpoint": self.endpoint, "status": snapshot.status},
        )
        return snapshot
