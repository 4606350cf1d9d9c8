"""HTTP client for the classification and timetable services."""

import asyncio
import base64
import json
import logging
import re
from typing import Any

import httpx
from pydantic import ValidationError

from braindump_cli.models.config_models import ServiceConfig
from braindump_cli.models.plan import ClassificationResult, TimetableResult

from .exceptions import ClassificationError, TimetableParseError

logger = logging.getLogger(__name__)

_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")


class ServiceClient:
    """HTTP client for the brain dump services."""

    def __init__(
        self,
        config: ServiceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.base_url = config.endpoint
        self.timeout = config.timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ServiceClient":
        """Enter the async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the async context manager and ensure the client is closed."""
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        retry: int | None = None,
    ) -> httpx.Response:
        """Make an HTTP request, retrying server and transport errors."""
        if retry is None:
            retry = self.config.retry

        client = self._get_client()
        url = f"{path}" if path.startswith("/") else f"/{path}"

        last_exception: Exception | None = None
        for attempt in range(retry + 1):
            try:
                response = await client.request(method=method, url=url, json=json)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                # Don't retry client errors (4xx)
                if 400 <= e.response.status_code < 500:
                    raise
                last_exception = e
            except httpx.RequestError as e:
                last_exception = e

            if attempt < retry:
                logger.debug("%s %s failed (attempt %d), retrying", method, url, attempt + 1)
                await asyncio.sleep(2**attempt)

        # All retries failed
        if last_exception:
            raise last_exception
        raise RuntimeError("Request failed after all retries")

    async def post(self, path: str, *, json: dict[str, Any] | None = None) -> httpx.Response:
        """Make a POST request."""
        return await self.request("POST", path, json=json)

    async def classify(self, text: str, hours: float | None = None) -> ClassificationResult:
        """Send a brain dump to the classification service.

        Raises:
            ClassificationError: on any transport failure or an invalid payload
        """
        try:
            response = await self.post("/analyze", json={"text": text, "hours": hours})
            return ClassificationResult.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.error("Classification failed: %s", e)
            raise ClassificationError(f"Could not classify tasks: {e}") from e

    async def parse_timetable(
        self, image: bytes, media_type: str = "image/jpeg"
    ) -> TimetableResult:
        """Send a timetable image to the parsing service.

        Raises:
            TimetableParseError: on any transport failure or when no usable
                JSON payload can be found in the response
        """
        payload = {
            "imageBase64": base64.b64encode(image).decode("ascii"),
            "mimeType": media_type or "image/jpeg",
        }
        try:
            response = await self.post("/parse-timetable", json=payload)
        except httpx.HTTPError as e:
            logger.error("Timetable parsing failed: %s", e)
            raise TimetableParseError(f"Could not parse timetable: {e}") from e

        data = _extract_json(response.text)
        if data is None:
            raise TimetableParseError("No JSON payload found in timetable response")
        try:
            return TimetableResult.model_validate(data)
        except ValidationError as e:
            logger.error("Timetable payload invalid: %s", e)
            raise TimetableParseError(f"Timetable response was incomplete: {e}") from e


def _extract_json(text: str) -> Any | None:
    """Parse *text* as JSON, falling back to the outermost {...} block."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    match = _JSON_BLOCK_RE.search(text)
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError:
        return None


def build_service_client(config: ServiceConfig) -> ServiceClient:
    """Get a service client for the configured endpoint."""
    return ServiceClient(config)

