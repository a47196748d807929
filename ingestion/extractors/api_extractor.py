"""
HTTP API extractor.

Issues exactly one request per source spec and expects the response body to
be the record sequence. Nothing is retried here; retry and backoff belong to
the caller.
"""

import httpx
from typing import Any, Dict, List, Optional
from pydantic import Field
from core.config import settings
from core.exceptions import APIExtractionError, ExtractionError
from ingestion.extractors.base import Extractor, Record, ensure_records
from models.base import SourceKind
from schemas.base import CamelModel
import logging

logger = logging.getLogger(__name__)


class APISourceConfig(CamelModel):
    url: str
    method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None
    timeout: Optional[float] = None


class APIExtractor(Extractor):
    """
    Extract data from a REST API.

    Features:
    - Caller-supplied method, headers and JSON body
    - Non-2xx responses fail with the HTTP status in the error context
    - Network and decoding failures wrapped in APIExtractionError
    """

    kind = SourceKind.API
    config_model = APISourceConfig

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or settings.HTTP_TIMEOUT

    async def fetch_data(self, config: APISourceConfig) -> List[Record]:
        """
        Fetch the record sequence from the configured endpoint.

        Raises:
            APIExtractionError: For non-2xx responses, network errors and
                bodies that are not a record sequence
        """
        method = config.method.upper()
        timeout = config.timeout or self.timeout

        logger.info(f"Fetching {method} {config.url}")

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.request(
                    method,
                    config.url,
                    headers=config.headers,
                    json=config.body,
                )
        except httpx.HTTPError as e:
            raise APIExtractionError(
                f"Failed to extract from API: {e}",
                context={"api_url": config.url, "method": method},
                original_exception=e
            )

        if not 200 <= response.status_code < 300:
            raise APIExtractionError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                context={
                    "api_url": config.url,
                    "method": method,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]  # Truncate
                }
            )

        try:
            data = response.json()
        except ValueError as e:
            raise APIExtractionError(
                "Failed to parse JSON response",
                context={
                    "api_url": config.url,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )

        try:
            return ensure_records(data, config.url)
        except ExtractionError as e:
            raise APIExtractionError(
                e.message,
                context={"api_url": config.url, "status_code": response.status_code},
                original_exception=e
            )
