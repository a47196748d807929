"""
HTTP API loader: one request per record
"""

import json
import httpx
from typing import Dict, List, Optional
from pydantic import Field
from core.config import settings
from ingestion.extractors.base import Record
from ingestion.loaders.base import Loader, LoadResult
from models.base import TargetKind
from schemas.base import CamelModel
import logging

logger = logging.getLogger(__name__)


class APITargetConfig(CamelModel):
    url: str
    method: str = "POST"
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: Optional[float] = None


class APILoader(Loader):
    """
    Send each record as a JSON body (dates and decimals as strings).

    A failure anywhere from encoding to the response status counts against
    that record only.
    """

    kind = TargetKind.API
    config_model = APITargetConfig

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or settings.HTTP_TIMEOUT

    async def write(self, records: List[Record], config: APITargetConfig) -> LoadResult:
        method = config.method.upper()
        headers = {"Content-Type": "application/json", **config.headers}
        result = LoadResult()

        async with httpx.AsyncClient(timeout=config.timeout or self.timeout) as client:
            for index, record in enumerate(records):
                try:
                    body = json.dumps(record, default=str)
                    response = await client.request(method, config.url, headers=headers, content=body)
                except (TypeError, ValueError, httpx.HTTPError) as e:
                    result.error_count += 1
                    result.errors.append(f"Record {index}: {e}")
                    continue

                if 200 <= response.status_code < 300:
                    result.success_count += 1
                else:
                    result.error_count += 1
                    result.errors.append(
                        f"Record {index}: HTTP {response.status_code} {response.reason_phrase}"
                    )

        if result.error_count:
            logger.warning(f"{result.error_count} of {len(records)} records failed to load to {config.url}")
        return result
