"""Catalog data the assistant is grounded on, loaded fresh for every chat turn.

Destinations, categories, FAQ and the privacy policy are fetched concurrently
from the Ithaka API. Every endpoint answers with a ``{"data": ...}`` envelope;
anything else is reported as a ``ReferenceDataError``.
"""

import asyncio
import logging
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.config import API_BASE_URL, HTTP_TIMEOUT_SECONDS, USER_AGENT

logger = logging.getLogger(__name__)

DESTINATIONS_PATH = "/destinations"
CATEGORIES_PATH = "/categories"
FAQ_PATH = "/faqs"
PRIVACY_POLICY_PATH = "/privacy-policy"


class ReferenceDataError(RuntimeError):
    """Reference data could not be loaded from the Ithaka API."""


class Destination(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str


class Category(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str


class ReferenceData(BaseModel):
    destinations: List[Destination] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    faq: Any = None
    privacy_policy: Any = None

    def destination_names(self) -> List[str]:
        return [d.name for d in self.destinations]


async def _fetch_envelope(client: httpx.AsyncClient, path: str) -> Any:
    logger.info("Fetching reference data: %s", path)
    try:
        r = await client.get(path)
        r.raise_for_status()
        payload = r.json()
    except httpx.TimeoutException as e:
        raise ReferenceDataError(f"Timed out while loading {path.lstrip('/')}.") from e
    except httpx.HTTPStatusError as e:
        raise ReferenceDataError(
            f"Failed to fetch {path.lstrip('/')} (status {e.response.status_code})."
        ) from e
    except httpx.HTTPError as e:
        raise ReferenceDataError(f"Could not reach the Ithaka API for {path.lstrip('/')}.") from e
    except ValueError as e:
        raise ReferenceDataError(f"The Ithaka API returned invalid JSON for {path.lstrip('/')}.") from e

    if not isinstance(payload, dict) or "data" not in payload:
        raise ReferenceDataError(f"Unexpected response shape for {path.lstrip('/')}.")
    return payload["data"]


async def _load(client: httpx.AsyncClient) -> ReferenceData:
    destinations, categories, faq, privacy_policy = await asyncio.gather(
        _fetch_envelope(client, DESTINATIONS_PATH),
        _fetch_envelope(client, CATEGORIES_PATH),
        _fetch_envelope(client, FAQ_PATH),
        _fetch_envelope(client, PRIVACY_POLICY_PATH),
    )
    try:
        data = ReferenceData(
            destinations=destinations,
            categories=categories,
            faq=faq,
            privacy_policy=privacy_policy,
        )
    except ValidationError as e:
        raise ReferenceDataError("Destinations or categories came back in an unexpected format.") from e

    logger.info(
        "Loaded reference data: %d destination(s), %d category(ies)",
        len(data.destinations), len(data.categories),
    )
    return data


async def fetch_reference_data(client: Optional[httpx.AsyncClient] = None) -> ReferenceData:
    """Load all reference datasets. Raises ReferenceDataError on any failure."""
    if client is not None:
        return await _load(client)

    async with httpx.AsyncClient(
        base_url=API_BASE_URL,
        timeout=HTTP_TIMEOUT_SECONDS,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    ) as http:
        return await _load(http)
