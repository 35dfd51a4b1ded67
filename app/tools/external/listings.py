import logging
from typing import List, Optional

import httpx
from langchain.tools import tool
from pydantic import BaseModel, Field, ValidationError

from app.config import API_BASE_URL, HTTP_TIMEOUT_SECONDS, LISTINGS_PAGE_SIZE, USER_AGENT
from app.middleware.event_collector import emit_event
from app.tools.internal.query_builder import ListingQuery
from app.tools.internal.sort_normalizer import SORT_OPTIONS, normalize_sort
from app.utils import describe_error

logger = logging.getLogger(__name__)

PAGE_SIZE_PARAM = "per_page"


class Listing(BaseModel):
    """A bookable tour or activity, reduced to what the assistant needs to describe it."""
    name: str = Field(..., description="Listing title.")
    slug: str = Field(..., description="Unique listing identifier on the Ithaka site.")
    price: Optional[float] = Field(None, description="Lowest available price.")
    description: Optional[str] = Field(None, description="Listing description, may contain HTML.")
    categories: List[str] = Field(default_factory=list, description="Category names, in backend order.")


class ListingSearchResult(BaseModel):
    """
    Structured result of one listings search.

    On failure, `success=False` and `error` holds a message that is safe to show
    to the user; `listings` is then empty.
    """
    success: bool = Field(..., description="True if the search ran and the response was parsed.")
    query: str = Field("", description="The query string sent to the listings endpoint.")
    listings: List[Listing] = Field(default_factory=list, description="Matches in the order the backend returned them.")
    error: Optional[str] = Field(None, description="Error message when success=False.")


class SearchListingsInput(BaseModel):
    search: Optional[str] = Field(None, description="Free text search query.")
    categories: Optional[List[int]] = Field(None, description="Category IDs.")
    destinations: Optional[List[int]] = Field(None, description="Destination IDs.")
    min_price: Optional[float] = Field(None, ge=0, description="Minimum price, not negative.")
    max_price: Optional[float] = Field(None, ge=0, description="Maximum price, not negative.")
    sort_by: Optional[str] = Field(
        None,
        description=f"How to order results. Preferably one of {', '.join(SORT_OPTIONS)}; the user's wording is accepted.",
    )


def project_listing(item: dict) -> Listing:
    categories = item.get("categories") or []
    return Listing(
        name=item["title"],
        slug=item["slug"],
        price=item.get("min_price"),
        description=item.get("description"),
        categories=[c["name"] for c in categories],
    )


def _new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=API_BASE_URL,
        timeout=HTTP_TIMEOUT_SECONDS,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )


async def fetch_listings(query: ListingQuery, client: httpx.AsyncClient) -> List[Listing]:
    """GET the activities endpoint and project its `data.listings` array."""
    params = [*query.params(), (PAGE_SIZE_PARAM, str(LISTINGS_PAGE_SIZE))]
    r = await client.get("/activities", params=params)
    r.raise_for_status()

    items = r.json()["data"]["listings"]
    if not isinstance(items, list):
        raise TypeError(f"expected a list of listings, got {type(items).__name__}")
    return [project_listing(item) for item in items]


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "filters"
        problems.append(f"{field}: {err['msg']}")
    return "Invalid search filters (" + "; ".join(problems) + ")."


async def search_listings_async(
    search: Optional[str] = None,
    categories: Optional[List[int]] = None,
    destinations: Optional[List[int]] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    sort_by: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ListingSearchResult:
    """Run one listings search. Never raises; failures come back with success=False."""
    sort_key = normalize_sort(sort_by)
    if sort_by and sort_key is None:
        logger.info("Ignoring unrecognised sort order %r", sort_by)

    try:
        query = ListingQuery(
            search=search,
            categories=categories,
            destinations=destinations,
            min_price=min_price,
            max_price=max_price,
            sort_by=sort_key,
        )
    except ValidationError as e:
        logger.warning("Rejected listings search filters: %s", e)
        result = ListingSearchResult(success=False, error=_format_validation_error(e))
        _emit(result)
        return result

    query_string = query.to_query_string()
    logger.info("Listings query: %s", query_string)

    try:
        if client is None:
            async with _new_client() as http:
                listings = await fetch_listings(query, http)
        else:
            listings = await fetch_listings(query, client)
        result = ListingSearchResult(success=True, query=query_string, listings=listings)
    except httpx.TimeoutException:
        logger.warning("Listings search timed out for query %s", query_string)
        result = ListingSearchResult(
            success=False, query=query_string, error="Timed out while searching for listings."
        )
    except httpx.HTTPStatusError as e:
        logger.warning("Listings search returned HTTP %d for query %s", e.response.status_code, query_string)
        result = ListingSearchResult(
            success=False,
            query=query_string,
            error=f"The listings service responded with status {e.response.status_code}.",
        )
    except httpx.HTTPError as e:
        logger.warning("Listings search failed for query %s: %s", query_string, e)
        result = ListingSearchResult(
            success=False,
            query=query_string,
            error=f"Could not reach the listings service: {describe_error(e)}",
        )
    except (ValueError, KeyError, TypeError) as e:
        logger.warning("Malformed listings response for query %s: %s: %s", query_string, type(e).__name__, e)
        result = ListingSearchResult(
            success=False, query=query_string, error="The listings service returned an unexpected response."
        )
    except Exception as e:
        logger.exception("Unexpected error in search_listings for query %s", query_string)
        result = ListingSearchResult(
            success=False, query=query_string, error=f"Unexpected error: {describe_error(e)}"
        )

    _emit(result)
    return result


def _emit(result: ListingSearchResult) -> None:
    if result.success:
        emit_event(
            middleware="search_listings",
            status="success",
            message=f"Found {len(result.listings)} listing(s)",
            details={"query": result.query},
        )
    else:
        emit_event(
            middleware="search_listings",
            status="failed",
            message="Listings search failed",
            details={"query": result.query, "error": result.error},
        )


@tool("searchListings", args_schema=SearchListingsInput)
async def search_listings(
    search: Optional[str] = None,
    categories: Optional[List[int]] = None,
    destinations: Optional[List[int]] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    sort_by: Optional[str] = None,
) -> str:
    """
    Search for available tours, activities, and experiences on Ithaka.

    When to use:
    - The user mentions one of the known destinations or categories.
    - The user asks about prices, availability, or what there is to do somewhere.

    Input:
    - destinations / categories: IDs taken from the reference data in the instructions.
    - search: optional free text (e.g. "diving", "Nile cruise").
    - min_price / max_price: optional price bounds.
    - sort_by: optional ordering; cheapest, most expensive, best selling or top reviewed.

    Output (machine-readable):
    - Returns a JSON object matching `ListingSearchResult`.
      On success: success=true and `listings` holds {name, slug, price, description, categories}.
      On failure: success=false and `error` contains a user-safe explanation.
    """
    result = await search_listings_async(
        search=search,
        categories=categories,
        destinations=destinations,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
    )
    return result.model_dump_json()
