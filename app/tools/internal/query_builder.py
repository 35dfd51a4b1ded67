"""Query-string encoding for the listings search endpoint.

Array filters use indexed keys (``destinations[0]=3&destinations[1]=7``), the
form the activities endpoint parses into integer arrays. Optional filters that
are not set are left out of the query entirely.
"""

from typing import Any, List, Literal, Optional, Tuple
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SortKey = Literal["price-low-to-high", "price-high-to-low", "best-selling", "top-reviewed"]


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class ListingQuery(BaseModel):
    """Validated filters for a single listings search."""

    model_config = ConfigDict(frozen=True)

    search: Optional[str] = Field(None, description="Free text search query.")
    destinations: List[int] = Field(default_factory=list, description="Destination IDs, in request order.")
    categories: List[int] = Field(default_factory=list, description="Category IDs, in request order.")
    min_price: Optional[float] = Field(None, ge=0, description="Lower price bound.")
    max_price: Optional[float] = Field(None, ge=0, description="Upper price bound.")
    sort_by: Optional[SortKey] = Field(None, description="Canonical sort key.")

    @model_validator(mode="before")
    @classmethod
    def _order_price_bounds(cls, data: Any) -> Any:
        if isinstance(data, dict):
            low, high = data.get("min_price"), data.get("max_price")
            if isinstance(low, (int, float)) and isinstance(high, (int, float)) and low > high:
                data = {**data, "min_price": high, "max_price": low}
        return data

    @field_validator("search", mode="before")
    @classmethod
    def _blank_search_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("destinations", "categories", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("destinations", "categories")
    @classmethod
    def _dedupe_ids(cls, value: List[int]) -> List[int]:
        return list(dict.fromkeys(value))

    def params(self) -> List[Tuple[str, str]]:
        """Ordered key/value pairs: arrays first, then scalar filters."""
        pairs: List[Tuple[str, str]] = []
        pairs.extend((f"destinations[{i}]", str(d)) for i, d in enumerate(self.destinations))
        pairs.extend((f"categories[{i}]", str(c)) for i, c in enumerate(self.categories))

        if self.search is not None:
            pairs.append(("search", self.search))
        if self.min_price is not None:
            pairs.append(("min_price", _format_number(self.min_price)))
        if self.max_price is not None:
            pairs.append(("max_price", _format_number(self.max_price)))
        if self.sort_by is not None:
            pairs.append(("sort_by", self.sort_by))
        return pairs

    def to_query_string(self) -> str:
        return urlencode(self.params())
