"""
Data models for the Countries gateway.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RouteKind(str, Enum):
    """Routes handled by the request pipeline."""
    LISTING = "listing"
    DETAIL = "detail"


class Currency(BaseModel):
    code: str
    name: Optional[str] = None
    symbol: Optional[str] = None


class CountryMaps(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    google_maps: Optional[str] = Field(default=None, alias="googleMaps")
    open_street_maps: Optional[str] = Field(default=None, alias="openStreetMaps")


class CountryRecord(BaseModel):
    """Canonical country representation, decoupled from the provider schema."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: Optional[str] = None
    official_name: Optional[str] = Field(default=None, alias="officialName")
    code: Optional[str] = None
    cca3: Optional[str] = None
    flag_url: Optional[str] = Field(default=None, alias="flagUrl")
    population: Optional[int] = None
    region: Optional[str] = None
    subregion: Optional[str] = None
    capital: Optional[str] = None
    languages: Optional[List[str]] = None
    currencies: Optional[List[Currency]] = None
    maps: CountryMaps = Field(default_factory=CountryMaps)
    timezones: Optional[List[str]] = None
    coordinates: Optional[List[float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# Every top-level field a client may select, in serialization order.
COUNTRY_FIELDS = tuple(
    field.alias or name for name, field in CountryRecord.model_fields.items()
)


class PageResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int
    total_pages: int = Field(alias="totalPages")
    data: List[CountryRecord]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ListingQuery(BaseModel):
    """Query parameters of ``GET /api/countries``."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    search: str = ""

    @field_validator("search")
    @classmethod
    def _strip_search(cls, value: str) -> str:
        return value.strip()

    def cache_params(self) -> Dict[str, Any]:
        return {"page": self.page, "limit": self.limit, "search": self.search.lower()}


class DetailQuery(BaseModel):
    """Path and query parameters of ``GET /api/countries/{name}``."""

    name: str = Field(min_length=1)
    selected_fields: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("selected_fields", mode="before")
    @classmethod
    def _split_fields(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        names: List[str] = []
        for item in value:
            item = str(item).strip()
            if item and item not in names:
                names.append(item)
        return names or None

    def cache_params(self) -> Dict[str, Any]:
        if not self.selected_fields:
            return {}
        return {"fields": ",".join(sorted(self.selected_fields))}
