"""
Response shaping for the Countries gateway.

Turns raw provider payloads into canonical ``CountryRecord`` objects and
applies the client-facing transformations: name search, pagination and
top-level field selection. Everything here is pure; no I/O and no state.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .models import (
    COUNTRY_FIELDS,
    CountryMaps,
    CountryRecord,
    Currency,
    DetailQuery,
    ListingQuery,
    PageResult,
)


class ResponseShaper:
    """Formats, filters and paginates country payloads."""

    def format(self, raw: Mapping[str, Any]) -> CountryRecord:
        """Map one provider record onto the canonical shape.

        Missing provider fields become ``None``; the provider's ordering of
        languages and currencies is preserved.
        """
        names = raw.get("name") or {}
        flags = raw.get("flags") or {}
        maps = raw.get("maps") or {}

        capital = raw.get("capital")
        languages = raw.get("languages")
        currencies = raw.get("currencies")

        return CountryRecord(
            name=names.get("common"),
            official_name=names.get("official"),
            code=raw.get("cca2"),
            cca3=raw.get("cca3"),
            flag_url=flags.get("svg") or flags.get("png"),
            population=raw.get("population"),
            region=raw.get("region") or None,
            subregion=raw.get("subregion") or None,
            capital=capital[0] if isinstance(capital, list) and capital else None,
            languages=list(languages.values()) if isinstance(languages, dict) else None,
            currencies=[
                Currency(code=code, name=info.get("name"), symbol=info.get("symbol"))
                for code, info in currencies.items()
            ] if isinstance(currencies, dict) else None,
            maps=CountryMaps(
                google_maps=maps.get("googleMaps"),
                open_street_maps=maps.get("openStreetMaps"),
            ),
            timezones=raw.get("timezones"),
            coordinates=raw.get("latlng"),
        )

    def paginate(self, records: Sequence[CountryRecord], page: int = 1, limit: int = 20,
                 search: Optional[str] = None) -> PageResult:
        """Filter by common name, then slice ``[(page-1)*limit, page*limit)``."""
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")

        if search:
            needle = search.lower()
            records = [record for record in records if record.name and needle in record.name.lower()]

        total = len(records)
        start = (page - 1) * limit
        return PageResult(
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
            data=list(records[start:start + limit]),
        )

    def select_fields(self, record: CountryRecord, fields: Iterable[str]) -> Dict[str, Any]:
        """Keep only the requested top-level fields that carry a value.

        Names outside ``COUNTRY_FIELDS`` are ignored; output follows schema order.
        """
        wanted = set(fields)
        data = record.to_dict()
        return {
            name: data[name]
            for name in COUNTRY_FIELDS
            if name in wanted and data.get(name) is not None
        }

    def shape_listing(self, raw_countries: Iterable[Mapping[str, Any]], query: ListingQuery) -> Dict[str, Any]:
        records: List[CountryRecord] = [self.format(raw) for raw in raw_countries]
        return self.paginate(records, query.page, query.limit, query.search).to_dict()

    def shape_detail(self, raw_countries: Sequence[Mapping[str, Any]], query: DetailQuery) -> Dict[str, Any]:
        record = self.format(raw_countries[0])
        if query.selected_fields:
            return self.select_fields(record, query.selected_fields)
        return record.to_dict()
