"""
Unit tests for response shaping.
"""

import pytest

from service_countries.app.domain.models import COUNTRY_FIELDS, DetailQuery, ListingQuery
from service_countries.app.domain.shaping import ResponseShaper
from shared.test_helpers import CountryFactory


@pytest.fixture
def shaper():
    return ResponseShaper()


@pytest.fixture
def records(shaper):
    """Twelve formatted records named Country 00 .. Country 11."""
    return [
        shaper.format(CountryFactory.raw_country(f"Country {index:02d}"))
        for index in range(12)
    ]


class TestFormat:
    """Test cases for canonical record formatting."""

    def test_full_record(self, shaper):
        raw = CountryFactory.create_countries()[0]

        record = shaper.format(raw).to_dict()

        assert record == {
            "name": "United States",
            "officialName": "United States of America",
            "code": "US",
            "cca3": "USA",
            "flagUrl": "https://flagcdn.com/us.svg",
            "population": 329484123,
            "region": "Americas",
            "subregion": "North America",
            "capital": "Washington, D.C.",
            "languages": ["English"],
            "currencies": [{"code": "USD", "name": "United States dollar", "symbol": "$"}],
            "maps": {
                "googleMaps": "https://goo.gl/maps/USA",
                "openStreetMaps": "https://www.openstreetmap.org/relation/USA",
            },
            "timezones": ["UTC"],
            "coordinates": [38.0, -97.0],
        }
        assert tuple(record) == COUNTRY_FIELDS

    def test_flag_falls_back_to_png(self, shaper):
        raw = CountryFactory.raw_country("Nowhere", flags={"png": "https://flags.test/x.png"})

        assert shaper.format(raw).flag_url == "https://flags.test/x.png"

    def test_missing_fields_become_none(self, shaper):
        record = shaper.format({"name": {"common": "Antarctica"}, "cca2": "AQ"})

        assert record.name == "Antarctica"
        assert record.capital is None
        assert record.languages is None
        assert record.currencies is None
        assert record.maps.google_maps is None

    def test_ordering_is_preserved(self, shaper):
        raw = CountryFactory.raw_country(
            "Switzerland",
            languages={"fra": "French", "gsw": "Swiss German", "ita": "Italian", "roh": "Romansh"},
            currencies={"CHF": {"name": "Swiss franc", "symbol": "Fr."}, "EUR": {"name": "Euro"}},
        )

        record = shaper.format(raw)

        assert record.languages == ["French", "Swiss German", "Italian", "Romansh"]
        assert [currency.code for currency in record.currencies] == ["CHF", "EUR"]
        assert record.currencies[1].symbol is None


class TestPaginate:
    """Test cases for search and pagination."""

    @pytest.mark.parametrize("page,limit", [(1, 5), (2, 5), (3, 5), (4, 5), (1, 12), (2, 7), (1, 100)])
    def test_page_is_exact_slice(self, shaper, records, page, limit):
        result = shaper.paginate(records, page=page, limit=limit)

        assert len(result.data) <= limit
        assert result.data == records[(page - 1) * limit:page * limit]
        assert result.total == 12
        assert result.page == page

    def test_total_pages_rounds_up(self, shaper, records):
        assert shaper.paginate(records, page=1, limit=5).total_pages == 3
        assert shaper.paginate(records, page=1, limit=12).total_pages == 1
        assert shaper.paginate([], page=1, limit=5).total_pages == 0

    def test_search_is_case_insensitive_substring(self, shaper):
        records = [shaper.format(raw) for raw in CountryFactory.create_countries()]

        result = shaper.paginate(records, page=1, limit=20, search="UNITED")

        assert [record.name for record in result.data] == [
            "United States", "United Kingdom", "United Arab Emirates",
        ]
        assert result.total == 3

    def test_empty_search_returns_everything(self, shaper, records):
        assert shaper.paginate(records, page=1, limit=20, search="").total == 12
        assert shaper.paginate(records, page=1, limit=20, search=None).total == 12

    def test_search_skips_records_without_name(self, shaper):
        records = [shaper.format({"cca2": "XX"}), shaper.format(CountryFactory.raw_country("Chad"))]

        assert shaper.paginate(records, search="ch").total == 1

    def test_rejects_non_positive_values(self, shaper, records):
        with pytest.raises(ValueError):
            shaper.paginate(records, page=0, limit=5)
        with pytest.raises(ValueError):
            shaper.paginate(records, page=1, limit=0)

    def test_shape_listing_serializes_camel_case(self, shaper):
        query = ListingQuery(search="united", limit=2, page=1)

        payload = shaper.shape_listing(CountryFactory.create_countries(), query)

        assert payload["total"] == 3
        assert payload["totalPages"] == 2
        assert [country["name"] for country in payload["data"]] == ["United States", "United Kingdom"]


class TestSelectFields:
    """Test cases for top-level field selection."""

    def test_returns_requested_intersection(self, shaper):
        record = shaper.format(CountryFactory.create_countries()[1])

        selected = shaper.select_fields(record, ["capital", "name", "population"])

        assert selected == {"name": "Brazil", "population": 212559409, "capital": "Brasília"}

    def test_unknown_fields_are_ignored(self, shaper):
        record = shaper.format(CountryFactory.create_countries()[1])

        assert shaper.select_fields(record, ["name", "gdp", "__class__"]) == {"name": "Brazil"}
        assert shaper.select_fields(record, ["nothing"]) == {}

    def test_absent_values_are_omitted(self, shaper):
        record = shaper.format({"name": {"common": "Antarctica"}})

        assert shaper.select_fields(record, ["name", "capital", "currencies"]) == {"name": "Antarctica"}

    def test_output_follows_schema_order(self, shaper):
        record = shaper.format(CountryFactory.create_countries()[0])

        selected = shaper.select_fields(record, ["timezones", "code", "name"])

        assert list(selected) == ["name", "code", "timezones"]

    def test_shape_detail_uses_first_match(self, shaper):
        countries = CountryFactory.create_countries()

        full = shaper.shape_detail(countries, DetailQuery(name="united"))
        partial = shaper.shape_detail(countries, DetailQuery(name="united", selected_fields="name, cca3"))

        assert full["name"] == "United States"
        assert partial == {"name": "United States", "cca3": "USA"}
