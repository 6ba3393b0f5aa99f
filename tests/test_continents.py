import pytest

from geo_resolver.continents import complete_location_result, get_continent_code, get_continent_name
from geo_resolver.models.location import LocationResult


@pytest.mark.parametrize(
    ("country_code", "continent_code"),
    [("US", "NA"), ("us", "NA"), ("BR", "SA"), ("FR", "EU"), ("JP", "AS"), ("NG", "AF"), ("AU", "OC"), ("AQ", "AN")],
)
def test_get_continent_code(country_code: str, continent_code: str) -> None:
    assert get_continent_code(country_code) == continent_code


def test_unknown_country_has_no_continent() -> None:
    assert get_continent_code("ZZ") is None
    assert get_continent_code(None) is None
    assert get_continent_name("XX") is None


def test_complete_location_result_fills_continent_fields() -> None:
    result = complete_location_result(LocationResult(country_code="CA"))

    assert result.continent_code == "NA"
    assert result.continent_name == "North America"


def test_complete_location_result_keeps_backend_values() -> None:
    original = LocationResult(country_code="TR", continent_code="EU", continent_name="Europe")

    result = complete_location_result(original)

    assert result == original


def test_complete_location_result_derives_name_from_supplied_code() -> None:
    result = complete_location_result(LocationResult(continent_code="oc"))

    assert result.continent_code == "oc"
    assert result.continent_name == "Oceania"


def test_complete_location_result_does_not_mutate_input() -> None:
    original = LocationResult(country_code="DE")

    complete_location_result(original)

    assert original.continent_code is None


def test_complete_location_result_without_country_is_unchanged() -> None:
    assert complete_location_result(LocationResult()).as_dict() == {}
