import pytest

from planetpulse.metrics import (
    CITIES,
    EARTHQUAKES,
    describe_entity,
    find_domain,
    get_profile,
    magnitude_class,
    resolve_domains,
)
from planetpulse.sample_data import city_entities

from conftest import make_quake


def test_get_profile_by_name() -> None:
    assert get_profile("earthquakes") is EARTHQUAKES
    assert get_profile("cities") is CITIES
    with pytest.raises(KeyError):
        get_profile("volcanoes")


def test_unknown_metric_raises_key_error() -> None:
    with pytest.raises(KeyError):
        EARTHQUAKES.metric("population")


@pytest.mark.parametrize(
    "magnitude,expected",
    [(None, "low"), (2.5, "low"), (4.49, "low"), (4.5, "mid"), (5.99, "mid"), (6.0, "high"), (8.1, "high")],
)
def test_magnitude_class(magnitude, expected: str) -> None:
    assert magnitude_class(magnitude) == expected


def test_find_domain_ignores_missing_values() -> None:
    entities = [make_quake("a", 3.0), make_quake("b", None), make_quake("c", 7.5)]
    assert find_domain(entities, "magnitude") == (3.0, 7.5)
    assert find_domain([make_quake("d", None)], "magnitude") == (0.0, 1.0)


def test_resolve_domains_fills_city_metrics() -> None:
    cities = city_entities()
    resolved = resolve_domains(CITIES, cities)
    population = resolved.metric("population")
    values = [city.value("population") for city in cities]
    assert population.domain == (min(values), max(values))
    assert CITIES.metric("population").domain is None
    assert resolve_domains(EARTHQUAKES, cities) is EARTHQUAKES


def test_describe_quake() -> None:
    details = describe_entity(EARTHQUAKES, make_quake("q", 4.7, depth=33.0), "magnitude")
    labels = [row.label for row in details.rows]
    assert labels == ["Magnitude", "Depth", "Time", "Coordinates"]
    assert details.rows[0].css_class == "magnitude-mid"
    assert details.rows[1].value == "33 km"


def test_describe_city_leads_with_active_metric() -> None:
    tokyo = next(city for city in city_entities() if city.id == "tok")
    details = describe_entity(resolve_domains(CITIES, city_entities()), tokyo, "renewables")
    assert details.title == "Tokyo"
    assert details.rows[0].label == "Renewable Share"
    assert details.rows[0].value == "42%"
    assert details.rows[0].css_class == "accent"
    labels = [row.label for row in details.rows]
    assert "Country" in labels
    assert labels[-1] == "Coordinates"
