"""Metric definitions, dataset profiles and display formatting."""

from __future__ import annotations

import dataclasses
import datetime as _dt
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .constants import (
    COLOR_HIGH,
    COLOR_LOW,
    COLOR_MID,
    DEFAULT_TIME_WINDOW_DAYS,
    MARKER_PIXEL_SIZE,
    MARKER_WORLD_SCALE,
    TIME_WINDOW_RANGE,
)
from .encoding import to_rgb
from .models import RGB, Entity

Formatter = Callable[[Optional[float]], str]

_CITY_BASE_SIZE = 0.02


def _fixed(decimals: int, suffix: str = "") -> Formatter:
    def _format(value: Optional[float]) -> str:
        if value is None:
            return "-"
        return f"{value:.{decimals}f}{suffix}"

    return _format


@dataclass(frozen=True)
class MetricDefinition:
    id: str
    label: str
    unit: str
    domain: Optional[Tuple[float, float]]
    color_stops: Tuple[RGB, RGB, RGB]
    size_range: Tuple[float, float]
    formatter: Formatter
    description: str = ""
    stat_labels: Tuple[str, str] = ("Average:", "Max:")

    def format(self, value: Optional[float]) -> str:
        return self.formatter(value)


@dataclass(frozen=True)
class DatasetProfile:
    """A named bundle of metrics plus the defaults the viewer starts with."""

    name: str
    title: str
    metrics: Dict[str, MetricDefinition]
    default_metric: str
    default_window_days: float
    window_range: Tuple[float, float]
    live_feed: bool = False
    # Metric whose value drives the pulse animation, if any.
    pulse_metric: Optional[str] = None
    entity_noun: str = "entities"

    def metric(self, metric_id: str) -> MetricDefinition:
        try:
            return self.metrics[metric_id]
        except KeyError:
            raise KeyError(f"Unknown metric '{metric_id}' for dataset '{self.name}'") from None


def _stops(*colors: object) -> Tuple[RGB, RGB, RGB]:
    low, mid, high = (to_rgb(color) for color in colors)  # type: ignore[arg-type]
    return (low, mid, high)


_QUAKE_STOPS = _stops(COLOR_LOW, COLOR_MID, COLOR_HIGH)
_QUAKE_SIZES = (MARKER_PIXEL_SIZE[0] * MARKER_WORLD_SCALE, MARKER_PIXEL_SIZE[1] * MARKER_WORLD_SCALE)

EARTHQUAKE_METRICS: Dict[str, MetricDefinition] = {
    "magnitude": MetricDefinition(
        id="magnitude",
        label="Magnitude",
        unit="",
        domain=(2.5, 8.0),
        color_stops=_QUAKE_STOPS,
        size_range=_QUAKE_SIZES,
        formatter=_fixed(1),
        description="Earthquake magnitude (Richter scale)",
        stat_labels=("Avg Magnitude:", "Max Magnitude:"),
    ),
    "depth": MetricDefinition(
        id="depth",
        label="Depth",
        unit="km",
        domain=(0.0, 300.0),
        color_stops=_QUAKE_STOPS,
        size_range=_QUAKE_SIZES,
        formatter=_fixed(0, " km"),
        description="Earthquake depth below surface",
        stat_labels=("Avg Depth:", "Max Depth:"),
    ),
}

CITY_METRICS: Dict[str, MetricDefinition] = {
    "population": MetricDefinition(
        id="population",
        label="Metro Population",
        unit="millions of people",
        domain=None,
        color_stops=_stops("#4de3ff", "#3693ff", "#2043ff"),
        size_range=(0.7 * _CITY_BASE_SIZE, 1.8 * _CITY_BASE_SIZE),
        formatter=_fixed(1, " M"),
        description="Estimated metro population (2024, rounded to the nearest 0.1M).",
        stat_labels=("Avg Population:", "Top Population:"),
    ),
    "emissions": MetricDefinition(
        id="emissions",
        label="Annual CO₂ Emissions",
        unit="Mt CO₂",
        domain=None,
        color_stops=_stops("#66ff91", "#b2c569", "#ff8c42"),
        size_range=(0.6 * _CITY_BASE_SIZE, 1.6 * _CITY_BASE_SIZE),
        formatter=_fixed(0, " Mt"),
        description="Total territorial emissions attributed to each metro basin.",
        stat_labels=("Avg Emissions:", "Top Emissions:"),
    ),
    "renewables": MetricDefinition(
        id="renewables",
        label="Renewable Share",
        unit="% of grid demand",
        domain=None,
        color_stops=_stops("#32ffba", "#27c5dc", "#1c8bff"),
        size_range=(0.5 * _CITY_BASE_SIZE, 1.4 * _CITY_BASE_SIZE),
        formatter=_fixed(0, "%"),
        description="Share of electricity supplied by renewables (12-month avg).",
        stat_labels=("Avg Share:", "Top Share:"),
    ),
}

EARTHQUAKES = DatasetProfile(
    name="earthquakes",
    title="PlanetPulse · Global Earthquakes",
    metrics=EARTHQUAKE_METRICS,
    default_metric="magnitude",
    default_window_days=DEFAULT_TIME_WINDOW_DAYS,
    window_range=TIME_WINDOW_RANGE,
    live_feed=True,
    pulse_metric="magnitude",
    entity_noun="earthquakes",
)

CITIES = DatasetProfile(
    name="cities",
    title="PlanetPulse · City Metrics",
    metrics=CITY_METRICS,
    default_metric="population",
    default_window_days=3650,
    window_range=(30, 3650),
    entity_noun="cities",
)

PROFILES: Dict[str, DatasetProfile] = {profile.name: profile for profile in (EARTHQUAKES, CITIES)}


def get_profile(name: str) -> DatasetProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise KeyError(f"Unknown dataset '{name}'; expected one of {sorted(PROFILES)}") from None


def find_domain(entities: Iterable[Entity], metric_id: str) -> Tuple[float, float]:
    """Min/max scan over non-null values; ``(0.0, 1.0)`` when none exist."""
    values = [value for value in (entity.value(metric_id) for entity in entities) if value is not None]
    if not values:
        return (0.0, 1.0)
    return (min(values), max(values))


def resolve_domains(profile: DatasetProfile, entities: Sequence[Entity]) -> DatasetProfile:
    """Fill in any metric domain left open by deriving it from ``entities``."""
    if all(metric.domain is not None for metric in profile.metrics.values()):
        return profile
    resolved = {
        metric_id: metric
        if metric.domain is not None
        else dataclasses.replace(metric, domain=find_domain(entities, metric_id))
        for metric_id, metric in profile.metrics.items()
    }
    return dataclasses.replace(profile, metrics=resolved)


def magnitude_class(magnitude: Optional[float]) -> str:
    if magnitude is None:
        return "low"
    if magnitude >= 6.0:
        return "high"
    if magnitude >= 4.5:
        return "mid"
    return "low"


def format_coordinates(latitude: float, longitude: float) -> str:
    return f"{latitude:.2f}°, {longitude:.2f}°"


def format_timestamp(timestamp_millis: int) -> str:
    moment = _dt.datetime.fromtimestamp(timestamp_millis / 1000.0)
    return moment.strftime("%Y-%m-%d %H:%M")


@dataclass(frozen=True)
class DetailRow:
    label: str
    value: str
    css_class: str = ""


@dataclass(frozen=True)
class EntityDetails:
    title: str
    rows: List[DetailRow] = field(default_factory=list)


def describe_entity(profile: DatasetProfile, entity: Entity, active_metric_id: str) -> EntityDetails:
    """Build the details-on-demand rows for ``entity``."""
    rows: List[DetailRow] = []
    if profile.name == EARTHQUAKES.name:
        magnitude = entity.value("magnitude")
        rows.append(
            DetailRow(
                "Magnitude",
                EARTHQUAKE_METRICS["magnitude"].format(magnitude),
                f"magnitude-{magnitude_class(magnitude)}",
            )
        )
        rows.append(DetailRow("Depth", EARTHQUAKE_METRICS["depth"].format(entity.value("depth"))))
        rows.append(DetailRow("Time", format_timestamp(entity.timestamp_millis)))
        rows.append(DetailRow("Coordinates", format_coordinates(entity.latitude, entity.longitude)))
        return EntityDetails(title=entity.display_label, rows=rows)

    active = profile.metric(active_metric_id)
    rows.append(DetailRow(active.label, active.format(entity.value(active.id)), "accent"))
    for metric in profile.metrics.values():
        if metric.id == active.id:
            continue
        rows.append(DetailRow(metric.label, metric.format(entity.value(metric.id))))
    for key in ("country", "region", "category", "note"):
        if entity.extra.get(key):
            rows.append(DetailRow(key.capitalize(), entity.extra[key]))
    rows.append(DetailRow("Last updated", format_timestamp(entity.timestamp_millis)[:10]))
    rows.append(DetailRow("Coordinates", format_coordinates(entity.latitude, entity.longitude)))
    return EntityDetails(title=entity.display_label, rows=rows)


__all__ = [
    "Formatter",
    "MetricDefinition",
    "DatasetProfile",
    "EARTHQUAKE_METRICS",
    "CITY_METRICS",
    "EARTHQUAKES",
    "CITIES",
    "PROFILES",
    "get_profile",
    "find_domain",
    "resolve_domains",
    "magnitude_class",
    "format_coordinates",
    "format_timestamp",
    "DetailRow",
    "EntityDetails",
    "describe_entity",
]
