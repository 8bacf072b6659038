"""Datamodels used by the PlanetPulse globe engine."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

RGB = Tuple[float, float, float]


class HighlightState(enum.Enum):
    IDLE = "idle"
    HOVERED = "hovered"
    SELECTED = "selected"


def _coerce_metric(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class Entity:
    """One geolocated record; immutable once ingested.

    ``latitude`` is expected in [-90, 90] and ``longitude`` in [-180, 180].
    Only finiteness is enforced here: out-of-range coordinates are kept so
    that bad source data stays visible instead of being clamped away.
    """

    id: str
    longitude: float
    latitude: float
    depth_or_elevation: Optional[float]
    timestamp_millis: int
    metric_values: Dict[str, Optional[float]]
    display_label: str
    extra: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("longitude", "latitude"):
            raw = getattr(self, name)
            if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not math.isfinite(raw):
                raise ValueError(f"Entity {self.id!r} has malformed {name}: {raw!r}")
            object.__setattr__(self, name, float(raw))
        cleaned = {str(key): _coerce_metric(value) for key, value in dict(self.metric_values).items()}
        object.__setattr__(self, "metric_values", cleaned)
        object.__setattr__(self, "depth_or_elevation", _coerce_metric(self.depth_or_elevation))
        object.__setattr__(self, "timestamp_millis", int(self.timestamp_millis))

    def value(self, metric_id: str) -> Optional[float]:
        return self.metric_values.get(metric_id)


@dataclass
class Marker:
    """Visual and interactive state for one visible entity."""

    entity: Entity
    index: int
    position: np.ndarray
    base_color: RGB = (1.0, 1.0, 1.0)
    color: RGB = (1.0, 1.0, 1.0)
    base_scale: float = 0.0
    scale: float = 0.0
    opacity: float = 0.9
    highlight: HighlightState = HighlightState.IDLE
    pulse_phase_seed: float = 0.0
    # Scale captured right before a highlight was applied; restored verbatim on release.
    pre_highlight_scale: Optional[float] = None

    @property
    def id(self) -> str:
        return self.entity.id


@dataclass
class ViewState:
    """Single-owner view context threaded through the engine's intent handlers."""

    active_metric_id: str
    time_window_days: float
    is_spinning: bool = True
    is_user_dragging: bool = False
    hovered_marker_id: Optional[str] = None
    selected_marker_id: Optional[str] = None


@dataclass(frozen=True)
class Stats:
    total: int
    avg: float
    max: float


@dataclass(frozen=True)
class LegendInfo:
    metric_id: str
    label: str
    unit: str
    description: str
    min: float
    max: float
    min_label: str
    max_label: str
    color_stops: Tuple[RGB, RGB, RGB]


@dataclass(frozen=True)
class Notice:
    message: str
    is_error: bool = False


__all__ = [
    "RGB",
    "HighlightState",
    "Entity",
    "Marker",
    "ViewState",
    "Stats",
    "LegendInfo",
    "Notice",
]
