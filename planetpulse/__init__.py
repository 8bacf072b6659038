"""PlanetPulse: geospatial metric globe."""

from .constants import UI_ACCENT, UI_BACKGROUND, UI_SURFACE, UI_TEXT_MUTED, UI_TEXT_PRIMARY
from .engine import GlobeEngine
from .errors import InvalidSourceShape, PlanetPulseError, RenderSubstrateInitFailure, SourceUnavailable
from .metrics import CITIES, EARTHQUAKES, get_profile
from .models import Entity, HighlightState, Marker, Stats, ViewState

__all__ = [
    "UI_ACCENT",
    "UI_BACKGROUND",
    "UI_SURFACE",
    "UI_TEXT_MUTED",
    "UI_TEXT_PRIMARY",
    "CITIES",
    "EARTHQUAKES",
    "Entity",
    "GlobeEngine",
    "HighlightState",
    "InvalidSourceShape",
    "Marker",
    "PlanetPulseError",
    "RenderSubstrateInitFailure",
    "SourceUnavailable",
    "Stats",
    "ViewState",
    "get_profile",
]
