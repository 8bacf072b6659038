"""Metric-to-visual encoding and shared color helpers."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from .constants import HIGHLIGHT_OPACITY, HOVER_SCALE, IDLE_OPACITY, SELECT_SCALE
from .models import RGB, HighlightState, Marker

if TYPE_CHECKING:
    from .metrics import MetricDefinition

ColorInput = Union[str, Sequence[float], Sequence[int], np.ndarray]

_COLOR_NAME_MAP: dict[str, Tuple[float, float, float]] = {
    "black": (0.0, 0.0, 0.0),
    "white": (1.0, 1.0, 1.0),
    "red": (1.0, 0.0, 0.0),
    "yellow": (1.0, 1.0, 0.0),
    "cyan": (0.0, 1.0, 1.0),
    "orange": (1.0, 0.55, 0.0),
    "gray": (0.5, 0.5, 0.5),
    "grey": (0.5, 0.5, 0.5),
}


def _normalize_channel(value: Union[float, int]) -> float:
    val = float(value)
    if val > 1.0:
        val /= 255.0
    return max(0.0, min(1.0, val))


def _parse_hex_color(text: str) -> Tuple[float, float, float, Optional[float]]:
    hex_digits = text.lstrip("#").strip()
    if len(hex_digits) in {3, 4}:
        hex_digits = "".join(ch * 2 for ch in hex_digits)
    if len(hex_digits) not in {6, 8}:
        raise ValueError(f"Unsupported hex color '{text}'")
    channels = [int(hex_digits[i : i + 2], 16) / 255.0 for i in range(0, len(hex_digits), 2)]
    alpha = channels[3] if len(channels) == 4 else None
    return (channels[0], channels[1], channels[2], alpha)


def to_rgb(color: ColorInput) -> RGB:
    """Coerce a hex string, color name or 0-255 / 0-1 channel triple to floats."""
    if isinstance(color, str):
        text = color.strip().lower()
        if text.startswith("#"):
            r, g, b, _ = _parse_hex_color(text)
            return (r, g, b)
        if text in _COLOR_NAME_MAP:
            return _COLOR_NAME_MAP[text]
        raise ValueError(f"Unrecognised color string '{color}'")

    if isinstance(color, np.ndarray):
        flat = color.flatten().tolist()
    else:
        flat = list(color)  # type: ignore[arg-type]

    if len(flat) == 4:
        flat = flat[:3]
    if len(flat) != 3:
        raise ValueError(f"Cannot convert value '{color}' to RGB")
    # A triple with any channel above 1 is read as 0-255 on every channel.
    if any(float(chan) > 1.0 for chan in flat):
        return tuple(max(0.0, min(1.0, float(chan) / 255.0)) for chan in flat)  # type: ignore[return-value]
    r, g, b = (_normalize_channel(chan) for chan in flat)
    return (r, g, b)


def to_rgba(color: ColorInput, *, alpha: Optional[float] = None) -> Tuple[float, float, float, float]:
    if isinstance(color, str) and color.strip().startswith("#"):
        r, g, b, parsed_alpha = _parse_hex_color(color.strip())
        if alpha is None:
            alpha = parsed_alpha if parsed_alpha is not None else 1.0
        return (r, g, b, float(_normalize_channel(alpha)))
    r, g, b = to_rgb(color)
    return (r, g, b, float(_normalize_channel(1.0 if alpha is None else alpha)))


def to_hex(color: ColorInput) -> str:
    r, g, b = to_rgb(color)
    return "#{:02x}{:02x}{:02x}".format(*(int(round(chan * 255.0)) for chan in (r, g, b)))


def normalize(value: Optional[float], domain: Tuple[float, float]) -> float:
    """Map ``value`` into [0, 1] against ``domain``.

    A degenerate domain (``min == max``) maps every value to 0.5. Missing or
    non-finite values map to 0.0, the neutral low end of the scale.
    """
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    lower, upper = float(domain[0]), float(domain[1])
    span = upper - lower
    if span == 0.0:
        return 0.5
    return max(0.0, min(1.0, (number - lower) / span))


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def interpolate_color(t: float, stops: Sequence[RGB]) -> RGB:
    """Two-segment linear blend across (low, mid, high) color stops."""
    low, mid, high = stops
    if t < 0.5:
        start, end, local = low, mid, t * 2.0
    else:
        start, end, local = mid, high, (t - 0.5) * 2.0
    return (
        _lerp(start[0], end[0], local),
        _lerp(start[1], end[1], local),
        _lerp(start[2], end[2], local),
    )


def interpolate_size(t: float, size_range: Tuple[float, float]) -> float:
    return _lerp(float(size_range[0]), float(size_range[1]), t)


def highlight_scale(base_scale: float, state: HighlightState) -> float:
    if state is HighlightState.SELECTED:
        return base_scale * SELECT_SCALE
    if state is HighlightState.HOVERED:
        return base_scale * HOVER_SCALE
    return base_scale


def encode_marker(marker: Marker, metric: "MetricDefinition") -> Marker:
    """Recolor and rescale ``marker`` in place for ``metric``.

    Highlighted markers keep their highlight: the stored pre-highlight scale
    moves to the new base and the visible scale is re-derived from it.
    """
    domain = metric.domain if metric.domain is not None else (0.0, 1.0)
    t = normalize(marker.entity.value(metric.id), domain)
    marker.base_color = interpolate_color(t, metric.color_stops)
    marker.color = marker.base_color
    marker.base_scale = interpolate_size(t, metric.size_range)
    if marker.highlight is HighlightState.IDLE:
        marker.scale = marker.base_scale
        marker.opacity = IDLE_OPACITY
        marker.pre_highlight_scale = None
    else:
        marker.pre_highlight_scale = marker.base_scale
        marker.scale = highlight_scale(marker.base_scale, marker.highlight)
        marker.opacity = HIGHLIGHT_OPACITY
    return marker


def encode_markers(markers: Iterable[Marker], metric: "MetricDefinition") -> None:
    for marker in markers:
        encode_marker(marker, metric)


__all__ = [
    "ColorInput",
    "to_rgb",
    "to_rgba",
    "to_hex",
    "normalize",
    "interpolate_color",
    "interpolate_size",
    "highlight_scale",
    "encode_marker",
    "encode_markers",
]
