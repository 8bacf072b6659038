"""Optional third-party dependencies shared across the PlanetPulse package."""

from __future__ import annotations

try:  # pragma: no cover - optional Qt icon helper
    import qtawesome  # type: ignore[import]
except Exception:  # pragma: no cover - qtawesome unavailable
    qtawesome = None


__all__ = ["qtawesome"]
