"""Exception types raised by the PlanetPulse engine and its collaborators."""

from __future__ import annotations


class PlanetPulseError(Exception):
    """Base class for all PlanetPulse failures."""


class SourceUnavailable(PlanetPulseError):
    """The data source could not be reached, failed, or timed out."""


class InvalidSourceShape(PlanetPulseError):
    """The data source answered but not with a feature collection."""


class RenderSubstrateInitFailure(PlanetPulseError):
    """No usable graphics context could be created for the globe."""


__all__ = [
    "PlanetPulseError",
    "SourceUnavailable",
    "InvalidSourceShape",
    "RenderSubstrateInitFailure",
]
