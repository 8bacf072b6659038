"""Live earthquake feed: HTTP client, GeoJSON parsing and the fetch/timeout race."""

from __future__ import annotations

import math
from collections.abc import Mapping
from concurrent.futures import Executor, Future
from typing import Any, Callable, List, Optional, Sequence

import requests

from .constants import FEED_MAX_POINTS, FEED_TIMEOUT_SECONDS, FEED_URL
from .diagnostics import log, log_debug, warn
from .errors import InvalidSourceShape, PlanetPulseError, SourceUnavailable
from .models import Entity, Notice
from .sample_data import earthquake_sample_collection

LoadedCallback = Callable[[List[Entity], Optional[Notice], str], None]


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_feature(feature: Any, index: int = 0) -> Entity:
    """Turn one GeoJSON point feature into an :class:`Entity`.

    Raises ``ValueError`` when the geometry does not carry a usable
    longitude/latitude pair.
    """
    if not isinstance(feature, Mapping):
        raise ValueError(f"feature {index} is not an object")
    geometry = feature.get("geometry") or {}
    coords = geometry.get("coordinates") if isinstance(geometry, Mapping) else None
    if not isinstance(coords, Sequence) or isinstance(coords, str) or len(coords) < 2:
        raise ValueError(f"feature {index} has no coordinates")
    longitude = _finite(coords[0])
    latitude = _finite(coords[1])
    if longitude is None or latitude is None:
        raise ValueError(f"feature {index} has malformed coordinates: {coords!r}")
    depth = _finite(coords[2]) if len(coords) > 2 else None
    properties = feature.get("properties") or {}
    if not isinstance(properties, Mapping):
        properties = {}
    timestamp = _finite(properties.get("time"))
    magnitude = _finite(properties.get("mag"))
    place = properties.get("place") or properties.get("title") or f"Event {index + 1}"
    return Entity(
        id=str(feature.get("id") or f"feature-{index}"),
        longitude=longitude,
        latitude=latitude,
        depth_or_elevation=depth,
        timestamp_millis=int(timestamp) if timestamp is not None else 0,
        metric_values={"magnitude": magnitude, "depth": depth},
        display_label=str(place),
    )


def _feature_magnitude(item: Any) -> float:
    properties = item.get("properties") if isinstance(item, Mapping) else None
    if not isinstance(properties, Mapping):
        return 0.0
    magnitude = _finite(properties.get("mag"))
    return magnitude if magnitude is not None else 0.0


def parse_feature_collection(payload: Any, *, max_points: Optional[int] = FEED_MAX_POINTS) -> List[Entity]:
    """Validate a feature collection and keep the ``max_points`` largest events."""
    features = payload.get("features") if isinstance(payload, Mapping) else None
    if not isinstance(features, list):
        raise InvalidSourceShape("Invalid data format received: expected a 'features' list")
    if max_points is not None and len(features) > max_points:
        features = sorted(features, key=_feature_magnitude, reverse=True)[:max_points]
    entities: List[Entity] = []
    skipped = 0
    for index, feature in enumerate(features):
        try:
            entities.append(parse_feature(feature, index))
        except ValueError as exc:
            skipped += 1
            log_debug("Feed", f"skipping {exc}")
    if skipped:
        log("Feed", f"Skipped {skipped} feature(s) with malformed coordinates")
    return entities


class FeedClient:
    """Blocking fetch of the USGS summary feed; run it off the GUI thread."""

    def __init__(
        self,
        url: str = FEED_URL,
        *,
        timeout: float = FEED_TIMEOUT_SECONDS,
        max_points: Optional[int] = FEED_MAX_POINTS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = float(timeout)
        self.max_points = max_points
        self._session = session or requests.Session()

    def fetch_payload(self) -> Any:
        try:
            response = self._session.get(self.url, timeout=self.timeout, headers={"Accept": "application/geo+json"})
            response.raise_for_status()
        except requests.Timeout as exc:
            raise SourceUnavailable("Request timed out") from exc
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "?"
            raise SourceUnavailable(f"HTTP error: {status}") from exc
        except requests.RequestException as exc:
            raise SourceUnavailable(f"Failed to fetch data: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise InvalidSourceShape("Response body is not JSON") from exc

    def fetch_entities(self) -> List[Entity]:
        log_debug("Feed", f"GET {self.url} (timeout={self.timeout:.1f}s)")
        payload = self.fetch_payload()
        try:
            return parse_feature_collection(payload, max_points=self.max_points)
        except (AttributeError, KeyError, TypeError) as exc:
            raise InvalidSourceShape(f"Unexpected feed structure: {exc}") from exc

    def close(self) -> None:
        self._session.close()


def sample_entities(now_millis: Optional[int] = None) -> List[Entity]:
    return parse_feature_collection(earthquake_sample_collection(now_millis), max_points=None)


class FeedLoader:
    """Races one background fetch against a timeout; the first to finish wins.

    ``dispatch`` hands a callable back to the GUI thread and ``call_later``
    arms the timeout on it. Each :meth:`load` bumps a generation counter, so a
    response that arrives after the fallback already committed is dropped.
    """

    def __init__(
        self,
        client: FeedClient,
        executor: Executor,
        *,
        dispatch: Callable[[Callable[[], None]], None],
        call_later: Callable[[float, Callable[[], None]], None],
        on_loaded: LoadedCallback,
        fallback: Callable[[], List[Entity]] = sample_entities,
        timeout: Optional[float] = None,
    ) -> None:
        self.client = client
        self._executor = executor
        self._dispatch = dispatch
        self._call_later = call_later
        self._on_loaded = on_loaded
        self._fallback = fallback
        self.timeout = float(client.timeout if timeout is None else timeout)
        self._generation = 0
        self._in_flight = False
        self._future: Optional[Future] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def load(self) -> Future:
        self._generation += 1
        generation = self._generation
        self._in_flight = True
        log("Feed", f"Fetching live data from {self.client.url}")
        future = self._executor.submit(self.client.fetch_entities)
        self._future = future
        future.add_done_callback(lambda done: self._dispatch(lambda: self._on_fetch_done(generation, done)))
        self._call_later(self.timeout, lambda: self._on_timeout(generation))
        return future

    def cancel(self) -> None:
        self._generation += 1
        self._in_flight = False
        if self._future is not None:
            self._future.cancel()
        self._future = None

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._in_flight

    def _on_fetch_done(self, generation: int, future: Future) -> None:
        if not self._is_current(generation):
            log_debug("Feed", f"discarding late response for load #{generation}")
            return
        if future.cancelled():
            return
        try:
            entities = future.result()
        except PlanetPulseError as exc:
            self._commit_fallback(str(exc))
            return
        except Exception as exc:
            log_debug("Feed", f"fetch worker raised {type(exc).__name__}: {exc}")
            self._commit_fallback(f"Unexpected error: {exc}")
            return
        self._in_flight = False
        log("Feed", f"Loaded {len(entities)} live events")
        self._on_loaded(entities, None, "live")

    def _on_timeout(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        self._commit_fallback(f"Request timed out after {self.timeout:.0f}s")

    def _commit_fallback(self, reason: str) -> None:
        self._in_flight = False
        warn("Feed", f"Failed to fetch live data, using sample data: {reason}")
        notice = Notice(f"Live data unavailable ({reason}). Showing sample data.", is_error=False)
        self._on_loaded(self._fallback(), notice, "sample")


__all__ = [
    "parse_feature",
    "parse_feature_collection",
    "FeedClient",
    "FeedLoader",
    "sample_entities",
]
