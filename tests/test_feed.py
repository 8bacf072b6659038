from typing import Any, List, Optional

import pytest
import requests

from planetpulse.errors import InvalidSourceShape, SourceUnavailable
from planetpulse.feed import FeedClient, FeedLoader, parse_feature, parse_feature_collection, sample_entities
from planetpulse.models import Entity, Notice

from conftest import DeferredExecutor, ManualTimers, make_quake


def _feature(event_id: str, mag: Optional[float], coords: Any = (139.7, 35.7, 10.0)) -> dict:
    return {
        "type": "Feature",
        "id": event_id,
        "properties": {"mag": mag, "place": f"near {event_id}", "time": 1_700_000_000_000},
        "geometry": {"type": "Point", "coordinates": list(coords) if coords is not None else None},
    }


def test_parse_feature_maps_geojson_fields() -> None:
    entity = parse_feature(_feature("us7000", 5.4, (-70.5, -33.2, 45.0)))
    assert entity.id == "us7000"
    assert (entity.longitude, entity.latitude) == (-70.5, -33.2)
    assert entity.value("magnitude") == 5.4
    assert entity.value("depth") == 45.0
    assert entity.display_label == "near us7000"
    assert entity.timestamp_millis == 1_700_000_000_000


@pytest.mark.parametrize("coords", [None, (10.0,), ("abc", 1.0), (float("nan"), 3.0)])
def test_parse_feature_rejects_bad_coordinates(coords: Any) -> None:
    with pytest.raises(ValueError):
        parse_feature(_feature("bad", 5.0, coords))


def test_collection_skips_malformed_features() -> None:
    payload = {"features": [_feature("ok", 4.0), _feature("bad", 6.0, None), "junk"]}
    entities = parse_feature_collection(payload)
    assert [entity.id for entity in entities] == ["ok"]


def test_collection_keeps_strongest_events() -> None:
    payload = {"features": [_feature(f"e{i}", float(i)) for i in range(10)]}
    entities = parse_feature_collection(payload, max_points=3)
    assert [entity.id for entity in entities] == ["e9", "e8", "e7"]


def test_truncation_tolerates_malformed_properties() -> None:
    features = [_feature(f"e{i}", float(i)) for i in range(5)]
    features.append({"id": "junk", "properties": ["junk"], "geometry": {"coordinates": [1.0, 2.0]}})
    features.append("not-a-feature")
    assert len(parse_feature_collection({"features": features}, max_points=None)) == 6
    entities = parse_feature_collection({"features": features}, max_points=3)
    assert [entity.id for entity in entities] == ["e4", "e3", "e2"]


@pytest.mark.parametrize("payload", [None, [], {"type": "FeatureCollection"}, {"features": "nope"}])
def test_collection_requires_feature_list(payload: Any) -> None:
    with pytest.raises(InvalidSourceShape):
        parse_feature_collection(payload)


def test_sample_entities_are_parseable() -> None:
    entities = sample_entities(now_millis=1_700_000_000_000)
    assert len(entities) == 15
    assert all(entity.timestamp_millis <= 1_700_000_000_000 for entity in entities)


class _Response:
    def __init__(self, status: int = 200, body: Any = None, bad_json: bool = False) -> None:
        self.status_code = status
        self._body = body
        self._bad_json = bad_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}", response=self)

    def json(self) -> Any:
        if self._bad_json:
            raise ValueError("no json")
        return self._body


class _Session:
    def __init__(self, response: Optional[_Response] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.closed = False
        self.calls: List[dict] = []

    def get(self, url: str, **kwargs: Any) -> _Response:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    def close(self) -> None:
        self.closed = True


def test_client_fetches_and_parses() -> None:
    session = _Session(_Response(body={"features": [_feature("a", 5.0)]}))
    client = FeedClient("https://example.invalid/feed", timeout=3, session=session)
    entities = client.fetch_entities()
    assert [entity.id for entity in entities] == ["a"]
    assert session.calls[0]["timeout"] == 3.0
    client.close()
    assert session.closed


@pytest.mark.parametrize(
    "session,error",
    [
        (_Session(error=requests.Timeout()), SourceUnavailable),
        (_Session(error=requests.ConnectionError("down")), SourceUnavailable),
        (_Session(_Response(status=503)), SourceUnavailable),
        (_Session(_Response(bad_json=True)), InvalidSourceShape),
        (_Session(_Response(body={"oops": 1})), InvalidSourceShape),
    ],
)
def test_client_maps_failures(session: _Session, error: type) -> None:
    client = FeedClient("https://example.invalid/feed", session=session)
    with pytest.raises(error):
        client.fetch_entities()


class _StubClient:
    url = "https://example.invalid/feed"
    timeout = 10.0

    def __init__(self, result: Any) -> None:
        self.result = result

    def fetch_entities(self) -> List[Entity]:
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


FALLBACK = [make_quake("fallback", 4.0)]


def _loader(result: Any):
    executor = DeferredExecutor()
    timers = ManualTimers()
    loaded: List[tuple] = []
    loader = FeedLoader(
        _StubClient(result),  # type: ignore[arg-type]
        executor,  # type: ignore[arg-type]
        dispatch=lambda fn: fn(),
        call_later=timers.call_later,
        on_loaded=lambda entities, notice, source: loaded.append((entities, notice, source)),
        fallback=lambda: FALLBACK,
    )
    return loader, executor, timers, loaded


def test_loader_commits_live_result() -> None:
    live = [make_quake("live", 5.0)]
    loader, executor, timers, loaded = _loader(live)
    loader.load()
    assert loader.in_flight
    assert timers.pending[0][0] == 10.0
    executor.run_all()
    assert loaded == [(live, None, "live")]
    assert not loader.in_flight
    timers.fire_all()
    assert len(loaded) == 1


def test_loader_falls_back_on_timeout_and_drops_late_response() -> None:
    loader, executor, timers, loaded = _loader([make_quake("live", 5.0)])
    loader.load()
    timers.fire_all()
    assert len(loaded) == 1
    entities, notice, source = loaded[0]
    assert entities == FALLBACK
    assert source == "sample"
    assert isinstance(notice, Notice)
    assert "Live data unavailable" in notice.message
    assert not notice.is_error
    executor.run_all()
    assert len(loaded) == 1


def test_loader_falls_back_on_source_error() -> None:
    loader, executor, timers, loaded = _loader(SourceUnavailable("HTTP error: 500"))
    loader.load()
    executor.run_all()
    assert loaded[0][2] == "sample"
    assert "HTTP error: 500" in loaded[0][1].message
    timers.fire_all()
    assert len(loaded) == 1


def test_loader_falls_back_at_once_on_unexpected_error() -> None:
    loader, executor, timers, loaded = _loader(AttributeError("'list' object has no attribute 'get'"))
    loader.load()
    executor.run_all()
    assert not loader.in_flight
    assert len(loaded) == 1
    assert loaded[0][0] == FALLBACK
    assert loaded[0][2] == "sample"
    timers.fire_all()
    assert len(loaded) == 1


def test_client_maps_parse_failures_to_invalid_shape(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(payload: Any, *, max_points: Optional[int] = None) -> List[Entity]:
        raise TypeError("unorderable")

    monkeypatch.setattr("planetpulse.feed.parse_feature_collection", broken)
    client = FeedClient("https://example.invalid/feed", session=_Session(_Response(body={"features": []})))
    with pytest.raises(InvalidSourceShape):
        client.fetch_entities()


def test_loader_reload_supersedes_previous_request() -> None:
    loader, executor, timers, loaded = _loader([make_quake("live", 5.0)])
    loader.load()
    loader.load()
    executor.run_all()
    assert len(loaded) == 1
    assert loaded[0][2] == "live"


def test_cancel_discards_everything() -> None:
    loader, executor, timers, loaded = _loader([make_quake("live", 5.0)])
    loader.load()
    loader.cancel()
    executor.run_all()
    timers.fire_all()
    assert loaded == []
