from __future__ import annotations

from concurrent.futures import Future
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pytest

from planetpulse.metrics import EARTHQUAKES
from planetpulse.models import Entity
from planetpulse.picking import Ray
from planetpulse.substrate import HeadlessSubstrate

NOW_MILLIS = 1_700_000_000_000
DAY = 24 * 60 * 60 * 1000


class FakeSubstrate(HeadlessSubstrate):
    """Headless substrate whose pick rays are scripted per canvas pixel."""

    def __init__(self) -> None:
        super().__init__()
        self.rays: Dict[Tuple[float, float], Ray] = {}
        self.updates = 0
        self.resizes: List[Tuple[int, int]] = []

    def aim_at(self, x: float, y: float, position: np.ndarray) -> None:
        target = np.asarray(position, dtype=np.float64)
        origin = target * 5.0
        self.rays[(x, y)] = Ray(origin=origin, direction=-target / np.linalg.norm(target))

    def pick_ray(self, x: float, y: float) -> Optional[Ray]:
        return self.rays.get((x, y))

    def update_markers(self, markers) -> None:
        self.updates += 1

    def resize(self, width: int, height: int) -> None:
        super().resize(width, height)
        self.resizes.append((int(width), int(height)))


class DeferredExecutor:
    """Executor stand-in; submitted work runs only when the test says so."""

    def __init__(self) -> None:
        self.jobs: List[Tuple[Future, Callable[[], object]]] = []

    def submit(self, fn: Callable[[], object]) -> Future:
        future: Future = Future()
        self.jobs.append((future, fn))
        return future

    def run_all(self) -> None:
        jobs, self.jobs = self.jobs, []
        for future, fn in jobs:
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(fn())
            except BaseException as exc:
                future.set_exception(exc)


class ManualTimers:
    """Collects ``call_later`` requests so tests can fire them explicitly."""

    def __init__(self) -> None:
        self.pending: List[Tuple[float, Callable[[], None]]] = []

    def call_later(self, delay: float, fn: Callable[[], None]) -> None:
        self.pending.append((delay, fn))

    def fire_all(self) -> None:
        pending, self.pending = self.pending, []
        for _, fn in pending:
            fn()


def make_quake(
    entity_id: str,
    magnitude: Optional[float],
    *,
    days_ago: float = 1.0,
    latitude: float = 0.0,
    longitude: float = 0.0,
    depth: Optional[float] = 10.0,
) -> Entity:
    return Entity(
        id=entity_id,
        longitude=longitude,
        latitude=latitude,
        depth_or_elevation=depth,
        timestamp_millis=int(NOW_MILLIS - days_ago * DAY),
        metric_values={"magnitude": magnitude, "depth": depth},
        display_label=f"Quake {entity_id}",
    )


@pytest.fixture()
def substrate() -> FakeSubstrate:
    return FakeSubstrate()


@pytest.fixture()
def quakes() -> List[Entity]:
    return [
        make_quake("a", 5.2, days_ago=1, latitude=35.0, longitude=139.0),
        make_quake("b", 4.8, days_ago=5, latitude=-12.0, longitude=-77.0),
        make_quake("c", 6.1, days_ago=20, latitude=61.0, longitude=-150.0),
    ]


@pytest.fixture()
def engine(substrate: FakeSubstrate, quakes: List[Entity]):
    from planetpulse.engine import GlobeEngine

    globe = GlobeEngine(EARTHQUAKES, substrate, clock=lambda: NOW_MILLIS)
    globe.load_entities(quakes, source="sample")
    return globe
