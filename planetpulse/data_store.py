"""Time-window filtering and aggregate statistics over the loaded entities."""

from __future__ import annotations

import time
from typing import Callable, List, Optional, Sequence, Tuple

from .constants import MILLIS_PER_DAY
from .metrics import find_domain
from .models import Entity, Stats, ViewState


def _wall_clock_millis() -> int:
    return int(time.time() * 1000)


class DataStore:
    """Owns the raw entity snapshot and the currently filtered subset."""

    def __init__(
        self,
        view_state: Optional[ViewState] = None,
        *,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._view_state = view_state
        self._clock = clock or _wall_clock_millis
        self._raw: Tuple[Entity, ...] = ()
        self._filtered: Tuple[Entity, ...] = ()
        self._window_days: Optional[float] = view_state.time_window_days if view_state else None

    @property
    def raw(self) -> Tuple[Entity, ...]:
        return self._raw

    @property
    def filtered(self) -> Tuple[Entity, ...]:
        return self._filtered

    def load(self, entities: Sequence[Entity], *, now_millis: Optional[int] = None) -> Tuple[Entity, ...]:
        self._raw = tuple(entities)
        if self._window_days is None:
            self._filtered = self._raw
            return self._filtered
        return self.filter_by_time(self._window_days, now_millis=now_millis)

    def filter_by_time(self, days: float, *, now_millis: Optional[int] = None) -> Tuple[Entity, ...]:
        """Keep entities whose timestamp falls within the last ``days`` days."""
        now = self._clock() if now_millis is None else int(now_millis)
        cutoff = now - float(days) * MILLIS_PER_DAY
        self._window_days = float(days)
        if self._view_state is not None:
            self._view_state.time_window_days = float(days)
        self._filtered = tuple(entity for entity in self._raw if entity.timestamp_millis >= cutoff)
        return self._filtered

    def compute_stats(self, metric_id: str) -> Stats:
        """Count, mean and maximum of ``metric_id`` over the filtered set.

        ``total`` always counts every filtered entity; ``avg`` and ``max`` are
        zero when no entity carries a usable value.
        """
        total = len(self._filtered)
        values: List[float] = [
            value for value in (entity.value(metric_id) for entity in self._filtered) if value is not None
        ]
        if not values:
            return Stats(total=total, avg=0.0, max=0.0)
        return Stats(total=total, avg=sum(values) / len(values), max=max(values))

    def find_domain(self, metric_id: str) -> Tuple[float, float]:
        return find_domain(self._raw, metric_id)


__all__ = ["DataStore"]
