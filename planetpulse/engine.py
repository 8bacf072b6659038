"""Globe engine: intent handlers wired to filtering, encoding, picking and the frame loop."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import numpy as np

from .constants import MARKER_ALTITUDE
from .data_store import DataStore
from .diagnostics import log, log_debug, warn
from .encoding import encode_marker, encode_markers
from .interaction import InteractionStateMachine
from .metrics import DatasetProfile, EntityDetails, describe_entity, resolve_domains
from .models import Entity, LegendInfo, Marker, Notice, Stats, ViewState
from .projection import project_many, rotation_about_y
from .scheduler import AnimationScheduler
from .substrate import RenderSubstrate

EntityCallback = Callable[[Optional[Entity]], None]
StatsCallback = Callable[[Stats, str], None]
LegendCallback = Callable[[LegendInfo], None]
NoticeCallback = Callable[[str, bool], None]
SpinCallback = Callable[[bool], None]


class GlobeEngine:
    """Owns the view state and turns shell intents into globe updates.

    Every outbound notification is delivered synchronously from inside the
    intent handler that caused it.
    """

    def __init__(
        self,
        profile: DatasetProfile,
        substrate: RenderSubstrate,
        *,
        view_state: Optional[ViewState] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._base_profile = profile
        self.profile = profile
        self.substrate = substrate
        self.view_state = view_state or ViewState(
            active_metric_id=profile.default_metric,
            time_window_days=profile.default_window_days,
        )
        self.profile.metric(self.view_state.active_metric_id)
        self.store = DataStore(self.view_state, clock=clock)
        self.interaction = InteractionStateMachine(self.view_state)
        self.scheduler = AnimationScheduler(
            self.view_state,
            substrate,
            lambda: self.interaction.markers,
            pulse_metric=profile.pulse_metric,
        )
        self.data_source = "none"
        self._hover_callback: Optional[EntityCallback] = None
        self._select_callback: Optional[EntityCallback] = None
        self._stats_callback: Optional[StatsCallback] = None
        self._legend_callback: Optional[LegendCallback] = None
        self._notice_callback: Optional[NoticeCallback] = None
        self._spin_callback: Optional[SpinCallback] = None
        self._reload_handler: Optional[Callable[[], object]] = None

    def on_hover(self, callback: Optional[EntityCallback]) -> None:
        self._hover_callback = callback

    def on_select(self, callback: Optional[EntityCallback]) -> None:
        self._select_callback = callback

    def on_stats(self, callback: Optional[StatsCallback]) -> None:
        self._stats_callback = callback

    def on_legend(self, callback: Optional[LegendCallback]) -> None:
        self._legend_callback = callback

    def on_notice(self, callback: Optional[NoticeCallback]) -> None:
        self._notice_callback = callback

    def on_spin_change(self, callback: Optional[SpinCallback]) -> None:
        self._spin_callback = callback

    def set_reload_handler(self, handler: Optional[Callable[[], object]]) -> None:
        self._reload_handler = handler

    def _emit_hover(self, entity: Optional[Entity]) -> None:
        if self._hover_callback:
            self._hover_callback(entity)

    def _emit_select(self, entity: Optional[Entity]) -> None:
        if self._select_callback:
            self._select_callback(entity)

    def _emit_stats(self) -> None:
        if self._stats_callback:
            metric_id = self.view_state.active_metric_id
            self._stats_callback(self.store.compute_stats(metric_id), metric_id)

    def _emit_legend(self) -> None:
        if self._legend_callback:
            self._legend_callback(self.legend())

    def _emit_notice(self, notice: Notice) -> None:
        if self._notice_callback:
            self._notice_callback(notice.message, notice.is_error)

    def _emit_spin(self) -> None:
        if self._spin_callback:
            self._spin_callback(self.view_state.is_spinning)

    @property
    def markers(self) -> List[Marker]:
        return self.interaction.markers

    def load_entities(self, entities: Sequence[Entity], notice: Optional[Notice] = None, source: str = "live") -> None:
        """Replace the raw snapshot and rebuild every marker from it."""
        self.profile = resolve_domains(self._base_profile, entities)
        self.data_source = source
        self.store.load(entities)
        log("Engine", f"Loaded {len(entities)} {self.profile.entity_noun} from {source} data")
        self._rebuild_markers()
        self._emit_legend()
        self._emit_stats()
        if notice is not None:
            self._emit_notice(notice)

    def _build_markers(self, entities: Sequence[Entity]) -> List[Marker]:
        metric = self.profile.metric(self.view_state.active_metric_id)
        markers: List[Marker] = []
        if not entities:
            return markers
        # Entity construction already rejects non-finite coordinates.
        positions = project_many(
            [entity.latitude for entity in entities],
            [entity.longitude for entity in entities],
            MARKER_ALTITUDE,
        )
        for index, entity in enumerate(entities):
            marker = Marker(
                entity=entity,
                index=index,
                position=positions[index].copy(),
                pulse_phase_seed=float(index),
            )
            encode_marker(marker, metric)
            markers.append(marker)
        return markers

    def _rebuild_markers(self) -> None:
        had_hover = self.view_state.hovered_marker_id is not None
        had_selection = self.view_state.selected_marker_id is not None
        self.substrate.clear_markers()
        markers = self._build_markers(self.store.filtered)
        self.interaction.set_markers(markers)
        self.substrate.set_markers(markers)
        log_debug("Engine", f"rebuilt {len(markers)} markers")
        if had_hover:
            self._emit_hover(None)
        if had_selection:
            self._emit_select(None)

    def stats(self) -> Stats:
        return self.store.compute_stats(self.view_state.active_metric_id)

    def legend(self) -> LegendInfo:
        metric = self.profile.metric(self.view_state.active_metric_id)
        lower, upper = metric.domain if metric.domain is not None else (0.0, 1.0)
        return LegendInfo(
            metric_id=metric.id,
            label=metric.label,
            unit=metric.unit,
            description=metric.description,
            min=lower,
            max=upper,
            min_label=metric.format(lower),
            max_label=metric.format(upper),
            color_stops=metric.color_stops,
        )

    def details(self, entity: Entity) -> EntityDetails:
        return describe_entity(self.profile, entity, self.view_state.active_metric_id)

    def select_metric(self, metric_id: str) -> None:
        metric = self.profile.metric(metric_id)
        self.view_state.active_metric_id = metric.id
        encode_markers(self.markers, metric)
        self.substrate.update_markers(self.markers)
        self._emit_legend()
        self._emit_stats()

    def set_time_window(self, days: float) -> None:
        if days <= 0:
            raise ValueError(f"Time window must be positive, got {days!r}")
        self.store.filter_by_time(days)
        self._rebuild_markers()
        self._emit_stats()

    def _rotation(self) -> np.ndarray:
        return rotation_about_y(self.scheduler.rotation)

    def pointer_move(self, x: float, y: float) -> Optional[Entity]:
        previous = self.view_state.hovered_marker_id
        ray = self.substrate.pick_ray(x, y)
        entity = self.interaction.pointer_move(ray, self._rotation())
        if self.view_state.hovered_marker_id != previous:
            self._emit_hover(entity)
        return entity

    def pointer_leave(self) -> None:
        if self.view_state.hovered_marker_id is None:
            return
        self.interaction.set_hovered(None)
        self._emit_hover(None)

    def pointer_click(self, x: float, y: float) -> Optional[Entity]:
        ray = self.substrate.pick_ray(x, y)
        entity = self.interaction.pointer_click(ray, self._rotation())
        if entity is not None:
            self._emit_select(entity)
        return entity

    def deselect(self) -> None:
        if self.interaction.deselect():
            self._emit_select(None)

    def toggle_spin(self) -> bool:
        self.set_spinning(not self.view_state.is_spinning)
        return self.view_state.is_spinning

    def set_spinning(self, spinning: bool) -> None:
        if self.view_state.is_spinning == bool(spinning):
            return
        self.view_state.is_spinning = bool(spinning)
        self._emit_spin()

    def set_dragging(self, dragging: bool) -> None:
        self.view_state.is_user_dragging = bool(dragging)

    def reset_view(self) -> None:
        self.substrate.reset_camera()
        self.set_spinning(True)
        self._emit_notice(Notice("View reset"))

    def request_resize(self, width: int, height: int) -> None:
        self.scheduler.request_resize(width, height)

    def reload(self) -> None:
        if self._reload_handler is None:
            warn("Engine", "Reload requested but no data source is attached")
            return
        self._reload_handler()

    def start(self) -> None:
        self.scheduler.start()

    def tick(self, delta_seconds: float) -> bool:
        return self.scheduler.tick(delta_seconds)

    def dispose(self) -> None:
        self.scheduler.dispose()
        self.substrate.clear_markers()
        self.interaction.set_markers([])


__all__ = ["GlobeEngine"]
