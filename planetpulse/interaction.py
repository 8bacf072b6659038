"""Hover and selection state machine for globe markers."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from .constants import GLOBE_RADIUS, HIGHLIGHT_OPACITY, IDLE_OPACITY
from .encoding import highlight_scale
from .models import Entity, HighlightState, Marker, ViewState
from .picking import Ray, nearest_marker


def apply_highlight(marker: Marker, state: HighlightState) -> bool:
    """Move ``marker`` to ``state``; returns ``True`` if anything changed.

    Leaving IDLE stores the current scale and entering IDLE puts that exact
    value back, so repeated hover cycles never accumulate rounding drift.
    Hovered markers grow less than selected ones.
    """
    if marker.highlight is state:
        return False
    if state is HighlightState.IDLE:
        if marker.pre_highlight_scale is not None:
            marker.scale = marker.pre_highlight_scale
        else:
            marker.scale = marker.base_scale
        marker.pre_highlight_scale = None
        marker.opacity = IDLE_OPACITY
    else:
        if marker.highlight is HighlightState.IDLE:
            marker.pre_highlight_scale = marker.scale
        marker.scale = highlight_scale(marker.base_scale, state)
        marker.opacity = HIGHLIGHT_OPACITY
    marker.highlight = state
    return True


class InteractionStateMachine:
    """Tracks the hovered and selected marker ids on the shared view state."""

    def __init__(self, view_state: ViewState) -> None:
        self.view_state = view_state
        self._markers: List[Marker] = []
        self._by_id: Dict[str, Marker] = {}

    @property
    def markers(self) -> List[Marker]:
        return self._markers

    def set_markers(self, markers: Sequence[Marker]) -> None:
        """Adopt a freshly built marker set, dropping hover and selection."""
        self._markers = list(markers)
        self._by_id = {marker.id: marker for marker in self._markers}
        self.reset()

    def reset(self) -> None:
        self.view_state.hovered_marker_id = None
        self.view_state.selected_marker_id = None

    def marker(self, marker_id: Optional[str]) -> Optional[Marker]:
        if marker_id is None:
            return None
        return self._by_id.get(marker_id)

    @property
    def hovered(self) -> Optional[Marker]:
        return self.marker(self.view_state.hovered_marker_id)

    @property
    def selected(self) -> Optional[Marker]:
        return self.marker(self.view_state.selected_marker_id)

    def _effective_state(self, marker: Marker) -> HighlightState:
        if marker.id == self.view_state.selected_marker_id:
            return HighlightState.SELECTED
        if marker.id == self.view_state.hovered_marker_id:
            return HighlightState.HOVERED
        return HighlightState.IDLE

    def _refresh(self, marker: Optional[Marker]) -> None:
        if marker is not None:
            apply_highlight(marker, self._effective_state(marker))

    def pick(self, ray: Ray, rotation: Optional[np.ndarray] = None) -> Optional[Marker]:
        return nearest_marker(ray, self._markers, transform=rotation, occluder_radius=GLOBE_RADIUS)

    def pointer_move(self, ray: Optional[Ray], rotation: Optional[np.ndarray] = None) -> Optional[Entity]:
        """Hover the nearest marker under ``ray``; a miss clears hover only."""
        hit = self.pick(ray, rotation) if ray is not None else None
        self.set_hovered(hit)
        return hit.entity if hit is not None else None

    def set_hovered(self, marker: Optional[Marker]) -> None:
        previous = self.hovered
        if previous is marker:
            return
        self.view_state.hovered_marker_id = marker.id if marker is not None else None
        self._refresh(previous)
        self._refresh(marker)

    def pointer_click(self, ray: Optional[Ray], rotation: Optional[np.ndarray] = None) -> Optional[Entity]:
        """Select the marker under ``ray``. Clicking empty space keeps the selection."""
        hit = self.pick(ray, rotation) if ray is not None else None
        if hit is None:
            return None
        self.select(hit)
        return hit.entity

    def select(self, marker: Marker) -> None:
        previous = self.selected
        self.view_state.selected_marker_id = marker.id
        if previous is not None and previous is not marker:
            self._refresh(previous)
        self._refresh(marker)

    def deselect(self) -> bool:
        previous = self.selected
        if previous is None:
            self.view_state.selected_marker_id = None
            return False
        self.view_state.selected_marker_id = None
        self._refresh(previous)
        return True


__all__ = ["apply_highlight", "InteractionStateMachine"]
