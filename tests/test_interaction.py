from typing import List

import numpy as np
import pytest

from planetpulse.encoding import encode_marker
from planetpulse.interaction import InteractionStateMachine, apply_highlight
from planetpulse.metrics import EARTHQUAKE_METRICS
from planetpulse.models import HighlightState, Marker, ViewState
from planetpulse.picking import Ray
from planetpulse.projection import lat_lon_to_vector3

from conftest import make_quake


def _markers() -> List[Marker]:
    metric = EARTHQUAKE_METRICS["magnitude"]
    rows = [("a", 5.2, 0.0, 0.0), ("b", 4.8, 0.0, 90.0), ("c", 6.1, 45.0, -60.0)]
    markers = []
    for index, (entity_id, magnitude, lat, lon) in enumerate(rows):
        marker = Marker(
            entity=make_quake(entity_id, magnitude, latitude=lat, longitude=lon),
            index=index,
            position=lat_lon_to_vector3(lat, lon, 1.02),
        )
        markers.append(encode_marker(marker, metric))
    return markers


def _ray_to(marker: Marker) -> Ray:
    target = marker.position
    return Ray(origin=target * 5.0, direction=-target / np.linalg.norm(target))


MISS = Ray(origin=np.array([0.0, 10.0, 10.0]), direction=np.array([0.0, 0.0, -1.0]))


@pytest.fixture()
def machine() -> InteractionStateMachine:
    state = ViewState(active_metric_id="magnitude", time_window_days=30)
    machine = InteractionStateMachine(state)
    machine.set_markers(_markers())
    return machine


def test_hover_cycles_restore_scale_exactly() -> None:
    marker = _markers()[0]
    marker.scale = 0.0313  # mid-pulse value
    original = marker.scale
    for _ in range(1000):
        assert apply_highlight(marker, HighlightState.HOVERED)
        assert apply_highlight(marker, HighlightState.IDLE)
    assert marker.scale == original
    assert marker.opacity == pytest.approx(0.9)


def test_apply_highlight_is_noop_for_same_state() -> None:
    marker = _markers()[0]
    assert not apply_highlight(marker, HighlightState.IDLE)


def test_hover_scales_up_and_releases(machine: InteractionStateMachine) -> None:
    first = machine.markers[0]
    entity = machine.pointer_move(_ray_to(first))
    assert entity is first.entity
    assert first.highlight is HighlightState.HOVERED
    assert first.scale == pytest.approx(first.base_scale * 1.15)
    assert first.opacity == 1.0
    machine.pointer_move(MISS)
    assert first.highlight is HighlightState.IDLE
    assert first.scale == first.base_scale
    assert machine.view_state.hovered_marker_id is None


def test_selection_is_exclusive(machine: InteractionStateMachine) -> None:
    first, second, _ = machine.markers
    machine.pointer_click(_ray_to(first))
    machine.pointer_click(_ray_to(second))
    assert machine.view_state.selected_marker_id == "b"
    assert first.highlight is HighlightState.IDLE
    assert second.highlight is HighlightState.SELECTED
    selected = [marker for marker in machine.markers if marker.highlight is HighlightState.SELECTED]
    assert selected == [second]


def test_click_on_empty_space_keeps_selection(machine: InteractionStateMachine) -> None:
    first = machine.markers[0]
    machine.pointer_click(_ray_to(first))
    assert machine.pointer_click(MISS) is None
    assert machine.pointer_click(None) is None
    assert machine.selected is first


def test_hover_miss_keeps_selection(machine: InteractionStateMachine) -> None:
    first, second, _ = machine.markers
    machine.pointer_click(_ray_to(first))
    machine.pointer_move(_ray_to(second))
    machine.pointer_move(MISS)
    assert machine.selected is first
    assert first.highlight is HighlightState.SELECTED
    assert second.highlight is HighlightState.IDLE


def test_hovering_the_selected_marker_keeps_it_selected(machine: InteractionStateMachine) -> None:
    first = machine.markers[0]
    machine.pointer_click(_ray_to(first))
    machine.pointer_move(_ray_to(first))
    machine.pointer_move(MISS)
    assert first.highlight is HighlightState.SELECTED
    assert first.scale == pytest.approx(first.base_scale * 1.3)


def test_hover_is_smaller_than_selection(machine: InteractionStateMachine) -> None:
    first = machine.markers[0]
    original = first.scale
    machine.pointer_move(_ray_to(first))
    hovered_scale = first.scale
    machine.pointer_click(_ray_to(first))
    assert first.scale > hovered_scale > original
    assert first.pre_highlight_scale == original
    machine.deselect()
    assert first.highlight is HighlightState.HOVERED
    assert first.scale == pytest.approx(hovered_scale)
    machine.pointer_move(MISS)
    assert first.highlight is HighlightState.IDLE
    assert first.scale == original


def test_deselect_restores_marker(machine: InteractionStateMachine) -> None:
    first = machine.markers[0]
    machine.pointer_click(_ray_to(first))
    assert machine.deselect()
    assert first.highlight is HighlightState.IDLE
    assert first.scale == first.base_scale
    assert not machine.deselect()


def test_set_markers_clears_ids(machine: InteractionStateMachine) -> None:
    machine.pointer_click(_ray_to(machine.markers[0]))
    machine.set_markers(_markers())
    assert machine.view_state.selected_marker_id is None
    assert machine.selected is None
