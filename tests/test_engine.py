from typing import List

import numpy as np
import pytest

from planetpulse.constants import MARKER_ALTITUDE
from planetpulse.engine import GlobeEngine
from planetpulse.metrics import CITIES, EARTHQUAKES
from planetpulse.models import HighlightState
from planetpulse.projection import lat_lon_to_vector3
from planetpulse.sample_data import city_entities

from conftest import NOW_MILLIS, FakeSubstrate, make_quake


class Recorder:
    def __init__(self, engine: GlobeEngine) -> None:
        self.hovers: List = []
        self.selections: List = []
        self.stats: List = []
        self.legends: List = []
        self.notices: List = []
        self.spins: List = []
        engine.on_hover(self.hovers.append)
        engine.on_select(self.selections.append)
        engine.on_stats(lambda stats, metric_id: self.stats.append((stats, metric_id)))
        engine.on_legend(self.legends.append)
        engine.on_notice(lambda message, is_error: self.notices.append((message, is_error)))
        engine.on_spin_change(self.spins.append)


def _marker(engine: GlobeEngine, entity_id: str):
    return next(marker for marker in engine.markers if marker.id == entity_id)


def test_load_builds_one_marker_per_visible_entity(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    assert [marker.id for marker in engine.markers] == ["a", "b", "c"]
    assert [marker.id for marker in substrate.markers] == ["a", "b", "c"]
    assert engine.data_source == "sample"


def test_markers_sit_at_marker_altitude(engine: GlobeEngine) -> None:
    for index, marker in enumerate(engine.markers):
        assert marker.index == index
        assert marker.pulse_phase_seed == float(index)
        expected = lat_lon_to_vector3(marker.entity.latitude, marker.entity.longitude, MARKER_ALTITUDE)
        np.testing.assert_allclose(marker.position, expected, atol=1e-12)


def test_load_emits_legend_stats_and_notice(substrate: FakeSubstrate, quakes) -> None:
    from planetpulse.models import Notice

    globe = GlobeEngine(EARTHQUAKES, substrate, clock=lambda: NOW_MILLIS)
    events = Recorder(globe)
    globe.load_entities(quakes, Notice("Live data unavailable (x). Showing sample data."), source="sample")
    assert events.legends[-1].metric_id == "magnitude"
    stats, metric_id = events.stats[-1]
    assert metric_id == "magnitude"
    assert stats.total == 3
    assert events.notices == [("Live data unavailable (x). Showing sample data.", False)]


def test_select_metric_updates_legend_and_stats(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    events = Recorder(engine)
    updates = substrate.updates
    engine.select_metric("depth")
    assert engine.view_state.active_metric_id == "depth"
    assert events.legends[-1].label == "Depth"
    assert events.legends[-1].max_label == "300 km"
    assert events.stats[-1][1] == "depth"
    assert events.stats[-1][0].avg == pytest.approx(10.0)
    assert substrate.updates == updates + 1


def test_select_unknown_metric_raises(engine: GlobeEngine) -> None:
    with pytest.raises(KeyError):
        engine.select_metric("population")
    assert engine.view_state.active_metric_id == "magnitude"


def test_time_window_filters_markers(engine: GlobeEngine) -> None:
    events = Recorder(engine)
    engine.set_time_window(7)
    assert [marker.id for marker in engine.markers] == ["a", "b"]
    assert events.stats[-1][0].total == 2
    assert engine.view_state.time_window_days == 7.0
    with pytest.raises(ValueError):
        engine.set_time_window(0)


def test_time_window_change_clears_selection(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    events = Recorder(engine)
    substrate.aim_at(10, 10, _marker(engine, "a").position)
    engine.pointer_click(10, 10)
    engine.set_time_window(14)
    assert engine.view_state.selected_marker_id is None
    assert events.selections[-1] is None


def test_pointer_move_emits_hover_once(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    events = Recorder(engine)
    target = _marker(engine, "b")
    substrate.aim_at(5, 5, target.position)
    assert engine.pointer_move(5, 5) is target.entity
    engine.pointer_move(5, 5)
    assert events.hovers == [target.entity]
    assert target.highlight is HighlightState.HOVERED
    engine.pointer_move(99, 99)
    assert events.hovers == [target.entity, None]
    assert target.highlight is HighlightState.IDLE


def test_pointer_leave_clears_hover(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    events = Recorder(engine)
    substrate.aim_at(5, 5, _marker(engine, "a").position)
    engine.pointer_move(5, 5)
    engine.pointer_leave()
    engine.pointer_leave()
    assert events.hovers[-1] is None
    assert len(events.hovers) == 2


def test_click_selects_and_deselect_clears(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    events = Recorder(engine)
    target = _marker(engine, "c")
    substrate.aim_at(1, 2, target.position)
    assert engine.pointer_click(1, 2) is target.entity
    assert events.selections == [target.entity]
    assert engine.pointer_click(50, 50) is None
    assert engine.view_state.selected_marker_id == "c"
    engine.deselect()
    engine.deselect()
    assert events.selections == [target.entity, None]
    assert target.highlight is HighlightState.IDLE


def test_details_for_selected_quake(engine: GlobeEngine) -> None:
    details = engine.details(_marker(engine, "c").entity)
    assert details.title == "Quake c"
    assert details.rows[0].label == "Magnitude"
    assert details.rows[0].value == "6.1"
    assert details.rows[0].css_class == "magnitude-high"


def test_toggle_spin_and_reset_view(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    events = Recorder(engine)
    assert engine.toggle_spin() is False
    assert events.spins == [False]
    engine.reset_view()
    assert engine.view_state.is_spinning
    assert events.spins == [False, True]
    assert substrate.camera_resets == 1
    assert events.notices == [("View reset", False)]


def test_dragging_pauses_rotation(engine: GlobeEngine) -> None:
    engine.set_dragging(True)
    engine.tick(1 / 60)
    assert engine.scheduler.rotation == 0.0
    engine.set_dragging(False)
    engine.tick(1 / 60)
    assert engine.scheduler.rotation > 0.0


def test_picking_follows_rotation(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    from planetpulse.projection import rotation_about_y

    for _ in range(500):
        engine.tick(1 / 60)
    target = _marker(engine, "a")
    rotated = rotation_about_y(engine.scheduler.rotation) @ target.position
    substrate.aim_at(3, 3, rotated)
    assert engine.pointer_move(3, 3) is target.entity


def test_reload_without_handler_is_harmless(engine: GlobeEngine) -> None:
    engine.reload()
    calls = []
    engine.set_reload_handler(lambda: calls.append(True))
    engine.reload()
    assert calls == [True]


def test_dispose_stops_loop(engine: GlobeEngine, substrate: FakeSubstrate) -> None:
    engine.start()
    assert substrate.frame_callback is not None
    engine.dispose()
    assert substrate.frame_callback is None
    assert engine.tick(1 / 60) is False
    assert engine.markers == []


def test_missing_metric_value_still_gets_a_marker(substrate: FakeSubstrate) -> None:
    globe = GlobeEngine(EARTHQUAKES, substrate, clock=lambda: NOW_MILLIS)
    globe.load_entities([make_quake("n", None)])
    (marker,) = globe.markers
    assert marker.base_scale == pytest.approx(EARTHQUAKES.metric("magnitude").size_range[0])


def test_city_profile_derives_domains(substrate: FakeSubstrate) -> None:
    globe = GlobeEngine(CITIES, substrate, clock=lambda: NOW_MILLIS)
    events = Recorder(globe)
    globe.load_entities(city_entities(), source="sample")
    legend = events.legends[-1]
    assert legend.metric_id == "population"
    assert legend.min < legend.max
    assert len(globe.markers) == len(city_entities())
