import numpy as np
import pytest

from planetpulse.encoding import encode_marker
from planetpulse.interaction import apply_highlight
from planetpulse.metrics import EARTHQUAKE_METRICS
from planetpulse.models import HighlightState, Marker, ViewState
from planetpulse.scheduler import AnimationScheduler, ResizeDebouncer

from conftest import FakeSubstrate, make_quake


def _marker(entity_id: str, magnitude: float, index: int) -> Marker:
    marker = Marker(
        entity=make_quake(entity_id, magnitude),
        index=index,
        position=np.array([1.02, 0.0, 0.0]),
        pulse_phase_seed=float(index),
    )
    return encode_marker(marker, EARTHQUAKE_METRICS["magnitude"])


def _scheduler(markers=()):
    state = ViewState(active_metric_id="magnitude", time_window_days=30)
    substrate = FakeSubstrate()
    scheduler = AnimationScheduler(state, substrate, lambda: list(markers))
    return scheduler, state, substrate


def test_start_registers_frame_callback() -> None:
    scheduler, _, substrate = _scheduler()
    scheduler.start()
    assert scheduler.running
    assert substrate.frame_callback == scheduler.tick


def test_rotation_advances_only_while_spinning_and_not_dragging() -> None:
    scheduler, state, substrate = _scheduler()
    scheduler.tick(1 / 60)
    assert scheduler.rotation == pytest.approx(0.0008)
    assert substrate.rotation == pytest.approx(0.0008)

    state.is_user_dragging = True
    scheduler.tick(1 / 60)
    assert scheduler.rotation == pytest.approx(0.0008)

    state.is_user_dragging = False
    state.is_spinning = False
    scheduler.tick(1 / 60)
    assert scheduler.rotation == pytest.approx(0.0008)


def test_rotation_step_ignores_frame_delta() -> None:
    scheduler, _, _ = _scheduler()
    scheduler.tick(0.5)
    scheduler.tick(0.001)
    assert scheduler.rotation == pytest.approx(0.0016)


def test_tick_renders_and_pushes_markers() -> None:
    scheduler, _, substrate = _scheduler()
    scheduler.tick(1 / 60)
    scheduler.tick(1 / 60)
    assert substrate.render_count == 2
    assert substrate.updates == 2
    assert scheduler.frame_count == 2


def test_pulse_only_affects_strong_idle_markers() -> None:
    strong = _marker("strong", 6.5, 0)
    weak = _marker("weak", 5.0, 1)
    hovered = _marker("hovered", 7.0, 2)
    apply_highlight(hovered, HighlightState.HOVERED)
    hovered_scale = hovered.scale
    scheduler, _, _ = _scheduler([strong, weak, hovered])

    scheduler.tick(0.25)

    assert strong.scale != strong.base_scale
    assert strong.scale == pytest.approx(strong.base_scale * (1.0 + 0.15 * np.sin(0.75)))
    assert weak.scale == weak.base_scale
    assert hovered.scale == hovered_scale


def test_dispose_stops_frames_and_ticks() -> None:
    scheduler, _, substrate = _scheduler()
    scheduler.start()
    scheduler.dispose()
    assert substrate.frame_callback is None
    assert scheduler.disposed
    assert scheduler.tick(1 / 60) is False
    assert substrate.render_count == 0
    scheduler.start()
    assert not scheduler.running


def test_resize_debouncer_waits_for_quiet_period() -> None:
    debouncer = ResizeDebouncer(0.1)
    debouncer.request(800, 600, 0.0)
    debouncer.request(1024, 768, 0.05)
    assert debouncer.poll(0.1) is None
    assert debouncer.poll(0.2) == (1024, 768)
    assert debouncer.pending is None
    assert debouncer.poll(1.0) is None


def test_scheduler_applies_debounced_resize() -> None:
    scheduler, _, substrate = _scheduler()
    scheduler.request_resize(640, 480)
    scheduler.tick(0.05)
    scheduler.request_resize(1280, 720)
    for _ in range(3):
        scheduler.tick(0.05)
    assert substrate.resizes == [(1280, 720)]
