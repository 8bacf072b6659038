"""Per-frame animation loop: globe spin, marker pulse, damping and render."""

from __future__ import annotations

import math
from typing import Callable, Optional, Sequence, Tuple

from .constants import (
    PULSE_AMPLITUDE,
    PULSE_FREQUENCY,
    PULSE_THRESHOLD,
    RESIZE_DEBOUNCE_SECONDS,
    ROTATION_SPEED,
)
from .models import HighlightState, Marker, ViewState
from .substrate import RenderSubstrate


class ResizeDebouncer:
    """Collapses a burst of resize requests into one, after a quiet period."""

    def __init__(self, delay: float = RESIZE_DEBOUNCE_SECONDS) -> None:
        self.delay = float(delay)
        self._pending: Optional[Tuple[int, int]] = None
        self._deadline = 0.0

    @property
    def pending(self) -> Optional[Tuple[int, int]]:
        return self._pending

    def request(self, width: int, height: int, now: float) -> None:
        self._pending = (int(width), int(height))
        self._deadline = float(now) + self.delay

    def poll(self, now: float) -> Optional[Tuple[int, int]]:
        if self._pending is None or now < self._deadline:
            return None
        size = self._pending
        self._pending = None
        return size


class AnimationScheduler:
    """Holds all loop state; one :meth:`tick` per displayed frame."""

    def __init__(
        self,
        view_state: ViewState,
        substrate: RenderSubstrate,
        markers: Callable[[], Sequence[Marker]],
        *,
        pulse_metric: Optional[str] = "magnitude",
        rotation_speed: float = ROTATION_SPEED,
    ) -> None:
        self.view_state = view_state
        self.substrate = substrate
        self._markers = markers
        self.pulse_metric = pulse_metric
        self.rotation_speed = float(rotation_speed)
        self.rotation = 0.0
        self.elapsed = 0.0
        self.frame_count = 0
        self.resize_debouncer = ResizeDebouncer()
        self._running = False
        self._disposed = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def disposed(self) -> bool:
        return self._disposed

    def start(self) -> None:
        if self._running or self._disposed:
            return
        self.substrate.start_frames(self.tick)
        self._running = True

    def dispose(self) -> None:
        if self._disposed:
            return
        if self._running:
            self.substrate.stop_frames()
        self._running = False
        self._disposed = True

    def request_resize(self, width: int, height: int) -> None:
        self.resize_debouncer.request(width, height, self.elapsed)

    def tick(self, delta_seconds: float) -> bool:
        """Advance one frame. Returns ``False`` once the scheduler is disposed."""
        if self._disposed:
            return False
        delta = max(0.0, float(delta_seconds))
        state = self.view_state
        if state.is_spinning and not state.is_user_dragging:
            # Fixed step per frame: spin speed follows the display refresh rate.
            self.rotation += self.rotation_speed
            self.substrate.set_globe_rotation(self.rotation)

        self.elapsed += delta
        markers = self._markers()
        self._apply_pulse(markers)

        self.substrate.advance_controls(delta)
        size = self.resize_debouncer.poll(self.elapsed)
        if size is not None:
            self.substrate.resize(*size)
        self.substrate.update_markers(markers)
        self.substrate.render()
        self.frame_count += 1
        return True

    def _apply_pulse(self, markers: Sequence[Marker]) -> None:
        if self.pulse_metric is None:
            return
        phase = self.elapsed * PULSE_FREQUENCY
        for marker in markers:
            if marker.highlight is not HighlightState.IDLE:
                continue
            value = marker.entity.value(self.pulse_metric)
            if value is None or value < PULSE_THRESHOLD:
                continue
            marker.scale = marker.base_scale * (1.0 + PULSE_AMPLITUDE * math.sin(phase + marker.pulse_phase_seed))


__all__ = ["ResizeDebouncer", "AnimationScheduler"]
