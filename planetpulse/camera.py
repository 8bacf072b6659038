"""Orbit camera mixin for the Vispy globe scene."""

from __future__ import annotations

import math
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np
from vispy import scene

from .constants import (
	CAMERA_DAMPING,
	CAMERA_DISTANCE,
	CAMERA_FOV,
	CAMERA_MAX_DISTANCE,
	CAMERA_MIN_DISTANCE,
	CAMERA_ROTATE_SPEED,
	GLOBE_RADIUS,
)
from .picking import Ray

CLICK_SLOP_PX = 4.0
ELEVATION_LIMIT = 85.0


class GlobeSceneCameraMixin:
	"""Mixin providing the damped orbit camera, pointer routing and the pick ray."""

	def _initialise_camera(self, *, width: float, height: float) -> None:
		"""Initialise the turntable camera and pointer state."""
		self._device_pixel_ratio = 1.0
		self._viewport_size = (float(width), float(height))
		self._qt_resize_watcher: Optional[Any] = None
		self._press_pos: Optional[Tuple[float, float]] = None
		self._last_drag_pos: Optional[Tuple[float, float]] = None
		self._dragging = False
		self._pending_azimuth = 0.0
		self._pending_elevation = 0.0
		self._pointer_move_callback: Optional[Callable[[float, float], None]] = None
		self._pointer_click_callback: Optional[Callable[[float, float], None]] = None
		self._pointer_leave_callback: Optional[Callable[[], None]] = None
		self._drag_callback: Optional[Callable[[bool], None]] = None

		camera = scene.cameras.TurntableCamera(
			fov=CAMERA_FOV,
			distance=CAMERA_DISTANCE,
			elevation=0.0,
			azimuth=0.0,
			up="+y",
			center=(0.0, 0.0, 0.0),
		)
		# Orbit and zoom are driven from our own handlers so damping can run per frame.
		camera.interactive = False
		self.view.camera = camera

		self.canvas.events.mouse_press.connect(self._on_mouse_press)
		self.canvas.events.mouse_move.connect(self._on_mouse_move)
		self.canvas.events.mouse_release.connect(self._on_mouse_release)
		self.canvas.events.mouse_wheel.connect(self._on_mouse_wheel)
		self.canvas.events.resize.connect(self._on_resize)

	def on_pointer_move(self, callback: Optional[Callable[[float, float], None]]) -> None:
		self._pointer_move_callback = callback

	def on_pointer_click(self, callback: Optional[Callable[[float, float], None]]) -> None:
		self._pointer_click_callback = callback

	def on_pointer_leave(self, callback: Optional[Callable[[], None]]) -> None:
		self._pointer_leave_callback = callback

	def on_drag_change(self, callback: Optional[Callable[[bool], None]]) -> None:
		self._drag_callback = callback

	def _on_pointer_leave(self) -> None:
		if self._press_pos is None and self._pointer_leave_callback:
			self._pointer_leave_callback()

	def _set_dragging(self, dragging: bool) -> None:
		if self._dragging == dragging:
			return
		self._dragging = dragging
		if self._drag_callback:
			self._drag_callback(dragging)

	@staticmethod
	def _event_xy(event: Any) -> Optional[Tuple[float, float]]:
		pos = getattr(event, "pos", None)
		if pos is None or len(pos) < 2:
			return None
		return (float(pos[0]), float(pos[1]))

	@staticmethod
	def _is_primary_mouse_button(event: Any) -> bool:
		button = getattr(event, "button", None)
		return button in (None, 1)

	def _on_mouse_press(self, event: Any) -> None:
		if not self._is_primary_mouse_button(event):
			return
		xy = self._event_xy(event)
		self._press_pos = xy
		self._last_drag_pos = xy

	def _on_mouse_move(self, event: Any) -> None:
		xy = self._event_xy(event)
		if xy is None:
			return
		if self._press_pos is not None and getattr(event, "is_dragging", False):
			if not self._dragging:
				dx = xy[0] - self._press_pos[0]
				dy = xy[1] - self._press_pos[1]
				if math.hypot(dx, dy) < CLICK_SLOP_PX:
					return
				self._set_dragging(True)
			self._accumulate_orbit(xy)
			return
		if self._pointer_move_callback:
			self._pointer_move_callback(*xy)

	def _on_mouse_release(self, event: Any) -> None:
		xy = self._event_xy(event)
		was_dragging = self._dragging
		pressed = self._press_pos is not None
		self._press_pos = None
		self._last_drag_pos = None
		if was_dragging:
			self._set_dragging(False)
			return
		if pressed and xy is not None and self._is_primary_mouse_button(event) and self._pointer_click_callback:
			self._pointer_click_callback(*xy)

	def _on_mouse_wheel(self, event: Any) -> None:
		delta = getattr(event, "delta", (0.0, 0.0))
		step = float(delta[1]) if len(delta) > 1 else 0.0
		if step == 0.0:
			return
		camera = self.view.camera
		distance = float(camera.distance or CAMERA_DISTANCE) * (0.95 ** step)
		camera.distance = float(np.clip(distance, CAMERA_MIN_DISTANCE, CAMERA_MAX_DISTANCE))
		self.request_draw()

	def _accumulate_orbit(self, xy: Tuple[float, float]) -> None:
		last = self._last_drag_pos or xy
		self._last_drag_pos = xy
		height = max(self._viewport_size[1], 1.0)
		# Full viewport height drags a full turn, scaled by the rotate speed.
		self._pending_azimuth -= 360.0 * (xy[0] - last[0]) / height * CAMERA_ROTATE_SPEED
		self._pending_elevation += 360.0 * (xy[1] - last[1]) / height * CAMERA_ROTATE_SPEED

	def advance_controls(self, delta_seconds: float) -> None:
		"""Apply a damped share of the pending orbit; one step per frame."""
		if abs(self._pending_azimuth) < 1e-5 and abs(self._pending_elevation) < 1e-5:
			self._pending_azimuth = 0.0
			self._pending_elevation = 0.0
			return
		camera = self.view.camera
		step_az = self._pending_azimuth * CAMERA_DAMPING
		step_el = self._pending_elevation * CAMERA_DAMPING
		camera.azimuth = float(camera.azimuth) + step_az
		camera.elevation = float(np.clip(float(camera.elevation) + step_el, -ELEVATION_LIMIT, ELEVATION_LIMIT))
		self._pending_azimuth -= step_az
		self._pending_elevation -= step_el

	def reset_camera(self) -> None:
		print("[GlobeScene] reset_camera called; restoring default orbit")
		self._pending_azimuth = 0.0
		self._pending_elevation = 0.0
		camera = self.view.camera
		camera.azimuth = 0.0
		camera.elevation = 0.0
		camera.distance = CAMERA_DISTANCE
		self.request_draw()

	def _canvas_to_scene_transform(self) -> Optional[Any]:
		try:
			return self.canvas.scene.node_transform(self.view.scene)
		except Exception:
			return None

	def pick_ray(self, x: float, y: float) -> Optional[Ray]:
		"""World-space ray through canvas pixel ``(x, y)``, starting outside the scene."""
		transform = self._canvas_to_scene_transform()
		if transform is None:
			return None
		points = []
		for depth in (-1.0, 1.0):
			mapped = np.asarray(transform.map([x, y, depth, 1.0]), dtype=np.float64)
			if mapped[3] == 0.0:
				return None
			points.append(mapped[:3] / mapped[3])
		if not all(np.all(np.isfinite(point)) for point in points):
			return None
		# The near-plane point is the one closer to the globe centre; the far plane lies beyond it.
		near, far = sorted(points, key=lambda point: float(np.linalg.norm(point)))
		try:
			ray = Ray.between(near, far)
		except ValueError:
			return None
		direction = ray.direction
		closest = near - direction * float(np.dot(near, direction))
		origin = closest - direction * (CAMERA_MAX_DISTANCE + GLOBE_RADIUS) * 2.0
		return Ray(origin=origin, direction=direction)

	def _on_resize(self, event: Any) -> None:
		size = getattr(event, "size", None)
		if size is not None:
			self._viewport_size = (float(size[0]), float(size[1]))
		self.request_draw()

	def _handle_native_resize(self, width: float, height: float, ratio: float) -> None:
		self._device_pixel_ratio = float(ratio or 1.0)
		resize_callback = getattr(self, "_resize_request_callback", None)
		if callable(resize_callback):
			resize_callback(int(width), int(height))
		else:
			self.resize(int(width), int(height))

	def resize(self, width: int, height: int) -> None:
		width = int(max(width, 1))
		height = int(max(height, 1))
		self._viewport_size = (float(width), float(height))
		if tuple(self.canvas.size) != (width, height):
			self.canvas.size = (width, height)
		self.request_draw()


__all__ = ["GlobeSceneCameraMixin", "CLICK_SLOP_PX"]
