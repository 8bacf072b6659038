"""Vispy globe scene: sphere, graticule, atmosphere, starfield and metric markers."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from vispy import app, scene
from vispy.geometry import create_sphere
from vispy.scene import visuals
from vispy.visuals.transforms import MatrixTransform

from .camera import GlobeSceneCameraMixin
from .constants import (
	FRAME_INTERVAL_SECONDS,
	GLOBE_RADIUS,
	GLOBE_SEGMENTS,
	MARKER_WORLD_SCALE,
	STARFIELD_COUNT,
	STARFIELD_RADIUS,
	UI_ACCENT,
	UI_BACKGROUND,
)
from .diagnostics import log_debug
from .encoding import ColorInput, to_rgb, to_rgba
from .errors import RenderSubstrateInitFailure
from .models import HighlightState, Marker
from .projection import lat_lon_to_vector3, rotation_about_y
from .substrate import FrameCallback


app.use_app("pyqt6")


OCEAN_DEEP = (0.02, 0.09, 0.22)
OCEAN_SHALLOW = (0.05, 0.22, 0.42)
POLAR_ICE = (0.78, 0.86, 0.94)
GRATICULE_STEP_DEG = 30
ATMOSPHERE_RADIUS = 1.06
MARKER_EDGE_WIDTH = 1.5
EDGE_ALPHA: Dict[HighlightState, float] = {
	HighlightState.IDLE: 0.0,
	HighlightState.HOVERED: 0.55,
	HighlightState.SELECTED: 1.0,
}


def _empty_positions() -> np.ndarray:
	return np.zeros((0, 3), dtype=np.float32)


def _globe_vertex_colors(vertices: np.ndarray) -> np.ndarray:
	"""Latitude-banded ocean shading with ice toward the poles (pole axis is +y)."""
	height = np.clip(np.abs(vertices[:, 1]) / GLOBE_RADIUS, 0.0, 1.0)
	deep = np.asarray(OCEAN_DEEP, dtype=np.float32)
	shallow = np.asarray(OCEAN_SHALLOW, dtype=np.float32)
	ice = np.asarray(POLAR_ICE, dtype=np.float32)
	band = 0.5 + 0.5 * np.cos(np.arcsin(np.clip(vertices[:, 1], -1.0, 1.0)) * 6.0)
	rgb = deep[None, :] + (shallow - deep)[None, :] * band[:, None] * 0.35
	polar = np.clip((height - 0.88) / 0.12, 0.0, 1.0)[:, None]
	rgb = rgb * (1.0 - polar) + ice[None, :] * polar
	alpha = np.ones((vertices.shape[0], 1), dtype=np.float32)
	return np.hstack([rgb.astype(np.float32), alpha])


def _graticule_segments(step: int = GRATICULE_STEP_DEG, radius: float = GLOBE_RADIUS * 1.001) -> np.ndarray:
	segments: List[np.ndarray] = []
	samples = np.arange(-180, 181, 5, dtype=np.float64)
	for lat in range(-90 + step, 90, step):
		ring = np.stack([lat_lon_to_vector3(lat, lon, radius) for lon in samples])
		segments.append(np.repeat(ring, 2, axis=0)[1:-1])
	lat_samples = np.arange(-90, 91, 5, dtype=np.float64)
	for lon in range(-180, 180, step):
		meridian = np.stack([lat_lon_to_vector3(lat, lon, radius) for lat in lat_samples])
		segments.append(np.repeat(meridian, 2, axis=0)[1:-1])
	return np.vstack(segments).astype(np.float32)


def _starfield_positions(count: int = STARFIELD_COUNT, radius: float = STARFIELD_RADIUS, *, seed: int = 7) -> np.ndarray:
	rng = np.random.default_rng(seed)
	directions = rng.normal(size=(count, 3))
	directions /= np.linalg.norm(directions, axis=1, keepdims=True)
	return (directions * radius).astype(np.float32)


class GlobeScene(GlobeSceneCameraMixin):
	"""Vispy render substrate for the globe engine."""

	def __init__(
		self,
		*,
		size: Tuple[int, int] = (960, 720),
		dpi: int = 110,
		antialias: int = 4,
		background_color: ColorInput = UI_BACKGROUND,
	) -> None:
		canvas_bg = to_rgba(background_color)
		width = int(max(size[0], 1))
		height = int(max(size[1], 1))
		canvas_kwargs: Dict[str, Any] = {
			"keys": None,
			"size": (width, height),
			"dpi": dpi,
			"bgcolor": canvas_bg,
			"show": False,
			"vsync": True,
			"resizable": True,
		}
		if antialias > 0:
			canvas_kwargs["samples"] = int(max(antialias, 0))
		try:
			try:
				self.canvas = scene.SceneCanvas(**canvas_kwargs)
			except TypeError:
				canvas_kwargs.pop("samples", None)
				self.canvas = scene.SceneCanvas(**canvas_kwargs)
			self.canvas.create_native()
		except Exception as exc:
			raise RenderSubstrateInitFailure(f"Could not create an OpenGL canvas: {exc}") from exc
		if hasattr(self.canvas.native, "setMinimumSize"):
			self.canvas.native.setMinimumSize(1, 1)

		self.view = self.canvas.central_widget.add_view()
		self.view.border_color = None
		self.view.bgcolor = canvas_bg
		self.view.padding = 0

		self._frame_timer = app.Timer(interval=FRAME_INTERVAL_SECONDS, connect=self._on_frame, start=False)
		self._frame_callback: Optional[FrameCallback] = None
		self._resize_request_callback: Optional[Callable[[int, int], None]] = None
		self._markers: List[Marker] = []

		self._initialise_camera(width=float(width), height=float(height))
		self._initialise_backdrop()
		self._initialise_globe()

	def _initialise_backdrop(self) -> None:
		rng = np.random.default_rng(11)
		star_colors = np.ones((STARFIELD_COUNT, 4), dtype=np.float32)
		star_colors[:, 3] = rng.uniform(0.35, 0.9, size=STARFIELD_COUNT)
		self._stars = visuals.Markers(parent=self.view.scene)
		self._stars.set_data(
			pos=_starfield_positions(),
			size=1.6,
			face_color=star_colors,
			edge_width=0.0,
			symbol="disc",
		)
		self._stars.set_gl_state("translucent", depth_test=False)

	def _initialise_globe(self) -> None:
		self._globe_node = scene.Node(parent=self.view.scene)
		self._globe_transform = MatrixTransform()
		self._globe_node.transform = self._globe_transform

		mesh_data = create_sphere(GLOBE_SEGMENTS, GLOBE_SEGMENTS, radius=GLOBE_RADIUS, method="latitude")
		vertices = mesh_data.get_vertices()
		self._globe = visuals.Mesh(
			vertices=vertices,
			faces=mesh_data.get_faces(),
			vertex_colors=_globe_vertex_colors(vertices),
			parent=self._globe_node,
		)
		self._globe.set_gl_state("opaque", depth_test=True, cull_face=False)

		self._graticule = visuals.Line(
			pos=_graticule_segments(),
			color=to_rgba(UI_ACCENT, alpha=0.16),
			connect="segments",
			width=1.0,
			parent=self._globe_node,
		)
		self._graticule.set_gl_state("translucent", depth_test=True)

		self._marker_visual = visuals.Markers(parent=self._globe_node)
		self._marker_visual.set_gl_state("translucent", depth_test=True)
		self._marker_visual.visible = False

		# Drawn last so the halo tints whatever sits under it.
		self._atmosphere = visuals.Sphere(
			radius=ATMOSPHERE_RADIUS,
			method="latitude",
			rows=GLOBE_SEGMENTS // 2,
			cols=GLOBE_SEGMENTS // 2,
			color=to_rgba(UI_ACCENT, alpha=0.07),
			parent=self.view.scene,
		)
		self._atmosphere.set_gl_state(blend=True, depth_test=False, blend_func=("src_alpha", "one"))
		self._atmosphere.order = 10

	def native_widget(self) -> Any:
		return self.canvas.native

	def on_resize_request(self, callback: Optional[Callable[[int, int], None]]) -> None:
		"""Route native resizes through ``callback`` (the engine's debouncer) instead of applying them."""
		self._resize_request_callback = callback

	def start_frames(self, callback: FrameCallback) -> None:
		self._frame_callback = callback
		if not self._frame_timer.running:
			self._frame_timer.start()

	def stop_frames(self) -> None:
		self._frame_callback = None
		self._frame_timer.stop()

	def _on_frame(self, event: Any) -> None:
		callback = self._frame_callback
		if callback is None:
			return
		delta = getattr(event, "dt", None) or 0.0
		if callback(float(delta)) is False:
			self.stop_frames()

	def set_markers(self, markers: Sequence[Marker]) -> None:
		self._markers = list(markers)
		self.update_markers(self._markers)

	def clear_markers(self) -> None:
		self._markers = []
		self._marker_visual.set_data(pos=_empty_positions())
		self._marker_visual.visible = False

	def update_markers(self, markers: Sequence[Marker]) -> None:
		if not markers:
			self._marker_visual.visible = False
			return
		count = len(markers)
		positions = np.empty((count, 3), dtype=np.float32)
		sizes = np.empty((count,), dtype=np.float32)
		face = np.empty((count, 4), dtype=np.float32)
		edge = np.ones((count, 4), dtype=np.float32)
		for row, marker in enumerate(markers):
			positions[row] = marker.position
			sizes[row] = marker.scale / MARKER_WORLD_SCALE
			face[row, :3] = to_rgb(marker.color)
			face[row, 3] = marker.opacity
			edge[row, 3] = EDGE_ALPHA[marker.highlight]
		self._marker_visual.set_data(
			pos=positions,
			size=sizes,
			face_color=face,
			edge_color=edge,
			edge_width=MARKER_EDGE_WIDTH,
		)
		self._marker_visual.visible = True

	def set_globe_rotation(self, angle: float) -> None:
		# Vispy multiplies row vectors, so the column-vector rotation goes in transposed.
		matrix = np.eye(4, dtype=np.float64)
		matrix[:3, :3] = rotation_about_y(angle).T
		self._globe_transform.matrix = matrix

	def render(self) -> None:
		self.request_draw()

	def request_draw(self) -> None:
		self.canvas.update()

	def close(self) -> None:
		self.stop_frames()
		log_debug("GlobeScene", "closing canvas")
		self.canvas.close()


def create_globe_canvas(
	parent: Optional[Any] = None,
	*,
	size: Tuple[int, int] = (960, 720),
	dpi: int = 110,
	antialias: int = 4,
) -> GlobeScene:
	"""Create the GPU globe canvas and hook its native widget into Qt."""

	scene_controller = GlobeScene(size=size, dpi=dpi, antialias=antialias)
	native = scene_controller.native_widget()
	if parent is not None and hasattr(native, "setParent"):
		native.setParent(parent)
	from PyQt6 import QtCore, QtWidgets

	if isinstance(native, QtWidgets.QWidget):
		native.setSizePolicy(
			QtWidgets.QSizePolicy.Policy.Expanding,
			QtWidgets.QSizePolicy.Policy.Expanding,
		)
		native.setMinimumSize(1, 1)
		native.setMouseTracking(True)

		class _ResizeWatcher(QtCore.QObject):
			def __init__(self, scene_obj: GlobeScene) -> None:
				super().__init__()
				self._scene = scene_obj

			def eventFilter(self, obj: QtCore.QObject, event: QtCore.QEvent) -> bool:  # type: ignore[override]
				if event.type() == QtCore.QEvent.Type.Resize:
					size = event.size()
					ratio = float(obj.devicePixelRatioF()) if hasattr(obj, "devicePixelRatioF") else 1.0
					self._scene._handle_native_resize(size.width(), size.height(), ratio)
				elif event.type() == QtCore.QEvent.Type.Leave:
					self._scene._on_pointer_leave()
				return False

		watcher = _ResizeWatcher(scene_controller)
		native.installEventFilter(watcher)
		scene_controller._qt_resize_watcher = watcher
	return scene_controller


__all__ = ["GlobeScene", "create_globe_canvas"]
