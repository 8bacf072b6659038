"""Custom in-app title bar with the metric switcher for the globe window."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from PyQt6 import QtCore, QtGui, QtWidgets

from .constants import UI_ACCENT, UI_ERROR, UI_SURFACE, UI_TEXT_MUTED, UI_TEXT_PRIMARY
from .encoding import to_rgb
from .optional_dependencies import qtawesome

GLOBE_ICON_KEYS = ("fa6s.earth-americas", "fa5s.globe-americas", "fa.globe")
GLOBE_FALLBACK_GLYPH = "\U0001f30d"
MAXIMIZE_GLYPHS = {False: ("⬜", "Maximize"), True: ("❐", "Restore")}


def _rgba(color: str, alpha: float) -> str:
	r, g, b = (int(round(chan * 255)) for chan in to_rgb(color))
	return f"rgba({r}, {g}, {b}, {alpha:.2f})"


def _title_bar_stylesheet() -> str:
	return f"""
		QFrame#CustomTitleBar {{
			background: {UI_SURFACE};
			border-bottom: 1px solid {_rgba(UI_ACCENT, 0.12)};
		}}
		QToolButton {{
			background: transparent;
			color: {UI_TEXT_PRIMARY};
			border: none;
			border-radius: 6px;
			padding: 4px 10px;
		}}
		QToolButton:hover {{ background: {_rgba(UI_ACCENT, 0.14)}; }}
		QToolButton:disabled {{ color: {UI_TEXT_MUTED}; }}
		QToolButton[metricTab="true"] {{
			border: 1px solid {_rgba(UI_ACCENT, 0.25)};
			border-radius: 14px;
			padding: 4px 14px;
		}}
		QToolButton[metricTab="true"]:checked {{
			background: {_rgba(UI_ACCENT, 0.28)};
			border-color: {UI_ACCENT};
		}}
		QToolButton[windowControl="close"]:hover {{ background: {_rgba(UI_ERROR, 0.3)}; }}
		QLabel#TitleBarTitle {{ color: {UI_TEXT_PRIMARY}; font-size: 13px; font-weight: 600; }}
		QLabel#TitleBarSubtitle {{ color: {UI_TEXT_MUTED}; font-size: 11px; }}
	"""


def _globe_icon_pixmap(size: int = 28) -> Optional[QtGui.QPixmap]:
	"""Font Awesome globe via qtawesome, or ``None`` when it is not installed."""

	if qtawesome is None:
		return None
	for key in GLOBE_ICON_KEYS:
		try:
			icon = qtawesome.icon(key, color=UI_ACCENT)
		except Exception:
			# Icon key missing from the installed font set
			continue
		if icon.isNull():
			continue
		pixmap = icon.pixmap(QtCore.QSize(size, size))
		if not pixmap.isNull():
			return pixmap
	return None


def _tool_button(parent: QtWidgets.QWidget, text: str = "", *, tooltip: str = "") -> QtWidgets.QToolButton:
	button = QtWidgets.QToolButton(parent)
	button.setAutoRaise(True)
	button.setCursor(QtCore.Qt.CursorShape.PointingHandCursor)
	button.setFocusPolicy(QtCore.Qt.FocusPolicy.NoFocus)
	if text:
		button.setText(text)
	if tooltip:
		button.setToolTip(tooltip)
	return button


class CustomTitleBar(QtWidgets.QFrame):
	"""Frameless title bar: globe badge, dataset title, one tab per metric, reload and window controls."""

	metricChanged = QtCore.pyqtSignal(str)

	def __init__(self, window: QtWidgets.QWidget, metrics: Sequence[Tuple[str, str]] = ()) -> None:
		super().__init__(window)
		self._window = window
		self._active_metric: Optional[str] = None
		self._metric_buttons: Dict[str, QtWidgets.QToolButton] = {}

		self.setObjectName("CustomTitleBar")
		self.setFixedHeight(48)
		self.setSizePolicy(QtWidgets.QSizePolicy.Policy.Expanding, QtWidgets.QSizePolicy.Policy.Fixed)
		self.setStyleSheet(_title_bar_stylesheet())

		row = QtWidgets.QHBoxLayout(self)
		row.setContentsMargins(14, 6, 10, 6)
		row.setSpacing(10)

		self.icon_label = QtWidgets.QLabel(self)
		self.icon_label.setFixedSize(30, 30)
		self.icon_label.setAlignment(QtCore.Qt.AlignmentFlag.AlignCenter)
		self._apply_globe_icon()
		row.addWidget(self.icon_label)

		row.addLayout(self._build_titles(window.windowTitle()))
		row.addSpacing(16)
		row.addLayout(self._build_metric_tabs(metrics))
		row.addStretch(1)

		self.reload_action = QtGui.QAction("Reload", self)
		self.reload_action.setToolTip("Fetch the dataset again")
		self.reload_action.setShortcut(QtGui.QKeySequence.StandardKey.Refresh)
		reload_button = _tool_button(self)
		reload_button.setDefaultAction(self.reload_action)
		row.addWidget(reload_button)

		row.addSpacing(6)
		row.addLayout(self._build_window_controls())
		window.installEventFilter(self)

	def _build_titles(self, title: str) -> QtWidgets.QVBoxLayout:
		column = QtWidgets.QVBoxLayout()
		column.setContentsMargins(0, 0, 0, 0)
		column.setSpacing(0)
		self.title_label = QtWidgets.QLabel(title, self)
		self.title_label.setObjectName("TitleBarTitle")
		self.subtitle_label = QtWidgets.QLabel("", self)
		self.subtitle_label.setObjectName("TitleBarSubtitle")
		self.subtitle_label.hide()
		column.addWidget(self.title_label)
		column.addWidget(self.subtitle_label)
		return column

	def _build_metric_tabs(self, metrics: Sequence[Tuple[str, str]]) -> QtWidgets.QHBoxLayout:
		tabs = QtWidgets.QHBoxLayout()
		tabs.setSpacing(6)
		group = QtWidgets.QButtonGroup(self)
		group.setExclusive(True)
		for metric_id, label in metrics:
			button = _tool_button(self, label)
			button.setCheckable(True)
			button.setProperty("metricTab", True)
			button.clicked.connect(lambda _checked, key=metric_id: self._handle_metric_button(key))
			group.addButton(button)
			tabs.addWidget(button)
			self._metric_buttons[metric_id] = button
		self._metric_group = group
		return tabs

	def _build_window_controls(self) -> QtWidgets.QHBoxLayout:
		controls = QtWidgets.QHBoxLayout()
		controls.setSpacing(2)
		specs: List[Tuple[str, str, str, Callable[[], object]]] = [
			("minimize", "–", "Minimize", self._window.showMinimized),
			("maximize", *MAXIMIZE_GLYPHS[False], self._toggle_max_restore),
			("close", "✕", "Close", self._window.close),
		]
		self._window_buttons: Dict[str, QtWidgets.QToolButton] = {}
		for role, glyph, tooltip, handler in specs:
			button = _tool_button(self, glyph, tooltip=tooltip)
			button.setFixedSize(34, 28)
			button.setProperty("windowControl", role)
			button.clicked.connect(handler)
			controls.addWidget(button)
			self._window_buttons[role] = button
		return controls

	def _apply_globe_icon(self) -> None:
		pixmap = _globe_icon_pixmap(26)
		if pixmap is not None:
			self.icon_label.setPixmap(pixmap)
			return
		self.icon_label.setText(GLOBE_FALLBACK_GLYPH)
		font = self.icon_label.font()
		font.setPointSize(18)
		self.icon_label.setFont(font)

	def set_title(self, title: str) -> None:
		self.title_label.setText(title)

	def set_subtitle(self, subtitle: str) -> None:
		self.subtitle_label.setText(subtitle)
		self.subtitle_label.setVisible(bool(subtitle))

	def set_active_metric(self, metric_id: str) -> None:
		button = self._metric_buttons.get(metric_id)
		if button is None:
			return
		self._active_metric = metric_id
		with QtCore.QSignalBlocker(self._metric_group):
			button.setChecked(True)

	def _handle_metric_button(self, metric_id: str) -> None:
		if metric_id != self._active_metric:
			self.set_active_metric(metric_id)
			self.metricChanged.emit(metric_id)

	def _toggle_max_restore(self) -> None:
		if self._window.isMaximized():
			self._window.showNormal()
		else:
			self._window.showMaximized()

	def _sync_max_button(self) -> None:
		glyph, tooltip = MAXIMIZE_GLYPHS[self._window.isMaximized()]
		button = self._window_buttons["maximize"]
		button.setText(glyph)
		button.setToolTip(tooltip)

	def eventFilter(self, watched: QtCore.QObject, event: QtCore.QEvent) -> bool:  # noqa: N802
		if watched is self._window and event.type() == QtCore.QEvent.Type.WindowStateChange:
			self._sync_max_button()
		return super().eventFilter(watched, event)

	def mousePressEvent(self, event: QtGui.QMouseEvent) -> None:  # noqa: N802
		handle = self._window.windowHandle()
		if event.button() == QtCore.Qt.MouseButton.LeftButton and handle is not None:
			# The window manager performs the move.
			handle.startSystemMove()
			event.accept()
			return
		super().mousePressEvent(event)

	def mouseDoubleClickEvent(self, event: QtGui.QMouseEvent) -> None:  # noqa: N802
		if event.button() == QtCore.Qt.MouseButton.LeftButton:
			self._toggle_max_restore()
			event.accept()
			return
		super().mouseDoubleClickEvent(event)


__all__ = ["CustomTitleBar"]
