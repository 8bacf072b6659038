"""Qt + Vispy UI construction mixin for the PlanetPulse window."""

from __future__ import annotations

import sys
from typing import Any, Callable, Dict, List, Optional, Sequence

from PyQt6 import QtCore, QtGui, QtWidgets

from .bar import CustomTitleBar
from .constants import UI_ACCENT, UI_BACKGROUND, UI_ERROR, UI_SURFACE, UI_TEXT_MUTED, UI_TEXT_PRIMARY
from .diagnostics import warn
from .encoding import to_hex
from .errors import RenderSubstrateInitFailure
from .metrics import EntityDetails
from .models import Entity, LegendInfo, Stats
from .substrate import HeadlessSubstrate, RenderSubstrate

_PALETTE_ROLES: Dict[QtGui.QPalette.ColorRole, str] = {
    QtGui.QPalette.ColorRole.Window: UI_BACKGROUND,
    QtGui.QPalette.ColorRole.WindowText: UI_TEXT_PRIMARY,
    QtGui.QPalette.ColorRole.Base: UI_SURFACE,
    QtGui.QPalette.ColorRole.AlternateBase: UI_SURFACE,
    QtGui.QPalette.ColorRole.Text: UI_TEXT_PRIMARY,
    QtGui.QPalette.ColorRole.Button: UI_SURFACE,
    QtGui.QPalette.ColorRole.ButtonText: UI_TEXT_PRIMARY,
    QtGui.QPalette.ColorRole.Highlight: UI_ACCENT,
    QtGui.QPalette.ColorRole.HighlightedText: UI_BACKGROUND,
    QtGui.QPalette.ColorRole.ToolTipBase: UI_SURFACE,
    QtGui.QPalette.ColorRole.ToolTipText: UI_TEXT_PRIMARY,
}


class BindingVar:
    """Holds a value and pushes every update into a widget setter."""

    def __init__(self, initial: Any, setter: Callable[[Any], None]) -> None:
        self._setter = setter
        self.set(initial)

    def set(self, value: Any) -> None:
        self._value = value
        self._setter(value)

    def get(self) -> Any:
        return self._value


class _GlobeOverlay(QtWidgets.QFrame):
    """Dimmed layer stretched over the globe frame; children are centred in a column."""

    def __init__(self, host: QtWidgets.QWidget) -> None:
        super().__init__(host)
        self.setObjectName("GlobeOverlay")
        self.setStyleSheet("QFrame#GlobeOverlay { background: rgba(5, 6, 11, 190); }")
        self.hide()
        self._column = QtWidgets.QVBoxLayout(self)
        self._column.setContentsMargins(40, 0, 40, 0)
        self._column.setSpacing(10)
        self._column.addStretch(1)
        host.installEventFilter(self)

    def _finish_column(self) -> None:
        self._column.addStretch(2)

    def eventFilter(self, watched: QtCore.QObject, event: QtCore.QEvent) -> bool:  # noqa: N802
        if watched is self.parentWidget() and event.type() == QtCore.QEvent.Type.Resize:
            self.resize(event.size())
        return super().eventFilter(watched, event)

    def present(self) -> None:
        host = self.parentWidget()
        if host is not None:
            self.setGeometry(host.rect())
        self.show()
        self.raise_()


class LoadingOverlay(_GlobeOverlay):
    def __init__(self, host: QtWidgets.QWidget, *, message: str = "Loading…") -> None:
        super().__init__(host)
        self._progress = QtWidgets.QProgressBar(self)
        self._progress.setRange(0, 0)
        self._progress.setTextVisible(False)
        self._progress.setFixedSize(180, 6)
        self._progress.setStyleSheet(
            f"QProgressBar {{ background: {UI_SURFACE}; border: none; border-radius: 3px; }}"
            f"QProgressBar::chunk {{ background: {UI_ACCENT}; border-radius: 3px; }}"
        )
        self._label = QtWidgets.QLabel(message, self)
        self._label.setStyleSheet(f"color: {UI_TEXT_PRIMARY}; font-size: 14px; font-weight: 600; background: transparent;")
        self._column.addWidget(self._label, alignment=QtCore.Qt.AlignmentFlag.AlignHCenter)
        self._column.addWidget(self._progress, alignment=QtCore.Qt.AlignmentFlag.AlignHCenter)
        self._finish_column()

    def set_loading(self, active: bool, message: Optional[str] = None) -> None:
        if message:
            self._label.setText(message)
        if active:
            self.present()
        else:
            self.hide()


class ErrorOverlay(_GlobeOverlay):
    """Error message with a Retry button, shown when no dataset could be loaded."""

    retryRequested = QtCore.pyqtSignal()

    def __init__(self, host: QtWidgets.QWidget) -> None:
        super().__init__(host)
        title = QtWidgets.QLabel("Could not load data", self)
        title.setStyleSheet(f"color: {UI_ERROR}; font-size: 15px; font-weight: 600; background: transparent;")
        self._message = QtWidgets.QLabel("", self)
        self._message.setWordWrap(True)
        self._message.setAlignment(QtCore.Qt.AlignmentFlag.AlignCenter)
        self._message.setStyleSheet(f"color: {UI_TEXT_PRIMARY}; font-size: 13px; background: transparent;")
        self.retry_button = QtWidgets.QPushButton("Retry", self)
        self.retry_button.clicked.connect(lambda: self.retryRequested.emit())
        self._column.addWidget(title, alignment=QtCore.Qt.AlignmentFlag.AlignHCenter)
        self._column.addWidget(self._message)
        self._column.addWidget(self.retry_button, alignment=QtCore.Qt.AlignmentFlag.AlignHCenter)
        self._finish_column()

    def show_error(self, message: str, *, retry: bool = True) -> None:
        self._message.setText(message)
        self.retry_button.setVisible(retry)
        self.present()


class WindowSlider(QtWidgets.QSlider):
    """Horizontal slider that jumps straight to the clicked position."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(QtCore.Qt.Orientation.Horizontal, parent)
        self.setTracking(True)
        self.setPageStep(1)

    def mousePressEvent(self, event: QtGui.QMouseEvent) -> None:  # noqa: N802
        if event.button() == QtCore.Qt.MouseButton.LeftButton:
            value = QtWidgets.QStyle.sliderValueFromPosition(
                self.minimum(),
                self.maximum(),
                int(event.position().x()),
                max(self.width(), 1),
            )
            self.setValue(value)
            self.setSliderDown(True)
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event: QtGui.QMouseEvent) -> None:  # noqa: N802
        self.setSliderDown(False)
        super().mouseReleaseEvent(event)


class LegendGradient(QtWidgets.QWidget):
    """Horizontal bar painted from the active metric's three color stops."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self._stops: List[str] = [UI_TEXT_MUTED, UI_TEXT_MUTED, UI_TEXT_MUTED]
        self.setFixedHeight(12)
        self.setSizePolicy(QtWidgets.QSizePolicy.Policy.Expanding, QtWidgets.QSizePolicy.Policy.Fixed)

    def set_stops(self, stops: Sequence[Any]) -> None:
        self._stops = [to_hex(stop) for stop in stops]
        self.update()

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # noqa: N802
        painter = QtGui.QPainter(self)
        painter.setRenderHint(QtGui.QPainter.RenderHint.Antialiasing)
        gradient = QtGui.QLinearGradient(0, 0, self.width(), 0)
        last = max(len(self._stops) - 1, 1)
        for index, color in enumerate(self._stops):
            gradient.setColorAt(index / last, QtGui.QColor(color))
        path = QtGui.QPainterPath()
        path.addRoundedRect(QtCore.QRectF(self.rect()), 6.0, 6.0)
        painter.fillPath(path, gradient)


class PlanetPulseWindow(QtWidgets.QMainWindow):
    closing = QtCore.pyqtSignal()

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("PlanetPulse")
        self.setMinimumSize(1100, 720)

    def register_close_callback(self, callback: Callable[[], None]) -> None:
        self.closing.connect(callback)

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # noqa: N802
        self.closing.emit()
        event.accept()


def _ensure_application() -> QtWidgets.QApplication:
    app = QtWidgets.QApplication.instance()
    if app is not None:
        return app
    app = QtWidgets.QApplication(sys.argv or ["planetpulse"])
    app.setApplicationName("PlanetPulse")
    app.setStyle("Fusion")
    palette = QtGui.QPalette()
    for role, color in _PALETTE_ROLES.items():
        palette.setColor(role, QtGui.QColor(color))
    app.setPalette(palette)
    return app


def create_root() -> PlanetPulseWindow:
    _ensure_application()
    return PlanetPulseWindow()


def run_mainloop(root: PlanetPulseWindow) -> None:
    app = _ensure_application()
    root.show()
    app.exec()


def show_error(title: str, message: str) -> None:
    _ensure_application()
    QtWidgets.QMessageBox.critical(None, title, message)


class PlanetPulseUIMixin:
    def _initialise_ui_variables(self) -> None:
        self._status_value = "Ready"
        self._window_value = int(self.view_state.time_window_days)

    def _build_ui(self) -> None:
        root: PlanetPulseWindow = self.root
        profile = self.profile
        root.setWindowTitle(profile.title)
        central = QtWidgets.QWidget(root)
        root.setCentralWidget(central)
        root.setWindowFlag(QtCore.Qt.WindowType.FramelessWindowHint, True)
        root.setWindowFlag(QtCore.Qt.WindowType.WindowSystemMenuHint, True)
        root.setStyleSheet(
            f"""
            QWidget {{ background: {UI_BACKGROUND}; color: {UI_TEXT_PRIMARY}; }}
            QFrame#SidePanel {{ background: {UI_SURFACE}; border-radius: 10px; }}
            QFrame#SidePanel QWidget {{ background: transparent; }}
            QPushButton {{
                background-color: #151d33;
                color: #e8ecfa;
                padding: 6px 12px;
                border: 1px solid #1f2a44;
                border-radius: 6px;
            }}
            QPushButton:hover {{ background-color: #1c2844; }}
            QPushButton:pressed, QPushButton:checked {{ background-color: #111a32; border-color: {UI_ACCENT}; }}
            QLabel#SectionLabel {{ color: {UI_TEXT_MUTED}; font-size: 11px; font-weight: 600; letter-spacing: 1px; }}
            QLabel#StatValue {{ font-size: 13px; }}
            QLabel#DetailsTitle {{ font-size: 14px; font-weight: 600; }}
            QLabel#DetailKey {{ color: {UI_TEXT_MUTED}; }}
            QLabel#DetailValue[accent="true"] {{ color: {UI_ACCENT}; font-weight: 600; }}
            QLabel#Banner {{
                background: rgba(11, 16, 32, 0.88);
                border: 1px solid rgba(102, 217, 255, 0.35);
                border-radius: 8px;
                padding: 6px 14px;
            }}
            QLabel#Banner[error="true"] {{ border-color: {UI_ERROR}; color: {UI_ERROR}; }}
            """
        )

        main_layout = QtWidgets.QVBoxLayout(central)
        main_layout.setContentsMargins(10, 10, 10, 10)
        main_layout.setSpacing(10)

        metric_tabs = [(metric.id, metric.label) for metric in profile.metrics.values()]
        self.title_bar = CustomTitleBar(root, metric_tabs)
        self.title_bar.set_title(profile.title)
        self.title_bar.set_active_metric(self.view_state.active_metric_id)
        self.title_bar.metricChanged.connect(self._on_metric_changed)
        self.title_bar.reload_action.triggered.connect(self._on_reload_requested)
        root.windowTitleChanged.connect(self.title_bar.set_title)
        main_layout.addWidget(self.title_bar)

        body = QtWidgets.QWidget(central)
        body_layout = QtWidgets.QHBoxLayout(body)
        body_layout.setContentsMargins(0, 0, 0, 0)
        body_layout.setSpacing(10)
        main_layout.addWidget(body, 1)

        self.globe_frame = QtWidgets.QFrame(body)
        globe_layout = QtWidgets.QVBoxLayout(self.globe_frame)
        globe_layout.setContentsMargins(0, 0, 0, 0)
        globe_layout.setSpacing(0)
        self.substrate = self._create_substrate(self.globe_frame, globe_layout)
        body_layout.addWidget(self.globe_frame, 1)

        self.banner_label = QtWidgets.QLabel("", self.globe_frame)
        self.banner_label.setObjectName("Banner")
        self.banner_label.setProperty("error", False)
        self.banner_label.move(16, 16)
        self.banner_label.hide()

        body_layout.addWidget(self._build_side_panel(body), 0)

        self.viewer_overlay = LoadingOverlay(self.globe_frame, message="Loading data…")
        self.error_overlay = ErrorOverlay(self.globe_frame)
        self.error_overlay.retryRequested.connect(self._on_reload_requested)

        status_frame = QtWidgets.QFrame(central)
        status_layout = QtWidgets.QHBoxLayout(status_frame)
        status_layout.setContentsMargins(12, 4, 12, 6)
        status_layout.setSpacing(6)
        self.status_label = QtWidgets.QLabel(self._status_value, status_frame)
        self.status_label.setAlignment(QtCore.Qt.AlignmentFlag.AlignLeft | QtCore.Qt.AlignmentFlag.AlignVCenter)
        status_layout.addWidget(self.status_label, 1)
        self.size_grip = QtWidgets.QSizeGrip(status_frame)
        self.size_grip.setFixedSize(18, 18)
        status_layout.addWidget(self.size_grip)
        main_layout.addWidget(status_frame)

        self.status_var = BindingVar(self._status_value, self.status_label.setText)
        self.window_var = BindingVar(self._window_value, self._update_window_label)

    def _create_substrate(self, parent: QtWidgets.QWidget, layout: QtWidgets.QVBoxLayout) -> RenderSubstrate:
        """Embed the GPU globe, or a plain listing of entities when no GL context is available."""
        self.scene = None
        self.fallback_view: Optional[QtWidgets.QPlainTextEdit] = None
        try:
            from .scene import create_globe_canvas

            scene = create_globe_canvas(parent=parent)
        except (ImportError, RuntimeError, RenderSubstrateInitFailure) as exc:
            warn("GlobeScene", f"3D globe unavailable, showing a text listing instead: {exc}")
            self.fallback_view = QtWidgets.QPlainTextEdit(parent)
            self.fallback_view.setReadOnly(True)
            self.fallback_view.setPlainText(f"3D globe unavailable: {exc}")
            layout.addWidget(self.fallback_view, 1)
            return HeadlessSubstrate()
        self.scene = scene
        layout.addWidget(scene.native_widget(), 1)
        return scene

    def _section_label(self, text: str, parent: QtWidgets.QWidget) -> QtWidgets.QLabel:
        label = QtWidgets.QLabel(text.upper(), parent)
        label.setObjectName("SectionLabel")
        return label

    def _build_side_panel(self, parent: QtWidgets.QWidget) -> QtWidgets.QWidget:
        panel = QtWidgets.QFrame(parent)
        panel.setObjectName("SidePanel")
        panel.setFixedWidth(300)
        layout = QtWidgets.QVBoxLayout(panel)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(10)

        layout.addWidget(self._section_label("Time window", panel))
        lower, upper = self.profile.window_range
        self.window_slider = WindowSlider(panel)
        self.window_slider.setRange(int(lower), int(upper))
        self.window_slider.setValue(int(self.view_state.time_window_days))
        self.window_slider.valueChanged.connect(self._on_window_slider_changed)
        layout.addWidget(self.window_slider)
        self.window_label = QtWidgets.QLabel("", panel)
        layout.addWidget(self.window_label)

        controls = QtWidgets.QHBoxLayout()
        controls.setSpacing(8)
        self.spin_button = QtWidgets.QPushButton("Pause rotation", panel)
        self.spin_button.setCheckable(True)
        self.spin_button.clicked.connect(self._on_spin_clicked)
        controls.addWidget(self.spin_button)
        self.reset_button = QtWidgets.QPushButton("Reset view", panel)
        self.reset_button.clicked.connect(self._on_reset_clicked)
        controls.addWidget(self.reset_button)
        layout.addLayout(controls)

        layout.addSpacing(6)
        layout.addWidget(self._section_label("Legend", panel))
        self.legend_title = QtWidgets.QLabel("", panel)
        layout.addWidget(self.legend_title)
        self.legend_gradient = LegendGradient(panel)
        layout.addWidget(self.legend_gradient)
        bounds = QtWidgets.QHBoxLayout()
        self.legend_min_label = QtWidgets.QLabel("", panel)
        self.legend_max_label = QtWidgets.QLabel("", panel)
        self.legend_max_label.setAlignment(QtCore.Qt.AlignmentFlag.AlignRight)
        bounds.addWidget(self.legend_min_label)
        bounds.addStretch(1)
        bounds.addWidget(self.legend_max_label)
        layout.addLayout(bounds)
        self.legend_description = QtWidgets.QLabel("", panel)
        self.legend_description.setWordWrap(True)
        self.legend_description.setObjectName("DetailKey")
        layout.addWidget(self.legend_description)

        layout.addSpacing(6)
        layout.addWidget(self._section_label("Statistics", panel))
        self.stats_total_label = QtWidgets.QLabel("", panel)
        self.stats_avg_label = QtWidgets.QLabel("", panel)
        self.stats_max_label = QtWidgets.QLabel("", panel)
        for label in (self.stats_total_label, self.stats_avg_label, self.stats_max_label):
            label.setObjectName("StatValue")
            layout.addWidget(label)

        layout.addSpacing(6)
        layout.addWidget(self._section_label("Details", panel))
        self.details_title = QtWidgets.QLabel("Click a marker to inspect it", panel)
        self.details_title.setObjectName("DetailsTitle")
        self.details_title.setWordWrap(True)
        layout.addWidget(self.details_title)
        self.details_form = QtWidgets.QFormLayout()
        self.details_form.setHorizontalSpacing(12)
        self.details_form.setVerticalSpacing(4)
        layout.addLayout(self.details_form)
        self.deselect_button = QtWidgets.QPushButton("Close details", panel)
        self.deselect_button.clicked.connect(self._on_deselect_clicked)
        self.deselect_button.setVisible(False)
        layout.addWidget(self.deselect_button)

        layout.addStretch(1)
        return panel

    def _register_bindings(self) -> None:
        self._shortcuts: List[QtGui.QShortcut] = []
        bindings = (
            (QtCore.Qt.Key.Key_Escape, self._on_deselect_clicked),
            (QtCore.Qt.Key.Key_Space, self._on_spin_clicked),
            (QtCore.Qt.Key.Key_R, self._on_reset_clicked),
        )
        for key, handler in bindings:
            shortcut = QtGui.QShortcut(QtGui.QKeySequence(key), self.root)
            shortcut.activated.connect(handler)
            self._shortcuts.append(shortcut)

        self.root.register_close_callback(self._on_close)

    def _connect_scene(self) -> None:
        scene = self.scene
        if scene is None:
            return
        engine = self.engine
        scene.on_pointer_move(engine.pointer_move)
        scene.on_pointer_click(engine.pointer_click)
        scene.on_pointer_leave(engine.pointer_leave)
        scene.on_drag_change(engine.set_dragging)
        scene.on_resize_request(engine.request_resize)

    def _on_metric_changed(self, metric_id: str) -> None:
        self.engine.select_metric(metric_id)
        self._refresh_details()
        self._refresh_fallback_listing()

    def _on_window_slider_changed(self, value: int) -> None:
        self.window_var.set(int(value))
        self.engine.set_time_window(int(value))
        self._refresh_fallback_listing()

    def _update_window_label(self, days: int) -> None:
        unit = "day" if int(days) == 1 else "days"
        self.window_label.setText(f"Last {int(days)} {unit}")

    def _on_spin_clicked(self) -> None:
        self.engine.toggle_spin()

    def _on_reset_clicked(self) -> None:
        self.engine.reset_view()

    def _on_deselect_clicked(self) -> None:
        self.engine.deselect()

    def _apply_spin_state(self, spinning: bool) -> None:
        with QtCore.QSignalBlocker(self.spin_button):
            self.spin_button.setChecked(not spinning)
        self.spin_button.setText("Pause rotation" if spinning else "Resume rotation")

    def _apply_legend(self, legend: LegendInfo) -> None:
        unit = f" ({legend.unit})" if legend.unit else ""
        self.legend_title.setText(f"{legend.label}{unit}")
        self.legend_gradient.set_stops(legend.color_stops)
        self.legend_min_label.setText(legend.min_label)
        self.legend_max_label.setText(legend.max_label)
        self.legend_description.setText(legend.description)
        self.title_bar.set_active_metric(legend.metric_id)

    def _apply_stats(self, stats: Stats, metric_id: str) -> None:
        metric = self.engine.profile.metric(metric_id)
        avg_label, max_label = metric.stat_labels
        noun = self.engine.profile.entity_noun.capitalize()
        has_values = stats.total > 0
        self.stats_total_label.setText(f"Total {noun}: {stats.total}")
        self.stats_avg_label.setText(f"{avg_label} {metric.format(stats.avg) if has_values else '-'}")
        self.stats_max_label.setText(f"{max_label} {metric.format(stats.max) if has_values else '-'}")

    def _apply_selection(self, entity: Optional[Entity]) -> None:
        self._selected_entity = entity
        self._refresh_details()

    def _refresh_details(self) -> None:
        entity = getattr(self, "_selected_entity", None)
        while self.details_form.rowCount():
            self.details_form.removeRow(0)
        if entity is None:
            self.details_title.setText("Click a marker to inspect it")
            self.deselect_button.setVisible(False)
            return
        details: EntityDetails = self.engine.details(entity)
        self.details_title.setText(details.title)
        for row in details.rows:
            key = QtWidgets.QLabel(row.label)
            key.setObjectName("DetailKey")
            value = QtWidgets.QLabel(row.value)
            value.setObjectName("DetailValue")
            value.setWordWrap(True)
            value.setProperty("accent", row.css_class == "accent")
            color = _DETAIL_CLASS_COLORS.get(row.css_class)
            if color is not None:
                value.setStyleSheet(f"color: {color}; font-weight: 600;")
            self.details_form.addRow(key, value)
        self.deselect_button.setVisible(True)

    def _refresh_fallback_listing(self) -> None:
        view = getattr(self, "fallback_view", None)
        if view is None:
            return
        metric = self.engine.profile.metric(self.engine.view_state.active_metric_id)
        lines = [f"{metric.label} · last {int(self.engine.view_state.time_window_days)} days", ""]
        ranked = sorted(
            self.engine.store.filtered,
            key=lambda entity: entity.value(metric.id) if entity.value(metric.id) is not None else float("-inf"),
            reverse=True,
        )
        for entity in ranked:
            lines.append(f"{metric.format(entity.value(metric.id)):>10}  {entity.display_label}")
        view.setPlainText("\n".join(lines))

    def _set_loading(self, active: bool, message: Optional[str] = None) -> None:
        overlay: Optional[LoadingOverlay] = getattr(self, "viewer_overlay", None)
        if overlay is not None:
            overlay.set_loading(active, message)


_DETAIL_CLASS_COLORS: Dict[str, str] = {
    "magnitude-low": "#22d3ee",
    "magnitude-mid": "#facc15",
    "magnitude-high": UI_ERROR,
}


__all__ = [
    "BindingVar",
    "LoadingOverlay",
    "ErrorOverlay",
    "LegendGradient",
    "WindowSlider",
    "PlanetPulseWindow",
    "PlanetPulseUIMixin",
    "create_root",
    "run_mainloop",
    "show_error",
]
