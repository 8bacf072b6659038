"""Status helpers and lifecycle mixin for the PlanetPulse window."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from PyQt6 import QtCore, QtWidgets

from .constants import STATUS_AUTO_HIDE_MS
from .diagnostics import log


class PlanetPulseStatusMixin:
    class _StatusDispatcher(QtCore.QObject):
        invoke = QtCore.pyqtSignal(object)

    def _initialise_status_dispatcher(self) -> None:
        dispatcher = getattr(self, "_status_dispatcher", None)
        if dispatcher is not None:
            return
        dispatcher = PlanetPulseStatusMixin._StatusDispatcher(parent=QtWidgets.QApplication.instance())
        dispatcher.invoke.connect(self._execute_on_main_thread)
        self._status_dispatcher = dispatcher
        self._banner_timer = QtCore.QTimer(self.root)
        self._banner_timer.setSingleShot(True)
        self._banner_timer.timeout.connect(self._hide_banner)

    def _invoke_on_main_thread(self, func: Callable[[], None]) -> None:
        """Queue ``func`` onto the GUI thread; safe to call from worker threads."""
        if not callable(func):
            return
        self._initialise_status_dispatcher()
        dispatcher = getattr(self, "_status_dispatcher", None)
        if dispatcher is None:
            return
        dispatcher.invoke.emit(func)

    def _execute_on_main_thread(self, func: object) -> None:
        if callable(func):
            func()

    def _call_later(self, delay_seconds: float, func: Callable[[], None]) -> None:
        QtCore.QTimer.singleShot(int(max(delay_seconds, 0.0) * 1000), func)

    def _set_status(self, message: str) -> None:
        self.status_var.set(message)

    def _show_notice(self, message: str, is_error: bool = False) -> None:
        """Show the banner; informational messages hide themselves after a moment."""
        self._set_status(message)
        banner = getattr(self, "banner_label", None)
        if banner is None:
            return
        banner.setProperty("error", bool(is_error))
        banner.style().unpolish(banner)
        banner.style().polish(banner)
        banner.setText(message)
        banner.show()
        self._banner_timer.stop()
        if not is_error:
            self._banner_timer.start(STATUS_AUTO_HIDE_MS)

    def _hide_banner(self) -> None:
        banner = getattr(self, "banner_label", None)
        if banner is not None:
            banner.hide()

    def _on_close(self) -> None:
        loader = getattr(self, "feed_loader", None)
        if loader is not None:
            loader.cancel()
            loader.client.close()
        engine = getattr(self, "engine", None)
        if engine is not None:
            engine.dispose()
        executor = getattr(self, "_io_executor", None)
        if isinstance(executor, ThreadPoolExecutor):
            executor.shutdown(wait=False, cancel_futures=True)
        self._io_executor = None
        log("PlanetPulse", "Window closed; engine disposed")
        app = QtWidgets.QApplication.instance()
        if app is not None:
            app.quit()


__all__ = ["PlanetPulseStatusMixin"]
