"""Hover interaction mixin for the PlanetPulse window."""

from __future__ import annotations

from typing import Optional

from PyQt6 import QtGui, QtWidgets

from .models import Entity


class PlanetPulseHoverMixin:
    _hover_prev_status: Optional[str] = None

    def _hover_text(self, entity: Entity) -> str:
        metric = self.engine.profile.metric(self.engine.view_state.active_metric_id)
        return f"{entity.display_label}  ·  {metric.label}: {metric.format(entity.value(metric.id))}"

    def _handle_hover_entity(self, entity: Optional[Entity]) -> None:
        if entity is not None:
            if self._hover_prev_status is None:
                self._hover_prev_status = str(self.status_var.get())
            display = self._hover_text(entity)
            self._set_status(display)
            QtWidgets.QToolTip.showText(QtGui.QCursor.pos(), display)
        else:
            QtWidgets.QToolTip.hideText()
            if self._hover_prev_status is not None:
                self._set_status(self._hover_prev_status)
            self._hover_prev_status = None


__all__ = ["PlanetPulseHoverMixin"]
