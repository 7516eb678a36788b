from __future__ import annotations

import numpy as np
import pyqtgraph as pg
from PyQt5.QtCore import Qt, pyqtSignal as Signal
from PyQt5.QtGui import QColor, QPainterPath
from PyQt5.QtWidgets import (
    QDockWidget, QGraphicsPathItem, QPushButton, QVBoxLayout, QWidget,
)

from .geometry import smooth_closed
from .layout_session import FrameTicker, LayoutFrame, LayoutSession


def group_colors(keys, saturation: int = 150, value: int = 230) -> dict[str, str]:
    """Hex colour per group key, hues spread evenly around the HSV wheel."""
    keys = list(keys)
    colors: dict[str, str] = {}
    for i, key in enumerate(keys):
        color = QColor()
        color.setHsv(360 * i // len(keys), saturation, value)
        colors[key] = color.name()
    return colors


# ---------------------------------------------------------------------------- #
# Helper view-box                                                              #
# ---------------------------------------------------------------------------- #
class DragViewBox(pg.ViewBox):
    """View box that turns left-drags on a node into pin commands."""

    sigNodeDragStarted = Signal(str)
    sigNodeDragged = Signal(str, float, float)
    sigNodeDragFinished = Signal(str)

    def __init__(self, *a, **kw):
        super().__init__(*a, **kw)
        self.scatter: pg.ScatterPlotItem | None = None
        self._drag_id: str | None = None

    def _node_at(self, view_pos) -> str | None:
        if self.scatter is None:
            return None
        pts = self.scatter.pointsAt(view_pos)
        return pts[0].data() if len(pts) else None

    def mouseDragEvent(self, ev, axis=None):
        if ev.button() != Qt.LeftButton:
            super().mouseDragEvent(ev, axis)
            return
        if ev.isStart():
            self._drag_id = self._node_at(self.mapToView(ev.buttonDownPos()))
            if self._drag_id is None:
                super().mouseDragEvent(ev, axis)
                return
            self.sigNodeDragStarted.emit(self._drag_id)
        if self._drag_id is None:
            super().mouseDragEvent(ev, axis)
            return
        p = self.mapToView(ev.pos())
        self.sigNodeDragged.emit(self._drag_id, p.x(), p.y())
        if ev.isFinish():
            self.sigNodeDragFinished.emit(self._drag_id)
            self._drag_id = None
        ev.accept()


# ---------------------------------------------------------------------------- #
# Main dock widget                                                             #
# ---------------------------------------------------------------------------- #
class LayoutViewDock(QDockWidget):
    """Draws the frames of a :class:`LayoutSession`: links, hulls and nodes."""

    HULL_ALPHA = 60

    def __init__(self, parent=None):
        super().__init__("Cluster Layout", parent)
        self.session: LayoutSession | None = None
        self.ticker: FrameTicker | None = None
        self.color_map: dict[str, str] = {}
        self.hull_items: dict[str, QGraphicsPathItem] = {}

        self.run_button = QPushButton("Pause Layout"); self.run_button.setEnabled(False)
        self.run_button.clicked.connect(self._toggle_sim)

        self.view = DragViewBox(); self.view.setAspectLocked(True)
        self.view.setBackgroundColor("#444444")
        self.plot = pg.PlotWidget(viewBox=self.view); self.plot.setBackground("#444444")

        self.link_curve = pg.PlotCurveItem(pen=pg.mkPen(QColor(255, 255, 255, 120), width=1),
                                           connect="pairs")
        self.scatter = pg.ScatterPlotItem(pxMode=False, pen=pg.mkPen("k"))
        self.scatter.sigClicked.connect(self._on_node_clicked)
        self.view.addItem(self.link_curve)
        self.view.addItem(self.scatter)
        self.scatter.setZValue(10)
        self.view.scatter = self.scatter

        w = QWidget(); l = QVBoxLayout(w); l.addWidget(self.run_button); l.addWidget(self.plot)
        self.setWidget(w)

    # ============================================================================ #
    # Session setup                                                                #
    # ============================================================================ #
    def set_session(self, session: LayoutSession | None):
        if self.ticker is not None:
            self.ticker.stop()
            self.ticker.detach()
        if self.session is not None:
            old = self.session
            for signal, slot in ((old.ticked, self.render_frame),
                                 (self.view.sigNodeDragStarted, old.begin_drag),
                                 (self.view.sigNodeDragged, old.drag),
                                 (self.view.sigNodeDragFinished, old.end_drag)):
                try:
                    signal.disconnect(slot)
                except TypeError:
                    pass
        self.session = session
        self.ticker = None
        for item in self.hull_items.values():
            self.view.removeItem(item)
        self.hull_items.clear()
        if session is None:
            self.run_button.setEnabled(False)
            self.scatter.setData([]); self.link_curve.setData([], [])
            return

        self.color_map = group_colors(session.model.groups)
        session.ticked.connect(self.render_frame)
        self.view.sigNodeDragStarted.connect(session.begin_drag)
        self.view.sigNodeDragged.connect(session.drag)
        self.view.sigNodeDragFinished.connect(session.end_drag)

        self.ticker = FrameTicker(session, parent=self)
        self.run_button.setEnabled(True)
        self.render_frame(session.frame())
        self._start_sim()

    # ============================================================================ #
    # Animation                                                                    #
    # ============================================================================ #
    def _start_sim(self):
        if self.ticker:
            self.session.resume(); self.ticker.start()
            self.run_button.setText("Pause Layout")

    def _stop_sim(self):
        if self.ticker and self.ticker.is_active():
            self.ticker.stop(); self.run_button.setText("Resume Layout")

    def _toggle_sim(self):
        (self._stop_sim() if self.ticker and self.ticker.is_active() else self._start_sim())

    # ============================================================================ #
    # Drawing                                                                      #
    # ============================================================================ #
    def render_frame(self, frame: LayoutFrame):
        spots = [
            dict(pos=(n.x, n.y), size=2 * n.radius, data=n.id,
                 brush=pg.mkBrush(self.color_map.get(n.group, "#AAAAAA")),
                 symbol="s" if n.is_group_node else "o")
            for n in frame.nodes
        ]
        self.scatter.setData(spots)

        if frame.links:
            seg = np.empty((2 * len(frame.links), 2))
            seg[0::2] = [(l.x1, l.y1) for l in frame.links]
            seg[1::2] = [(l.x2, l.y2) for l in frame.links]
            self.link_curve.setData(seg[:, 0], seg[:, 1], connect="pairs")
        else:
            self.link_curve.setData([], [])
        self._draw_hulls(frame)

    def _draw_hulls(self, frame: LayoutFrame):
        seen = set()
        for hull in frame.hulls:
            seen.add(hull.group)
            curve = smooth_closed(hull.points)
            path = QPainterPath()
            path.moveTo(*curve[0])
            for x, y in curve[1:]:
                path.lineTo(x, y)
            path.closeSubpath()

            item = self.hull_items.get(hull.group)
            if item is None:
                item = QGraphicsPathItem()
                col = QColor(self.color_map.get(hull.group, "#AAAAAA"))
                col.setAlpha(self.HULL_ALPHA)
                item.setBrush(pg.mkBrush(col)); item.setPen(pg.mkPen(col, cosmetic=True))
                item.setZValue(-1)
                self.view.addItem(item)
                self.hull_items[hull.group] = item
            item.setPath(path)
            item.show()
        for key, item in self.hull_items.items():
            if key not in seen:
                item.hide()

    # ------------------------------------------------------------------
    def _on_node_clicked(self, _item, points, *_):
        if self.session is not None and len(points):
            self.session.toggle(points[0].data())
