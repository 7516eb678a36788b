from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from PyQt5.QtCore import QObject, QTimer, pyqtSignal as Signal

from .config import DEFAULT_CONFIG, LayoutConfig
from .graph_model import GraphModel
from .hulls import Hull, build_hulls
from .sim_engine import SimulationEngine
from .view_graph import ViewGraph, generate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameNode:
    id: str
    x: float
    y: float
    is_group_node: bool
    radius: float
    group: str
    size: int


@dataclass(frozen=True)
class FrameLink:
    id: str
    source: str
    target: str
    x1: float
    y1: float
    x2: float
    y2: float
    weight: int


@dataclass(frozen=True)
class LayoutFrame:
    """Everything a renderer needs for one simulation step."""
    iteration: int
    alpha: float
    nodes: tuple[FrameNode, ...]
    links: tuple[FrameLink, ...]
    hulls: tuple[Hull, ...]


TickCallback = Callable[[LayoutFrame], None]


class LayoutSession(QObject):
    """Collapse state, the running simulation and the commands that change them.

    This is the handle renderers and input layers talk to: ``step`` advances
    one frame, ``collapse``/``expand`` rebuild the view graph and restart the
    simulation, ``pin``/``unpin`` and the drag helpers fix nodes in place.
    """

    # ─── signals any view can subscribe to ──────────────────────────────
    ticked            = Signal(object)       # LayoutFrame
    viewGraphChanged  = Signal(object)       # ViewGraph
    collapsedChanged  = Signal(str, bool)    # group key, collapsed
    restarted         = Signal()             # simulation needs frames again
    settled           = Signal()

    def __init__(self, model: GraphModel, config: LayoutConfig = DEFAULT_CONFIG,
                 collapse_state: Optional[Mapping[str, bool]] = None, parent=None) -> None:
        super().__init__(parent)
        self.model = model
        self.config = config
        self.collapse_state: dict[str, bool] = {key: False for key in model.groups}
        for key, flag in (collapse_state or {}).items():
            self._check_group(key)
            self.collapse_state[key] = bool(flag)

        self.view_graph: ViewGraph = generate(model, self.collapse_state, None,
                                              config.center, config)
        self.engine = SimulationEngine(self.view_graph, config)
        self.hulls: list[Hull] = build_hulls(self.view_graph, self.engine.positions,
                                             config.hull_margin)
        self._callbacks: list[TickCallback] = []
        self._dragging: set[str] = set()

    # ------------------------------------------------------------------
    def _check_group(self, key: str) -> None:
        if key not in self.model.groups:
            raise KeyError(f"unknown group {key!r}")

    def on_tick(self, callback: TickCallback) -> TickCallback:
        self._callbacks.append(callback)
        return callback

    @property
    def running(self) -> bool:
        return self.engine.running

    # ------------------------------------------------------------------
    def step(self) -> Optional[LayoutFrame]:
        """Advance one simulation step and publish the frame.

        Returns ``None`` without stepping once the simulation has settled or
        was stopped.
        """
        if not self.engine.step():
            return None
        frame = self.frame()
        self.ticked.emit(frame)
        for callback in list(self._callbacks):
            callback(frame)
        if self.engine.settled:
            self.settled.emit()
        return frame

    def frame(self) -> LayoutFrame:
        engine = self.engine
        pos = engine.positions
        self.hulls = build_hulls(self.view_graph, pos, self.config.hull_margin)

        nodes = tuple(
            FrameNode(n.id, float(pos[i, 0]), float(pos[i, 1]), n.is_group_node,
                      n.radius, n.group, n.size)
            for i, n in enumerate(self.view_graph.nodes)
        )
        links = []
        for k, link in enumerate(self.view_graph.links):
            s, t = engine.link_src[k], engine.link_tgt[k]
            links.append(FrameLink(link.id, link.source, link.target,
                                   float(pos[s, 0]), float(pos[s, 1]),
                                   float(pos[t, 0]), float(pos[t, 1]), link.weight))
        return LayoutFrame(engine.iteration, engine.alpha, nodes, tuple(links),
                           tuple(self.hulls))

    def stop(self) -> None:
        self.engine.stop()

    def resume(self) -> None:
        """Continue after :meth:`stop`; re-heats fully if already cooled."""
        if self.engine.alpha < self.config.alpha_min:
            self.engine.restart()
        else:
            self.engine.reheat()
        self.restarted.emit()

    # ------------------------------------------------------------------
    def set_collapsed(self, key: str, collapsed: bool) -> bool:
        """Collapse or expand ``key``; returns ``False`` if nothing changed."""
        self._check_group(key)
        collapsed = bool(collapsed)
        if self.collapse_state[key] == collapsed:
            logger.debug("Group %s already %s", key, "collapsed" if collapsed else "expanded")
            return False

        # nothing is committed until the new view graph and engine exist
        state = dict(self.collapse_state)
        state[key] = collapsed
        view_graph = generate(self.model, state, self.engine.snapshot(),
                              self.config.center, self.config)
        engine = SimulationEngine(view_graph, self.config)

        alpha_target = self.engine.alpha_target
        self.engine.stop()
        self.collapse_state[key] = collapsed
        self.view_graph = view_graph
        self.engine = engine

        self._dragging &= set(view_graph.node_ids())
        engine.set_alpha_target(alpha_target if self._dragging else 0.0)
        self.hulls = build_hulls(self.view_graph, self.engine.positions,
                                 self.config.hull_margin)
        logger.debug("%s group %s -> %r", "Collapsed" if collapsed else "Expanded",
                     key, self.view_graph)

        self.collapsedChanged.emit(key, collapsed)
        self.viewGraphChanged.emit(self.view_graph)
        self.restarted.emit()
        return True

    def collapse(self, key: str) -> bool:
        return self.set_collapsed(key, True)

    def expand(self, key: str) -> bool:
        return self.set_collapsed(key, False)

    def toggle(self, node_or_group: str) -> bool:
        """Toggle the group a visible node belongs to, or a group by key."""
        if node_or_group in self.view_graph:
            key = self.view_graph.group_of(node_or_group)
        else:
            key = node_or_group
        self._check_group(key)
        return self.set_collapsed(key, not self.collapse_state[key])

    # ------------------------------------------------------------------
    def pin(self, node_id: str, x: float, y: float) -> None:
        self.engine.pin(node_id, x, y)

    def unpin(self, node_id: str) -> None:
        self.engine.unpin(node_id)

    def begin_drag(self, node_id: str) -> None:
        x, y = self.engine.position(node_id)
        if not self._dragging:
            self.engine.set_alpha_target(self.config.drag_alpha_target)
            self.engine.reheat()
        self._dragging.add(node_id)
        self.engine.pin(node_id, x, y)
        self.restarted.emit()

    def drag(self, node_id: str, x: float, y: float) -> None:
        self.engine.pin(node_id, x, y)

    def end_drag(self, node_id: str) -> None:
        self._dragging.discard(node_id)
        if node_id in self.view_graph:
            self.engine.unpin(node_id)
        if not self._dragging:
            self.engine.set_alpha_target(0.0)


def run(model: GraphModel, on_tick: Optional[TickCallback] = None,
        config: LayoutConfig = DEFAULT_CONFIG, **kwargs) -> LayoutSession:
    session = LayoutSession(model, config, **kwargs)
    if on_tick is not None:
        session.on_tick(on_tick)
    return session


class FrameTicker(QObject):
    """Drives :meth:`LayoutSession.step` from a ``QTimer`` animation clock."""

    def __init__(self, session: LayoutSession, interval_ms: Optional[int] = None,
                 parent=None) -> None:
        super().__init__(parent)
        self.session = session
        self.timer = QTimer(self)
        self.timer.setInterval(interval_ms or session.config.frame_interval_ms)
        self.timer.timeout.connect(self._frame)
        session.restarted.connect(self.start)

    def start(self) -> None:
        if not self.timer.isActive():
            self.timer.start()

    def stop(self) -> None:
        """Stop stepping immediately; pending frames are dropped."""
        self.timer.stop()
        self.session.stop()

    def detach(self) -> None:
        """Drop the link to the session so its restarts no longer start this ticker."""
        self.timer.stop()
        try:
            self.session.restarted.disconnect(self.start)
        except TypeError:
            pass
        self.deleteLater()

    def is_active(self) -> bool:
        return self.timer.isActive()

    def _frame(self) -> None:
        if self.session.step() is None:
            self.timer.stop()
