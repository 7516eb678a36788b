from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from .config import DEFAULT_CONFIG, LayoutConfig
from .forces import (
    apply_center,
    apply_links,
    apply_many_body_barnes_hut,
    apply_many_body_exact,
    seed_kernels,
)
from .view_graph import GroupNode, ViewGraph

logger = logging.getLogger(__name__)


class SimulationEngine:
    """Iterative force layout over one :class:`ViewGraph`.

    Positions and velocities live in ``(n, 2)`` arrays indexed like
    ``view_graph.nodes``. Each step cools ``alpha`` toward ``alpha_target``,
    applies link springs, many-body repulsion and centering, then integrates
    with velocity decay. Pinned nodes are forced to their pin with zero
    velocity.
    """

    def __init__(self, view_graph: ViewGraph, config: LayoutConfig = DEFAULT_CONFIG,
                 alpha: Optional[float] = None) -> None:
        view_graph.validate()
        self.view_graph = view_graph
        self.config = config
        self.num_nodes = len(view_graph)

        self.positions = view_graph.positions().astype(np.float64)
        self.velocities = np.array([(n.vx, n.vy) for n in view_graph.nodes],
                                   dtype=np.float64).reshape(-1, 2)
        self.fixed = np.zeros(self.num_nodes, dtype=bool)
        self.pins = np.zeros((self.num_nodes, 2), dtype=np.float64)
        for i, node in enumerate(view_graph.nodes):
            if node.fx is not None and node.fy is not None:
                self.fixed[i] = True
                self.pins[i] = (node.fx, node.fy)

        self.alpha = config.alpha_restart if alpha is None else alpha
        self.alpha_target = 0.0
        self.alpha_decay = config.effective_alpha_decay
        self.running = True
        self.iteration = 0

        if config.seed is not None:
            seed_kernels(config.seed)

        self._init_links()
        self._init_charges()

    # ------------------------------------------------------------------
    def _init_links(self) -> None:
        g = self.view_graph
        links = g.links
        m = len(links)
        self.link_src = np.fromiter((g.index_of(l.source) for l in links), np.int64, m)
        self.link_tgt = np.fromiter((g.index_of(l.target) for l in links), np.int64, m)

        count = np.bincount(np.concatenate([self.link_src, self.link_tgt]),
                            minlength=self.num_nodes).astype(np.float64)
        c_src = count[self.link_src]
        c_tgt = count[self.link_tgt]
        self.link_bias = c_src / np.maximum(c_src + c_tgt, 1.0)

        strength = 1.0 / np.maximum(np.minimum(c_src, c_tgt), 1.0)
        if self.config.scale_link_strength_by_weight and m:
            weights = np.fromiter((l.weight for l in links), np.float64, m)
            strength = np.minimum(1.0, strength * weights)
        self.link_strength = strength

        cfg = self.config
        self.link_distance = np.fromiter(
            (cfg.link_distance_cross_group if l.cross_group else cfg.link_distance_same_group
             for l in links), np.float64, m)

    def _init_charges(self) -> None:
        cfg = self.config
        charges = np.full(self.num_nodes, cfg.charge_strength, dtype=np.float64)
        if cfg.group_charge_scale:
            for i, node in enumerate(self.view_graph.nodes):
                if isinstance(node, GroupNode):
                    charges[i] *= math.sqrt(node.size)
        self.charges = charges

    # ------------------------------------------------------------------
    @property
    def settled(self) -> bool:
        return not self.running

    def restart(self, alpha: Optional[float] = None) -> None:
        """Re-heat to ``alpha`` (default ``alpha_restart``); velocities are kept."""
        self.alpha = self.config.alpha_restart if alpha is None else alpha
        self.running = True

    def reheat(self) -> None:
        """Resume stepping at the current alpha (used with ``alpha_target``)."""
        self.running = True

    def stop(self) -> None:
        self.running = False

    def set_alpha_target(self, target: float) -> None:
        self.alpha_target = target

    # ------------------------------------------------------------------
    def step(self) -> bool:
        """Advance one step if running; return ``False`` once settled/stopped."""
        if not self.running:
            return False
        self.simulation_step()
        if self.alpha < self.config.alpha_min:
            self.running = False
            logger.debug("Simulation settled after %d steps", self.iteration)
        return True

    def tick(self, iterations: int = 1) -> None:
        """Run ``iterations`` steps regardless of the running state."""
        for _ in range(iterations):
            self.simulation_step()

    def simulation_step(self) -> None:
        """Performs one step of the physics simulation."""
        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        self.iteration += 1
        if self.num_nodes == 0:
            return

        cfg = self.config
        pos, vel = self.positions, self.velocities

        # --- 1. link springs ---
        if len(self.link_src):
            apply_links(pos, vel, self.link_src, self.link_tgt, self.link_distance,
                        self.link_strength, self.link_bias, self.alpha)

        # --- 2. many-body repulsion ---
        dmin2 = cfg.distance_min ** 2
        dmax2 = cfg.distance_max ** 2
        if self.num_nodes > 1:
            if self.num_nodes < cfg.barnes_hut_threshold:
                apply_many_body_exact(pos, vel, self.charges, self.alpha, dmin2, dmax2)
            else:
                apply_many_body_barnes_hut(pos, vel, self.charges, self.alpha,
                                           cfg.theta ** 2, dmin2, dmax2)

        # --- 3. centering ---
        apply_center(pos, cfg.center, cfg.center_strength)

        # --- 4. integrate ---
        free = ~self.fixed
        vel[free] *= 1.0 - cfg.velocity_decay
        pos[free] += vel[free]
        pos[self.fixed] = self.pins[self.fixed]
        vel[self.fixed] = 0.0

    # ------------------------------------------------------------------
    def pin(self, node_id: str, x: float, y: float) -> None:
        i = self.view_graph.index_of(node_id)
        self.fixed[i] = True
        self.pins[i] = (x, y)

    def unpin(self, node_id: str) -> None:
        i = self.view_graph.index_of(node_id)
        self.fixed[i] = False

    def pinned(self) -> dict[str, tuple[float, float]]:
        ids = self.view_graph.nodes
        return {ids[i].id: (float(self.pins[i, 0]), float(self.pins[i, 1]))
                for i in np.flatnonzero(self.fixed)}

    def position(self, node_id: str) -> tuple[float, float]:
        x, y = self.positions[self.view_graph.index_of(node_id)]
        return float(x), float(y)

    def snapshot(self) -> ViewGraph:
        """Current state as a fresh :class:`ViewGraph` (for regeneration)."""
        return self.view_graph.with_state(self.positions, self.velocities, self.pinned())
