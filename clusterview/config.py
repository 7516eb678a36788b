from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields, replace as _replace
from typing import Any, Mapping


@dataclass(frozen=True)
class LayoutConfig:
    """Tunable constants for view-graph generation, the simulation and hulls."""

    # node radii
    entity_radius: float = 5.0
    group_radius_base: float = 5.0

    # link springs
    link_distance_same_group: float = 20.0
    link_distance_cross_group: float = 140.0
    scale_link_strength_by_weight: bool = False

    # many-body repulsion
    charge_strength: float = -30.0
    group_charge_scale: bool = False      # scale group-node charge by sqrt(size)
    theta: float = 0.9
    distance_min: float = 1.0
    distance_max: float = math.inf
    barnes_hut_threshold: int = 300       # exact O(n^2) below this many nodes

    # centering
    center: tuple[float, float] = (0.0, 0.0)
    center_strength: float = 1.0

    # integration / cooling
    velocity_decay: float = 0.4
    alpha_restart: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float | None = None      # None -> cool to alpha_min in ~300 steps
    drag_alpha_target: float = 0.3

    # hulls
    hull_margin: float = 10.0

    # runtime
    frame_interval_ms: int = 16
    seed: int | None = None

    @property
    def effective_alpha_decay(self) -> float:
        if self.alpha_decay is not None:
            return self.alpha_decay
        return 1.0 - self.alpha_min ** (1.0 / 300.0)

    def group_radius(self, size: int) -> float:
        return self.group_radius_base + math.sqrt(size)

    def replace(self, **changes: Any) -> "LayoutConfig":
        return _replace(self, **changes)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "LayoutConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown layout options: {', '.join(sorted(unknown))}")
        data = dict(values)
        if "center" in data:
            data["center"] = tuple(float(c) for c in data["center"])
        return cls(**data)


DEFAULT_CONFIG = LayoutConfig()


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
