from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .geometry import box_corners, convex_hull, polygon_area
from .view_graph import EntityNode, ViewGraph


@dataclass(frozen=True)
class Hull:
    group: str
    points: np.ndarray      # (k, 2), counter-clockwise, not closed


def hull_for(member_positions, margin: float) -> Optional[np.ndarray]:
    """Convex boundary around a group's members, or ``None`` if degenerate.

    Each member contributes the four corners of a ``2 * margin`` square so the
    boundary keeps some room around the node glyphs. Groups with fewer than
    two members, fewer than three hull vertices or zero area get no boundary.
    """
    pts = np.asarray(member_positions, dtype=float).reshape(-1, 2)
    if len(pts) < 2:
        return None
    hull = convex_hull(box_corners(pts, margin))
    if len(hull) < 3 or polygon_area(hull) <= 0.0:
        return None
    return hull


def build_hulls(view_graph: ViewGraph, positions: np.ndarray, margin: float) -> list[Hull]:
    """Hulls for every expanded group, in view-graph group order."""
    members: dict[str, list[int]] = {}
    for i, node in enumerate(view_graph.nodes):
        if isinstance(node, EntityNode):
            members.setdefault(node.group, []).append(i)

    hulls = []
    for key, idx in members.items():
        poly = hull_for(positions[idx], margin)
        if poly is not None:
            hulls.append(Hull(key, poly))
    return hulls
