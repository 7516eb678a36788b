from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import ClassVar, Iterable, Mapping, Optional, Union

import networkx as nx
import numpy as np

from .config import DEFAULT_CONFIG, LayoutConfig
from .errors import DanglingLinkReference, GroupIdCollision
from .graph_model import GraphModel

logger = logging.getLogger(__name__)

# golden angle, used to spread nodes that have no prior position
_INITIAL_ANGLE = math.pi * (3.0 - math.sqrt(5.0))
_INITIAL_RADIUS = 10.0


@dataclass(frozen=True)
class EntityNode:
    id: str
    group: str
    x: float
    y: float
    radius: float
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None

    is_group_node: ClassVar[bool] = False

    @property
    def size(self) -> int:
        return 1


@dataclass(frozen=True)
class GroupNode:
    id: str
    member_ids: tuple[str, ...]
    x: float
    y: float
    radius: float
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None

    is_group_node: ClassVar[bool] = True

    @property
    def group(self) -> str:
        return self.id

    @property
    def size(self) -> int:
        return len(self.member_ids)


ViewNode = Union[EntityNode, GroupNode]


def link_key(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a <= b else (b, a)


def _escape(node_id: str) -> str:
    return node_id.replace("\\", "\\\\").replace("~", "\\~")


def link_id(a: str, b: str) -> str:
    """Order-independent id, ``lo~hi``; a ``~`` or ``\\`` inside an id is escaped."""
    lo, hi = link_key(a, b)
    return f"{_escape(lo)}~{_escape(hi)}"


@dataclass(frozen=True)
class ViewLink:
    id: str
    source: str
    target: str
    weight: int = 1
    cross_group: bool = False


class ViewGraph:
    """Visible nodes and links handed to the simulation."""

    def __init__(self, nodes: Iterable[ViewNode], links: Iterable[ViewLink] = ()) -> None:
        self.nodes: tuple[ViewNode, ...] = tuple(nodes)
        self.links: tuple[ViewLink, ...] = tuple(links)
        self._index = {n.id: i for i, n in enumerate(self.nodes)}
        if len(self._index) != len(self.nodes):
            raise ValueError("view graph node ids must be unique")

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._index

    def __repr__(self) -> str:
        return f"ViewGraph(nodes={len(self.nodes)}, links={len(self.links)})"

    # ------------------------------------------------------------------
    def node(self, node_id: str) -> ViewNode:
        return self.nodes[self._index[node_id]]

    def index_of(self, node_id: str) -> int:
        return self._index[node_id]

    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def group_nodes(self) -> list[GroupNode]:
        return [n for n in self.nodes if isinstance(n, GroupNode)]

    def members_of(self, key: str) -> list[EntityNode]:
        return [n for n in self.nodes if isinstance(n, EntityNode) and n.group == key]

    def group_of(self, node_id: str) -> str:
        node = self.node(node_id)
        return node.id if isinstance(node, GroupNode) else node.group

    def validate(self) -> None:
        """Raise :class:`DanglingLinkReference` if a link leaves the node set."""
        for link in self.links:
            for end in (link.source, link.target):
                if end not in self._index:
                    logger.error("View link %s references missing node %s", link.id, end)
                    raise DanglingLinkReference(link.id, end)

    def positions(self) -> np.ndarray:
        return np.array([(n.x, n.y) for n in self.nodes], dtype=float).reshape(-1, 2)

    def with_state(self, positions: np.ndarray, velocities: np.ndarray,
                   pins: Mapping[str, tuple[float, float]]) -> "ViewGraph":
        """Copy of this graph carrying the given simulation state."""
        nodes = []
        for i, n in enumerate(self.nodes):
            fx, fy = pins.get(n.id, (None, None))
            nodes.append(replace(n, x=float(positions[i, 0]), y=float(positions[i, 1]),
                                 vx=float(velocities[i, 0]), vy=float(velocities[i, 1]),
                                 fx=fx, fy=fy))
        return ViewGraph(nodes, self.links)

    def as_networkx(self) -> nx.Graph:
        G = nx.Graph()
        for n in self.nodes:
            G.add_node(n.id, group=self.group_of(n.id), is_group_node=n.is_group_node,
                       size=n.size)
        for link in self.links:
            G.add_edge(link.source, link.target, weight=link.weight)
        return G


@dataclass
class _Carry:
    """Position store keyed by node id, read from the previous view graph."""

    nodes: dict[str, ViewNode] = field(default_factory=dict)
    centroids: dict[str, tuple[float, float]] = field(default_factory=dict)

    @classmethod
    def from_previous(cls, previous: Optional[ViewGraph]) -> "_Carry":
        carry = cls()
        if previous is None:
            return carry
        sums: dict[str, list[float]] = {}
        for n in previous.nodes:
            carry.nodes[n.id] = n
            if isinstance(n, GroupNode):
                carry.centroids[n.id] = (n.x, n.y)
            else:
                acc = sums.setdefault(n.group, [0.0, 0.0, 0])
                acc[0] += n.x
                acc[1] += n.y
                acc[2] += 1
        for key, (sx, sy, count) in sums.items():
            carry.centroids.setdefault(key, (sx / count, sy / count))
        return carry


def _seed_position(default: tuple[float, float], i: int) -> tuple[float, float]:
    r = _INITIAL_RADIUS * math.sqrt(0.5 + i)
    a = i * _INITIAL_ANGLE
    return default[0] + r * math.cos(a), default[1] + r * math.sin(a)


def generate(model: GraphModel, collapse_state: Mapping[str, bool],
             previous: Optional[ViewGraph] = None,
             default_position: tuple[float, float] = (0.0, 0.0),
             config: LayoutConfig = DEFAULT_CONFIG) -> ViewGraph:
    """Build the view graph for ``collapse_state``.

    Node positions carry over from ``previous``: unchanged nodes keep their
    position, velocity and pin; a group that just collapsed starts at the mean
    of its former members; members of a group that just expanded start at the
    group node's position. Nodes without any prior position are spread on a
    small spiral around ``default_position``.
    """
    carry = _Carry.from_previous(previous)
    nodes: list[ViewNode] = []
    visible: dict[str, str] = {}          # entity id -> visible node id
    fresh = 0

    for key, group in model.groups.items():
        if collapse_state.get(key, False):
            prior = carry.nodes.get(key)
            if isinstance(prior, GroupNode):
                node = GroupNode(key, group.member_ids, prior.x, prior.y,
                                 config.group_radius(group.size),
                                 prior.vx, prior.vy, prior.fx, prior.fy)
            else:
                if key in carry.centroids:
                    x, y = carry.centroids[key]
                else:
                    x, y = _seed_position(default_position, fresh)
                    fresh += 1
                node = GroupNode(key, group.member_ids, x, y,
                                 config.group_radius(group.size))
            nodes.append(node)
            for member in group.member_ids:
                visible[member] = key
            continue

        for member in group.member_ids:
            prior = carry.nodes.get(member)
            if isinstance(prior, EntityNode):
                node = EntityNode(member, key, prior.x, prior.y, config.entity_radius,
                                  prior.vx, prior.vy, prior.fx, prior.fy)
            else:
                if key in carry.centroids:
                    x, y = carry.centroids[key]
                else:
                    x, y = _seed_position(default_position, fresh)
                    fresh += 1
                node = EntityNode(member, key, x, y, config.entity_radius)
            nodes.append(node)
            visible[member] = member

    # group node ids share the namespace of entity ids
    shown = {n.id for n in nodes if isinstance(n, EntityNode)}
    for n in nodes:
        if isinstance(n, GroupNode) and n.id in shown:
            logger.error("Collapsed group %s clashes with a visible entity id", n.id)
            raise GroupIdCollision(n.id)

    links: dict[tuple[str, str], ViewLink] = {}
    dropped = 0
    for rel in model.relations:
        source = visible[rel.source]
        target = visible[rel.target]
        if source == target:
            dropped += 1
            continue
        key = link_key(source, target)
        link = links.get(key)
        if link is None:
            links[key] = ViewLink(link_id(source, target), source, target, 1,
                                  rel.crosses_groups)
        else:
            links[key] = replace(link, weight=link.weight + 1)

    view = ViewGraph(nodes, links.values())
    logger.debug("Generated %r (%d relations folded into single nodes)", view, dropped)
    return view
