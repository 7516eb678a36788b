from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import networkx as nx

from .errors import DuplicateEntity, UnresolvedEndpoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entity:
    id: str
    group: str
    index: int          # position in the raw node list


@dataclass(frozen=True)
class Group:
    key: str
    member_ids: tuple[str, ...]
    outer_link_count: int = 0

    @property
    def size(self) -> int:
        return len(self.member_ids)


@dataclass(frozen=True)
class RawRelation:
    source: str
    target: str
    source_group: str
    target_group: str

    @property
    def crosses_groups(self) -> bool:
        return self.source_group != self.target_group


def _endpoint_id(value: Any) -> str:
    # d3-style documents may already carry node objects as endpoints
    if isinstance(value, Mapping):
        value = value["id"]
    return str(value)


class GraphModel:
    """Immutable grouped view of the raw graph.

    Built once per session by :func:`build`; the only per-session mutable
    state (which groups are collapsed) lives outside, in the caller's
    collapse-state mapping.
    """

    def __init__(self, entities: dict[str, Entity], groups: dict[str, Group],
                 relations: tuple[RawRelation, ...]) -> None:
        self.entities = entities
        self.groups = groups
        self.relations = relations
        self.graph = self._build_graph()

    # ------------------------------------------------------------------
    def _build_graph(self) -> nx.MultiGraph:
        G = nx.MultiGraph()
        for ent in self.entities.values():
            G.add_node(ent.id, group=ent.group)
        for rel in self.relations:
            G.add_edge(rel.source, rel.target, cross_group=rel.crosses_groups)
        return G

    # ------------------------------------------------------------------
    def group_of(self, entity_id: str) -> Group:
        return self.groups[self.entities[entity_id].group]

    def neighbors(self, entity_id: str) -> list[str]:
        return list(self.graph.neighbors(entity_id))

    def inner_relations(self, key: str) -> list[RawRelation]:
        return [r for r in self.relations
                if r.source_group == key and r.target_group == key]

    def __repr__(self) -> str:
        return (f"GraphModel(entities={len(self.entities)}, groups={len(self.groups)}, "
                f"relations={len(self.relations)})")


def build(raw_nodes: Iterable[Mapping[str, Any]],
          raw_links: Iterable[Mapping[str, Any]]) -> GraphModel:
    """Partition raw nodes into groups and annotate every raw link.

    Group order follows first encounter in ``raw_nodes``; member order follows
    node order. Raises :class:`UnresolvedEndpoint` if a link names an unknown
    entity and :class:`DuplicateEntity` if an id repeats. Nothing is built on
    failure.
    """
    entities: dict[str, Entity] = {}
    members: dict[str, list[str]] = {}
    for i, raw in enumerate(raw_nodes):
        node_id = str(raw["id"])
        if node_id in entities:
            raise DuplicateEntity(f"entity id {node_id!r} appears more than once")
        group = str(raw.get("group", ""))
        entities[node_id] = Entity(node_id, group, i)
        members.setdefault(group, []).append(node_id)

    relations: list[RawRelation] = []
    outer = Counter()
    for i, raw in enumerate(raw_links):
        source = _endpoint_id(raw["source"])
        target = _endpoint_id(raw["target"])
        if source not in entities:
            raise UnresolvedEndpoint(i, "source", source)
        if target not in entities:
            raise UnresolvedEndpoint(i, "target", target)
        rel = RawRelation(source, target,
                          entities[source].group, entities[target].group)
        if rel.crosses_groups:
            outer[rel.source_group] += 1
            outer[rel.target_group] += 1
        relations.append(rel)

    groups = {
        key: Group(key, tuple(ids), outer[key]) for key, ids in members.items()
    }
    model = GraphModel(entities, groups, tuple(relations))
    logger.info("Loaded %d entities in %d groups with %d relations",
                len(entities), len(groups), len(relations))
    return model
