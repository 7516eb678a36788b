"""
Graph model tests
=================

Grouping of raw nodes and annotation of raw relations.
"""

import pytest

from clusterview.errors import DuplicateEntity, LayoutError, UnresolvedEndpoint
from clusterview.graph_model import build

from conftest import make_links, make_nodes


class TestGrouping:

    def test_one_group_per_distinct_key(self, clustered_model):
        keys = {e.group for e in clustered_model.entities.values()}
        assert len(clustered_model.groups) == len(keys)

    def test_every_entity_in_exactly_one_group(self, clustered_model):
        seen = [m for g in clustered_model.groups.values() for m in g.member_ids]
        assert sorted(seen) == sorted(clustered_model.entities)
        assert len(seen) == len(set(seen))

    def test_encounter_order_is_preserved(self):
        nodes = [{"id": "p", "group": "B"}, {"id": "q", "group": "A"},
                 {"id": "r", "group": "B"}]
        model = build(nodes, [])
        assert list(model.groups) == ["B", "A"]
        assert model.groups["B"].member_ids == ("p", "r")
        assert model.groups["B"].size == 2

    def test_numeric_group_keys_become_strings(self):
        model = build([{"id": "a", "group": 1}, {"id": "b", "group": 1}], [])
        assert list(model.groups) == ["1"]
        assert model.group_of("a").key == "1"

    def test_relations_are_annotated(self, scenario_model):
        rels = scenario_model.relations
        assert [(r.source_group, r.target_group) for r in rels] == [
            ("X", "X"), ("X", "Y"), ("Y", "Y")]
        assert [r.crosses_groups for r in rels] == [False, True, False]

    def test_outer_link_count(self, scenario_model):
        assert scenario_model.groups["X"].outer_link_count == 1
        assert scenario_model.groups["Y"].outer_link_count == 1

    def test_object_endpoints_are_accepted(self):
        model = build(make_nodes({"X": ["a", "b"]}),
                      [{"source": {"id": "a"}, "target": {"id": "b"}}])
        assert model.relations[0].source == "a"
        assert model.neighbors("a") == ["b"]

    def test_inner_relations(self, scenario_model):
        inner = scenario_model.inner_relations("X")
        assert [(r.source, r.target) for r in inner] == [("a", "b")]


class TestLoadFailures:

    def test_unknown_target_is_fatal(self):
        with pytest.raises(UnresolvedEndpoint) as info:
            build(make_nodes({"X": ["a"]}), make_links([("a", "zz")]))
        assert info.value.node_id == "zz"
        assert info.value.endpoint == "target"
        assert isinstance(info.value, LayoutError)

    def test_unknown_source_is_fatal(self):
        with pytest.raises(UnresolvedEndpoint):
            build(make_nodes({"X": ["a"]}), make_links([("nope", "a")]))

    def test_duplicate_ids_are_rejected(self):
        with pytest.raises(DuplicateEntity):
            build([{"id": "a", "group": "X"}, {"id": "a", "group": "Y"}], [])


def test_raw_graph_keeps_parallel_relations():
    model = build(make_nodes({"X": ["a", "b"]}), make_links([("a", "b"), ("b", "a")]))
    assert model.graph.number_of_edges() == 2
    assert model.graph.nodes["a"]["group"] == "X"
