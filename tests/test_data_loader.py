import json

import pytest

from clusterview.data_loader import load_graph
from clusterview.graph_model import build


def test_load_graph_round_trips_into_model(tmp_path):
    doc = {
        "nodes": [{"id": "a", "group": 1}, {"id": "b", "group": 1}, {"id": "c", "group": 2}],
        "links": [{"source": "a", "target": "b"}, {"source": "b", "target": "c", "value": 3}],
    }
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(doc), encoding="utf-8")

    nodes, links = load_graph(path)
    assert nodes == doc["nodes"]
    assert links[1]["value"] == 3

    model = build(nodes, links)
    assert set(model.groups) == {"1", "2"}
    assert model.groups["1"].outer_link_count == 1


def test_links_default_to_empty(tmp_path):
    path = tmp_path / "g.json"
    path.write_text('{"nodes": [{"id": "a", "group": "x"}]}', encoding="utf-8")
    assert load_graph(str(path)) == ([{"id": "a", "group": "x"}], [])


@pytest.mark.parametrize("text", ['[]', '{"links": []}'])
def test_rejects_documents_without_nodes(tmp_path, text):
    path = tmp_path / "bad.json"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ValueError):
        load_graph(path)
