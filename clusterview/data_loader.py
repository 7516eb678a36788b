# data_loader.py ------------------------------------------------------------
import json
from pathlib import Path


def load_graph(path):
    """Return ``(nodes, links)`` from a d3-style graph document.

    The document is ``{"nodes": [{"id", "group"}, ...],
    "links": [{"source", "target"}, ...]}``; extra keys are kept.
    """
    with Path(path).open("r", encoding="utf-8") as fh:
        doc = json.load(fh)
    if not isinstance(doc, dict) or "nodes" not in doc:
        raise ValueError(f"{path}: expected an object with a 'nodes' list")
    return list(doc["nodes"]), list(doc.get("links", []))
