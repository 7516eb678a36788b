import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from clusterview.graph_model import build


def make_nodes(groups):
    """``{"X": ["a", "b"]}`` -> d3 style node list."""
    return [{"id": n, "group": g} for g, ids in groups.items() for n in ids]


def make_links(pairs):
    return [{"source": s, "target": t} for s, t in pairs]


@pytest.fixture
def scenario_model():
    # a,b in X; c,d in Y; relations a-b, a-c, c-d
    return build(make_nodes({"X": ["a", "b"], "Y": ["c", "d"]}),
                 make_links([("a", "b"), ("a", "c"), ("c", "d")]))


@pytest.fixture
def clustered_model():
    groups = {f"g{k}": [f"n{k}_{i}" for i in range(6)] for k in range(4)}
    pairs = []
    for k, ids in enumerate(groups.values()):
        pairs += [(ids[i], ids[i + 1]) for i in range(len(ids) - 1)]
        pairs.append((ids[0], ids[-1]))
        pairs.append((ids[0], f"n{(k + 1) % 4}_0"))
        pairs.append((ids[2], f"n{(k + 1) % 4}_3"))
    pairs.append(("n0_1", "n1_1"))
    return build(make_nodes(groups), make_links(pairs))


@pytest.fixture(scope="session")
def qapp():
    QtWidgets = pytest.importorskip("PyQt5.QtWidgets")
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
