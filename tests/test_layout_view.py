import pytest

pytest.importorskip("pyqtgraph")

from clusterview.config import LayoutConfig
from clusterview.layout_session import LayoutSession
from clusterview.layout_view import LayoutViewDock, group_colors


class _Point:
    def __init__(self, node_id):
        self._id = node_id

    def data(self):
        return self._id


@pytest.fixture
def dock(qapp, scenario_model):
    dock = LayoutViewDock()
    dock.set_session(LayoutSession(scenario_model, LayoutConfig(seed=2)))
    yield dock
    dock.set_session(None)


def test_group_colors_distinct_per_key():
    colors = group_colors(["g0", "g1", "g2", "g3", "g4"])
    assert list(colors) == ["g0", "g1", "g2", "g3", "g4"]
    assert len(set(colors.values())) == 5
    assert all(c.startswith("#") for c in colors.values())
    assert group_colors([]) == {}


def test_set_session_renders_and_starts(dock):
    assert dock.run_button.isEnabled()
    assert dock.ticker.is_active()
    assert len(dock.scatter.points()) == 4
    assert set(dock.hull_items) == {"X", "Y"}


def test_click_toggles_group(dock):
    dock._on_node_clicked(dock.scatter, [_Point("a")])
    assert dock.session.collapse_state["X"] is True
    dock.render_frame(dock.session.frame())
    assert len(dock.scatter.points()) == 3
    assert not dock.hull_items["X"].isVisible()


def test_pause_and_resume(dock):
    dock._toggle_sim()
    assert not dock.ticker.is_active()
    assert dock.run_button.text() == "Resume Layout"
    dock._toggle_sim()
    assert dock.ticker.is_active()
    assert dock.run_button.text() == "Pause Layout"


def test_clearing_session(qapp, scenario_model):
    dock = LayoutViewDock()
    dock.set_session(LayoutSession(scenario_model))
    dock.set_session(None)
    assert not dock.run_button.isEnabled()
    assert dock.session is None
    assert dock.hull_items == {}


def test_replaced_session_no_longer_drives_old_ticker(dock, scenario_model):
    old_session, old_ticker = dock.session, dock.ticker
    dock.set_session(LayoutSession(scenario_model, LayoutConfig(seed=3)))
    assert dock.ticker is not old_ticker
    old_session.resume()
    assert not old_ticker.is_active()
    assert dock.ticker.is_active()
