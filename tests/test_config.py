import math

import pytest

from clusterview.config import DEFAULT_CONFIG, LayoutConfig


def test_defaults():
    cfg = DEFAULT_CONFIG
    assert cfg.link_distance_same_group == 20
    assert cfg.link_distance_cross_group == 140
    assert cfg.charge_strength == -30
    assert cfg.velocity_decay == 0.4
    assert cfg.theta == 0.9


def test_alpha_decay_cools_in_300_steps():
    decay = DEFAULT_CONFIG.effective_alpha_decay
    assert (1 - decay) ** 300 == pytest.approx(DEFAULT_CONFIG.alpha_min)
    assert LayoutConfig(alpha_decay=0.05).effective_alpha_decay == 0.05


def test_group_radius_grows_with_size():
    cfg = LayoutConfig(group_radius_base=4)
    assert cfg.group_radius(9) == pytest.approx(7.0)
    assert cfg.group_radius(16) > cfg.group_radius(9)


def test_from_mapping():
    cfg = LayoutConfig.from_mapping({"hull_margin": 3, "center": [10, -5]})
    assert cfg.hull_margin == 3
    assert cfg.center == (10.0, -5.0)
    assert cfg.distance_max == math.inf


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ValueError, match="gravity"):
        LayoutConfig.from_mapping({"gravity": 1})


def test_replace_returns_new_instance():
    cfg = DEFAULT_CONFIG.replace(seed=4)
    assert cfg.seed == 4
    assert DEFAULT_CONFIG.seed is None
