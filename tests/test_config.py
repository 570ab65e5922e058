"""Tests for config module."""

import pytest
import yaml

from solaris_kitchen.config import build_topology, build_zone_template, load_kitchen_config
from solaris_kitchen.kitchen_models import ConfigurationError, NetworkTopology, ZoneTemplate


def _write(tmp_path, data):
    path = tmp_path / "kitchen.yaml"
    path.write_text(yaml.dump(data) if not isinstance(data, str) else data)
    return path


def test_no_config_path_means_defaults():
    config = load_kitchen_config(None)

    assert config == {}
    assert build_topology(config) == NetworkTopology()
    assert build_zone_template(config) == ZoneTemplate()


def test_defaults_match_fixed_topology():
    topology = NetworkTopology()

    assert topology.etherstub == "stub0"
    assert topology.vnic == "vnic0"
    assert topology.gateway == "192.168.0.1/24"
    assert topology.pool_start == "192.168.0.100"
    assert topology.pool_end == "192.168.0.120"
    assert topology.broadcast == "192.168.0.255"


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Kitchen config not found"):
        load_kitchen_config(tmp_path / "absent.yaml")


def test_empty_file(tmp_path):
    assert load_kitchen_config(_write(tmp_path, "")) == {}


def test_overrides(tmp_path):
    path = _write(tmp_path, {
        "network": {"vnic": "vnic7", "gateway": "172.16.5.1/24", "pool_start": "172.16.5.10", "pool_end": "172.16.5.20"},
        "zone": {"name": "kzone", "zonepath": "/zones/kzone"},
    })
    config = load_kitchen_config(path)

    topology = build_topology(config)
    zone = build_zone_template(config)

    assert topology.vnic == "vnic7"
    assert topology.etherstub == "stub0"
    assert topology.router == "172.16.5.1"
    assert zone.name == "kzone"
    assert zone.brand == "solaris"


def test_unknown_section(tmp_path):
    with pytest.raises(ConfigurationError, match="Unknown sections"):
        load_kitchen_config(_write(tmp_path, {"storage": {}}))


def test_unknown_key(tmp_path):
    config = load_kitchen_config(_write(tmp_path, {"network": {"bridge": "br0"}}))

    with pytest.raises(ConfigurationError, match="bridge"):
        build_topology(config)


def test_section_not_mapping(tmp_path):
    config = load_kitchen_config(_write(tmp_path, {"zone": ["template"]}))

    with pytest.raises(ConfigurationError, match="'zone' section must be a mapping"):
        build_zone_template(config)


def test_top_level_not_mapping(tmp_path):
    with pytest.raises(ConfigurationError, match="must be a mapping"):
        load_kitchen_config(_write(tmp_path, "- a\n- b\n"))


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_kitchen_config(_write(tmp_path, "network: [unclosed\n"))


def test_pool_outside_subnet(tmp_path):
    config = load_kitchen_config(_write(tmp_path, {"network": {"pool_end": "192.168.1.20"}}))

    with pytest.raises(ConfigurationError, match="outside"):
        build_topology(config)


def test_bad_gateway(tmp_path):
    config = load_kitchen_config(_write(tmp_path, {"network": {"gateway": "not-an-address"}}))

    with pytest.raises(ConfigurationError, match="Invalid 'network' settings"):
        build_topology(config)
