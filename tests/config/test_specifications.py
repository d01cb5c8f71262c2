"""Tests for specification catalog parsing."""

import pytest

from resource_recommender.config.specifications import DEFAULT_SPECS
from resource_recommender.config.specifications import load_specifications
from resource_recommender.config.specifications import parse_compact_specification
from resource_recommender.config.specifications import parse_specifications
from resource_recommender.errors import ConfigurationError
from resource_recommender.models.resource import Specification

GIB = 1024**3


def test_compact_token():
    spec = parse_compact_specification("0.5c1g")
    assert spec.name == "0.5c1g"
    assert spec.cpu == 0.5
    assert spec.memory == GIB
    assert spec.accelerator_compute == 0.0


@pytest.mark.parametrize("token", ["1c", "2g", "c1g", "1x2g", "one c two g"])
def test_compact_token_invalid(token):
    with pytest.raises(ConfigurationError):
        parse_compact_specification(token)


def test_default_ladder_keeps_order():
    specs = parse_specifications(DEFAULT_SPECS)
    assert specs[0].name == "0.25c0.25g"
    assert specs[-1].name == "64c256g"
    assert specs[-1].memory == 256 * GIB


def test_empty_values():
    assert parse_specifications(None) == ()
    assert parse_specifications("  ") == ()
    assert parse_specifications([]) == ()


def test_yaml_text_catalog():
    specs = parse_specifications(
        "- name: small\n"
        "  cpu: 500m\n"
        "  memory: 512Mi\n"
        "- cpu: 2\n"
        "  memory: 4Gi\n"
        "  acceleratorMemory: 16Gi\n"
    )
    assert specs[0] == Specification(name="small", cpu=0.5, memory=512 * 1024**2)
    assert specs[1].name == "2c4g"
    assert specs[1].accelerator_memory == 16 * GIB


def test_json_text_catalog():
    specs = parse_specifications('[{"name": "a", "cpu": 1, "memory": "1Gi"}]')
    assert specs == (Specification(name="a", cpu=1.0, memory=float(GIB)),)


def test_mixed_list():
    existing = Specification(name="existing", cpu=4.0)
    specs = parse_specifications([existing, "1c2g", {"name": "x", "cpu": 8}])
    assert [spec.name for spec in specs] == ["existing", "1c2g", "x"]


@pytest.mark.parametrize(
    "value",
    [
        {"name": "a"},
        [{"name": "a", "disk": "1Gi"}],
        [{"name": "a", "cpu": "-1"}],
        [42],
        "- name: a\n  cpu: [1",
    ],
)
def test_invalid_catalogs(value):
    with pytest.raises(ConfigurationError):
        parse_specifications(value)


def test_load_specifications_from_mapping(tmp_path):
    path = tmp_path / "specs.yaml"
    path.write_text(
        "specifications:\n"
        "  - name: small\n"
        "    cpu: 1\n"
        "    memory: 2Gi\n"
        "  - name: large\n"
        "    cpu: 4\n"
        "    memory: 16Gi\n"
    )
    specs = load_specifications(path)
    assert [spec.name for spec in specs] == ["small", "large"]


def test_load_specifications_from_list(tmp_path):
    path = tmp_path / "specs.yaml"
    path.write_text("- 1c2g\n- 2c4g\n")
    assert len(load_specifications(path)) == 2


def test_load_specifications_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_specifications(tmp_path / "nope.yaml")
