"""Tests for recommender configuration resolution."""

from datetime import timedelta
from pathlib import Path

import pytest

from resource_recommender.config.recommender_config import DimensionConfig
from resource_recommender.config.recommender_config import default_config
from resource_recommender.config.recommender_config import load_recommender_config
from resource_recommender.config.recommender_config import merge_recommender_config
from resource_recommender.config.recommender_config import resolve_recommender_config
from resource_recommender.errors import ConfigurationError
from resource_recommender.models.resource import ResourceDimension

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent.parent / "config.yaml.example"


class TestDefaults:
    def test_every_dimension_has_defaults(self):
        config = resolve_recommender_config()
        for dimension in ResourceDimension:
            dimension_config = config.dimension(dimension)
            assert dimension_config.sample_interval == timedelta(minutes=1)
            assert dimension_config.percentile == pytest.approx(0.99)
            assert dimension_config.margin_fraction == pytest.approx(0.15)
            assert dimension_config.target_utilization == pytest.approx(1.0)
            assert dimension_config.history_length == timedelta(hours=168)

    def test_histogram_defaults(self):
        config = resolve_recommender_config()
        cpu = config.dimension(ResourceDimension.CPU)
        assert cpu.bucket_size == pytest.approx(0.1)
        assert cpu.max_value == pytest.approx(100.0)
        memory = config.dimension(ResourceDimension.MEMORY)
        assert memory.bucket_size == 104857600
        assert memory.max_value == 104857600000

    def test_flag_defaults(self):
        config = resolve_recommender_config()
        assert config.oom_protection is True
        assert config.oom_history_length == timedelta(hours=168)
        assert config.oom_bump_ratio == pytest.approx(1.2)
        assert config.specification is False
        assert config.history_completion_check is False
        assert len(config.specifications) == 22
        assert config.specifications[0].name == "0.25c0.25g"

    def test_default_config_lists_every_prefix(self):
        keys = default_config()
        for prefix in ("cpu", "mem", "gpu", "gpumem"):
            assert f"{prefix}-request-percentile" in keys
            assert f"{prefix}-histogram-bucket-size" in keys


class TestOverrides:
    def test_overrides_win_over_base(self):
        config = resolve_recommender_config(
            {"cpu-request-percentile": "0.9", "oom-bump-ratio": "1.5"},
            {"cpu-request-percentile": "0.95"},
        )
        assert config.dimension(ResourceDimension.CPU).percentile == pytest.approx(0.95)
        assert config.oom_bump_ratio == pytest.approx(1.5)

    def test_merge_does_not_mutate_inputs(self):
        base = {"specification": "false"}
        merged = merge_recommender_config(base, {"specification": "true"})
        assert merged == {"specification": "true"}
        assert base == {"specification": "false"}

    def test_unknown_keys_are_ignored(self):
        config = resolve_recommender_config({"not-a-key": "whatever"})
        assert config.oom_protection is True

    def test_accelerator_memory_uses_its_own_keys(self):
        config = resolve_recommender_config(
            {
                "mem-histogram-bucket-size": "52428800",
                "gpumem-histogram-bucket-size": "209715200",
            }
        )
        assert config.dimension(ResourceDimension.MEMORY).bucket_size == 52428800
        assert (
            config.dimension(ResourceDimension.ACCELERATOR_MEMORY).bucket_size
            == 209715200
        )

    def test_native_values_are_accepted(self):
        config = resolve_recommender_config(
            {"oom-protection": False, "cpu-request-margin-fraction": 0.3}
        )
        assert config.oom_protection is False
        assert config.dimension(ResourceDimension.CPU).margin_fraction == pytest.approx(0.3)

    def test_specification_catalog_override(self):
        config = resolve_recommender_config(
            {"specification": "true", "specification-config": "1c2g,2c4g"}
        )
        assert config.specification is True
        assert [spec.name for spec in config.specifications] == ["1c2g", "2c4g"]


class TestInvalidConfiguration:
    @pytest.mark.parametrize(
        "key,value",
        [
            ("cpu-request-percentile", "high"),
            ("cpu-request-percentile", "0"),
            ("cpu-request-percentile", "1.5"),
            ("mem-request-margin-fraction", "-0.1"),
            ("gpu-target-utilization", "0"),
            ("cpu-model-history-length", "7d"),
            ("mem-sample-interval", "0"),
            ("cpu-histogram-bucket-size", "-1"),
            ("cpu-histogram-bucket-size", "200"),
            ("oom-protection", "maybe"),
            ("oom-bump-ratio", "0.9"),
            ("oom-history-length", "forever"),
            ("specification-config", "1c2g,lots"),
        ],
    )
    def test_rejected(self, key, value):
        with pytest.raises(ConfigurationError):
            resolve_recommender_config(overrides={key: value})

    def test_full_percentile_is_allowed(self):
        config = resolve_recommender_config({"cpu-request-percentile": "1.0"})
        assert config.dimension(ResourceDimension.CPU).percentile == 1.0

    def test_dimension_config_validates_directly(self):
        with pytest.raises(ConfigurationError):
            DimensionConfig(
                sample_interval=timedelta(minutes=1),
                percentile=0.99,
                margin_fraction=0.15,
                target_utilization=1.0,
                history_length=timedelta(0),
                bucket_size=0.1,
                max_value=100.0,
            )


class TestLoadRecommenderConfig:
    def test_load_with_specifications(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "cpu-request-percentile: '0.95'\n"
            "specification: true\n"
            "specifications:\n"
            "  - name: small\n"
            "    cpu: 1\n"
            "    memory: 2Gi\n"
        )
        base = load_recommender_config(path)
        assert "specifications" not in base
        config = resolve_recommender_config(base)
        assert config.dimension(ResourceDimension.CPU).percentile == pytest.approx(0.95)
        assert config.specification is True
        assert config.specifications[0].name == "small"
        assert config.specifications[0].memory == 2 * 1024**3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_recommender_config(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_recommender_config(path)

    def test_example_config_resolves(self):
        config = resolve_recommender_config(load_recommender_config(EXAMPLE_CONFIG))
        assert config.oom_protection is True
        assert [spec.name for spec in config.specifications] == [
            "small",
            "medium",
            "large",
            "gpu-large",
        ]
        assert config.specifications[-1].accelerator_compute == 1.0
