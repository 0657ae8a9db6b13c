"""Tests for ConfigValidator."""

from pathlib import Path

import pytest

from haulengine.config import ConfigValidator


class TestTypesAndRanges:
    @pytest.mark.parametrize(
        "cfg",
        [
            {"haul_threshold": 1.5},
            {"lease_ttl": "10"},
            {"max_ops": True},
            {"deficit_margin": "big"},
            {"demand_basis": 3},
            {"pipeline_path": 42},
        ],
    )
    def test_wrong_types(self, cfg):
        with pytest.raises(ValueError, match="must be"):
            ConfigValidator.validate_config(cfg)

    @pytest.mark.parametrize(
        "cfg",
        [
            {"haul_threshold": -1},
            {"lease_ttl": 0},
            {"plain_cost": 0},
            {"swamp_cost": 300},
            {"default_haul_distance": 0},
            {"goal_range": -1},
        ],
    )
    def test_out_of_range(self, cfg):
        with pytest.raises(ValueError, match="must be [<>]="):
            ConfigValidator.validate_config(cfg)

    def test_int_accepted_for_float_params(self):
        ConfigValidator.validate_config({"deficit_margin": 10, "default_haul_distance": 2})

    def test_demand_basis_choices(self):
        ConfigValidator.validate_config({"demand_basis": "production_rate"})
        with pytest.raises(ValueError, match="demand_basis"):
            ConfigValidator.validate_config({"demand_basis": "guess"})


class TestRelationships:
    def test_renew_threshold_below_lifetime(self):
        with pytest.raises(ValueError, match="renew_threshold"):
            ConfigValidator.validate_config(
                {"carrier_lifetime": 100, "renew_threshold": 100}
            )

    def test_swamp_cheaper_than_plain_warns(self):
        with pytest.warns(UserWarning, match="swamp_cost"):
            ConfigValidator.validate_config({"plain_cost": 5, "swamp_cost": 2})


class TestUrgencyAndLogging:
    def test_valid_urgency(self):
        ConfigValidator.validate_config({"urgency": {"spawn": {"peace": 1, "war": 2}}})

    @pytest.mark.parametrize(
        "urgency",
        [
            [],
            {"spawn": {"peace": 1}},
            {"spawn": {"peace": 1, "war": 2, "siege": 3}},
            {"spawn": {"peace": "high", "war": 2}},
        ],
    )
    def test_invalid_urgency(self, urgency):
        with pytest.raises(ValueError, match="[Uu]rgency"):
            ConfigValidator.validate_config({"urgency": urgency})

    def test_valid_logging(self):
        ConfigValidator.validate_config(
            {"logging": {"default_level": "deep_debug", "events": {"expire_leases": "INFO"}}}
        )

    @pytest.mark.parametrize(
        "log_config",
        [
            "DEBUG",
            {"default_level": "LOUD"},
            {"default_level": 10},
            {"events": ["expire_leases"]},
            {"events": {"expire_leases": "CHATTY"}},
            {"events": {"expire_leases": 10}},
        ],
    )
    def test_invalid_logging(self, log_config):
        with pytest.raises(ValueError):
            ConfigValidator.validate_config({"logging": log_config})


class TestPipelineFiles:
    def test_missing_path(self, tmp_path: Path):
        with pytest.raises(ValueError, match="does not exist"):
            ConfigValidator.validate_pipeline_path(str(tmp_path / "nope.yml"))

    def test_directory_path(self, tmp_path: Path):
        with pytest.raises(ValueError, match="not a file"):
            ConfigValidator.validate_pipeline_path(str(tmp_path))

    def test_unusual_extension_warns(self, tmp_path: Path):
        path = tmp_path / "pipeline.txt"
        path.write_text("events: []\n")
        with pytest.warns(UserWarning, match="extension"):
            ConfigValidator.validate_pipeline_path(str(path))

    def test_valid_yaml(self, tmp_path: Path):
        path = tmp_path / "pipeline.yml"
        path.write_text("events:\n  - refresh_energy_levels x 2\n  - expire_leases\n")
        ConfigValidator.validate_pipeline_yaml(path)

    @pytest.mark.parametrize(
        ("content", "match"),
        [
            ("- expire_leases\n", "dictionary"),
            ("steps: []\n", "'events' key"),
            ("events: expire_leases\n", "must be a list"),
            ("events:\n  - 3\n", "must be str"),
            ("events:\n  - summon_dragons\n", "not found in registry"),
        ],
    )
    def test_invalid_yaml(self, tmp_path: Path, content, match):
        path = tmp_path / "pipeline.yml"
        path.write_text(content)
        with pytest.raises(ValueError, match=match):
            ConfigValidator.validate_pipeline_yaml(path)
