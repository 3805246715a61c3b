"""Tests for loading AnalysisConfig from JSON."""

import json
import logging

import pytest

from poker_ev.analysis.config import (
    AnalysisConfig,
    config_from_dict,
    load_analysis_config,
)

LOGGER = "poker_ev.analysis"


class TestConfigFromDict:
    def test_empty_gives_defaults(self):
        assert config_from_dict({}) == AnalysisConfig()

    def test_values_applied(self):
        config = config_from_dict({
            "rake_pct": 0.05,
            "rake_cap": 3,
            "classification_threshold": 0.1,
            "prune_threshold": 0.002,
            "report_count": 5,
            "seed_salt": 42,
        })
        assert config.rake_pct == 0.05
        assert config.rake_cap == 3.0
        assert config.classification_threshold == 0.1
        assert config.prune_threshold == 0.002
        assert config.report_count == 5
        assert config.seed_salt == "42"

    def test_prior_normalized(self):
        config = config_from_dict({"neutral_prior": [6, 3, 1]})
        assert config.neutral_prior == pytest.approx((0.6, 0.3, 0.1))

    @pytest.mark.parametrize(
        "data",
        [
            {"rake_pct": 1.5},
            {"rake_pct": "lots"},
            {"rake_cap": -1},
            {"split_tolerance": 2},
            {"report_count": -3},
            {"neutral_prior": [0.5, 0.5]},
            {"neutral_prior": [-1, 1, 1]},
        ],
    )
    def test_invalid_values_skipped(self, data, caplog):
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            config = config_from_dict(data)
        assert config == AnalysisConfig()
        assert "Ignoring" in caplog.text

    def test_unknown_keys_warned(self, caplog):
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            config = config_from_dict({"rake_pct": 0.02, "colour": "red"})
        assert config.rake_pct == 0.02
        assert "colour" in caplog.text

    def test_null_means_default(self):
        assert config_from_dict({"rake_cap": None}).rake_cap is None


class TestLoadAnalysisConfig:
    def test_missing_file(self, tmp_path):
        assert load_analysis_config(tmp_path / "nope.json") == AnalysisConfig()

    def test_reads_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"rake_pct": 0.05, "rake_cap": 1}))
        config = load_analysis_config(path)
        assert config.rake_pct == 0.05
        assert config.rake_cap == 1.0

    def test_bad_json(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            config = load_analysis_config(path)
        assert config == AnalysisConfig()
        assert "Failed to read" in caplog.text

    def test_not_an_object(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("[1, 2, 3]")
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            assert load_analysis_config(path) == AnalysisConfig()
        assert "not a JSON object" in caplog.text
