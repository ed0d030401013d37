"""Tests for configuration loading and path constants."""

import json
from pathlib import Path

import pytest

from policypulse.config import DEFAULT_CONFIG, load_config


class TestLoadConfig:
    """Config files are deep-merged over the defaults."""

    def test_missing_file_returns_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.json")
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_defaults_not_mutated_by_caller(self, tmp_path):
        config = load_config(tmp_path / "absent.json")
        config["scoring"]["score_floor"] = 99
        assert DEFAULT_CONFIG["scoring"]["score_floor"] == 10

    def test_partial_override_deep_merges(self, tmp_path):
        path = tmp_path / "pulse_config.json"
        path.write_text(json.dumps({
            "scoring": {"category_weights": {"economic": 40}},
            "export": {"render_scale": 1.5},
        }), encoding="utf-8")
        config = load_config(path)
        weights = config["scoring"]["category_weights"]
        assert weights["economic"] == 40
        assert weights["education"] == 20
        assert config["scoring"]["score_floor"] == 10
        assert config["export"]["render_scale"] == 1.5
        assert config["export"]["chart_width"] == 800
        assert config["resilience"]["circuit_breaker"]["failure_threshold"] == 5

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "pulse_config.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            load_config(path)

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "pulse_config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_shipped_config_is_complete(self):
        from policypulse.paths import PULSE_CONFIG_PATH

        config = load_config(PULSE_CONFIG_PATH)
        assert set(config) == set(DEFAULT_CONFIG)
        assert config["scoring"]["level_scores"]["critical"] == 100


class TestPathConstants:
    """Path constants are absolute and rooted at the project."""

    def test_project_root_contains_package(self):
        from policypulse.paths import PROJECT_ROOT

        assert isinstance(PROJECT_ROOT, Path)
        assert PROJECT_ROOT.is_absolute()
        assert (PROJECT_ROOT / "policypulse" / "paths.py").exists()

    def test_config_path_under_config_dir(self):
        from policypulse.paths import CONFIG_DIR, PROJECT_ROOT, PULSE_CONFIG_PATH

        assert CONFIG_DIR.parent == PROJECT_ROOT
        assert PULSE_CONFIG_PATH.parent == CONFIG_DIR
        assert PULSE_CONFIG_PATH.name == "pulse_config.json"

    def test_exports_dir_under_outputs(self):
        from policypulse.paths import EXPORTS_DIR, OUTPUTS_DIR, PROJECT_ROOT

        assert OUTPUTS_DIR.parent == PROJECT_ROOT
        assert EXPORTS_DIR.parent == OUTPUTS_DIR
        assert EXPORTS_DIR.name == "exports"
