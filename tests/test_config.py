"""Tests for configuration loading, environment overrides and saving."""

from __future__ import annotations

import logging
import os

import pytest
import yaml

from parsesight.core.config import (
    ParseSightConfig,
    dict_to_config,
    generate_default_config,
    get_config,
    load_config,
    load_config_file,
    load_env_config,
    load_yaml_config,
    merge_configs,
    reset_config,
    save_config,
    set_config,
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep stray config files and PARSESIGHT_* variables out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in list(os.environ):
        if name.startswith("PARSESIGHT_"):
            monkeypatch.delenv(name)
    reset_config()
    yield
    reset_config()


class TestDefaults:
    def test_default_values(self):
        config = load_config()
        assert config.ocr.target_width == 3000
        assert config.ocr.page_segmentation_mode == 6
        assert config.logs.gap_threshold_seconds == 1.0
        assert config.batch.concurrent is True

    def test_default_yaml_matches_dataclass_defaults(self, tmp_path):
        path = tmp_path / "parsesight.yaml"
        generate_default_config(path)
        assert dict_to_config(load_yaml_config(path)) == ParseSightConfig()


class TestFileLoading:
    """Test config files in the supported formats."""

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump({"ocr": {"target_width": 2000}, "logs": {"gap_threshold_seconds": 2.5}}))

        config = load_config(path)

        assert config.ocr.target_width == 2000
        assert config.logs.gap_threshold_seconds == 2.5
        assert config.ocr.language == "eng"

    def test_toml_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text("[batch]\nmax_workers = 2\nconcurrent = false\n")
        config = load_config(path)
        assert config.batch.max_workers == 2
        assert config.batch.concurrent is False

    def test_discovered_in_cwd(self, tmp_path):
        (tmp_path / "parsesight.yaml").write_text("logs:\n  gap_threshold_seconds: 0.5\n")
        assert load_config().logs.gap_threshold_seconds == 0.5

    def test_missing_file_is_empty(self, tmp_path):
        assert load_config_file(tmp_path / "absent.yaml") == {}

    def test_unknown_keys_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="parsesight.core.config"):
            config = dict_to_config({"ocr": {"target_width": 1200, "dpi": 300}})
        assert config.ocr.target_width == 1200
        assert "ocr.dpi" in caplog.text


class TestEnvironment:
    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("logs:\n  gap_threshold_seconds: 2.0\n")
        monkeypatch.setenv("PARSESIGHT_GAP_THRESHOLD", "1.5")
        monkeypatch.setenv("PARSESIGHT_CONCURRENT", "false")
        monkeypatch.setenv("PARSESIGHT_MAX_WORKERS", "8")

        config = load_config(path)

        assert config.logs.gap_threshold_seconds == 1.5
        assert config.batch.concurrent is False
        assert config.batch.max_workers == 8

    def test_env_ignored_when_disabled(self, monkeypatch):
        monkeypatch.setenv("PARSESIGHT_TARGET_WIDTH", "1000")
        assert load_config(include_env=False).ocr.target_width == 3000

    def test_env_string_values(self, monkeypatch):
        monkeypatch.setenv("PARSESIGHT_TESSERACT_CMD", "/opt/tesseract/bin/tesseract")
        assert load_env_config() == {"ocr": {"tesseract_cmd": "/opt/tesseract/bin/tesseract"}}


class TestMergeAndSave:
    def test_merge_configs_is_recursive(self):
        merged = merge_configs(
            {"ocr": {"target_width": 1, "language": "eng"}},
            {"ocr": {"target_width": 2}},
        )
        assert merged == {"ocr": {"target_width": 2, "language": "eng"}}

    def test_save_json(self, tmp_path):
        config = ParseSightConfig()
        config.batch.max_workers = 6
        path = tmp_path / "out.json"
        save_config(config, path)
        assert load_config(path).batch.max_workers == 6

    def test_save_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported config format"):
            save_config(ParseSightConfig(), tmp_path / "out.ini")


class TestGlobalConfig:
    def test_set_and_reset(self):
        custom = ParseSightConfig()
        custom.ocr.target_width = 1234
        set_config(custom)
        assert get_config() is custom

        reset_config()
        assert get_config().ocr.target_width == 3000
