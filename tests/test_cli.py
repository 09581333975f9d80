"""Tests for the command line interface."""

from __future__ import annotations

import json
import os

import pytest
import yaml
from typer.testing import CliRunner

from parsesight import __version__
from parsesight.cli import _parse_batch_item, app
from parsesight.core.config import reset_config
from parsesight.core.constants import ScreenType

runner = CliRunner()

SAMPLE_LOG = "[0.0] Biting Jabs\n[1.0] Light Attack\n[2.5] Merciless Resolve\n[2.6] LA\n"


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in list(os.environ):
        if name.startswith("PARSESIGHT_"):
            monkeypatch.delenv(name)
    reset_config()
    yield
    reset_config()


class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestAnalyzeCommand:
    """Test rating metrics files."""

    def test_json_metrics(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(json.dumps({"dps": 165000, "active_time_seconds": 100}))

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 0
        assert "EXCELLENT" in result.output

    def test_yaml_metrics_with_issues(self, tmp_path):
        path = tmp_path / "metrics.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "dps": 120000,
                    "active_time_seconds": 90,
                    "penetration": {"effective": 10000, "average": 10000},
                }
            )
        )

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 0
        assert "POOR" in result.output

    def test_incomplete_metrics(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(json.dumps({"dps": 165000}))

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 1
        assert "active_time_seconds" in result.output

    def test_unknown_field(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(json.dumps({"dps": 1, "active_time_seconds": 1, "haste": 3}))
        assert runner.invoke(app, ["analyze", str(path)]).exit_code == 1

    def test_dot_uptimes_list_rejected(self, tmp_path):
        path = tmp_path / "metrics.yaml"
        path.write_text(
            yaml.safe_dump({"dps": 1, "active_time_seconds": 1, "dot_uptimes": [88.0, 90.0]})
        )

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 1
        assert "dot_uptimes must be a mapping" in result.output


class TestValidateCommand:
    def test_complete(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(
            json.dumps(
                {
                    "dps": 150000,
                    "active_time_seconds": 100,
                    "light_attacks": {"count": 100},
                    "abilities": [{"name": "Jabs", "total_damage": 5e6, "percent_of_total": 25}],
                }
            )
        )
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 0
        assert "All critical fields present" in result.output

    def test_incomplete(self, tmp_path):
        path = tmp_path / "metrics.json"
        path.write_text(json.dumps({"dps": 150000}))
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 2
        assert "activeTime" in result.output


class TestLogCommand:
    def test_table_output(self, tmp_path):
        path = tmp_path / "rotation.log"
        path.write_text(SAMPLE_LOG)
        result = runner.invoke(app, ["log", str(path)])
        assert result.exit_code == 0
        assert "Weaving" in result.output

    def test_json_output(self, tmp_path):
        path = tmp_path / "rotation.log"
        path.write_text(SAMPLE_LOG)
        result = runner.invoke(app, ["log", str(path), "--json"])
        assert result.exit_code == 0
        assert '"total_gaps": 1' in result.output
        assert '"good_weaves": 1' in result.output


class TestInitConfig:
    def test_writes_file(self, tmp_path):
        path = tmp_path / "parsesight.yaml"
        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 0
        assert path.exists()

    def test_refuses_overwrite(self, tmp_path):
        path = tmp_path / "parsesight.yaml"
        path.write_text("ocr: {}\n")
        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 1
        assert path.read_text() == "ocr: {}\n"


class TestBatchItems:
    def test_with_type(self):
        item = _parse_batch_item("shots/info.png:info")
        assert str(item.path) == os.path.join("shots", "info.png")
        assert item.screen_type is ScreenType.INFO

    def test_without_type(self):
        item = _parse_batch_item("shots/parse.png")
        assert item.screen_type is ScreenType.AUTO

    def test_colon_that_is_not_a_type(self):
        item = _parse_batch_item("C:/shots/parse.png")
        assert item.screen_type is ScreenType.AUTO
        assert str(item.path).endswith("parse.png")
