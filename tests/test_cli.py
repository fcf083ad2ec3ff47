"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest

from pagescope.cli import main
from pagescope.exceptions import HttpStatusError
from pagescope.extractor import StaticExtractor
from pagescope.models import AnalysisResult, SecurityReport
from pagescope.text_analytics import TextAnalyzer


@pytest.fixture
def result(fixture_html):
    """An AnalysisResult built from the fixture page without any I/O."""
    content = StaticExtractor().extract(fixture_html, "https://site.com/")
    return AnalysisResult(
        url="https://site.com/",
        status_code=200,
        response_time_ms=12.0,
        page_size_kb=0.5,
        content=content,
        metrics=TextAnalyzer().analyze(content.text_content, fixture_html),
        security=SecurityReport(is_https=True, notes=["Missing HSTS header"]),
    )


def run_cli(*argv):
    with patch("sys.argv", ["pagescope", *argv]), patch("pagescope.cli.setup_logging"):
        main()


class TestCli:
    """Test cases for the pagescope command."""

    def test_text_output(self, result, capsys):
        with patch("pagescope.cli.analyze_sync", return_value=result) as mock_analyze:
            run_cli("analyze", "https://site.com/")

        out = capsys.readouterr().out
        assert "Page Analysis for: https://site.com/" in out
        assert "Title: Fixture Page" in out
        assert "Missing HSTS header" in out

        config = mock_analyze.call_args.args[1]
        assert config.enable_dynamic_render is False

    def test_json_output(self, result, capsys):
        with patch("pagescope.cli.analyze_sync", return_value=result):
            run_cli("analyze", "https://site.com/", "--output", "json")

        data = json.loads(capsys.readouterr().out)
        assert data["url"] == "https://site.com/"
        assert data["content"]["headings"] == ["H1: Welcome"]

    def test_json_output_file(self, result, tmp_path):
        output = tmp_path / "result.json"
        with patch("pagescope.cli.analyze_sync", return_value=result):
            run_cli("analyze", "https://site.com/", "-o", "json", "-f", str(output))

        assert json.loads(output.read_text())["status_code"] == 200

    def test_render_flags(self, result):
        with patch("pagescope.cli.analyze_sync", return_value=result) as mock_analyze:
            run_cli("analyze", "https://site.com/", "--render", "--degrade")

        config = mock_analyze.call_args.args[1]
        assert config.enable_dynamic_render is True
        assert config.render_failure_policy == "degrade"

    def test_error_exits_non_zero(self, capsys):
        error = HttpStatusError(404, url="https://site.com/missing")
        with patch("pagescope.cli.analyze_sync", side_effect=error):
            with pytest.raises(SystemExit) as exc_info:
                run_cli("analyze", "https://site.com/missing")

        assert exc_info.value.code == 1
        assert "HTTP error: 404" in capsys.readouterr().out

    def test_error_json(self, capsys):
        error = HttpStatusError(500, url="https://site.com/")
        with patch("pagescope.cli.analyze_sync", side_effect=error):
            with pytest.raises(SystemExit):
                run_cli("analyze", "https://site.com/", "--output", "json")

        data = json.loads(capsys.readouterr().out)
        assert data == {
            "error": "HttpStatusError",
            "message": "HTTP error: 500",
            "url": "https://site.com/",
            "status_code": 500,
        }

    def test_invalid_env_policy_exits_cleanly(self, monkeypatch, capsys):
        monkeypatch.setenv("PAGESCOPE_RENDER_FAILURE_POLICY", "retry")

        with patch("pagescope.cli.analyze_sync") as mock_analyze:
            with pytest.raises(SystemExit) as exc_info:
                run_cli("analyze", "https://site.com/")

        assert exc_info.value.code == 1
        assert "Invalid configuration (environment)" in capsys.readouterr().out
        mock_analyze.assert_not_called()

    def test_malformed_config_file_exits_cleanly(self, tmp_path, capsys):
        config_file = tmp_path / "pagescope.json"
        config_file.write_text('{"timeout_seconds": 5,')

        with patch("pagescope.cli.analyze_sync") as mock_analyze:
            with pytest.raises(SystemExit) as exc_info:
                run_cli("analyze", "https://site.com/", "--config", str(config_file), "-o", "json")

        assert exc_info.value.code == 1
        data = json.loads(capsys.readouterr().out)
        assert data["error"] == "ConfigError"
        assert data["source"] == str(config_file)
        mock_analyze.assert_not_called()

    def test_non_object_config_file_exits_cleanly(self, tmp_path):
        config_file = tmp_path / "pagescope.json"
        config_file.write_text("[1, 2]")

        with pytest.raises(SystemExit) as exc_info:
            run_cli("analyze", "https://site.com/", "--config", str(config_file))

        assert exc_info.value.code == 1

    def test_text_output_lists_structure(self, result, capsys):
        with patch("pagescope.cli.analyze_sync", return_value=result):
            run_cli("analyze", "https://site.com/")

        out = capsys.readouterr().out
        assert "Forms: 0 (0 fields)" in out
        assert "Scripts: 0" in out

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit) as exc_info:
            run_cli()
        assert exc_info.value.code == 1
