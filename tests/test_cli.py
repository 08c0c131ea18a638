"""Tests for the validate-json-schema command line interface."""

import io
import json
import logging

import pytest
from unittest.mock import patch

from tests.conftest import RENDER_SCHEMA_URL, make_response
from validate_json_schema.cli import build_parser, main, run
from validate_json_schema.exceptions import CacheError
from validate_json_schema.schema import SchemaCache


@pytest.fixture
def cli(cache_dir):
    def _run(*args):
        return run(["--cache-dir", str(cache_dir), *args])
    return _run


class TestValidateCommand:
    def test_valid_document(self, cli, capsys, data_dir, render_schema_path):
        code = cli("validate", str(data_dir / "render-blueprint.yml"), str(render_schema_path))

        out = capsys.readouterr().out
        assert code == 0
        assert out.strip() == f"Valid: {data_dir / 'render-blueprint.yml'}"

    def test_invalid_document(self, cli, capsys, data_dir, render_schema_path):
        code = cli("validate", str(data_dir / "render-web-missing-env.json"), str(render_schema_path))

        out = capsys.readouterr().out
        assert code == 1
        assert "Invalid: 1 schema violation" in out
        assert "services[0].env" not in out

    def test_verbose_output(self, cli, capsys, data_dir, render_schema_path):
        code = cli("validate", "--verbose", str(data_dir / "render-invalid.yml"), str(render_schema_path))

        out = capsys.readouterr().out
        assert code == 1
        assert f"Using local schema: {render_schema_path}" in out
        assert "Detected format: YAML" in out
        assert "ERROR:4:19: services[0].numInstances:" in out
        assert "[required_missing]" in out
        assert "Invalid: 3 schema violations" in out

    def test_json_output(self, cli, capsys, data_dir, render_schema_path):
        code = cli("validate", "--format", "json", str(data_dir / "render-web-missing-env.json"), str(render_schema_path))

        output = json.loads(capsys.readouterr().out)
        assert code == 1
        assert output["valid"] is False
        assert output["errors"] == 1
        assert output["format"] == "json"
        assert output["cache"] == "n/a"
        assert output["issues"][0]["path"] == "services[0].env"
        assert output["issues"][0]["kind"] == "required_missing"

    def test_github_actions_output(self, cli, capsys, data_dir, render_schema_path):
        document = data_dir / "render-invalid.yml"
        code = cli("validate", "--format", "github-actions", str(document), str(render_schema_path))

        lines = capsys.readouterr().out.splitlines()
        assert code == 1
        assert len(lines) == 3
        assert all(line.startswith(f"::error file={document},line=") for line in lines)
        assert f"::error file={document},line=5,col=11::services[1].type: " in "\n".join(lines)

    def test_stdin_document(self, cli, capsys, monkeypatch, render_schema_path):
        monkeypatch.setattr("sys.stdin", io.StringIO('{"services": []}'))
        code = cli("validate", "-", str(render_schema_path))

        assert code == 0
        assert "Valid: <stdin>" in capsys.readouterr().out

    def test_remote_schema_reports_cache_status(self, cli, capsys, data_dir, render_schema_bytes):
        with patch("validate_json_schema.schema.schema_source.requests.Session") as session_cls:
            session_cls.return_value.get.return_value = make_response(content=render_schema_bytes)
            document = str(data_dir / "render-static.json")

            assert cli("validate", "-v", document, RENDER_SCHEMA_URL) == 0
            first = capsys.readouterr().out
            assert cli("validate", "-v", document, RENDER_SCHEMA_URL) == 0
            second = capsys.readouterr().out

        assert f"Using remote schema: {RENDER_SCHEMA_URL} (cache miss)" in first
        assert f"Using remote schema: {RENDER_SCHEMA_URL} (cache hit)" in second
        assert session_cls.return_value.get.call_count == 1


class TestOperationalErrors:
    def test_missing_schema(self, cli, capsys, data_dir, tmp_path):
        code = cli("validate", str(data_dir / "render-static.json"), str(tmp_path / "missing.json"))

        captured = capsys.readouterr()
        assert code == 2
        assert "Schema file not found" in captured.err
        assert captured.out == ""

    def test_missing_document(self, cli, capsys, tmp_path, render_schema_path):
        assert cli("validate", str(tmp_path / "missing.yml"), str(render_schema_path)) == 2
        assert "Document file not found" in capsys.readouterr().err

    def test_unparseable_document(self, cli, capsys, data_dir, render_schema_path):
        assert cli("validate", str(data_dir / "not-a-document.txt"), str(render_schema_path)) == 2
        assert "neither valid JSON nor valid YAML" in capsys.readouterr().err

    def test_fetch_failure(self, cli, capsys, data_dir):
        with patch("validate_json_schema.schema.schema_source.requests.Session") as session_cls:
            session_cls.return_value.get.return_value = make_response(status_code=404, reason="Not Found")
            code = cli("validate", str(data_dir / "render-static.json"), RENDER_SCHEMA_URL)

        assert code == 2
        assert "HTTP 404 Not Found" in capsys.readouterr().err


class TestClearCacheCommand:
    def test_clear_empty_cache(self, cli, capsys):
        assert cli("clear-cache") == 0
        assert "0 entries removed" in capsys.readouterr().out

    def test_clear_populated_cache(self, cli, capsys, cache_dir):
        SchemaCache(cache_dir).put(SchemaCache.key_for(RENDER_SCHEMA_URL), RENDER_SCHEMA_URL, b"{}")

        assert cli("clear-cache") == 0
        assert "1 entries removed" in capsys.readouterr().out
        assert not cache_dir.exists()

    def test_clear_leaves_other_files_in_the_cache_dir(self, cli, capsys, cache_dir):
        SchemaCache(cache_dir).put(SchemaCache.key_for(RENDER_SCHEMA_URL), RENDER_SCHEMA_URL, b"{}")
        (cache_dir / "README.md").write_text("user file")

        assert cli("clear-cache") == 0
        assert "1 entries removed" in capsys.readouterr().out
        assert (cache_dir / "README.md").read_text() == "user file"

    def test_clear_failure_is_a_warning(self, cli, capsys):
        with patch.object(SchemaCache, "clear", side_effect=CacheError("permission denied")):
            assert cli("clear-cache") == 0
        assert "Warning: permission denied" in capsys.readouterr().err


class TestEntryPoint:
    def test_main_exits_with_the_code(self, data_dir, render_schema_path, cache_dir, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--cache-dir", str(cache_dir), "validate", str(data_dir / "render-invalid.yml"), str(render_schema_path)])
        assert excinfo.value.code == 1

    def test_command_is_required(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            build_parser().parse_args([])
        assert excinfo.value.code == 2

    def test_unknown_format_is_rejected(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["validate", "a.yml", "s.json", "--format", "xml"])

    def test_log_level_option(self, cli, capsys, data_dir, render_schema_path):
        assert cli("--log-level", "DEBUG", "validate", str(data_dir / "render-static.json"), str(render_schema_path)) == 0
        assert logging.getLogger().level == logging.DEBUG
