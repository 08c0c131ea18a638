"""End-to-end tests for the validation pipeline and the one-shot helpers."""

import pytest

from tests.conftest import RENDER_SCHEMA_URL, make_response
from validate_json_schema import (
    ValidatorConfig,
    clear_schema_cache,
    validate_file_with_schema_input,
)
from validate_json_schema.exceptions import (
    DocumentReadError,
    InvalidSchemaError,
    ParseError,
    SchemaFetchError,
    SchemaNotFoundError,
    UnparseableFormatError,
)
from validate_json_schema.parsing import DocumentFormat
from validate_json_schema.pipeline import ValidationPipeline
from validate_json_schema.schema import CacheStatus, SchemaCache, SchemaSource
from validate_json_schema.validation import ErrorKind


@pytest.fixture
def pipeline(schema_source):
    return ValidationPipeline(source=schema_source)


class TestLocalSchema:
    def test_valid_yaml_file(self, pipeline, data_dir, render_schema_path):
        result = pipeline.execute(data_dir / "render-blueprint.yml", render_schema_path)

        assert result.report.is_valid
        assert result.document_format is DocumentFormat.YAML
        assert result.document_path == data_dir / "render-blueprint.yml"
        assert result.schema.cache_status is None

    def test_json_content_with_violation(self, pipeline, render_schema_path):
        result = pipeline.execute('{"services":[{"type":"web","name":"x"}]}', str(render_schema_path))

        assert result.document_format is DocumentFormat.JSON
        assert result.document_path is None
        assert len(result.report) == 1
        assert result.report[0].kind is ErrorKind.REQUIRED_MISSING
        assert result.report[0].dotted_path == "services[0].env"

    def test_bytes_content(self, pipeline, data_dir, render_schema_path):
        content = (data_dir / "render-static.json").read_bytes()
        assert pipeline.run(content, render_schema_path).is_valid

    def test_run_returns_the_report(self, pipeline, data_dir, render_schema_path):
        report = pipeline.run(data_dir / "render-invalid.yml", render_schema_path)
        assert len(report) == 3

    def test_schema_is_compiled_once(self, pipeline, data_dir, render_schema_path):
        first, _ = pipeline.validator_for(render_schema_path)
        second, _ = pipeline.validator_for(str(render_schema_path))
        assert first is second

    def test_invalid_schema_file(self, pipeline, data_dir, tmp_path):
        schema = tmp_path / "broken.json"
        schema.write_text('{"type": "nonsense"}')
        with pytest.raises(InvalidSchemaError, match="broken.json"):
            pipeline.run(data_dir / "render-static.json", schema)


class TestRemoteSchema:
    def test_remote_schema_is_fetched_once(self, schema_cache, mock_session, data_dir):
        first = ValidationPipeline(source=SchemaSource(schema_cache, session=mock_session)).execute(
            data_dir / "render-static.json", RENDER_SCHEMA_URL
        )
        second = ValidationPipeline(source=SchemaSource(schema_cache, session=mock_session)).execute(
            data_dir / "render-static.json", RENDER_SCHEMA_URL
        )

        assert first.report.is_valid
        assert second.report.is_valid
        assert first.schema.cache_status is CacheStatus.MISS
        assert second.schema.cache_status is CacheStatus.HIT
        assert mock_session.get.call_count == 1

    def test_same_pipeline_reuses_validator(self, pipeline, mock_session, data_dir):
        pipeline.run(data_dir / "render-static.json", RENDER_SCHEMA_URL)
        pipeline.run(data_dir / "edge-cases.yml", RENDER_SCHEMA_URL)
        assert mock_session.get.call_count == 1

    def test_clear_cache_forces_a_single_refetch(self, schema_cache, mock_session, data_dir):
        document = data_dir / "render-static.json"
        ValidationPipeline(source=SchemaSource(schema_cache, session=mock_session)).run(document, RENDER_SCHEMA_URL)

        schema_cache.clear()
        for _ in range(2):
            ValidationPipeline(source=SchemaSource(schema_cache, session=mock_session)).run(document, RENDER_SCHEMA_URL)

        assert mock_session.get.call_count == 2

    def test_remote_ref_in_local_schema_uses_the_pipeline_source(self, pipeline, mock_session, schema_cache, tmp_path):
        schema = tmp_path / "wrapper.json"
        schema.write_text('{"properties": {"blueprint": {"$ref": "%s"}}}' % RENDER_SCHEMA_URL)

        assert not pipeline.run('{"blueprint": []}', schema).is_valid
        assert pipeline.run('{"blueprint": {"services": []}}', schema).is_valid
        assert mock_session.get.call_count == 1
        assert schema_cache.contains(SchemaCache.key_for(RENDER_SCHEMA_URL))

    def test_fetch_failure(self, pipeline, mock_session, data_dir):
        mock_session.get.return_value = make_response(status_code=503, reason="Service Unavailable")
        with pytest.raises(SchemaFetchError, match="HTTP 503"):
            pipeline.run(data_dir / "render-static.json", RENDER_SCHEMA_URL)


class TestOperationalErrors:
    def test_missing_document(self, pipeline, tmp_path, render_schema_path):
        with pytest.raises(DocumentReadError):
            pipeline.run(tmp_path / "missing.yml", render_schema_path)

    def test_missing_schema(self, pipeline, data_dir, tmp_path):
        with pytest.raises(SchemaNotFoundError):
            pipeline.run(data_dir / "render-static.json", tmp_path / "missing.json")

    def test_unparseable_document(self, pipeline, data_dir, render_schema_path):
        with pytest.raises(UnparseableFormatError):
            pipeline.run(data_dir / "not-a-document.txt", render_schema_path)

    def test_malformed_json_document(self, pipeline, render_schema_path):
        with pytest.raises(ParseError):
            pipeline.run('{"services": [], "services": []}', render_schema_path)

    def test_document_errors_come_before_schema_resolution(self, pipeline, mock_session, tmp_path):
        with pytest.raises(DocumentReadError):
            pipeline.run(tmp_path / "missing.yml", RENDER_SCHEMA_URL)
        mock_session.get.assert_not_called()


class TestHelpers:
    def test_validate_file_with_schema_input(self, data_dir, render_schema_path, cache_dir):
        config = ValidatorConfig(cache_dir=cache_dir)
        report = validate_file_with_schema_input(str(data_dir / "render-invalid.yml"), str(render_schema_path), config)

        assert not report.is_valid
        assert report.summary() == "Invalid: 3 schema violations"

    def test_clear_schema_cache(self, cache_dir):
        cache = SchemaCache(cache_dir)
        cache.put(SchemaCache.key_for(RENDER_SCHEMA_URL), RENDER_SCHEMA_URL, b"{}")

        assert clear_schema_cache(cache_dir) == 1
        assert clear_schema_cache(cache_dir) == 0

    def test_clear_schema_cache_uses_environment(self, tmp_path, monkeypatch):
        env_cache = tmp_path / "from-env"
        monkeypatch.setenv("VALIDATE_JSON_SCHEMA_CACHE_DIR", str(env_cache))
        SchemaCache(env_cache).put(SchemaCache.key_for(RENDER_SCHEMA_URL), RENDER_SCHEMA_URL, b"{}")

        assert clear_schema_cache() == 1
        assert not env_cache.exists()
