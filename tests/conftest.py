"""Shared test fixtures for the validate-json-schema test suite."""

import logging
from pathlib import Path

import pytest
from unittest.mock import MagicMock

from validate_json_schema.schema.schema_cache import SchemaCache
from validate_json_schema.schema.schema_source import SchemaSource


TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"
SCHEMA_DIR = TESTS_DIR / "schemas"

RENDER_SCHEMA_URL = "https://schemas.example.com/render/blueprint.json"


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep the user's cache dir and root logging untouched by every test."""
    monkeypatch.setenv("VALIDATE_JSON_SCHEMA_CACHE_DIR", str(tmp_path / "env-cache"))
    monkeypatch.delenv("VALIDATE_JSON_SCHEMA_LOG_LEVEL", raising=False)
    monkeypatch.delenv("VALIDATE_JSON_SCHEMA_PRINT_LEVEL", raising=False)

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def data_dir():
    return DATA_DIR


@pytest.fixture
def schema_dir():
    return SCHEMA_DIR


@pytest.fixture
def render_schema_path():
    return SCHEMA_DIR / "render-blueprint.json"


@pytest.fixture
def render_schema_bytes(render_schema_path):
    return render_schema_path.read_bytes()


@pytest.fixture
def cache_dir(tmp_path):
    """A cache root that does not exist yet."""
    return tmp_path / "cache" / "schemas"


@pytest.fixture
def schema_cache(cache_dir):
    return SchemaCache(cache_dir)


def make_response(status_code=200, content=b"{}", reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.reason = reason
    return response


@pytest.fixture
def mock_session(render_schema_bytes):
    """A requests.Session stand-in serving the Render blueprint schema."""
    session = MagicMock()
    session.get.return_value = make_response(content=render_schema_bytes)
    return session


@pytest.fixture
def schema_source(schema_cache, mock_session):
    return SchemaSource(schema_cache, session=mock_session)
