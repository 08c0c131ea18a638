# Copyright 2026 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Schema source resolution: local files and cached remote URLs."""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import urlsplit

import requests

from .. import __version__
from ..config import FETCH_TIMEOUT_SECONDS, ValidatorConfig
from ..exceptions import (
    CacheError,
    InvalidSchemaError,
    SchemaFetchError,
    SchemaIoError,
    SchemaNotFoundError,
)
from .schema_cache import SchemaCache

logger = logging.getLogger(__name__)

USER_AGENT = f"validate-json-schema/{__version__}"
REMOTE_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class LocalSchema:
    path: Path

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class RemoteSchema:
    url: str

    def __str__(self) -> str:
        return self.url


SchemaInput = Union[LocalSchema, RemoteSchema]


class CacheStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"


@dataclass(frozen=True)
class ResolvedSchema:
    """Schema bytes plus how they were obtained."""

    content: bytes
    origin: SchemaInput
    cache_status: Optional[CacheStatus] = None
    warnings: Tuple[str, ...] = ()

    @property
    def is_remote(self) -> bool:
        return isinstance(self.origin, RemoteSchema)


def is_remote_url(raw: str) -> bool:
    """True if ``raw`` is an absolute http(s) URL with a host."""
    try:
        parts = urlsplit(raw.strip())
    except ValueError:
        return False
    return parts.scheme.lower() in REMOTE_SCHEMES and bool(parts.netloc)


def classify_schema_input(raw: Union[str, Path, LocalSchema, RemoteSchema]) -> SchemaInput:
    """Classify a schema argument as a local path or a remote URL."""
    if isinstance(raw, (LocalSchema, RemoteSchema)):
        return raw
    if isinstance(raw, Path):
        return LocalSchema(raw)
    if is_remote_url(raw):
        return RemoteSchema(raw.strip())
    return LocalSchema(Path(raw).expanduser())


class SchemaSource:
    """Resolves schema inputs into schema bytes.

    Remote schemas go through the :class:`SchemaCache`: a cached URL is
    never fetched again until the cache is cleared.

    Args:
        cache: Cache used for remote schemas
        session: Object with a ``requests.Session`` compatible ``get``; a new
            session is created when omitted
        timeout: Transport timeout in seconds for remote fetches
    """

    def __init__(
        self,
        cache: SchemaCache,
        session: Optional[requests.Session] = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
    ):
        self.cache = cache
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def resolve(self, schema_input: Union[str, Path, SchemaInput]) -> bytes:
        """Return the schema bytes for a path or URL."""
        return self.load(schema_input).content

    def load(self, schema_input: Union[str, Path, SchemaInput]) -> ResolvedSchema:
        """Resolve a schema input and report cache status and warnings.

        Raises:
            SchemaNotFoundError: If a local schema file does not exist
            SchemaIoError: If a local schema file cannot be read
            SchemaFetchError: If a remote schema cannot be fetched
            InvalidSchemaError: If a fetched remote body is not JSON
        """
        origin = classify_schema_input(schema_input)
        if isinstance(origin, RemoteSchema):
            return self._load_remote(origin)
        return ResolvedSchema(content=self._read_local(origin.path), origin=origin)

    @staticmethod
    def _read_local(path: Path) -> bytes:
        if not path.exists():
            raise SchemaNotFoundError(f"Schema file not found: {path}")
        if not path.is_file():
            raise SchemaNotFoundError(f"Schema path is not a file: {path}")
        try:
            logger.debug(f"Reading local schema: {path}")
            return path.read_bytes()
        except OSError as exc:
            raise SchemaIoError(f"Failed to read schema file {path}: {exc}") from exc

    def _load_remote(self, origin: RemoteSchema) -> ResolvedSchema:
        url = origin.url
        key = self.cache.key_for(url)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Schema cache hit for {url} ({key})")
            return ResolvedSchema(content=cached, origin=origin, cache_status=CacheStatus.HIT)

        logger.debug(f"Schema cache miss for {url} ({key}); fetching")
        body = self._fetch(url)

        try:
            json.loads(body.decode("utf-8-sig"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise InvalidSchemaError(f"Schema fetched from {url} is not valid JSON: {exc}") from exc

        warnings: Tuple[str, ...] = ()
        try:
            self.cache.put(key, url, body)
        except CacheError as exc:
            logger.warning(f"{exc}; continuing with the fetched schema")
            warnings = (str(exc),)

        return ResolvedSchema(content=body, origin=origin, cache_status=CacheStatus.MISS, warnings=warnings)

    def _fetch(self, url: str) -> bytes:
        try:
            response = self.session.get(url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
        except requests.Timeout as exc:
            raise SchemaFetchError(url, f"timed out after {self.timeout:g}s ({exc})") from exc
        except requests.ConnectionError as exc:
            raise SchemaFetchError(url, f"connection failed ({exc})") from exc
        except requests.RequestException as exc:
            raise SchemaFetchError(url, f"request failed ({exc})") from exc

        status = response.status_code
        if not 200 <= status < 300:
            raise SchemaFetchError(url, response.reason or "", status_code=status)

        logger.debug(f"Fetched schema {url} (HTTP {status}, {len(response.content)} bytes)")
        return response.content


def default_schema_source(config: Optional[ValidatorConfig] = None) -> SchemaSource:
    """Build a SchemaSource using the configured cache root."""
    config = config or ValidatorConfig.from_env()
    return SchemaSource(SchemaCache(config.cache_dir), timeout=config.fetch_timeout)
