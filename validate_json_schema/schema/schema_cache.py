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

"""Content-addressed on-disk cache for remote schema bodies.

Each entry is a single file named by the SHA-256 hex digest of the
normalized schema URL and holds the raw fetched bytes.  The URL is not
stored: the key is recomputed from it.  Entries never expire; they stay
until :meth:`SchemaCache.clear` removes them.
"""

import hashlib
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlsplit, urlunsplit

from ..exceptions import CacheError

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}
_KEY_NAME = re.compile(r"[0-9a-f]{64}")
_TEMP_NAME = re.compile(r"\.[0-9a-f]{64}\..*\.tmp")


@dataclass(frozen=True)
class CacheEntry:
    cache_key: str
    source_url: str
    body: bytes
    fetched_at: datetime


def normalize_url(url: str) -> str:
    """Normalize a schema URL so that equivalent spellings share a cache key.

    Scheme and host are lower-cased, default ports and the fragment are
    dropped, and an empty path becomes ``/``.  Path and query are kept as-is.
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if ":" in host:
        host = f"[{host}]"

    try:
        port = parts.port
    except ValueError:
        port = None
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"

    userinfo = ""
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo += f":{parts.password}"
        userinfo += "@"

    return urlunsplit((scheme, f"{userinfo}{host}", parts.path or "/", parts.query, ""))


def is_cache_key(name: str) -> bool:
    """True if ``name`` has the shape of a cache key (64 lowercase hex digits)."""
    return _KEY_NAME.fullmatch(name) is not None


class SchemaCache:
    """On-disk store of fetched schemas under a single cache root."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    @staticmethod
    def key_for(url: str) -> str:
        """Return the cache key (SHA-256 hex digest) for a schema URL."""
        return hashlib.sha256(normalize_url(url).encode("utf-8")).hexdigest()

    def path_for(self, key: str) -> Path:
        return self.root / key

    def contains(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def get(self, key: str) -> Optional[bytes]:
        """Return the cached body for ``key``, or None on a miss.

        An entry that exists but cannot be read is logged and treated as a miss.
        """
        path = self.path_for(key)
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.warning(f"Ignoring unreadable schema cache entry {path}: {exc}")
            return None

    def put(self, key: str, url: str, body: bytes) -> CacheEntry:
        """Store ``body`` under ``key``, replacing any existing entry.

        The body is written to a temporary file in the cache root and moved
        into place with a single rename, so readers never see a partial file.

        Raises:
            CacheError: If the entry cannot be written
        """
        path = self.path_for(key)
        tmp_name = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.root)
            with os.fdopen(fd, "wb") as stream:
                stream.write(body)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise CacheError(f"Failed to write schema cache entry for {url} to {path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

        logger.debug(f"Cached schema {url} as {path}")
        return CacheEntry(
            cache_key=key,
            source_url=url,
            body=body,
            fetched_at=datetime.now(timezone.utc),
        )

    def clear(self) -> int:
        """Remove every cached entry. Succeeds when the root does not exist.

        Only files named by a cache key, and the temporary files ``put``
        leaves behind, are removed.  Anything else in the root is kept, and
        the root itself is removed only once it is empty.

        Returns:
            Number of entries removed

        Raises:
            CacheError: If an entry cannot be removed
        """
        if not self.root.exists():
            logger.debug(f"Schema cache {self.root} does not exist; nothing to clear")
            return 0

        removed = 0
        try:
            for entry in list(self.root.iterdir()):
                if not entry.is_file():
                    continue
                if is_cache_key(entry.name):
                    entry.unlink()
                    removed += 1
                elif _TEMP_NAME.fullmatch(entry.name):
                    entry.unlink()
            if not any(self.root.iterdir()):
                self.root.rmdir()
        except OSError as exc:
            raise CacheError(f"Failed to clear schema cache {self.root}: {exc}") from exc

        logger.debug(f"Cleared {removed} schema cache entries from {self.root}")
        return removed
