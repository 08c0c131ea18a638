"""Schema resolution and the on-disk cache for remote schemas.

This package only deals with obtaining schema bytes; compiling and
evaluating schemas lives in :mod:`validate_json_schema.validation`.
"""

from .schema_cache import CacheEntry, SchemaCache, normalize_url
from .schema_source import (
    CacheStatus,
    LocalSchema,
    RemoteSchema,
    ResolvedSchema,
    SchemaInput,
    SchemaSource,
    classify_schema_input,
    default_schema_source,
)
