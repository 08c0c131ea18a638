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

"""Validate YAML and JSON documents against local or remote JSON Schemas."""

__version__ = "0.1.0"

from pathlib import Path
from typing import Optional, Union

from .config import ValidatorConfig
from .exceptions import (
    CacheError,
    DocumentReadError,
    FormatError,
    InvalidSchemaError,
    ParseError,
    SchemaError,
    SchemaFetchError,
    SchemaIoError,
    SchemaNotFoundError,
    SchemaValidatorError,
    UnparseableFormatError,
)
from .parsing import DocumentFormat, DocumentParser, ParsedDocument, detect_format
from .pipeline import PipelineResult, ValidationPipeline
from .schema import SchemaCache, SchemaSource, classify_schema_input
from .validation import ErrorKind, ValidationIssue, ValidationReport, Validator

__all__ = [
    "__version__",
    "ValidatorConfig",
    "Validator",
    "ValidationPipeline",
    "PipelineResult",
    "SchemaSource",
    "SchemaCache",
    "classify_schema_input",
    "DocumentParser",
    "ParsedDocument",
    "DocumentFormat",
    "detect_format",
    "ValidationReport",
    "ValidationIssue",
    "ErrorKind",
    "SchemaValidatorError",
    "DocumentReadError",
    "ParseError",
    "FormatError",
    "UnparseableFormatError",
    "SchemaError",
    "SchemaNotFoundError",
    "SchemaIoError",
    "SchemaFetchError",
    "InvalidSchemaError",
    "CacheError",
    "validate_file_with_schema_input",
    "clear_schema_cache",
]


def validate_file_with_schema_input(
    file_path: Union[str, Path],
    schema_input: Union[str, Path],
    config: Optional[ValidatorConfig] = None,
) -> ValidationReport:
    """Validate a YAML/JSON file against a schema path or URL."""
    return ValidationPipeline(config=config).run(Path(file_path), schema_input)


def clear_schema_cache(cache_dir: Union[str, Path, None] = None) -> int:
    """Remove every cached remote schema. Returns the number of entries removed."""
    root = Path(cache_dir) if cache_dir is not None else ValidatorConfig.from_env().cache_dir
    return SchemaCache(root).clear()
