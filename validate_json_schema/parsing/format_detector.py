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

"""YAML / JSON format detection.

Detection is content based.  Valid JSON is also valid YAML, so JSON is tried
first and wins ties.  File extensions are only hints: they never change the
detected format, they pick which parser diagnostic is reported when the
content is neither JSON nor YAML.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

import yaml

from ..exceptions import UnparseableFormatError
from .loaders import compose_yaml, load_json

logger = logging.getLogger(__name__)


class DocumentFormat(str, Enum):
    YAML = "yaml"
    JSON = "json"

    def __str__(self) -> str:
        return self.name


EXTENSION_FORMATS = {
    ".json": DocumentFormat.JSON,
    ".yaml": DocumentFormat.YAML,
    ".yml": DocumentFormat.YAML,
}

# A JSON text starts with one of these once whitespace is stripped.
_JSON_START_CHARS = frozenset('{["-0123456789tfn')


def format_from_extension(path: Union[str, Path, None]) -> Optional[DocumentFormat]:
    """Return the format suggested by a file extension, if any."""
    if path is None:
        return None
    return EXTENSION_FORMATS.get(Path(path).suffix.lower())


def could_be_json(content: str) -> bool:
    stripped = content.lstrip(" \t\r\n\ufeff")
    return bool(stripped) and stripped[0] in _JSON_START_CHARS


def error_position(exc: Exception) -> Tuple[Optional[int], Optional[int]]:
    """Return the 1-based (line, column) reported by a JSON or YAML parser error."""
    if isinstance(exc, json.JSONDecodeError):
        return exc.lineno, exc.colno
    mark = getattr(exc, "problem_mark", None) or getattr(exc, "context_mark", None)
    if mark is not None:
        return mark.line + 1, mark.column + 1
    return None, None


def _describe(exc: Exception) -> str:
    if isinstance(exc, json.JSONDecodeError):
        return exc.msg
    if isinstance(exc, yaml.MarkedYAMLError):
        return " ".join(part for part in (exc.context, exc.problem) if part) or str(exc)
    return str(exc)


def detect_format(content: str, path_hint: Union[str, Path, None] = None) -> DocumentFormat:
    """Classify ``content`` as JSON or YAML.

    Args:
        content: Document text
        path_hint: Optional file path whose extension selects the diagnostic
            reported when both parsers fail

    Returns:
        The detected :class:`DocumentFormat`

    Raises:
        UnparseableFormatError: If the content is neither valid JSON nor YAML
    """
    json_error: Optional[Exception] = None
    if could_be_json(content):
        try:
            load_json(content, reject_duplicates=False)
            logger.debug("Detected JSON content%s", f" in {path_hint}" if path_hint else "")
            return DocumentFormat.JSON
        except ValueError as exc:
            json_error = exc
    else:
        json_error = ValueError("content does not start like a JSON value")

    try:
        compose_yaml(content)
        logger.debug("Detected YAML content%s", f" in {path_hint}" if path_hint else "")
        return DocumentFormat.YAML
    except yaml.YAMLError as exc:
        yaml_error = exc

    hinted = format_from_extension(path_hint)
    reported = json_error if hinted is DocumentFormat.JSON else yaml_error
    line, column = error_position(reported)
    source = str(path_hint) if path_hint is not None else None

    where = f" {source}" if source else ""
    position = f" (line {line}, column {column})" if line is not None else ""
    parser_name = "JSON" if reported is json_error else "YAML"
    raise UnparseableFormatError(
        f"Content{where} is neither valid JSON nor valid YAML; "
        f"{parser_name} parser reported: {_describe(reported)}{position}",
        json_error=json_error,
        yaml_error=yaml_error,
        line=line,
        column=column,
        source=source,
    )
