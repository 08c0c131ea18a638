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

"""Compiled JSON Schema (Draft 7) validator producing structured reports."""

from __future__ import annotations

import copy
import json
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
from urllib.parse import unquote

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError as JsonSchemaError
from jsonschema.exceptions import ValidationError as JsonSchemaViolation
from jsonschema.exceptions import best_match
from referencing import Registry, Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT7

from ..exceptions import InvalidSchemaError, SchemaValidatorError
from ..parsing.document_parser import ParsedDocument, SourceMap, document_parser
from ..parsing.format_detector import DocumentFormat
from ..parsing.loaders import load_json
from ..schema.schema_source import (
    RemoteSchema,
    SchemaInput,
    SchemaSource,
    default_schema_source,
    is_remote_url,
)
from .report import ErrorKind, PathSegment, ValidationIssue, ValidationReport, format_path, format_pointer

logger = logging.getLogger(__name__)


_KIND_BY_KEYWORD: Dict[str, ErrorKind] = {
    "type": ErrorKind.TYPE_MISMATCH,
    "required": ErrorKind.REQUIRED_MISSING,
    "dependencies": ErrorKind.REQUIRED_MISSING,
    "enum": ErrorKind.ENUM_MISMATCH,
    "const": ErrorKind.ENUM_MISMATCH,
    "pattern": ErrorKind.PATTERN_MISMATCH,
    "format": ErrorKind.PATTERN_MISMATCH,
    "minimum": ErrorKind.RANGE_VIOLATION,
    "maximum": ErrorKind.RANGE_VIOLATION,
    "exclusiveMinimum": ErrorKind.RANGE_VIOLATION,
    "exclusiveMaximum": ErrorKind.RANGE_VIOLATION,
    "multipleOf": ErrorKind.RANGE_VIOLATION,
    "minLength": ErrorKind.RANGE_VIOLATION,
    "maxLength": ErrorKind.RANGE_VIOLATION,
    "minItems": ErrorKind.RANGE_VIOLATION,
    "maxItems": ErrorKind.RANGE_VIOLATION,
    "minProperties": ErrorKind.RANGE_VIOLATION,
    "maxProperties": ErrorKind.RANGE_VIOLATION,
    "uniqueItems": ErrorKind.RANGE_VIOLATION,
    "additionalProperties": ErrorKind.ADDITIONAL_PROPERTY_NOT_ALLOWED,
    "propertyNames": ErrorKind.ADDITIONAL_PROPERTY_NOT_ALLOWED,
    "oneOf": ErrorKind.CONDITIONAL_VIOLATION,
    "anyOf": ErrorKind.CONDITIONAL_VIOLATION,
    "not": ErrorKind.CONDITIONAL_VIOLATION,
    "contains": ErrorKind.CONDITIONAL_VIOLATION,
}

# Keywords whose values are instance data, not subschemas.
_DATA_KEYWORDS = frozenset({"enum", "const", "default", "examples"})


def error_kind(error: JsonSchemaViolation) -> ErrorKind:
    """Classify a jsonschema error by the keyword that produced it."""
    kind = _KIND_BY_KEYWORD.get(error.validator)
    if kind is not None:
        return kind
    if any(segment in ("then", "else") for segment in error.relative_schema_path):
        return ErrorKind.CONDITIONAL_VIOLATION
    return ErrorKind.OTHER


_MISSING = object()


def _resolve_pointer(document: Any, pointer: str) -> Any:
    """Return the node the JSON pointer names inside ``document``, or ``_MISSING``."""
    if pointer == "":
        return document
    if not pointer.startswith("/"):
        return _MISSING
    node = document
    for raw in pointer[1:].split("/"):
        token = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(node, dict) and token in node:
            node = node[token]
        elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
            node = node[int(token)]
        else:
            return _MISSING
    return node


def _iter_local_refs(schema: Any, path: Tuple[PathSegment, ...] = ()) -> Iterator[Tuple[Tuple[PathSegment, ...], str]]:
    """Yield (location, ref) for every ``#...`` reference resolved against the root."""
    if isinstance(schema, dict):
        if path and isinstance(schema.get("$id"), str):
            # Refs below a nested $id resolve against that resource.
            return
        ref = schema.get("$ref")
        if isinstance(ref, str) and ref.startswith("#"):
            yield path, ref
        for key, value in schema.items():
            if key in _DATA_KEYWORDS:
                continue
            yield from _iter_local_refs(value, path + (key,))
    elif isinstance(schema, list):
        for idx, item in enumerate(schema):
            yield from _iter_local_refs(item, path + (idx,))


def _follow_ref_chain(schema: Any, location: str, ref: str) -> None:
    """Walk ``$ref`` -> target -> ``$ref`` ... until a target is a real schema."""
    seen = set()
    while True:
        fragment = unquote(ref[1:])
        if fragment and not fragment.startswith("/"):
            # Plain-name fragments ("#foo") are resolved by the engine.
            return
        if fragment in seen:
            raise InvalidSchemaError(
                f"Malformed $ref {ref!r} at {location}: reference cycle never reaches a schema"
            )
        seen.add(fragment)

        target = _resolve_pointer(schema, fragment)
        if target is _MISSING:
            raise InvalidSchemaError(
                f"Malformed $ref {ref!r} at {location}: target does not exist in the schema"
            )
        if not isinstance(target, dict) or (fragment and isinstance(target.get("$id"), str)):
            return
        ref = target.get("$ref")
        if not (isinstance(ref, str) and ref.startswith("#")):
            return


def check_local_refs(schema: Any) -> None:
    """Reject local ``$ref`` pointers that do not resolve, or that only lead to other refs in a loop.

    Raises:
        InvalidSchemaError: On the first malformed local reference
    """
    for location, ref in _iter_local_refs(schema):
        _follow_ref_chain(schema, format_pointer(location) or "/", ref)


def remote_ref_registry(schema_source: SchemaSource) -> Registry:
    """Registry that retrieves absolute http(s) ``$ref`` targets through ``schema_source``.

    Remote targets share the schema cache and the fetch timeout with
    top-level schemas; any other unknown URI is unretrievable.
    """

    def retrieve(uri: str) -> Resource:
        if not is_remote_url(uri):
            raise InvalidSchemaError(f"Cannot retrieve $ref target {uri!r}: only http(s) URLs are fetched")
        content = schema_source.resolve(RemoteSchema(uri))
        try:
            contents = load_json(content.decode("utf-8-sig"))
        except ValueError as exc:
            raise InvalidSchemaError(f"Schema fetched from {uri} is not valid JSON: {exc}") from exc
        return Resource.from_contents(contents, default_specification=DRAFT7)

    return Registry(retrieve=retrieve)


def _retrieval_failure(exc: BaseException) -> Optional[SchemaValidatorError]:
    """The package error that made a remote ``$ref`` unretrievable, if any."""
    cause = exc.__cause__
    while cause is not None:
        if isinstance(cause, SchemaValidatorError):
            return cause
        cause = cause.__cause__
    return None


class Validator:
    """A JSON Schema compiled once and reused for any number of documents.

    Instances are immutable after construction and may be shared between
    threads for read-only validation.

    Args:
        schema: Parsed JSON Schema (object or boolean)
        schema_source: Source used to fetch remote ``$ref`` targets; the
            configured default when omitted

    Raises:
        InvalidSchemaError: If the schema does not conform to Draft 7
    """

    DRAFT = Draft7Validator

    def __init__(self, schema: Union[Dict[str, Any], bool], schema_source: Optional[SchemaSource] = None):
        if not isinstance(schema, (dict, bool)):
            raise InvalidSchemaError(
                f"Schema must be a JSON object or boolean, got {type(schema).__name__}"
            )
        schema = copy.deepcopy(schema)

        try:
            self.DRAFT.check_schema(schema, format_checker=self.DRAFT.FORMAT_CHECKER)
        except JsonSchemaError as exc:
            location = format_path(tuple(exc.absolute_path))
            raise InvalidSchemaError(
                f"Schema does not conform to JSON Schema draft 7 at {location}: {exc.message}"
            ) from exc

        check_local_refs(schema)

        self._schema = schema
        self._compiled = self.DRAFT(
            schema,
            format_checker=self.DRAFT.FORMAT_CHECKER,
            registry=remote_ref_registry(schema_source or default_schema_source()),
        )

    @property
    def schema(self) -> Union[Dict[str, Any], bool]:
        """A copy of the compiled schema document."""
        return copy.deepcopy(self._schema)

    # ---- constructors ----------------------------------------------------

    @classmethod
    def from_content(
        cls,
        schema_text: Union[bytes, str],
        source: Optional[str] = None,
        schema_source: Optional[SchemaSource] = None,
    ) -> "Validator":
        """Create a validator from JSON schema text.

        ``source`` names the schema in error messages; ``schema_source``
        fetches remote ``$ref`` targets.

        Raises:
            InvalidSchemaError: If the text is not JSON or not a valid schema
        """
        where = f" {source}" if source else ""
        try:
            if isinstance(schema_text, bytes):
                schema_text = schema_text.decode("utf-8-sig")
            schema = load_json(schema_text)
        except UnicodeDecodeError as exc:
            raise InvalidSchemaError(f"Schema{where} is not valid UTF-8: {exc.reason}") from exc
        except json.JSONDecodeError as exc:
            raise InvalidSchemaError(
                f"Schema{where} is not valid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
            ) from exc
        except ValueError as exc:
            raise InvalidSchemaError(f"Schema{where} is not valid JSON: {exc}") from exc

        try:
            return cls(schema, schema_source=schema_source)
        except InvalidSchemaError as exc:
            if not source:
                raise
            raise InvalidSchemaError(f"{exc} (schema: {source})") from exc

    @classmethod
    def from_file(cls, schema_path: Union[str, Path]) -> "Validator":
        """Create a validator from a local schema file."""
        return cls.from_schema_input(Path(schema_path))

    @classmethod
    def from_url(cls, schema_url: str, source: Optional[SchemaSource] = None) -> "Validator":
        """Create a validator from a remote schema URL, using the schema cache."""
        source = source or default_schema_source()
        resolved = source.load(schema_url)
        if not resolved.is_remote:
            raise InvalidSchemaError(f"Not an http(s) schema URL: {schema_url}")
        return cls.from_content(resolved.content, source=schema_url, schema_source=source)

    @classmethod
    def from_schema_input(
        cls,
        schema_input: Union[str, Path, SchemaInput],
        source: Optional[SchemaSource] = None,
    ) -> "Validator":
        """Create a validator from a local path or a remote URL (auto-detected)."""
        source = source or default_schema_source()
        resolved = source.load(schema_input)
        return cls.from_content(resolved.content, source=str(resolved.origin), schema_source=source)

    # ---- validation ------------------------------------------------------

    def validate_document(self, document: Any, source_map: Optional[SourceMap] = None) -> ValidationReport:
        """Validate a parsed document value.

        Every violation is collected; a nonconforming document never raises.

        Args:
            document: Parsed YAML/JSON value
            source_map: Optional JSON-pointer to line/column map used to
                locate violations in the source text

        Raises:
            InvalidSchemaError: If a ``$ref`` cannot be resolved, or recurses
                without end, during evaluation
        """
        issues = self._collect(document)
        if source_map:
            issues = [self._locate(issue, source_map) for issue in issues]
        return ValidationReport(tuple(issues))

    def validate_parsed(self, parsed: ParsedDocument) -> ValidationReport:
        issues = self._collect(parsed.value)
        if issues:
            # The source map is only built when there is something to locate.
            source_map = parsed.source_map
            issues = [self._locate(issue, source_map) for issue in issues]
        return ValidationReport(tuple(issues))

    def _collect(self, document: Any) -> List[ValidationIssue]:
        try:
            issues = [
                issue
                for error in self._compiled.iter_errors(document)
                for issue in self._issues_for(error)
            ]
        except Unresolvable as exc:
            failure = _retrieval_failure(exc)
            detail = f" ({failure})" if failure is not None else ""
            raise InvalidSchemaError(f"Unresolvable $ref in schema: {exc}{detail}") from exc
        except RecursionError as exc:
            raise InvalidSchemaError(
                "Schema $ref recursion does not terminate for this document"
            ) from exc

        logger.debug(f"Validation finished with {len(issues)} issue(s)")
        return issues

    def validate_yaml(self, content: str) -> ValidationReport:
        """Parse YAML content and validate it."""
        return self.validate_parsed(document_parser.parse_with_source(content, fmt=DocumentFormat.YAML))

    def validate_json(self, content: str) -> ValidationReport:
        """Parse JSON content and validate it."""
        return self.validate_parsed(document_parser.parse_with_source(content, fmt=DocumentFormat.JSON))

    def validate_content(self, content: str) -> ValidationReport:
        """Validate YAML or JSON content, detecting the format from the content."""
        return self.validate_parsed(document_parser.parse_with_source(content))

    def validate_file(self, file_path: Union[str, Path]) -> ValidationReport:
        """Load a YAML or JSON file and validate it."""
        return self.validate_parsed(document_parser.load_file(file_path))

    # ---- error normalization --------------------------------------------

    @staticmethod
    def _named_property(error: JsonSchemaViolation, names: Iterable[Any]) -> Optional[str]:
        """Find which of ``names`` a required/dependency error is about."""
        instance = error.instance if isinstance(error.instance, dict) else {}
        for name in names:
            if isinstance(name, str) and name not in instance and error.message.startswith(repr(name)):
                return name
        return None

    def _issues_for(self, error: JsonSchemaViolation) -> List[ValidationIssue]:
        path: Tuple[PathSegment, ...] = tuple(error.absolute_path)
        schema_path: Tuple[PathSegment, ...] = tuple(error.absolute_schema_path)
        kind = error_kind(error)
        message = error.message

        if error.validator == "required":
            missing = self._named_property(error, error.validator_value or ())
            if missing is not None:
                path += (missing,)
                message = f"Missing required property '{missing}'"

        elif error.validator == "dependencies":
            dependencies = error.validator_value if isinstance(error.validator_value, dict) else {}
            names = [name for values in dependencies.values() if isinstance(values, list) for name in values]
            missing = self._named_property(error, names)
            if missing is not None:
                path += (missing,)

        elif error.validator == "additionalProperties" and isinstance(error.instance, dict):
            extras = self._additional_properties(error)
            if extras:
                return [
                    ValidationIssue(
                        path=path + (extra,),
                        message=f"Additional property '{extra}' is not allowed",
                        kind=kind,
                        schema_path=schema_path,
                    )
                    for extra in extras
                ]

        elif error.validator in ("oneOf", "anyOf") and error.context:
            closest = best_match(error.context)
            detail = format_path(tuple(closest.absolute_path))
            message = f"{message}; closest match failed at {detail}: {closest.message}"

        return [ValidationIssue(path=path, message=message, kind=kind, schema_path=schema_path)]

    @staticmethod
    def _additional_properties(error: JsonSchemaViolation) -> List[str]:
        parent = error.schema if isinstance(error.schema, dict) else {}
        declared = parent.get("properties", {})
        patterns = parent.get("patternProperties", {})
        return [
            name
            for name in error.instance
            if name not in declared and not any(re.search(pattern, name) for pattern in patterns)
        ]

    @staticmethod
    def _locate(issue: ValidationIssue, source_map: Optional[SourceMap]) -> ValidationIssue:
        """Attach the line/column of the issue path, or of its closest ancestor."""
        if not source_map:
            return issue
        path = issue.path
        while True:
            entry = source_map.get(format_pointer(path))
            if entry:
                return replace(issue, line=entry.get("line"), column=entry.get("column"))
            if not path:
                return issue
            path = path[:-1]
