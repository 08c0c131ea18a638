# Copyright 2025 TIER IV, inc.
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

"""YAML / JSON document parser with source location tracking."""

import json
import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..exceptions import DocumentReadError, ParseError
from .format_detector import DocumentFormat, detect_format, error_position
from .loaders import BOOL_TAG, NULL_TAG, compose_yaml, load_json, load_yaml

logger = logging.getLogger(__name__)

SourceMap = Dict[str, Dict[str, int]]


@dataclass(frozen=True)
class ParsedDocument:
    """A parsed document together with its detected format and source text.

    The source map is composed from ``text`` on first access only, so a
    document that validates cleanly never pays for it.
    """

    value: Any
    format: DocumentFormat
    path: Optional[Path] = None
    text: Optional[str] = field(default=None, repr=False, compare=False)

    @cached_property
    def source_map(self) -> SourceMap:
        if self.text is None:
            return {}
        return DocumentParser.build_source_map(self.text)


def json_pointer_escape(token: str) -> str:
    # JSON Pointer escaping: "~" -> "~0", "/" -> "~1"
    return token.replace("~", "~0").replace("/", "~1")


class DocumentParser:
    """Parser turning YAML or JSON text into plain document values."""

    @staticmethod
    def _key_token(key_node) -> Optional[str]:
        value = getattr(key_node, "value", None)
        if not isinstance(value, str):
            return None
        if key_node.tag == BOOL_TAG:
            return value.lower()
        if key_node.tag == NULL_TAG:
            return "null"
        return value

    @classmethod
    def build_source_map(cls, content: str) -> SourceMap:
        """Build a mapping from JSON-pointer paths to 1-based line/column.

        This walks the node tree (yaml.compose) so locations can be tracked
        without changing the parsed data shapes.  JSON input is composed with
        the same loader; content the YAML composer rejects gets an empty map.
        """
        source_map: SourceMap = {}

        try:
            root = compose_yaml(content)
        except yaml.YAMLError:
            return source_map

        if root is None:
            return source_map

        def _record(path: str, node) -> None:
            mark = getattr(node, "start_mark", None)
            if mark is None:
                return
            # PyYAML uses 0-based line/column
            source_map[path] = {"line": int(mark.line) + 1, "column": int(mark.column) + 1}

        def _walk(node, path: str) -> None:
            _record(path, node)

            if isinstance(node, yaml.nodes.MappingNode):
                for key_node, value_node in node.value:
                    key = cls._key_token(key_node)
                    if key is None:
                        continue
                    _walk(value_node, f"{path}/{json_pointer_escape(key)}")
            elif isinstance(node, yaml.nodes.SequenceNode):
                for idx, item_node in enumerate(node.value):
                    _walk(item_node, f"{path}/{idx}")

        _walk(root, "")
        return source_map

    @staticmethod
    def decode(raw: bytes, source: Optional[str] = None) -> str:
        """Decode document bytes as UTF-8, dropping a leading BOM."""
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            where = f" {source}" if source else ""
            raise ParseError(
                f"Document{where} is not valid UTF-8: {exc.reason} at byte {exc.start}",
                source=source,
            )

    def parse_json(self, content: str, source: Optional[str] = None) -> Any:
        """Parse JSON content.

        Raises:
            ParseError: If the content is not strict JSON
        """
        where = f" {source}" if source else ""
        try:
            return load_json(content)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Failed to parse JSON{where}: {exc.msg} (line {exc.lineno}, column {exc.colno})",
                line=exc.lineno,
                column=exc.colno,
                source=source,
            ) from exc
        except ValueError as exc:
            raise ParseError(f"Failed to parse JSON{where}: {exc}", source=source) from exc

    def parse_yaml(self, content: str, source: Optional[str] = None) -> Any:
        """Parse a single YAML document.

        Raises:
            ParseError: If the content is not valid YAML
        """
        where = f" {source}" if source else ""
        try:
            return load_yaml(content)
        except yaml.YAMLError as exc:
            line, column = error_position(exc)
            problem = getattr(exc, "problem", None) or str(exc)
            position = f" (line {line}, column {column})" if line is not None else ""
            raise ParseError(
                f"Failed to parse YAML{where}: {problem}{position}",
                line=line,
                column=column,
                source=source,
            ) from exc

    def parse(
        self,
        content: str,
        fmt: Optional[DocumentFormat] = None,
        path_hint: Union[str, Path, None] = None,
    ) -> Any:
        """Parse content into a document value, detecting the format if needed."""
        return self.parse_with_source(content, fmt=fmt, path_hint=path_hint).value

    def parse_with_source(
        self,
        content: str,
        fmt: Optional[DocumentFormat] = None,
        path_hint: Union[str, Path, None] = None,
    ) -> ParsedDocument:
        """Parse content into a ParsedDocument; its source map is built on first use.

        Args:
            content: YAML or JSON text
            fmt: Format to parse as; detected from the content when None
            path_hint: Optional file path used in diagnostics

        Raises:
            FormatError: If the content is neither JSON nor YAML
            ParseError: If the content is malformed for its format
        """
        if isinstance(content, bytes):
            content = self.decode(content, str(path_hint) if path_hint else None)

        if fmt is None:
            fmt = detect_format(content, path_hint=path_hint)

        source = str(path_hint) if path_hint is not None else None
        if fmt is DocumentFormat.JSON:
            value = self.parse_json(content, source)
        else:
            value = self.parse_yaml(content, source)

        return ParsedDocument(
            value=value,
            format=fmt,
            path=Path(path_hint) if path_hint is not None else None,
            text=content,
        )

    def load_file(self, file_path: Union[str, Path]) -> ParsedDocument:
        """Load and parse a YAML or JSON document file.

        Raises:
            DocumentReadError: If the file cannot be read
            FormatError: If the content is neither JSON nor YAML
            ParseError: If the content is malformed
        """
        path = Path(file_path)

        if not path.exists():
            raise DocumentReadError(f"Document file not found: {path}")

        if not path.is_file():
            raise DocumentReadError(f"Path is not a file: {path}")

        try:
            logger.debug(f"Loading document file: {path}")
            raw = path.read_bytes()
        except OSError as exc:
            raise DocumentReadError(f"Failed to read document file {path}: {exc}") from exc

        return self.parse_with_source(self.decode(raw, str(path)), path_hint=path)


# Global parser instance
document_parser = DocumentParser()
