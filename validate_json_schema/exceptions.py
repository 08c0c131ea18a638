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

"""Custom exceptions for validate-json-schema.

Schema violations found in a document are never raised; they are returned
as a :class:`~validate_json_schema.validation.report.ValidationReport`.
The exceptions below cover everything that stops a validation run.
"""

from typing import Optional


class SchemaValidatorError(Exception):
    """Base exception for validate-json-schema errors."""
    pass


class DocumentReadError(SchemaValidatorError):
    """Exception raised when a document file cannot be read."""
    pass


class ParseError(SchemaValidatorError):
    """Exception raised for malformed YAML or JSON documents.

    ``line`` and ``column`` are 1-based and set when the underlying parser
    reports a position.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source: Optional[str] = None,
    ):
        self.line = line
        self.column = column
        self.source = source
        super().__init__(message)

    def location(self) -> str:
        if self.line is None:
            return ""
        if self.column is None:
            return f"line {self.line}"
        return f"line {self.line}, column {self.column}"


class FormatError(ParseError):
    """Exception raised when the document format cannot be determined."""
    pass


class UnparseableFormatError(FormatError):
    """Content is neither valid JSON nor valid YAML."""

    def __init__(
        self,
        message: str,
        json_error: Optional[Exception] = None,
        yaml_error: Optional[Exception] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source: Optional[str] = None,
    ):
        self.json_error = json_error
        self.yaml_error = yaml_error
        super().__init__(message, line=line, column=column, source=source)


class SchemaError(SchemaValidatorError):
    """Base exception for schema resolution and compilation errors."""
    pass


class SchemaNotFoundError(SchemaError):
    """Exception raised when a local schema file does not exist."""
    pass


class SchemaIoError(SchemaError):
    """Exception raised when a local schema file cannot be read."""
    pass


class SchemaFetchError(SchemaError):
    """Exception raised when a remote schema cannot be fetched.

    ``status_code`` is set for HTTP status failures and ``None`` for
    transport failures (DNS, connection refused, timeout, TLS).
    """

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        if status_code is None:
            message = f"Failed to fetch schema from {url}: transport error: {reason}"
        else:
            message = f"Failed to fetch schema from {url}: HTTP {status_code} {reason}".rstrip()
        super().__init__(message)

    @property
    def is_transport_error(self) -> bool:
        return self.status_code is None


class InvalidSchemaError(SchemaError):
    """Exception raised for schemas that are not valid JSON Schema (Draft 7)."""
    pass


class CacheError(SchemaValidatorError):
    """Exception raised for schema cache failures.

    Never aborts a resolution that already holds the fetched schema body.
    """
    pass
