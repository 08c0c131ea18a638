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

"""Validation report types."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union

PathSegment = Union[str, int]


class ErrorKind(str, Enum):
    TYPE_MISMATCH = "type_mismatch"
    REQUIRED_MISSING = "required_missing"
    ENUM_MISMATCH = "enum_mismatch"
    PATTERN_MISMATCH = "pattern_mismatch"
    RANGE_VIOLATION = "range_violation"
    ADDITIONAL_PROPERTY_NOT_ALLOWED = "additional_property_not_allowed"
    CONDITIONAL_VIOLATION = "conditional_violation"
    OTHER = "other"


def format_path(path: Tuple[PathSegment, ...]) -> str:
    """Render a path as ``services[0].env``; the document root is ``root``."""
    if not path:
        return "root"
    rendered = ""
    for segment in path:
        if isinstance(segment, int):
            rendered += f"[{segment}]"
        elif rendered:
            rendered += f".{segment}"
        else:
            rendered = str(segment)
    return rendered


def format_pointer(path: Tuple[PathSegment, ...]) -> str:
    """Render a path as a JSON pointer (``/services/0/env``)."""
    return "".join("/" + str(segment).replace("~", "~0").replace("/", "~1") for segment in path)


@dataclass(frozen=True)
class ValidationIssue:
    """A single schema violation."""

    path: Tuple[PathSegment, ...]
    message: str
    kind: ErrorKind = ErrorKind.OTHER
    schema_path: Tuple[PathSegment, ...] = ()
    line: Optional[int] = None  # 1-based
    column: Optional[int] = None  # 1-based

    @property
    def dotted_path(self) -> str:
        return format_path(self.path)

    @property
    def json_pointer(self) -> str:
        return format_pointer(self.path)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'path': self.dotted_path,
            'pointer': self.json_pointer,
            'kind': self.kind.value,
            'message': self.message,
        }
        if self.line is not None:
            data['line'] = self.line
        if self.column is not None:
            data['column'] = self.column
        return data

    def __str__(self) -> str:
        return f"{self.dotted_path}: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    """Ordered, immutable collection of violations found in one validation pass."""

    issues: Tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def __len__(self) -> int:
        return len(self.issues)

    def __iter__(self) -> Iterator[ValidationIssue]:
        return iter(self.issues)

    def __getitem__(self, index: int) -> ValidationIssue:
        return self.issues[index]

    def __bool__(self) -> bool:
        # A report object is always truthy; use is_valid for the outcome.
        return True

    def summary(self) -> str:
        if self.is_valid:
            return "Valid"
        count = len(self.issues)
        noun = "violation" if count == 1 else "violations"
        return f"Invalid: {count} schema {noun}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.is_valid,
            'errors': len(self.issues),
            'issues': [issue.to_dict() for issue in self.issues],
        }
