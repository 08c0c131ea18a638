"""Schema compilation and validation.

This package intentionally avoids depending on the CLI so that validation
can be embedded as a library.
"""

from .report import ErrorKind, ValidationIssue, ValidationReport, format_path, format_pointer
from .validator import Validator, error_kind
