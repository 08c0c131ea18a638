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

"""End-to-end validation: load, detect, parse, resolve schema, validate."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from .config import ValidatorConfig
from .parsing.document_parser import DocumentParser, ParsedDocument, document_parser
from .parsing.format_detector import DocumentFormat
from .schema.schema_cache import SchemaCache
from .schema.schema_source import ResolvedSchema, SchemaInput, SchemaSource, classify_schema_input
from .validation.report import ValidationReport
from .validation.validator import Validator

logger = logging.getLogger(__name__)

DocumentInput = Union[Path, str, bytes]


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one pipeline run."""

    report: ValidationReport
    document_format: DocumentFormat
    schema: ResolvedSchema
    document_path: Optional[Path] = None


class ValidationPipeline:
    """Runs one document through format detection, parsing and validation.

    Every step either succeeds or raises its typed error; a partial report
    is never returned.  Compiled validators are kept per schema input, so
    validating several documents against one schema compiles it once.

    Args:
        source: Schema source; built from ``config`` when omitted
        parser: Document parser; the module-level parser when omitted
        config: Configuration used to build the default schema source
    """

    def __init__(
        self,
        source: Optional[SchemaSource] = None,
        parser: Optional[DocumentParser] = None,
        config: Optional[ValidatorConfig] = None,
    ):
        self.config = config or ValidatorConfig.from_env()
        self.source = source or SchemaSource(SchemaCache(self.config.cache_dir), timeout=self.config.fetch_timeout)
        self.parser = parser or document_parser
        self._validators: Dict[SchemaInput, Validator] = {}
        self._resolved: Dict[SchemaInput, ResolvedSchema] = {}

    def run(self, document: DocumentInput, schema_input: Union[str, Path, SchemaInput]) -> ValidationReport:
        """Validate a document file (``Path``) or document content (``str``/``bytes``)."""
        return self.execute(document, schema_input).report

    def execute(self, document: DocumentInput, schema_input: Union[str, Path, SchemaInput]) -> PipelineResult:
        """Run the pipeline and return the report with format and schema details."""
        parsed = self.load_document(document)
        logger.debug(f"Document parsed as {parsed.format}")

        validator, resolved = self.validator_for(schema_input)
        report = validator.validate_parsed(parsed)

        return PipelineResult(
            report=report,
            document_format=parsed.format,
            schema=resolved,
            document_path=parsed.path,
        )

    def load_document(self, document: DocumentInput) -> ParsedDocument:
        if isinstance(document, Path):
            return self.parser.load_file(document)
        return self.parser.parse_with_source(document)

    def validator_for(self, schema_input: Union[str, Path, SchemaInput]):
        """Return the compiled validator for a schema input, resolving it on first use."""
        origin = classify_schema_input(schema_input)
        validator = self._validators.get(origin)
        if validator is not None:
            return validator, self._resolved[origin]

        resolved = self.source.load(origin)
        validator = Validator.from_content(resolved.content, source=str(origin), schema_source=self.source)
        self._validators[origin] = validator
        self._resolved[origin] = resolved
        return validator, resolved
