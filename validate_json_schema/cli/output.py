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

"""Rendering of validation results for the command line."""

import json
from typing import List

from ..pipeline import PipelineResult
from ..schema.schema_source import RemoteSchema

OUTPUT_FORMATS = ('human', 'json', 'github-actions')


def _document_label(result: PipelineResult) -> str:
    return str(result.document_path) if result.document_path is not None else "<stdin>"


def _cache_label(result: PipelineResult) -> str:
    if result.schema.cache_status is None:
        return "n/a"
    return result.schema.cache_status.value


def render_human(result: PipelineResult, verbose: bool = False) -> List[str]:
    """Pass/fail summary; with ``verbose`` also schema details and every issue."""
    lines: List[str] = []
    report = result.report

    if verbose:
        origin = result.schema.origin
        if isinstance(origin, RemoteSchema):
            lines.append(f"Using remote schema: {origin} (cache {_cache_label(result)})")
        else:
            lines.append(f"Using local schema: {origin}")
        for warning in result.schema.warnings:
            lines.append(f"  WARNING: {warning}")
        lines.append(f"Validating: {_document_label(result)}")
        lines.append(f"Detected format: {result.document_format}")
        for issue in report:
            line_info = f":{issue.line}" if issue.line is not None else ""
            if issue.line is not None and issue.column is not None:
                line_info += f":{issue.column}"
            lines.append(f"  ERROR{line_info}: {issue.dotted_path}: {issue.message} [{issue.kind.value}]")

    lines.append(f"{report.summary()}: {_document_label(result)}")
    return lines


def render_json(result: PipelineResult) -> List[str]:
    output = {
        'file': _document_label(result),
        'schema': str(result.schema.origin),
        'format': result.document_format.value,
        'cache': _cache_label(result),
        'warnings': list(result.schema.warnings),
        **result.report.to_dict(),
    }
    return [json.dumps(output, indent=2)]


def render_github_actions(result: PipelineResult) -> List[str]:
    lines: List[str] = []
    document = _document_label(result)
    for issue in result.report:
        location = f"file={document},line={issue.line or 1}"
        if issue.column is not None:
            location += f",col={issue.column}"
        lines.append(f"::error {location}::{issue.dotted_path}: {issue.message}")
    for warning in result.schema.warnings:
        lines.append(f"::warning::{warning}")
    return lines


def render(result: PipelineResult, output_format: str = 'human', verbose: bool = False) -> List[str]:
    if output_format == 'json':
        return render_json(result)
    if output_format == 'github-actions':
        return render_github_actions(result)
    return render_human(result, verbose=verbose)
