#!/usr/bin/env python3
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

"""CLI entry point: ``validate`` and ``clear-cache``."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..config import ValidatorConfig
from ..exceptions import CacheError, SchemaValidatorError
from ..pipeline import ValidationPipeline
from ..schema.schema_cache import SchemaCache
from .output import OUTPUT_FORMATS, render

logger = logging.getLogger(__name__)

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='validate-json-schema',
        description='Validate YAML and JSON files against JSON schemas',
        epilog=(
            'Remote schemas (http/https) are cached locally and reused until '
            '`clear-cache` is run. The document format is detected from its content.'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '--cache-dir',
        type=Path,
        default=None,
        help='Schema cache directory (default: user cache dir, or $VALIDATE_JSON_SCHEMA_CACHE_DIR)',
    )
    parser.add_argument(
        '--log-level',
        default=None,
        help='Log level, e.g. DEBUG (default: $VALIDATE_JSON_SCHEMA_LOG_LEVEL or WARNING)',
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    validate = subparsers.add_parser(
        'validate',
        help='Validate a YAML or JSON document against a schema',
        description='Validate a YAML or JSON document against a local or remote JSON schema.',
    )
    validate.add_argument('document', help="YAML or JSON file to validate ('-' reads stdin)")
    validate.add_argument('schema', help='Path to a JSON schema file, or an http(s) URL')
    validate.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show schema source, cache hit/miss and every violation',
    )
    validate.add_argument(
        '--format',
        choices=OUTPUT_FORMATS,
        default='human',
        help='Output format (default: human)',
    )

    subparsers.add_parser(
        'clear-cache',
        help='Remove all cached remote schemas',
        description='Remove all cached remote schemas from the local cache directory.',
    )
    return parser


def _validate(args: argparse.Namespace, config: ValidatorConfig) -> int:
    pipeline = ValidationPipeline(config=config)
    document = sys.stdin.read() if args.document == '-' else Path(args.document)

    try:
        result = pipeline.execute(document, args.schema)
    except SchemaValidatorError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR

    for line in render(result, output_format=args.format, verbose=args.verbose):
        print(line)

    return EXIT_VALID if result.report.is_valid else EXIT_INVALID


def _clear_cache(config: ValidatorConfig) -> int:
    cache = SchemaCache(config.cache_dir)
    try:
        removed = cache.clear()
    except CacheError as exc:
        print(f"Warning: {exc}", file=sys.stderr)
        return EXIT_VALID

    print(f"Schema cache cleared ({removed} entries removed from {cache.root})")
    return EXIT_VALID


def run(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the command and return the exit code."""
    args = build_parser().parse_args(argv)
    logger.debug(f"Running command: {args.command}")

    config = ValidatorConfig.from_env().with_overrides(cache_dir=args.cache_dir, log_level=args.log_level)
    config.set_logging()

    if args.command == 'clear-cache':
        return _clear_cache(config)
    return _validate(args, config)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the validate-json-schema CLI."""
    sys.exit(run(argv))


if __name__ == '__main__':
    main()
