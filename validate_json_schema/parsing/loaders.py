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

"""Low-level YAML and JSON loaders producing plain document values.

Both loaders produce the same shapes: ``dict`` with ``str`` keys, ``list``,
``str``, ``int``, ``float``, ``bool`` and ``None``.  The YAML loader follows
the YAML 1.2 core schema for scalars so that a YAML document and the
equivalent JSON document parse to equal values (``on:`` and ``yes`` stay
strings, ``2024-01-01`` is not turned into a date).
"""

import json
import re
from typing import Any, Dict, List, Tuple

import yaml
from yaml.constructor import ConstructorError


BOOL_TAG = "tag:yaml.org,2002:bool"
INT_TAG = "tag:yaml.org,2002:int"
FLOAT_TAG = "tag:yaml.org,2002:float"
NULL_TAG = "tag:yaml.org,2002:null"
MERGE_TAG = "tag:yaml.org,2002:merge"
TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"

_CORE_BOOL = re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$")
_CORE_INT = re.compile(r"^(?:[-+]?[0-9]+|0o[0-7]+|0x[0-9a-fA-F]+)$")
_CORE_FLOAT = re.compile(
    r"""^(?:[-+]?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)(?:[eE][-+]?[0-9]+)?
    |[-+]?\.(?:inf|Inf|INF)
    |\.(?:nan|NaN|NAN))$""",
    re.X,
)

# YAML 1.1 resolvers replaced by their core schema equivalents.
_REPLACED_TAGS = (BOOL_TAG, INT_TAG, FLOAT_TAG, TIMESTAMP_TAG)


def mapping_key_text(key: Any) -> str:
    """Return the JSON object key used for a YAML scalar mapping key."""
    if isinstance(key, str):
        return key
    if key is None or isinstance(key, (bool, int, float)):
        return json.dumps(key)
    raise TypeError(f"unsupported mapping key type: {type(key).__name__}")


class DocumentLoader(yaml.SafeLoader):
    """SafeLoader with core schema scalars, string keys and no duplicate keys."""

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            raise ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )

        seen: Dict[str, Any] = {}
        for key_node, _ in node.value:
            if key_node.tag == MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=True)
            try:
                text = mapping_key_text(key)
            except TypeError as exc:
                raise ConstructorError(
                    "while constructing a mapping", node.start_mark, str(exc), key_node.start_mark
                )
            if text in seen:
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {text!r}",
                    key_node.start_mark,
                )
            seen[text] = key_node

        mapping = super().construct_mapping(node, deep=deep)
        return {mapping_key_text(key): value for key, value in mapping.items()}

    def construct_core_int(self, node):
        value = self.construct_scalar(node)
        try:
            return int(value, 0)
        except ValueError:
            # Leading zeros are decimal in the core schema ("012" -> 12).
            return int(value, 10)


DocumentLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _REPLACED_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
DocumentLoader.add_implicit_resolver(BOOL_TAG, _CORE_BOOL, list("tTfF"))
DocumentLoader.add_implicit_resolver(INT_TAG, _CORE_INT, list("-+0123456789"))
DocumentLoader.add_implicit_resolver(FLOAT_TAG, _CORE_FLOAT, list("-+0123456789."))
DocumentLoader.add_constructor(INT_TAG, DocumentLoader.construct_core_int)
DocumentLoader.add_constructor(TIMESTAMP_TAG, DocumentLoader.construct_yaml_str)


def load_yaml(content: str) -> Any:
    """Load a single YAML document. Raises ``yaml.YAMLError``."""
    return yaml.load(content, Loader=DocumentLoader)


def compose_yaml(content: str):
    """Compose a single YAML document into a node tree without constructing it."""
    return yaml.compose(content, Loader=DocumentLoader)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _unique_object(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"found duplicate key {key!r}")
        result[key] = value
    return result


def load_json(content: str, *, reject_duplicates: bool = True) -> Any:
    """Strict JSON load. ``NaN`` and ``Infinity`` are rejected.

    Raises ``json.JSONDecodeError`` for syntax errors and ``ValueError`` for
    duplicate keys or non-standard constants.
    """
    hook = _unique_object if reject_duplicates else None
    return json.loads(content, parse_constant=_reject_constant, object_pairs_hook=hook)
