"""
Reading and writing policy.yaml documents.

Parsing runs in three stages: YAML syntax, the JSON schema shipped in
``iam_policy/schemas``, then Pydantic model construction. The first stage
that fails raises ``ParseError``; a partially read Policy is never returned.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

import jsonschema
import yaml
from pydantic import ValidationError as PydanticValidationError

from .models import Binding, Condition, Policy

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "policy.schema.json"

_schema: Optional[dict] = None


class PolicyError(Exception):
    """Base class for policy handling errors."""
    pass


class ParseError(PolicyError):
    """Raised when a document is not valid YAML or does not match the policy schema."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        super().__init__(message)
        self.path = path
        self.line = line
        self.column = column


class SerializeError(PolicyError):
    """Raised when a Policy cannot be rendered as YAML."""
    pass


_BOOL_TAG = "tag:yaml.org,2002:bool"
_MERGE_TAG = "tag:yaml.org,2002:merge"


class PolicyLoader(yaml.SafeLoader):
    """
    SafeLoader that rejects repeated mapping keys and only reads
    true/false as booleans, so `on`, `yes` and `no` stay strings.
    """

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            return super().construct_mapping(node, deep=deep)
        seen = set()
        for key_node, _ in node.value:
            if key_node.tag == _MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                # unhashable, reported by the base constructor
                continue
            if duplicate:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"mapping key {key!r} already defined",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


PolicyLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
PolicyLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _load_schema() -> dict:
    global _schema
    if _schema is None:
        with open(SCHEMA_PATH) as f:
            _schema = json.load(f)
    return _schema


# ============================================================================
# Parsing
# ============================================================================

def parse_policy(data: bytes | str) -> Policy:
    """
    Parse a policy document.

    Missing ``roles``/``groups``/``projects`` sections are read as empty,
    unknown fields are ignored.
    """
    try:
        document = yaml.load(data, Loader=PolicyLoader)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark
        line = mark.line + 1 if mark else None
        column = mark.column + 1 if mark else None
        location = f" at line {line}, column {column}" if mark else ""
        raise ParseError(
            f"failed to parse policy YAML{location}: {e.problem or e}",
            line=line,
            column=column,
        ) from e
    except yaml.YAMLError as e:
        raise ParseError(f"failed to parse policy YAML: {e}") from e

    try:
        jsonschema.validate(document, _load_schema())
    except jsonschema.ValidationError as e:
        raise ParseError(
            f"policy schema violation at {e.json_path}: {e.message}",
            path=e.json_path,
        ) from e

    try:
        return Policy.model_validate(document or {})
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = _format_loc(first["loc"])
        raise ParseError(
            f"policy schema violation at {location}: {first['msg']}",
            path=location,
        ) from e


def _format_loc(loc: tuple) -> str:
    parts = ["$"]
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}")
    return "".join(parts)


# ============================================================================
# Serialization
# ============================================================================

def _condition_to_dict(condition: Condition) -> dict[str, Any]:
    data: dict[str, Any] = {"expression": condition.expression}
    if condition.title:
        data["title"] = condition.title
    if condition.description:
        data["description"] = condition.description
    return data


def _binding_to_dict(binding: Binding) -> dict[str, Any]:
    data: dict[str, Any] = {
        "role": binding.role,
        "members": list(binding.members),
    }
    if binding.condition is not None:
        data["condition"] = _condition_to_dict(binding.condition)
    return data


def policy_to_dict(policy: Policy) -> dict[str, Any]:
    """Convert a Policy into plain data in canonical field order."""
    return {
        "roles": {
            name: {"permissions": list(role.permissions)}
            for name, role in policy.roles.items()
        },
        "groups": {
            name: {"members": list(group.members)}
            for name, group in policy.groups.items()
        },
        "projects": {
            name: {"bindings": [_binding_to_dict(b) for b in project.bindings]}
            for name, project in policy.projects.items()
        },
    }


def serialize_policy(policy: Policy) -> bytes:
    """Render a Policy as a canonical UTF-8 YAML document."""
    try:
        text = yaml.safe_dump(
            policy_to_dict(policy),
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
    except yaml.YAMLError as e:
        raise SerializeError(f"failed to marshal policy: {e}") from e
    return text.encode("utf-8")


# ============================================================================
# File helpers
# ============================================================================

def load_policy(path: str | Path) -> Policy:
    """Read and parse a policy file. OSError propagates unchanged."""
    path = Path(path)
    logger.debug("Loading policy from %s", path)
    with open(path, "rb") as f:
        data = f.read()
    return parse_policy(data)


def save_policy(policy: Policy, path: str | Path) -> None:
    """Serialize a policy and write it to a file."""
    path = Path(path)
    # Serialize first so a failure leaves any existing file untouched
    data = serialize_policy(policy)
    logger.debug("Writing policy to %s (%d bytes)", path, len(data))
    with open(path, "wb") as f:
        f.write(data)
