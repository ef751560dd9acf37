"""
JSON Schemas for wallet responses.

Namespaces without a client-side oracle still check that the wallet
answered with the structure its method promises before reporting success.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import jsonschema

from .errors import ArtifactShapeError

_NON_EMPTY = {"type": "string", "minLength": 1}
_BUFFER = {
    "type": "object",
    "required": ["type", "data"],
    "properties": {
        "type": {"const": "Buffer"},
        "data": {"type": "array", "items": {"type": "integer", "minimum": 0, "maximum": 255}},
    },
}
_ELROND_SIGNATURE = {"anyOf": [_NON_EMPTY, _BUFFER]}


def _requires(*keys: str) -> dict[str, Any]:
    return {
        "type": "object",
        "required": list(keys),
        "properties": {key: _NON_EMPTY for key in keys},
    }


ARTIFACT_SCHEMAS: dict[str, dict[str, Any]] = {
    "signature": _requires("signature"),
    "hash": _requires("hash"),
    "tron.transaction": {
        "type": "object",
        "required": ["result"],
        "properties": {"result": {"type": "object", "required": ["signature"]}},
    },
    "near.outcome": {"type": "object", "required": ["transaction"]},
    "near.outcomes": {
        "type": "array",
        "items": {"type": "object", "required": ["transaction"]},
    },
    "elrond.signature": {
        "type": "object",
        "required": ["signature"],
        "properties": {"signature": _ELROND_SIGNATURE},
    },
    "elrond.signatures": {
        "type": "object",
        "required": ["signatures"],
        "properties": {
            "signatures": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["signature"],
                    "properties": {"signature": _ELROND_SIGNATURE},
                },
            }
        },
    },
}


@lru_cache(maxsize=None)
def validator_for(name: str) -> jsonschema.Validator:
    schema = ARTIFACT_SCHEMAS[name]
    validator_cls = jsonschema.validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def validate_artifact(artifact: Any, name: str) -> None:
    """Raise ``ArtifactShapeError`` if ``artifact`` does not match schema ``name``."""
    errors = sorted(validator_for(name).iter_errors(artifact), key=lambda e: [str(p) for p in e.path])
    if errors:
        formatted = [_format_error(err) for err in errors]
        raise ArtifactShapeError(
            f"Unexpected wallet response ({name}): {'; '.join(formatted)}",
            errors=formatted,
        )


def _format_error(error: jsonschema.ValidationError) -> str:
    location = "/".join(str(part) for part in error.path) or "<root>"
    return f"{location}: {error.message}"
