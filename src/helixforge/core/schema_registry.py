from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from helixforge.resources import schemas_dir


def load_json_schema(schema_path: Path) -> dict[str, Any]:
    try:
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Failed to load schema from {schema_path}: {exc}") from exc
    if not isinstance(schema, dict):
        raise ValueError(f"Schema JSON must be an object: {schema_path}")
    return schema


def build_schema_registry(schemas_root: Path) -> Registry:
    registry = Registry()
    for schema_file in sorted(schemas_root.glob("*.schema.json")):
        schema = load_json_schema(schema_file)
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        registry = registry.with_resource(schema_file.resolve().as_uri(), resource)
        schema_id = schema.get("$id")
        if isinstance(schema_id, str) and schema_id:
            registry = registry.with_resource(schema_id, resource)
    return registry


@lru_cache(maxsize=8)
def _cached_registry(schemas_root: str) -> Registry:
    return build_schema_registry(Path(schemas_root))


def schema_path_for(schema_name: str) -> Path:
    """Return the packaged path of ``<schema_name>.schema.json``."""
    return schemas_dir() / f"{schema_name}.schema.json"


def validate_payload_against_schema(
    payload: Any,
    *,
    schema_path: Path,
    payload_name: str,
) -> None:
    """Validate ``payload`` and raise one ``ValueError`` listing every error.

    Errors are sorted by path so the message is deterministic.
    """
    schema = load_json_schema(schema_path)
    registry = _cached_registry(str(schema_path.parent.resolve()))
    validator = jsonschema.Draft202012Validator(schema, registry=registry)
    errors = sorted(
        validator.iter_errors(payload),
        key=lambda err: ([str(item) for item in err.path], err.message),
    )
    if not errors:
        return

    lines: list[str] = []
    for err in errors:
        path = ".".join(str(item) for item in err.path) or "$"
        lines.append(f"- {path}: {err.message}")
    details = "\n".join(lines)
    raise ValueError(f"{payload_name} schema validation failed:\n{details}")
