from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from helixforge.core.loaders import load_json_object
from helixforge.core.schema_registry import schema_path_for, validate_payload_against_schema

COMPILE_SETTINGS_SCHEMA_VERSION = "0.1.0"

DEFAULT_HARDWARE_TARGET = "Helix Floor"
DEFAULT_EXP_PEDAL = 1
DEFAULT_VARIAX_HARDWARE_MODEL = "Standard"
MAX_EXP_PEDAL = 3

_TOP_LEVEL_KEYS = {
    "schema_version",
    "hardware_target",
    "default_exp_pedal",
    "variax_enabled",
    "variax_hardware_model",
}


@dataclass(frozen=True)
class CompileSettings:
    hardware_target: str = DEFAULT_HARDWARE_TARGET
    default_exp_pedal: int = DEFAULT_EXP_PEDAL
    variax_enabled: bool = False
    variax_hardware_model: str = DEFAULT_VARIAX_HARDWARE_MODEL

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": COMPILE_SETTINGS_SCHEMA_VERSION,
            "hardware_target": self.hardware_target,
            "default_exp_pedal": self.default_exp_pedal,
            "variax_enabled": self.variax_enabled,
            "variax_hardware_model": self.variax_hardware_model,
        }


def _coerce_exp_pedal(value: Any) -> int:
    field_name = "default_exp_pedal"
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be an integer.")
    if isinstance(value, int):
        coerced = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{field_name} must be an integer.")
        coerced = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValueError(f"{field_name} must be an integer.")
        try:
            coerced = int(stripped)
        except ValueError as exc:
            raise ValueError(f"{field_name} must be an integer.") from exc
    else:
        raise ValueError(f"{field_name} must be an integer.")
    if not 0 <= coerced <= MAX_EXP_PEDAL:
        raise ValueError(f"{field_name} must be between 0 and {MAX_EXP_PEDAL}.")
    return coerced


def _coerce_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    raise ValueError(f"{field_name} must be a boolean.")


def _coerce_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string.")
    return value.strip()


def normalize_compile_settings(cfg: dict[str, Any]) -> dict[str, Any]:
    """Return a normalized copy of a settings payload.

    Unknown keys and mistyped values raise ValueError. Keys whose value is
    None are dropped.
    """
    if not isinstance(cfg, dict):
        raise ValueError("Compile settings must be a JSON object.")

    unknown = sorted(set(cfg.keys()) - _TOP_LEVEL_KEYS)
    if unknown:
        raise ValueError(f"Unknown compile settings field(s): {', '.join(unknown)}")

    normalized: dict[str, Any] = {}
    for key in sorted(cfg.keys()):
        value = cfg[key]
        if value is None:
            continue
        if key == "schema_version":
            normalized[key] = str(value).strip()
        elif key == "default_exp_pedal":
            normalized[key] = _coerce_exp_pedal(value)
        elif key == "variax_enabled":
            normalized[key] = _coerce_bool(value, key)
        else:
            normalized[key] = _coerce_string(value, key)

    schema_version = normalized.get("schema_version", COMPILE_SETTINGS_SCHEMA_VERSION)
    if schema_version != COMPILE_SETTINGS_SCHEMA_VERSION:
        raise ValueError(
            "Unsupported compile settings schema_version: "
            f"{schema_version!r} (expected {COMPILE_SETTINGS_SCHEMA_VERSION!r})."
        )
    normalized["schema_version"] = schema_version
    return normalized


def settings_from_dict(cfg: dict[str, Any]) -> CompileSettings:
    normalized = normalize_compile_settings(cfg)
    return CompileSettings(
        hardware_target=normalized.get("hardware_target") or DEFAULT_HARDWARE_TARGET,
        default_exp_pedal=normalized.get("default_exp_pedal", DEFAULT_EXP_PEDAL),
        variax_enabled=normalized.get("variax_enabled", False),
        variax_hardware_model=(
            normalized.get("variax_hardware_model") or DEFAULT_VARIAX_HARDWARE_MODEL
        ),
    )


def load_compile_settings(path: Path) -> CompileSettings:
    raw = load_json_object(path, label="Compile settings")
    validate_payload_against_schema(
        raw,
        schema_path=schema_path_for("compile_settings"),
        payload_name="Compile settings",
    )
    return settings_from_dict(raw)


def merge_compile_settings(
    base: CompileSettings,
    overrides: dict[str, Any],
) -> CompileSettings:
    """Layer ``overrides`` (e.g. CLI flags) over ``base``; None means unset."""
    if not isinstance(overrides, dict):
        raise ValueError("overrides must be an object.")
    overrides_normalized = normalize_compile_settings(overrides)
    merged = base.to_dict()
    merged.update(overrides_normalized)
    return settings_from_dict(merged)
