"""Compile rule tables loader for ontology/compile_rules.yaml.

The compiler's fuzzy heuristics (parameter aliases, model-family prefixes,
hardware substrings, Variax keyword fallbacks) live in data so they can be
changed and tested without touching the compiler.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from helixforge.core.loaders import load_yaml_object
from helixforge.core.schema_registry import schema_path_for, validate_payload_against_schema
from helixforge.resources import ontology_dir


def _default_rules_path() -> Path:
    return ontology_dir() / "compile_rules.yaml"


@dataclass(frozen=True)
class SanitizerCap:
    family: str
    keys: tuple[str, ...]
    maximum: float


@dataclass(frozen=True)
class ModelFallback:
    keywords: tuple[str, ...]
    code: int


@dataclass(frozen=True)
class TuningFallback:
    keywords: tuple[str, ...]
    offsets: tuple[int, ...]


@dataclass(frozen=True)
class CompileRules:
    variax_placeholder_keywords: tuple[str, ...]
    param_aliases: tuple[tuple[str, tuple[str, ...]], ...]
    model_families: tuple[tuple[str, tuple[str, ...]], ...]
    block_type_codes: tuple[tuple[str, int], ...]
    expression_pedal_families: tuple[str, ...]
    expression_pedal_param: str
    percentage_keywords: tuple[str, ...]
    percentage_divisor: float
    percentage_max: float
    sanitizer_caps: tuple[SanitizerCap, ...]
    dual_path_keywords: tuple[str, ...]
    device_codes: tuple[tuple[tuple[str, ...], int], ...]
    default_device: int
    snapshot_controller: int
    variax_snapshot_controller: int
    variax_model_max: int
    model_fallbacks: tuple[ModelFallback, ...]
    tuning_fallbacks: tuple[TuningFallback, ...]

    def is_variax_placeholder(self, *names: str) -> bool:
        for name in names:
            lowered = (name or "").lower()
            if any(keyword in lowered for keyword in self.variax_placeholder_keywords):
                return True
        return False

    def alias_candidates(self, param_name: str) -> tuple[str, ...]:
        lowered = param_name.lower()
        for alias, candidates in self.param_aliases:
            if alias == lowered:
                return candidates
        return ()

    def model_family(self, internal_id: str) -> str | None:
        for family, prefixes in self.model_families:
            if any(internal_id.startswith(prefix) for prefix in prefixes):
                return family
        return None

    def block_type_code(self, internal_id: str) -> int:
        codes = dict(self.block_type_codes)
        family = self.model_family(internal_id)
        if family is not None and family in codes:
            return codes[family]
        return codes.get("default", 0)

    def uses_expression_pedal(self, internal_id: str) -> bool:
        return self.model_family(internal_id) in self.expression_pedal_families

    def is_dual_path(self, hardware: str) -> bool:
        return any(keyword in hardware for keyword in self.dual_path_keywords)

    def device_code(self, hardware: str) -> int:
        for keywords, device in self.device_codes:
            if any(keyword in hardware for keyword in keywords):
                return device
        return self.default_device


def _string_tuple(values: Any, *, lower: bool = False) -> tuple[str, ...]:
    if not isinstance(values, list):
        return ()
    items = [str(value) for value in values if isinstance(value, str) and value]
    if lower:
        items = [item.lower() for item in items]
    return tuple(items)


def build_compile_rules(payload: dict[str, Any]) -> CompileRules:
    """Build rules from an already-validated ``compile_rules`` mapping."""
    sanitizer = payload["sanitizer"]
    hardware = payload["hardware"]
    controllers = payload["controllers"]
    fallbacks = payload["variax_fallbacks"]
    pedal = payload["expression_pedal"]

    return CompileRules(
        variax_placeholder_keywords=_string_tuple(
            payload["variax_placeholder_keywords"], lower=True
        ),
        param_aliases=tuple(
            (alias.lower(), _string_tuple(candidates))
            for alias, candidates in payload["param_aliases"].items()
        ),
        model_families=tuple(
            (item["family"], _string_tuple(item["prefixes"]))
            for item in payload["model_families"]
        ),
        block_type_codes=tuple(
            (family, int(code)) for family, code in payload["block_type_codes"].items()
        ),
        expression_pedal_families=_string_tuple(pedal["families"]),
        expression_pedal_param=pedal["param"],
        percentage_keywords=_string_tuple(sanitizer["percentage_keywords"], lower=True),
        percentage_divisor=float(sanitizer["percentage_divisor"]),
        percentage_max=float(sanitizer["percentage_max"]),
        sanitizer_caps=tuple(
            SanitizerCap(
                family=item["family"],
                keys=_string_tuple(item["keys"], lower=True),
                maximum=float(item["max"]),
            )
            for item in sanitizer["caps"]
        ),
        dual_path_keywords=_string_tuple(hardware["dual_path_keywords"]),
        device_codes=tuple(
            (_string_tuple(item["keywords"]), int(item["device"]))
            for item in hardware["device_codes"]
        ),
        default_device=int(hardware["default_device"]),
        snapshot_controller=int(controllers["snapshot"]),
        variax_snapshot_controller=int(controllers["variax_snapshot"]),
        variax_model_max=int(controllers.get("variax_model_max", 60)),
        model_fallbacks=tuple(
            ModelFallback(
                keywords=_string_tuple(item["keywords"], lower=True),
                code=int(item["code"]),
            )
            for item in fallbacks["models"]
        ),
        tuning_fallbacks=tuple(
            TuningFallback(
                keywords=_string_tuple(item["keywords"], lower=True),
                offsets=tuple(int(value) for value in item["offsets"]),
            )
            for item in fallbacks["tunings"]
        ),
    )


def load_compile_rules(path: Path | None = None) -> CompileRules:
    """Load and validate the compile rule tables from YAML."""
    resolved_path = path if path is not None else _default_rules_path()
    payload = load_yaml_object(resolved_path, label="Compile rules")
    validate_payload_against_schema(
        payload,
        schema_path=schema_path_for("compile_rules"),
        payload_name="Compile rules",
    )
    return build_compile_rules(payload["compile_rules"])
