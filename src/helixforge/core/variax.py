"""Variax instrument model and tuning resolution, and the document writes.

Resolution is table-driven: the hardware entry of the Variax registry maps
instrument aliases to banks and tuning names to semitone offsets. When the
hardware is unknown (or the registry is empty) the keyword fallbacks of the
compile rules apply instead.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from helixforge.core.document import SNAPSHOT_COUNT, PresetDocument
from helixforge.core.registries.compile_rules import CompileRules
from helixforge.core.registries.variax_registry import VariaxRegistry
from helixforge.core.rig import RigDescription, Snapshot, is_instrument_set

logger = logging.getLogger(__name__)

STRING_COUNT = 6
STANDARD_TUNING: tuple[int, ...] = (0,) * STRING_COUNT

_NEUTRAL_MODEL_TEXT = ("0", "neutral")
_VARIANT_DIGITS = "12345"

NEUTRAL_VARIAX_REGION: dict[str, Any] = {
    "@model": "@variax",
    "@variax_customtuning": False,
    "@variax_lockctrls": 0,
    "@variax_magmode": True,
    "@variax_model": 0,
    **{f"@variax_str{string}level": 1.0 for string in range(1, STRING_COUNT + 1)},
    **{f"@variax_str{string}tuning": 0 for string in range(1, STRING_COUNT + 1)},
    "@variax_toneknob": -0.10,
    "@variax_volumeknob": -0.10,
}


def _fallback_model_code(text: str, rules: CompileRules) -> int | None:
    for fallback in rules.model_fallbacks:
        if any(keyword in text for keyword in fallback.keywords):
            return fallback.code
    return None


def _variant(text: str) -> int:
    for char in text:
        if char in _VARIANT_DIGITS:
            return int(char)
    return 1


def resolve_model_code(
    text: str,
    hardware: str,
    config: VariaxRegistry,
    rules: CompileRules,
) -> int | None:
    """Map free-text instrument ``text`` to a Variax model code for ``hardware``.

    Returns None when nothing maps; "0"/"neutral" map to code 0.
    """
    model = (text or "").strip().lower()
    if not model or model == "none":
        return None
    if model in _NEUTRAL_MODEL_TEXT:
        return 0

    hardware_config = config.resolve_hardware(hardware)
    if hardware_config is None:
        return _fallback_model_code(model, rules)

    target_bank = ""
    for alias, bank in hardware_config.aliases:
        if alias in model:
            target_bank = bank
            break

    for bank in hardware_config.banks:
        bank_name = bank.name.lower()
        if (target_bank and bank_name == target_bank.lower()) or bank_name in model:
            variant = _variant(model)
            if hardware_config.inverted:
                return bank.base_id + (5 - variant)
            return bank.base_id + (variant - 1)

    return _fallback_model_code(model, rules)


def resolve_tuning_offsets(
    text: str,
    hardware: str,
    config: VariaxRegistry,
    rules: CompileRules,
) -> tuple[tuple[int, ...], bool]:
    """Return ``(offsets, mapped)`` for tuning ``text``; offsets are low string first."""
    tuning = (text or "").strip().lower()
    if not tuning or tuning == "standard":
        return STANDARD_TUNING, False

    hardware_config = config.resolve_hardware(hardware)
    if hardware_config is not None:
        for entry in hardware_config.tunings:
            if entry.name.lower() == tuning:
                return entry.offsets, True
            for alias in entry.aliases:
                lowered_alias = alias.lower()
                if lowered_alias == tuning or (lowered_alias and lowered_alias in tuning):
                    return entry.offsets, True

    for fallback in rules.tuning_fallbacks:
        if any(keyword in tuning for keyword in fallback.keywords):
            return fallback.offsets, True
    return STANDARD_TUNING, False


def variax_type(hardware_model: str) -> str:
    return "shuriken" if "shuriken" in (hardware_model or "").lower() else "jtv"


def reset_variax(document: PresetDocument) -> None:
    """Put the Variax region back to its neutral state."""
    document.replace_variax(NEUTRAL_VARIAX_REGION)


def _recover_snapshot_model(snapshot: Snapshot) -> str:
    text = snapshot.guitar_model
    if is_instrument_set(text):
        return text
    for block_name, params in snapshot.params.items():
        if "variax" not in block_name.lower():
            continue
        for field_name in ("Model", "Settings"):
            value = params.get(field_name)
            if isinstance(value, str):
                return value
    return text


def apply_variax(
    document: PresetDocument,
    rig: RigDescription,
    hardware_model: str,
    config: VariaxRegistry,
    rules: CompileRules,
) -> int | None:
    """Write the rig's instrument model and tuning into ``document``.

    Returns the resolved global model code (None when unmapped).
    """
    region = document.variax
    model_code = resolve_model_code(rig.guitar_model, hardware_model, config, rules)
    if model_code is not None:
        region["@variax_model"] = model_code
    region["@variax_magmode"] = True
    document.meta["variax_type"] = variax_type(hardware_model)

    offsets, mapped = resolve_tuning_offsets(rig.tuning, hardware_model, config, rules)
    if mapped:
        region["@variax_customtuning"] = True
        for string in range(1, STRING_COUNT + 1):
            region[f"@variax_str{string}tuning"] = offsets[STRING_COUNT - string]
    else:
        region["@variax_customtuning"] = False

    document.variax_controllers()["@variax_model"] = {
        "@controller": rules.variax_snapshot_controller,
        "@globalblock": "inputA",
        "@globaldsp": 0,
        "@max": rules.variax_model_max,
        "@min": 0,
        "@snapshot_disable": False,
    }

    if rig.snapshots:
        for index in range(SNAPSHOT_COUNT):
            code = model_code
            if index < len(rig.snapshots):
                text = _recover_snapshot_model(rig.snapshots[index])
                if is_instrument_set(text):
                    snapshot_code = resolve_model_code(text, hardware_model, config, rules)
                    if snapshot_code is not None:
                        code = snapshot_code
            controllers = document.snapshot_controllers(index, "variax")
            if code is not None:
                controllers["@variax_model"] = {"@fs_enabled": False, "@value": code}

    logger.debug(
        "Variax applied: model=%s tuning_mapped=%s type=%s",
        model_code,
        mapped,
        document.meta["variax_type"],
    )
    return model_code


def _component_settings(params: dict[str, Any]) -> str | None:
    for field_name in ("settings", "Settings"):
        value = params.get(field_name)
        if isinstance(value, str):
            return value
    return None


def sync_variax_intent(rig: RigDescription) -> RigDescription:
    """Fill empty instrument fields from a Variax chain component.

    Returns a new rig; the input is not modified.
    """
    component = next(
        (
            item
            for item in rig.chain
            if "variax" in item.type.lower() or "variax" in item.name.lower()
        ),
        None,
    )
    if component is None:
        return rig

    synced = rig
    if not is_instrument_set(rig.guitar_model):
        synced = replace(synced, guitar_model=component.settings)

    snapshots: list[Snapshot] = []
    for snapshot in rig.snapshots:
        if not is_instrument_set(snapshot.guitar_model):
            params = snapshot.params.get(component.name)
            settings = _component_settings(params) if isinstance(params, dict) else None
            if settings is not None:
                snapshot = replace(snapshot, guitar_model=settings)
        snapshots.append(snapshot)
    return synced.with_snapshots(snapshots)
