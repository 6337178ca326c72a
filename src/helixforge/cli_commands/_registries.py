"""Registry-related CLI helpers: model catalog and Variax lookups."""
from __future__ import annotations

from typing import Any

from helixforge.core.context import CompilerContext
from helixforge.core.registries.model_catalog import CatalogEntry
from helixforge.core.variax import resolve_model_code, resolve_tuning_offsets, variax_type

__all__ = [
    "_build_model_list_payload",
    "_build_model_show_payload",
    "_render_model_text",
    "_build_variax_model_payload",
    "_build_variax_tuning_payload",
]


# ── Model catalog helpers ─────────────────────────────────────────


def _model_summary(entry: CatalogEntry) -> dict[str, Any]:
    return {
        "internal_id": entry.internal_id,
        "name": entry.display_name,
        "based_on": entry.based_on,
        "dsp_cost": entry.dsp_cost,
    }


def _build_model_list_payload(context: CompilerContext) -> list[dict[str, Any]]:
    return [_model_summary(entry) for entry in context.catalog]


def _build_model_show_payload(context: CompilerContext, model: str) -> dict[str, Any]:
    entry = context.catalog.get_entry(model)
    payload = _model_summary(entry)
    payload["dsp_stereo"] = entry.dsp_stereo
    payload["family"] = context.rules.model_family(entry.internal_id)
    payload["type_code"] = context.rules.block_type_code(entry.internal_id)
    payload["defaults"] = entry.defaults()
    return payload


def _render_model_text(payload: dict[str, Any]) -> str:
    lines = [
        f"{payload.get('internal_id', '')}  {payload.get('name', '')}",
        f"based on: {payload.get('based_on', '')}",
        f"dsp cost: {payload.get('dsp_cost', 0.0):.1f}%",
    ]
    family = payload.get("family")
    if family:
        lines.append(f"family: {family}")
    defaults = payload.get("defaults")
    if isinstance(defaults, dict) and defaults:
        lines.append("defaults:")
        for key in sorted(defaults):
            lines.append(f"- {key}: {defaults[key]}")
    return "\n".join(lines)


# ── Variax helpers ────────────────────────────────────────────────


def _build_variax_model_payload(
    context: CompilerContext,
    text: str,
    hardware: str,
) -> dict[str, Any]:
    code = resolve_model_code(text, hardware, context.variax, context.rules)
    return {
        "text": text,
        "hardware": hardware,
        "variax_type": variax_type(hardware),
        "mapped": code is not None,
        "model_code": code,
    }


def _build_variax_tuning_payload(
    context: CompilerContext,
    text: str,
    hardware: str,
) -> dict[str, Any]:
    offsets, mapped = resolve_tuning_offsets(text, hardware, context.variax, context.rules)
    return {
        "text": text,
        "hardware": hardware,
        "mapped": mapped,
        "offsets": list(offsets),
    }
