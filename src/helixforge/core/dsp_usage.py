"""Per-path DSP budget summary of a compiled preset."""

from __future__ import annotations

from typing import Any

from helixforge.core.document import PATH_COUNT, PresetDocument, path_key
from helixforge.core.registries.model_catalog import DEFAULT_DSP_COST, ModelCatalog

PATH_BUDGET = 100.0


def _block_cost(model_id: str, catalog: ModelCatalog, dsp_map: dict[str, Any]) -> float:
    cost = dsp_map.get(model_id)
    if isinstance(cost, (int, float)) and not isinstance(cost, bool) and cost > 0:
        return float(cost)
    entry = catalog.find_by_id(model_id)
    if entry is not None:
        return entry.dsp_cost
    return DEFAULT_DSP_COST


def summarize_dsp_usage(document: PresetDocument, catalog: ModelCatalog) -> dict[str, Any]:
    """Return block counts, summed cost and budget overrun for each path.

    Costs come from the document's own ``dsp_map`` when present, else the
    catalog.
    """
    raw_map = document.meta.get("dsp_map")
    dsp_map = raw_map if isinstance(raw_map, dict) else {}

    paths: list[dict[str, Any]] = []
    for path in range(PATH_COUNT):
        blocks: list[dict[str, Any]] = []
        for key, entry in document.blocks(path):
            model_id = str(entry.get("@model", ""))
            blocks.append(
                {
                    "block": key,
                    "name": str(entry.get("@name", "")),
                    "model": model_id,
                    "cost": round(_block_cost(model_id, catalog, dsp_map), 2),
                }
            )
        total = round(sum(item["cost"] for item in blocks), 2)
        paths.append(
            {
                "path": path_key(path),
                "block_count": len(blocks),
                "total_cost": total,
                "budget": PATH_BUDGET,
                "over_budget": total > PATH_BUDGET,
                "blocks": blocks,
            }
        )
    return {"preset_name": document.name, "paths": paths}


def render_dsp_usage_text(summary: dict[str, Any]) -> str:
    lines = [f"preset: {summary.get('preset_name', '')}"]
    for path in summary.get("paths", []):
        flag = "  OVER BUDGET" if path.get("over_budget") else ""
        lines.append(
            f"{path['path']}: {path['block_count']} block(s), "
            f"{path['total_cost']:.1f}% of {path['budget']:.0f}%{flag}"
        )
        for block in path.get("blocks", []):
            lines.append(f"  - {block['block']}  {block['name']} ({block['model']}) {block['cost']:.1f}%")
    return "\n".join(lines)
