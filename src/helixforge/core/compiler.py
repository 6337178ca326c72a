"""Preset compilation: rig description + block mapping -> ``.hlx`` document.

The compiler walks the resolved blocks in order, places each one on a DSP
path at the next free position, merges and sanitizes its parameters, then
synchronizes the eight snapshot slots, the expression pedal binding and the
Variax region before stamping the hardware-derived global defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from helixforge.core.context import CompilerContext, shared_compiler_context
from helixforge.core.document import (
    PATH_COUNT,
    SNAPSHOT_COUNT,
    PresetDocument,
    block_key,
    path_key,
)
from helixforge.core.registries.compile_rules import CompileRules
from helixforge.core.registries.model_catalog import CatalogEntry
from helixforge.core.rig import ResolvedBlock, RigDescription, Snapshot
from helixforge.core.sanitizer import sanitize
from helixforge.core.settings import CompileSettings
from helixforge.core.template import new_template_preset
from helixforge.core.variax import apply_variax, reset_variax, sync_variax_intent

logger = logging.getLogger(__name__)

OUTPUT_MULTI = 1
OUTPUT_PATH_2 = 2


@dataclass
class _PlacedBlock:
    request: ResolvedBlock
    entry: CatalogEntry
    path: int
    position: int
    params: dict[str, Any]

    @property
    def key(self) -> str:
        return block_key(self.position)


def dsp_capacity_label(hardware: str, rules: CompileRules | None = None) -> str:
    if rules is None:
        rules = shared_compiler_context().rules
    if rules.is_dual_path(hardware):
        return "Dual DSP (2 paths, 100% each)"
    return "Single DSP (1 path, 100%)"


def resolve_param_key(
    name: str,
    baseline: Mapping[str, Any],
    rules: CompileRules,
) -> str:
    """Map a caller parameter name onto a key of the model's defaults.

    Tries the exact key, then the alias table, then a case-insensitive
    match. Unresolved names are returned verbatim.
    """
    if name in baseline:
        return name
    for candidate in rules.alias_candidates(name):
        if candidate in baseline:
            return candidate
    lowered = name.lower()
    for key in baseline:
        if key.lower() == lowered:
            return key
    return name


def _target_path(requested: int, dual_path: bool) -> int:
    if not dual_path:
        return 0
    if requested not in range(PATH_COUNT):
        logger.debug("Path %r out of range, using path 0", requested)
        return 0
    return requested


def _build_block_params(
    request: ResolvedBlock,
    entry: CatalogEntry,
    position: int,
    rules: CompileRules,
) -> dict[str, Any]:
    defaults = entry.defaults()
    params = entry.defaults()
    for name, value in request.params.items():
        key = resolve_param_key(name, defaults, rules)
        params[key] = sanitize(entry.internal_id, key, value, rules)
    params["@enabled"] = True
    params["@name"] = request.name
    params["@model"] = entry.internal_id
    params["@position"] = position
    params["@type"] = rules.block_type_code(entry.internal_id)
    params["@path"] = 0
    return params


def _names_match(active: str, candidate: str) -> bool:
    if not active or not candidate:
        return active == candidate
    return active == candidate or active in candidate or candidate in active


def _is_active_in(snapshot: Snapshot, block: _PlacedBlock) -> bool:
    block_name = block.request.name.lower()
    model_name = block.request.model_name.lower()
    for active_name in snapshot.active_blocks:
        active = active_name.lower()
        if _names_match(active, block_name) or _names_match(active, model_name):
            return True
    return False


def _bind_expression_pedal(
    document: PresetDocument,
    block: _PlacedBlock,
    pedal: int,
    rules: CompileRules,
) -> None:
    if pedal <= 0 or not rules.uses_expression_pedal(block.entry.internal_id):
        return
    controllers = document.path_controllers(block.path).setdefault(block.key, {})
    controllers[rules.expression_pedal_param] = {
        "@controller": pedal,
        "@max": 1.0,
        "@min": 0.0,
        "@snapshot_disable": False,
    }


def _sync_snapshot_enables(
    document: PresetDocument,
    block: _PlacedBlock,
    snapshots: Sequence[Snapshot],
) -> None:
    if not snapshots:
        for index in range(SNAPSHOT_COUNT):
            document.snapshot_blocks(index, block.path)[block.key] = True
        block.params["@enabled"] = True
        return

    membership = [_is_active_in(snapshot, block) for snapshot in snapshots]
    unused = not any(membership)
    if unused:
        logger.debug("Block %r is in no snapshot, enabling it in the first", block.request.name)

    for index in range(SNAPSHOT_COUNT):
        slot = document.snapshot(index)
        if index < len(snapshots):
            slot["@name"] = snapshots[index].name or slot.get("@name", "")
            slot["@custom_name"] = True
        enabled = membership[index] if index < len(snapshots) else False
        if index == 0 and unused:
            enabled = True
        document.snapshot_blocks(index, block.path)[block.key] = enabled
        if index == 0:
            block.params["@enabled"] = enabled


def _sync_snapshot_params(
    document: PresetDocument,
    block: _PlacedBlock,
    snapshots: Sequence[Snapshot],
    rules: CompileRules,
) -> None:
    internal_id = block.entry.internal_id
    defaults = block.entry.defaults()

    overrides: dict[str, dict[int, Any]] = {}
    for index, snapshot in enumerate(snapshots[:SNAPSHOT_COUNT]):
        for name, value in snapshot.block_params(block.request.name).items():
            key = resolve_param_key(name, defaults, rules)
            overrides.setdefault(key, {})[index] = sanitize(internal_id, key, value, rules)

    for key, values in overrides.items():
        baseline = sanitize(internal_id, key, block.params.get(key), rules)
        if all(value == baseline for value in values.values()):
            continue

        document.path_controllers(block.path).setdefault(block.key, {})[key] = {
            "@controller": rules.snapshot_controller,
            "@max": 1.0,
            "@min": 0.0,
            "@snapshot_disable": False,
        }
        for index in range(SNAPSHOT_COUNT):
            value = values.get(index, baseline)
            if value is None:
                continue
            slot_controllers = document.snapshot_controllers(index, path_key(block.path))
            slot_controllers.setdefault(block.key, {})[key] = {
                "@fs_enabled": False,
                "@value": value,
            }
        logger.debug("Snapshot controller on %s.%s.%s", path_key(block.path), block.key, key)


def _apply_global_defaults(
    document: PresetDocument,
    *,
    hardware: str,
    dual_path: bool,
    path_counts: list[int],
    context: CompilerContext,
) -> None:
    document.data["@device"] = context.rules.device_code(hardware)
    document.data["@schema"] = 0
    document.meta["dsp_map"] = context.catalog.dsp_cost_map()

    for path in range(PATH_COUNT):
        output = document.dsp(path).get("outputA")
        if isinstance(output, dict):
            output["@output"] = OUTPUT_MULTI
    if dual_path and path_counts[1] > 0:
        output = document.dsp(0).get("outputA")
        if isinstance(output, dict):
            output["@output"] = OUTPUT_PATH_2

    global_region = document.global_region
    global_region["@cursor_dsp"] = 0
    global_region["@cursor_group"] = "inputA"


def compile_preset(
    rig: RigDescription,
    blocks: Sequence[ResolvedBlock],
    preset_name: str,
    *,
    hardware: str,
    default_exp_pedal: int = 0,
    variax_enabled: bool = False,
    variax_hardware_model: str = "",
    context: CompilerContext | None = None,
) -> PresetDocument:
    """Compile ``rig`` and its resolved ``blocks`` into a preset document.

    Blocks naming the Variax placeholder are skipped and blocks whose model
    is not in the catalog are dropped; neither consumes a position. Raises
    TemplateLoadError when the baseline template cannot be loaded.
    """
    if context is None:
        context = shared_compiler_context()
    rules = context.rules
    rig = sync_variax_intent(rig)
    dual_path = rules.is_dual_path(hardware)

    document = new_template_preset(preset_name, context.template_path)

    path_counts = [0] * PATH_COUNT
    for request in blocks:
        if rules.is_variax_placeholder(request.name, request.model_name):
            logger.debug("Skipping Variax placeholder block %r", request.name)
            continue
        entry = context.catalog.resolve(request.model_name)
        if entry is None:
            logger.debug(
                "Dropping block %r: model %r is not in the catalog",
                request.name,
                request.model_name,
            )
            continue

        path = _target_path(request.path, dual_path)
        position = path_counts[path]
        path_counts[path] += 1

        block = _PlacedBlock(
            request=request,
            entry=entry,
            path=path,
            position=position,
            params=_build_block_params(request, entry, position, rules),
        )
        document.dsp(path)[block.key] = block.params

        _bind_expression_pedal(document, block, default_exp_pedal, rules)
        _sync_snapshot_enables(document, block, rig.snapshots)
        if rig.snapshots:
            _sync_snapshot_params(document, block, rig.snapshots, rules)

    if variax_enabled or rig.wants_variax():
        apply_variax(document, rig, variax_hardware_model, context.variax, rules)
    else:
        reset_variax(document)

    _apply_global_defaults(
        document,
        hardware=hardware,
        dual_path=dual_path,
        path_counts=path_counts,
        context=context,
    )
    logger.info(
        "Compiled preset %r for %s: %d block(s) on path 0, %d on path 1",
        preset_name,
        hardware,
        path_counts[0],
        path_counts[1],
    )
    return document


def compile_with_settings(
    rig: RigDescription,
    blocks: Sequence[ResolvedBlock],
    preset_name: str,
    settings: CompileSettings,
    *,
    context: CompilerContext | None = None,
) -> PresetDocument:
    return compile_preset(
        rig,
        blocks,
        preset_name,
        hardware=settings.hardware_target,
        default_exp_pedal=settings.default_exp_pedal,
        variax_enabled=settings.variax_enabled,
        variax_hardware_model=settings.variax_hardware_model,
        context=context,
    )
