"""Baseline preset template loading and reset."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from helixforge.core.document import SNAPSHOT_COUNT, PresetDocument
from helixforge.resources import templates_dir

logger = logging.getLogger(__name__)

_STALE_BLOCK_PREFIXES = ("block", "cab")


class TemplateLoadError(ValueError):
    """Raised when the baseline preset template cannot be loaded."""


def default_template_path() -> Path:
    return templates_dir() / "preset_template.json"


@lru_cache(maxsize=4)
def _read_template(resolved_path: str) -> str:
    path = Path(resolved_path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateLoadError(f"Failed to read preset template from {path}: {exc}") from exc


def _load_template_payload(path: Path) -> dict[str, Any]:
    raw = _read_template(str(path.resolve()))
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TemplateLoadError(f"Preset template is not valid JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise TemplateLoadError(f"Preset template root must be an object: {path}")
    return payload


def _require_mapping(container: dict[str, Any], key: str, *, where: str) -> dict[str, Any]:
    value = container.get(key)
    if not isinstance(value, dict):
        raise TemplateLoadError(f"Preset template is missing the {where} object.")
    return value


def reset_template_state(payload: dict[str, Any]) -> None:
    """Strip stale path-0 blocks, controllers, footswitches and snapshot state."""
    data = _require_mapping(payload, "data", where="data")
    tone = _require_mapping(data, "tone", where="data.tone")

    dsp0 = _require_mapping(tone, "dsp0", where="data.tone.dsp0")
    for key in [key for key in dsp0 if key.startswith(_STALE_BLOCK_PREFIXES)]:
        del dsp0[key]

    controller = tone.setdefault("controller", {})
    controller["dsp0"] = {}
    footswitch = tone.setdefault("footswitch", {})
    footswitch["dsp0"] = {}

    for index in range(SNAPSHOT_COUNT):
        snapshot = _require_mapping(tone, f"snapshot{index}", where=f"data.tone.snapshot{index}")
        snapshot.setdefault("blocks", {})["dsp0"] = {}
        snapshot.setdefault("controllers", {})["dsp0"] = {}


def new_template_preset(name: str, template_path: Path | None = None) -> PresetDocument:
    """Return a fresh document named ``name`` with no residual block state.

    Every call returns an independent copy. Raises TemplateLoadError when the
    template cannot be read, parsed or is missing a required region.
    """
    path = template_path if template_path is not None else default_template_path()
    payload = _load_template_payload(path)
    meta = _require_mapping(_require_mapping(payload, "data", where="data"), "meta", where="data.meta")
    meta["name"] = name
    reset_template_state(payload)
    logger.debug("Loaded preset template %s as %r", path, name)
    return PresetDocument(payload)
