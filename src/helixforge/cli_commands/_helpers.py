"""Shared utilities used across CLI subcommand modules.

Layer 0: no cli_commands imports; only imports from helixforge.core / stdlib.
"""
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from helixforge.core.settings import (
    CompileSettings,
    load_compile_settings,
    merge_compile_settings,
)

__all__ = [
    "_write_json_file",
    "_dumps",
    "_build_compile_overrides",
    "_resolve_compile_settings",
]


# ── JSON I/O ──────────────────────────────────────────────────────


def _dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def _write_json_file(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_dumps(payload) + "\n", encoding="utf-8")


# ── Compile settings layering ─────────────────────────────────────


def _build_compile_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {
        "hardware_target": args.hardware,
        "default_exp_pedal": args.exp_pedal,
        "variax_enabled": args.variax,
        "variax_hardware_model": args.variax_model,
    }
    return {key: value for key, value in overrides.items() if value is not None}


def _resolve_compile_settings(args: argparse.Namespace) -> CompileSettings:
    base = CompileSettings()
    if args.config:
        base = load_compile_settings(Path(args.config))
    return merge_compile_settings(base, _build_compile_overrides(args))
