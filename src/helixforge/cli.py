from __future__ import annotations

import argparse
import sys
from pathlib import Path

from helixforge.cli_commands._helpers import (
    _dumps,
    _resolve_compile_settings,
    _write_json_file,
)
from helixforge.cli_commands._registries import (
    _build_model_list_payload,
    _build_model_show_payload,
    _build_variax_model_payload,
    _build_variax_tuning_payload,
    _render_model_text,
)
from helixforge.core.compiler import compile_with_settings, dsp_capacity_label
from helixforge.core.context import shared_compiler_context
from helixforge.core.document import PresetDocument
from helixforge.core.dsp_usage import render_dsp_usage_text, summarize_dsp_usage
from helixforge.core.loaders import load_json_object
from helixforge.core.rig import load_block_mapping, load_rig_description
from helixforge.core.schema_registry import schema_path_for, validate_payload_against_schema
from helixforge.core.settings import DEFAULT_VARIAX_HARDWARE_MODEL
from helixforge.logging_setup import configure_logging

_DEFAULT_PRESET_NAME = "New Preset"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Helix preset compiler tools.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser(
        "compile", help="Compile a rig description and block mapping into a .hlx preset."
    )
    compile_parser.add_argument("rig", help="Path to the rig description JSON.")
    compile_parser.add_argument("blocks", help="Path to the block mapping JSON.")
    compile_parser.add_argument(
        "--name",
        default=None,
        help="Preset name (defaults to the rig's suggested_name).",
    )
    compile_parser.add_argument(
        "--config",
        default=None,
        help="Path to a compile settings JSON file.",
    )
    compile_parser.add_argument(
        "--hardware",
        default=None,
        help="Hardware target (e.g. 'Helix Floor', 'HX Stomp').",
    )
    compile_parser.add_argument(
        "--exp-pedal",
        type=int,
        default=None,
        help="Expression pedal bound to wah/volume/whammy blocks (0 = none).",
    )
    compile_parser.add_argument(
        "--variax",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force Variax settings on or off.",
    )
    compile_parser.add_argument(
        "--variax-model",
        default=None,
        help="Variax hardware model (e.g. 'Standard', 'JTV-69', 'Shuriken').",
    )
    compile_parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the compiled document against the preset schema.",
    )
    compile_parser.add_argument(
        "--out",
        default=None,
        help="Path to write the preset JSON (prints to stdout when omitted).",
    )

    models_parser = subparsers.add_parser("models", help="Model catalog tools.")
    models_subparsers = models_parser.add_subparsers(dest="models_command", required=True)
    models_list_parser = models_subparsers.add_parser("list", help="List catalog models.")
    models_list_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format for the model list.",
    )
    models_show_parser = models_subparsers.add_parser("show", help="Show one model.")
    models_show_parser.add_argument(
        "model",
        help="Display name or internal ID (e.g. 'Scream 808' or HD2_DistScream808).",
    )
    models_show_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format for model details.",
    )

    variax_parser = subparsers.add_parser("variax", help="Variax resolution tools.")
    variax_subparsers = variax_parser.add_subparsers(dest="variax_command", required=True)
    for name, help_text in (
        ("model", "Resolve an instrument name to a Variax model code."),
        ("tuning", "Resolve a tuning name to per-string offsets."),
    ):
        sub = variax_subparsers.add_parser(name, help=help_text)
        sub.add_argument("text", help="Free-text instrument or tuning name.")
        sub.add_argument(
            "--hardware",
            default=DEFAULT_VARIAX_HARDWARE_MODEL,
            help="Variax hardware model.",
        )

    dsp_parser = subparsers.add_parser("dsp", help="Summarize DSP usage of a preset.")
    dsp_parser.add_argument("preset", help="Path to a compiled .hlx preset JSON.")
    dsp_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format for the DSP summary.",
    )
    return parser


def _run_compile(args: argparse.Namespace) -> int:
    try:
        settings = _resolve_compile_settings(args)
        rig = load_rig_description(Path(args.rig))
        blocks = load_block_mapping(Path(args.blocks))
        preset_name = args.name or rig.suggested_name or _DEFAULT_PRESET_NAME
        document = compile_with_settings(rig, blocks, preset_name, settings)
        payload = document.to_dict()
        if args.validate:
            validate_payload_against_schema(
                payload,
                schema_path=schema_path_for("preset_document"),
                payload_name="Preset document",
            )
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if args.out:
        _write_json_file(Path(args.out), payload)
        print(
            f"Wrote {args.out} ({dsp_capacity_label(settings.hardware_target)})",
            file=sys.stderr,
        )
    else:
        print(_dumps(payload))
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "compile":
        return _run_compile(args)

    try:
        context = shared_compiler_context()
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if args.command == "models":
        if args.models_command == "list":
            models = _build_model_list_payload(context)
            if args.format == "json":
                print(_dumps(models))
            else:
                print(context.catalog.format_catalog_text())
            return 0
        if args.models_command == "show":
            try:
                payload = _build_model_show_payload(context, args.model)
            except ValueError as exc:
                print(str(exc), file=sys.stderr)
                return 1
            if args.format == "json":
                print(_dumps(payload))
            else:
                print(_render_model_text(payload))
            return 0

    if args.command == "variax":
        if args.variax_command == "model":
            payload = _build_variax_model_payload(context, args.text, args.hardware)
        else:
            payload = _build_variax_tuning_payload(context, args.text, args.hardware)
        print(_dumps(payload))
        return 0

    if args.command == "dsp":
        try:
            document = PresetDocument(load_json_object(Path(args.preset), label="Preset"))
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        summary = summarize_dsp_usage(document, context.catalog)
        if args.format == "json":
            print(_dumps(summary))
        else:
            print(render_dsp_usage_text(summary))
        return 0

    return 0
