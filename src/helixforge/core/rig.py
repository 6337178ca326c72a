"""Rig description and block mapping value types, decoded from wire JSON."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from helixforge.core.loaders import load_json_object
from helixforge.core.schema_registry import schema_path_for, validate_payload_against_schema

_NO_INSTRUMENT = "None"


def is_instrument_set(value: str) -> bool:
    """True for an instrument/tuning field that names something."""
    return bool(value) and value != _NO_INSTRUMENT


@dataclass(frozen=True)
class RigComponent:
    type: str = ""
    name: str = ""
    description: str = ""
    settings: str = ""


@dataclass(frozen=True)
class Snapshot:
    name: str = ""
    active_blocks: tuple[str, ...] = ()
    guitar_model: str = ""
    tuning: str = ""
    params: dict[str, dict[str, Any]] = field(default_factory=dict)

    def block_params(self, block_name: str) -> dict[str, Any]:
        """Return the override map for ``block_name`` (exact, else case-insensitive)."""
        exact = self.params.get(block_name)
        if isinstance(exact, dict):
            return exact
        lowered = block_name.lower()
        for key, value in self.params.items():
            if key.lower() == lowered and isinstance(value, dict):
                return value
        return {}


@dataclass(frozen=True)
class RigDescription:
    suggested_name: str = ""
    explanation: str = ""
    guitar_model: str = ""
    tuning: str = ""
    chain: tuple[RigComponent, ...] = ()
    snapshots: tuple[Snapshot, ...] = ()

    def wants_variax(self) -> bool:
        """True when the rig or any snapshot names an instrument model."""
        if is_instrument_set(self.guitar_model):
            return True
        return any(is_instrument_set(snapshot.guitar_model) for snapshot in self.snapshots)

    def with_snapshots(self, snapshots: list[Snapshot]) -> "RigDescription":
        return replace(self, snapshots=tuple(snapshots))


@dataclass(frozen=True)
class ResolvedBlock:
    name: str = ""
    model_name: str = ""
    path: int = 0
    params: dict[str, Any] = field(default_factory=dict)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _snapshot_from_payload(payload: dict[str, Any]) -> Snapshot:
    raw_params = payload.get("params") or {}
    params = {
        str(block_name): dict(overrides)
        for block_name, overrides in raw_params.items()
        if isinstance(overrides, dict)
    }
    return Snapshot(
        name=_text(payload.get("name")),
        active_blocks=tuple(_text(name) for name in payload.get("active_blocks") or ()),
        guitar_model=_text(payload.get("guitar_model")),
        tuning=_text(payload.get("tuning")),
        params=params,
    )


def rig_from_payload(payload: dict[str, Any]) -> RigDescription:
    """Validate and decode a rig description wire payload."""
    validate_payload_against_schema(
        payload,
        schema_path=schema_path_for("rig_description"),
        payload_name="Rig description",
    )
    chain = tuple(
        RigComponent(
            type=_text(item.get("type")),
            name=_text(item.get("name")),
            description=_text(item.get("description")),
            settings=_text(item.get("settings")),
        )
        for item in payload.get("chain") or ()
    )
    snapshots = tuple(
        _snapshot_from_payload(item) for item in payload.get("snapshots") or ()
    )
    return RigDescription(
        suggested_name=_text(payload.get("suggested_name")),
        explanation=_text(payload.get("explanation")),
        guitar_model=_text(payload.get("guitar_model")),
        tuning=_text(payload.get("tuning")),
        chain=chain,
        snapshots=snapshots,
    )


def blocks_from_payload(payload: dict[str, Any]) -> list[ResolvedBlock]:
    """Validate and decode a ``{"blocks": [...]}`` block mapping payload."""
    validate_payload_against_schema(
        payload,
        schema_path=schema_path_for("block_mapping"),
        payload_name="Block mapping",
    )
    return [
        ResolvedBlock(
            name=_text(item.get("name")),
            model_name=_text(item.get("model_name")),
            path=int(item.get("path") or 0),
            params=dict(item.get("params") or {}),
        )
        for item in payload["blocks"]
    ]


def load_rig_description(path: Path) -> RigDescription:
    return rig_from_payload(load_json_object(path, label="Rig description"))


def load_block_mapping(path: Path) -> list[ResolvedBlock]:
    return blocks_from_payload(load_json_object(path, label="Block mapping"))
