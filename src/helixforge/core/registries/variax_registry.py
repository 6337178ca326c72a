"""Variax hardware configuration loader for ontology/variax.yaml."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from helixforge.core.loaders import load_yaml_object
from helixforge.core.schema_registry import schema_path_for, validate_payload_against_schema
from helixforge.resources import ontology_dir

logger = logging.getLogger(__name__)

VARIANT_LOGIC_SEQUENTIAL = "sequential"
VARIANT_LOGIC_INVERTED = "inverted"


def _default_variax_path() -> Path:
    return ontology_dir() / "variax.yaml"


@dataclass(frozen=True)
class VariaxBank:
    name: str
    base_id: int


@dataclass(frozen=True)
class VariaxTuning:
    name: str
    offsets: tuple[int, ...]
    aliases: tuple[str, ...] = ()


@dataclass(frozen=True)
class VariaxHardwareConfig:
    key: str
    inherits: str = ""
    variant_logic: str = ""
    banks: tuple[VariaxBank, ...] = ()
    aliases: tuple[tuple[str, str], ...] = ()
    tunings: tuple[VariaxTuning, ...] = ()

    @property
    def inverted(self) -> bool:
        return self.variant_logic == VARIANT_LOGIC_INVERTED


class VariaxRegistry:
    """Hardware-keyed Variax tables, in declaration order."""

    def __init__(
        self,
        configurations: dict[str, VariaxHardwareConfig],
        meta: dict[str, Any] | None,
    ) -> None:
        self._configurations = configurations
        self._meta = meta

    @classmethod
    def empty(cls) -> "VariaxRegistry":
        return cls(configurations={}, meta=None)

    @property
    def meta(self) -> dict[str, Any] | None:
        return dict(self._meta) if self._meta else None

    def list_hardware_keys(self) -> list[str]:
        return list(self._configurations.keys())

    def get_configuration(self, key: str) -> VariaxHardwareConfig | None:
        return self._configurations.get(key)

    def resolve_hardware(self, hardware: str) -> VariaxHardwareConfig | None:
        """Return the effective configuration for a hardware model string.

        Matches the lowercased key exactly, else the first declared key
        contained in it. One level of ``inherits`` is followed; the child's
        non-empty fields override the parent's.
        """
        hardware_key = (hardware or "").strip().lower()
        config = self._configurations.get(hardware_key)
        if config is None:
            for key, candidate in self._configurations.items():
                if key and key in hardware_key:
                    config = candidate
                    break
        if config is None:
            return None
        if not config.inherits:
            return config

        parent = self._configurations.get(config.inherits)
        if parent is None:
            logger.debug(
                "Variax configuration %s inherits unknown %s", config.key, config.inherits
            )
            return config
        return replace(
            parent,
            key=config.key,
            inherits="",
            variant_logic=config.variant_logic or parent.variant_logic,
            banks=config.banks or parent.banks,
            aliases=config.aliases or parent.aliases,
            tunings=config.tunings or parent.tunings,
        )

    def __len__(self) -> int:
        return len(self._configurations)

    def __contains__(self, key: object) -> bool:
        return key in self._configurations


def _build_configuration(key: str, entry: dict[str, Any]) -> VariaxHardwareConfig:
    tunings = tuple(
        VariaxTuning(
            name=str(name),
            offsets=tuple(int(value) for value in data["offsets"]),
            aliases=tuple(str(alias) for alias in data.get("aliases") or ()),
        )
        for name, data in (entry.get("tunings") or {}).items()
    )
    return VariaxHardwareConfig(
        key=key,
        inherits=str(entry.get("inherits") or "").strip().lower(),
        variant_logic=str(entry.get("variant_logic") or ""),
        banks=tuple(
            VariaxBank(name=str(bank["name"]), base_id=int(bank["base_id"]))
            for bank in entry.get("banks") or ()
        ),
        aliases=tuple(
            (str(alias).lower(), str(bank))
            for alias, bank in (entry.get("aliases") or {}).items()
        ),
        tunings=tunings,
    )


def load_variax_registry(path: Path | None = None) -> VariaxRegistry:
    """Load and validate the Variax configuration table from YAML."""
    resolved_path = path if path is not None else _default_variax_path()
    payload = load_yaml_object(resolved_path, label="Variax configuration")
    validate_payload_against_schema(
        payload,
        schema_path=schema_path_for("variax"),
        payload_name="Variax configuration",
    )

    variax_map = payload["variax"]
    meta = variax_map.get("_meta")
    configurations = {
        str(key).strip().lower(): _build_configuration(str(key).strip().lower(), entry)
        for key, entry in variax_map["configurations"].items()
    }
    return VariaxRegistry(
        configurations=configurations,
        meta=dict(meta) if meta else None,
    )


def load_variax_registry_or_empty(path: Path | None = None) -> VariaxRegistry:
    """Like :func:`load_variax_registry`, but an unusable table yields an empty one.

    Variax resolution then relies on the keyword fallbacks alone.
    """
    try:
        return load_variax_registry(path)
    except ValueError as exc:
        logger.warning("Variax configuration unavailable, using keyword fallbacks: %s", exc)
        return VariaxRegistry.empty()
