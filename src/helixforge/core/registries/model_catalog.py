"""Model catalog loader for ontology/models.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from helixforge.core.loaders import load_yaml_object
from helixforge.core.schema_registry import schema_path_for, validate_payload_against_schema
from helixforge.resources import ontology_dir

DEFAULT_DSP_COST = 3.0


def _default_models_path() -> Path:
    return ontology_dir() / "models.yaml"


@dataclass(frozen=True)
class CatalogEntry:
    internal_id: str
    name: str = ""
    based_on: str = ""
    dsp_mono: float = 0.0
    dsp_stereo: float = 0.0
    _defaults: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @property
    def dsp_cost(self) -> float:
        """Mono DSP cost, with 3.0 standing in for an undeclared cost."""
        return self.dsp_mono if self.dsp_mono > 0 else DEFAULT_DSP_COST

    @property
    def display_name(self) -> str:
        return self.name or self.internal_id

    def defaults(self) -> dict[str, Any]:
        """Return a fresh copy of the default parameter set."""
        return dict(self._defaults)


class ModelCatalog:
    """Immutable, dataset-ordered model catalog."""

    def __init__(
        self,
        entries: list[CatalogEntry],
        meta: dict[str, Any] | None,
    ) -> None:
        self._entries = tuple(entries)
        self._meta = meta
        self._by_id = {entry.internal_id: entry for entry in self._entries}
        by_name: dict[str, CatalogEntry] = {}
        for entry in self._entries:
            key = entry.name.strip().lower()
            if key and key not in by_name:
                by_name[key] = entry
        self._by_name = MappingProxyType(by_name)

    @property
    def meta(self) -> dict[str, Any] | None:
        return dict(self._meta) if self._meta else None

    def entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    def find_by_name(self, name: str) -> CatalogEntry | None:
        if not isinstance(name, str):
            return None
        return self._by_name.get(name.strip().lower())

    def find_by_id(self, internal_id: str) -> CatalogEntry | None:
        if not isinstance(internal_id, str):
            return None
        return self._by_id.get(internal_id)

    def resolve(self, name: str) -> CatalogEntry | None:
        """Look up by display name first, then by internal identifier."""
        entry = self.find_by_name(name)
        if entry is not None:
            return entry
        return self.find_by_id(name)

    def get_entry(self, name: str) -> CatalogEntry:
        """Resolve ``name`` or raise ValueError listing the known model IDs."""
        normalized = name.strip() if isinstance(name, str) else ""
        if not normalized:
            raise ValueError("model name must be a non-empty string.")
        entry = self.resolve(normalized)
        if entry is not None:
            return entry
        known_ids = self.list_model_ids()
        if known_ids:
            raise ValueError(
                f"Unknown model: {normalized}. "
                f"Known model IDs: {', '.join(known_ids)}"
            )
        raise ValueError(f"Unknown model: {normalized}. No models are available.")

    def is_valid_model(self, internal_id: str) -> bool:
        return internal_id in self._by_id

    def list_model_ids(self) -> list[str]:
        return [entry.internal_id for entry in self._entries]

    def list_model_names(self) -> list[str]:
        return [entry.display_name for entry in self._entries]

    def dsp_cost_map(self) -> dict[str, float]:
        return {entry.internal_id: entry.dsp_cost for entry in self._entries}

    def format_catalog_text(self) -> str:
        lines = [
            f"- {entry.display_name} (Based on: {entry.based_on}) [DSP: {entry.dsp_cost:.1f}%]"
            for entry in self._entries
        ]
        return "\n".join(lines)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, internal_id: object) -> bool:
        return internal_id in self._by_id


def _coerce_cost(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def load_model_catalog(path: Path | None = None) -> ModelCatalog:
    """Load and validate the model catalog from YAML.

    Raises ValueError on read, parse, schema or duplicate-ID failures.
    """
    resolved_path = path if path is not None else _default_models_path()
    payload = load_yaml_object(resolved_path, label="Model catalog")
    validate_payload_against_schema(
        payload,
        schema_path=schema_path_for("models"),
        payload_name="Model catalog",
    )

    models_map = payload["models"]
    meta = models_map.get("_meta")

    entries: list[CatalogEntry] = []
    seen: set[str] = set()
    duplicates: list[str] = []
    for raw in models_map["entries"]:
        internal_id = raw["internal_id"].strip()
        if internal_id in seen:
            duplicates.append(internal_id)
            continue
        seen.add(internal_id)
        entries.append(
            CatalogEntry(
                internal_id=internal_id,
                name=str(raw.get("name") or "").strip(),
                based_on=str(raw.get("based_on") or "").strip(),
                dsp_mono=_coerce_cost(raw.get("dsp_mono")),
                dsp_stereo=_coerce_cost(raw.get("dsp_stereo")),
                _defaults=MappingProxyType(dict(raw.get("defaults") or {})),
            )
        )
    if duplicates:
        raise ValueError(
            "Model catalog has duplicate internal_id(s): "
            f"{', '.join(sorted(set(duplicates)))}"
        )

    return ModelCatalog(entries=entries, meta=dict(meta) if meta else None)
