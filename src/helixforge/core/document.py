"""Structured access to the regions of a ``.hlx`` preset document.

``PresetDocument`` wraps the raw nested mapping rather than replacing it:
the named accessors cover the regions the compiler writes, and every other
key (known or not) is carried through untouched by :meth:`to_dict`.
"""

from __future__ import annotations

import copy
import re
from typing import Any, Iterator

SNAPSHOT_COUNT = 8
PATH_COUNT = 2

_BLOCK_KEY_RE = re.compile(r"^block(\d+)$")


def path_key(path: int) -> str:
    return f"dsp{path}"


def block_key(position: int) -> str:
    return f"block{position}"


def snapshot_key(index: int) -> str:
    return f"snapshot{index}"


def _child(container: dict[str, Any], key: str) -> dict[str, Any]:
    value = container.get(key)
    if not isinstance(value, dict):
        value = {}
        container[key] = value
    return value


class PresetDocument:
    """Mutable preset tree with named regions over the raw keyed document."""

    def __init__(self, payload: dict[str, Any]) -> None:
        if not isinstance(payload, dict):
            raise ValueError("Preset document must be an object.")
        self._payload = payload

    # -- top-level regions ----------------------------------------------------

    @property
    def data(self) -> dict[str, Any]:
        return _child(self._payload, "data")

    @property
    def meta(self) -> dict[str, Any]:
        """The ``data.meta`` region (display name, dsp_map, variax_type)."""
        return _child(self.data, "meta")

    @property
    def tone(self) -> dict[str, Any]:
        return _child(self.data, "tone")

    @property
    def name(self) -> str:
        return str(self.meta.get("name", ""))

    @property
    def global_region(self) -> dict[str, Any]:
        return _child(self.tone, "global")

    @property
    def variax(self) -> dict[str, Any]:
        return _child(self.tone, "variax")

    def replace_variax(self, region: dict[str, Any]) -> None:
        self.tone["variax"] = dict(region)

    # -- paths ----------------------------------------------------------------

    def dsp(self, path: int) -> dict[str, Any]:
        return _child(self.tone, path_key(path))

    def blocks(self, path: int) -> list[tuple[str, dict[str, Any]]]:
        """Return ``(key, entry)`` pairs of the path's blocks by position."""
        found: list[tuple[int, str, dict[str, Any]]] = []
        for key, entry in self.dsp(path).items():
            match = _BLOCK_KEY_RE.match(key)
            if match is None or not isinstance(entry, dict):
                continue
            found.append((int(match.group(1)), key, entry))
        found.sort(key=lambda item: item[0])
        return [(key, entry) for _, key, entry in found]

    def controller(self) -> dict[str, Any]:
        return _child(self.tone, "controller")

    def path_controllers(self, path: int) -> dict[str, Any]:
        return _child(self.controller(), path_key(path))

    def variax_controllers(self) -> dict[str, Any]:
        return _child(self.controller(), "variax")

    def footswitch(self, path: int) -> dict[str, Any]:
        return _child(_child(self.tone, "footswitch"), path_key(path))

    # -- snapshots ------------------------------------------------------------

    def snapshot(self, index: int) -> dict[str, Any]:
        if not 0 <= index < SNAPSHOT_COUNT:
            raise ValueError(f"snapshot index must be 0..{SNAPSHOT_COUNT - 1}: {index}")
        return _child(self.tone, snapshot_key(index))

    def snapshots(self) -> Iterator[tuple[int, dict[str, Any]]]:
        for index in range(SNAPSHOT_COUNT):
            yield index, self.snapshot(index)

    def snapshot_blocks(self, index: int, path: int) -> dict[str, Any]:
        return _child(_child(self.snapshot(index), "blocks"), path_key(path))

    def snapshot_controllers(self, index: int, region: str) -> dict[str, Any]:
        """Return ``snapshot<index>.controllers.<region>``; region is dspN or variax."""
        return _child(_child(self.snapshot(index), "controllers"), region)

    # -- output ---------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the full document."""
        return copy.deepcopy(self._payload)

    @property
    def raw(self) -> dict[str, Any]:
        return self._payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PresetDocument":
        return cls(copy.deepcopy(payload))
