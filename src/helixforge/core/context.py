"""Immutable bundle of the read-only tables every compile consults."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from helixforge.core.registries.compile_rules import CompileRules, load_compile_rules
from helixforge.core.registries.model_catalog import ModelCatalog, load_model_catalog
from helixforge.core.registries.variax_registry import (
    VariaxRegistry,
    load_variax_registry_or_empty,
)
from helixforge.core.template import default_template_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilerContext:
    catalog: ModelCatalog
    variax: VariaxRegistry
    rules: CompileRules
    template_path: Path


def build_compiler_context(
    *,
    models_path: Path | None = None,
    variax_path: Path | None = None,
    rules_path: Path | None = None,
    template_path: Path | None = None,
) -> CompilerContext:
    """Load every table. Catalog and rule failures raise ValueError.

    A Variax table that cannot be loaded is replaced by an empty one.
    """
    catalog = load_model_catalog(models_path)
    rules = load_compile_rules(rules_path)
    variax = load_variax_registry_or_empty(variax_path)
    logger.debug(
        "Compiler context ready: %d models, %d Variax configurations",
        len(catalog),
        len(variax),
    )
    return CompilerContext(
        catalog=catalog,
        variax=variax,
        rules=rules,
        template_path=template_path if template_path is not None else default_template_path(),
    )


_shared_lock = threading.Lock()
_shared_context: CompilerContext | None = None


def shared_compiler_context() -> CompilerContext:
    """Return the process-wide context, loading it on first use.

    Concurrent first callers block until loading finishes. A failed load is
    not cached, so every caller sees the error.
    """
    global _shared_context
    context = _shared_context
    if context is not None:
        return context
    with _shared_lock:
        if _shared_context is None:
            _shared_context = build_compiler_context()
        return _shared_context
