"""Parameter value normalization and safety caps."""

from __future__ import annotations

from typing import Any

from helixforge.core.registries.compile_rules import CompileRules


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def sanitize(
    internal_id: str,
    key: str,
    value: Any,
    rules: CompileRules | None = None,
) -> Any:
    """Return ``value`` made safe for parameter ``key`` of model ``internal_id``.

    Non-numeric values pass through unchanged. Percentage-style keys given on
    a 0..10 dial are scaled down and clamped to 1.0; reverb and delay tails
    and delay feedback are capped per the rule tables.
    """
    if not _is_number(value):
        return value
    if rules is None:
        from helixforge.core.context import shared_compiler_context

        rules = shared_compiler_context().rules

    lowered = key.lower()
    result: Any = value
    number = float(value)

    if any(keyword in lowered for keyword in rules.percentage_keywords):
        if number > 1.0:
            number = number / rules.percentage_divisor
        if number > rules.percentage_max:
            number = rules.percentage_max
        result = number

    family = rules.model_family(internal_id)
    if family is None:
        return result
    for cap in rules.sanitizer_caps:
        if cap.family == family and lowered in cap.keys and number >= cap.maximum:
            return cap.maximum
    return result
