"""
Label selector to NRQL WHERE-fragment translation.

Pure functions, no I/O. The fragment is a flat conjunction of one clause
per requirement; only IN/NOT IN value lists are parenthesised.
"""

from typing import Callable, Dict, Optional

from ...exceptions import SelectorTranslationError
from .selector import Operator, Requirement, Selector
from .utils import render_literal


def _comparison(symbol: str) -> Callable[[Requirement], str]:
    def render(requirement: Requirement) -> str:
        return f"{requirement.key} {symbol} {render_literal(requirement.values[0])}"
    return render


def _value_set(keyword: str) -> Callable[[Requirement], str]:
    def render(requirement: Requirement) -> str:
        # Sorted on raw text, before quoting
        literals = ", ".join(render_literal(v) for v in sorted(requirement.values))
        return f"{requirement.key} {keyword} ({literals})"
    return render


_RENDERERS: Dict[Operator, Callable[[Requirement], str]] = {
    Operator.EQUALS: _comparison("="),
    Operator.NOT_EQUALS: _comparison("!="),
    Operator.GREATER_THAN: _comparison(">"),
    Operator.LESS_THAN: _comparison("<"),
    Operator.EXISTS: lambda r: f"{r.key} IS NOT NULL",
    Operator.DOES_NOT_EXIST: lambda r: f"{r.key} IS NULL",
    Operator.IN: _value_set("IN"),
    Operator.NOT_IN: _value_set("NOT IN"),
}


def translate_requirement(requirement: Requirement) -> str:
    """Render a single requirement as an NRQL condition."""
    renderer = _RENDERERS.get(requirement.operator)
    if renderer is None:
        raise SelectorTranslationError(
            f"operator {requirement.operator!r} on key {requirement.key!r} is not supported"
        )
    return renderer(requirement)


def translate_selector(selector: Optional[Selector]) -> str:
    """
    Convert a label selector into an NRQL WHERE-fragment.

    Args:
        selector: Selector to translate; None and empty selectors are allowed

    Returns:
        Conditions joined with " and " in selector order, or "" when there
        are no requirements (no WHERE keyword is ever emitted here)

    Raises:
        SelectorTranslationError: If a requirement has an unsupported operator
    """
    if not selector:
        return ""
    return " and ".join(translate_requirement(r) for r in selector)
