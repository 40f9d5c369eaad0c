"""
Query utility functions.

Literal helpers shared by the selector parser and the NRQL translator.
"""

import re

# Decimal integer or float, sign optional, fraction and exponent optional.
# Hex, inf/nan and locale forms such as "1,5" are not numeric.
_NUMERIC_LITERAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def is_numeric_literal(text: str) -> bool:
    """Return True when text is a decimal integer or floating-point literal."""
    return bool(_NUMERIC_LITERAL.fullmatch(text))


def render_literal(value: str) -> str:
    """
    Render a selector value as an NRQL literal.

    Numeric literals are emitted verbatim, everything else is wrapped
    in single quotes.
    """
    if is_numeric_literal(value):
        return value
    return f"'{value}'"
