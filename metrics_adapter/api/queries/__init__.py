"""
NRQL Query Modules

Selector-to-NRQL translation split by concern:
- selector.py: Operator/Requirement/Selector model and label selector parsing
- translator.py: Selector to WHERE-fragment rendering
- builder.py: Final query assembly (cluster filter, fragment, limit)
- utils.py: Numeric literal detection and quoting
"""

from .selector import Operator, Requirement, Selector, parse_selector, validate_label_value
from .translator import translate_requirement, translate_selector
from .builder import RESULT_LIMIT_SUFFIX, build_metric_query, build_query
from .utils import is_numeric_literal, render_literal

__all__ = [
    # Selector model
    'Operator',
    'Requirement',
    'Selector',
    'parse_selector',
    'validate_label_value',

    # Translation
    'translate_requirement',
    'translate_selector',

    # Assembly
    'RESULT_LIMIT_SUFFIX',
    'build_metric_query',
    'build_query',

    # Literals
    'is_numeric_literal',
    'render_literal',
]
