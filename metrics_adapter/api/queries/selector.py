"""
Label selector model and parser.

A Selector is an immutable conjunction of Requirements. The textual form
accepted by parse_selector() is the Kubernetes label selector syntax used
by the external metrics API, e.g.:

    app=nginx,tier!=cache,zone in (a,b),!legacy,replicas>2
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from ...exceptions import SelectorParseError
from .utils import is_numeric_literal


class Operator(str, Enum):
    EQUALS = "="
    NOT_EQUALS = "!="
    IN = "in"
    NOT_IN = "notin"
    EXISTS = "exists"
    DOES_NOT_EXIST = "!"
    GREATER_THAN = "gt"
    LESS_THAN = "lt"


_SINGLE_VALUE_OPERATORS = {Operator.EQUALS, Operator.NOT_EQUALS, Operator.GREATER_THAN, Operator.LESS_THAN}
_SET_OPERATORS = {Operator.IN, Operator.NOT_IN}
_NO_VALUE_OPERATORS = {Operator.EXISTS, Operator.DOES_NOT_EXIST}
_OPERATOR_VALUES = {op.value for op in Operator}

_NAME_PART = re.compile(r"[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?")
_DNS_SUBDOMAIN = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*")
_MAX_NAME_LENGTH = 63
_MAX_PREFIX_LENGTH = 253


def _validate_key(key: str) -> None:
    """Validate a qualified label key: [prefix/]name."""
    prefix, _, name = key.rpartition("/")
    if "/" in key and (not prefix or len(prefix) > _MAX_PREFIX_LENGTH or not _DNS_SUBDOMAIN.fullmatch(prefix)):
        raise SelectorParseError(f"invalid label key {key!r}: bad prefix")
    if not name or len(name) > _MAX_NAME_LENGTH or not _NAME_PART.fullmatch(name):
        raise SelectorParseError(f"invalid label key {key!r}")


def validate_label_value(value: str) -> None:
    """Raise SelectorParseError unless value is a valid Kubernetes label value."""
    if value == "":
        return
    if len(value) > _MAX_NAME_LENGTH or not _NAME_PART.fullmatch(value):
        raise SelectorParseError(f"invalid label value {value!r}")


@dataclass(frozen=True)
class Requirement:
    """A single key/operator/values constraint."""

    key: str
    operator: Operator
    values: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))
        if not isinstance(self.operator, Operator) and self.operator in _OPERATOR_VALUES:
            object.__setattr__(self, "operator", Operator(self.operator))
        _validate_key(self.key)

        if self.operator in _NO_VALUE_OPERATORS:
            if self.values:
                raise SelectorParseError(f"{self.key}: values must be empty for {self.operator.name}")
        elif self.operator in _SINGLE_VALUE_OPERATORS:
            if len(self.values) != 1:
                raise SelectorParseError(f"{self.key}: exactly one value required for {self.operator.name}")
        elif self.operator in _SET_OPERATORS:
            if not self.values:
                raise SelectorParseError(f"{self.key}: at least one value required for {self.operator.name}")

        for value in self.values:
            if self.operator in (Operator.GREATER_THAN, Operator.LESS_THAN):
                if not is_numeric_literal(value):
                    raise SelectorParseError(f"{self.key}: {value!r} is not a number")
            else:
                validate_label_value(value)

    def __str__(self) -> str:
        if self.operator == Operator.EXISTS:
            return self.key
        if self.operator == Operator.DOES_NOT_EXIST:
            return f"!{self.key}"
        if self.operator in _SET_OPERATORS:
            return f"{self.key} {self.operator.value} ({','.join(sorted(self.values))})"
        symbol = {Operator.GREATER_THAN: ">", Operator.LESS_THAN: "<"}.get(self.operator, str(getattr(self.operator, "value", self.operator)))
        return f"{self.key}{symbol}{self.values[0]}"


class Selector:
    """
    Immutable collection of Requirements.

    Requirements are kept sorted by key (insertion order among equal keys),
    so iteration order, and therefore rendered queries, never depend on the
    order requirements were added in.
    """

    def __init__(self, requirements: Iterable[Requirement] = ()):
        self._requirements: Tuple[Requirement, ...] = tuple(sorted(requirements, key=lambda r: r.key))

    def add(self, *requirements: Requirement) -> "Selector":
        """Return a new Selector with the given requirements added."""
        return Selector(self._requirements + requirements)

    def __iter__(self) -> Iterator[Requirement]:
        return iter(self._requirements)

    def __len__(self) -> int:
        return len(self._requirements)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Selector):
            return NotImplemented
        return self._requirements == other._requirements

    def __hash__(self) -> int:
        return hash(self._requirements)

    def __str__(self) -> str:
        return ",".join(str(r) for r in self._requirements)

    def __repr__(self) -> str:
        return f"Selector({str(self)!r})"

    def equality_labels(self) -> dict:
        """Labels pinned to a single value by an Equals requirement."""
        return {r.key: r.values[0] for r in self._requirements if r.operator == Operator.EQUALS}


# -- text parsing -----------------------------------------------------------

_TOKEN = re.compile(r"\s*(?:(?P<op>==|!=|=|!|>|<|\(|\)|,)|(?P<ident>[^\s=!<>(),]+))")

_COMPARISON_TOKENS = {
    "=": Operator.EQUALS,
    "==": Operator.EQUALS,
    "!=": Operator.NOT_EQUALS,
    ">": Operator.GREATER_THAN,
    "<": Operator.LESS_THAN,
}
_SET_KEYWORDS = {"in": Operator.IN, "notin": Operator.NOT_IN}


def _tokenize(text: str) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if not match or match.end() == pos:
            raise SelectorParseError(f"unexpected character at position {pos} in {text!r}")
        kind = "op" if match.group("op") else "ident"
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self) -> Tuple[str, str]:
        token = self.peek()
        if token is None:
            raise SelectorParseError(f"unexpected end of selector {self.text!r}")
        self.pos += 1
        return token

    def at_boundary(self) -> bool:
        return self.peek() in (None, ("op", ","))

    def expect_op(self, symbol: str) -> None:
        kind, text = self.next()
        if (kind, text) != ("op", symbol):
            raise SelectorParseError(f"expected {symbol!r}, found {text!r} in {self.text!r}")

    def expect_ident(self) -> str:
        kind, text = self.next()
        if kind != "ident":
            raise SelectorParseError(f"expected identifier, found {text!r} in {self.text!r}")
        return text

    def parse(self) -> Selector:
        requirements = []
        if not self.tokens:
            return Selector()
        while True:
            requirements.append(self.requirement())
            if self.peek() is None:
                break
            self.expect_op(",")
            if self.peek() is None:
                raise SelectorParseError(f"trailing comma in {self.text!r}")
        return Selector(requirements)

    def requirement(self) -> Requirement:
        if self.peek() == ("op", "!"):
            self.next()
            return Requirement(self.expect_ident(), Operator.DOES_NOT_EXIST)

        key = self.expect_ident()
        if self.at_boundary():
            return Requirement(key, Operator.EXISTS)

        kind, text = self.next()
        if kind == "op" and text in _COMPARISON_TOKENS:
            value = "" if self.at_boundary() else self.expect_ident()
            return Requirement(key, _COMPARISON_TOKENS[text], (value,))
        if kind == "ident" and text in _SET_KEYWORDS:
            return Requirement(key, _SET_KEYWORDS[text], self.value_set())
        raise SelectorParseError(f"unexpected {text!r} after {key!r} in {self.text!r}")

    def value_set(self) -> Tuple[str, ...]:
        self.expect_op("(")
        values = []
        if self.peek() == ("op", ")"):
            self.next()
            return ()
        while True:
            values.append(self.expect_ident())
            kind, text = self.next()
            if (kind, text) == ("op", ")"):
                return tuple(values)
            if (kind, text) != ("op", ","):
                raise SelectorParseError(f"expected ',' or ')', found {text!r} in {self.text!r}")


def parse_selector(text: Optional[str]) -> Selector:
    """
    Parse Kubernetes label selector text into a Selector.

    None or blank text yields an empty Selector. Raises SelectorParseError
    on malformed input.
    """
    if text is None or not text.strip():
        return Selector()
    return _Parser(text).parse()
