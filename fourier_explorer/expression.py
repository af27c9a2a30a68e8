"""
Sandboxed evaluation of user formulas in one real variable ``x``.

Grammar (recursive descent, lowest precedence first)::

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/" | "%") unary)*
    unary   := ("+" | "-") unary | power
    power   := primary ("**" unary)?
    primary := NUMBER | "x" | CONSTANT | FUNCTION "(" expr ("," expr)* ")" | "(" expr ")"

Only the names in ``CONSTANTS`` and ``FUNCTIONS`` are resolvable; there is
no attribute access, indexing or assignment, and nothing is handed to
``eval``.  Any failure while parsing or evaluating yields ``0.0``.
"""

from __future__ import annotations

import logging
import math
import operator
import re
from functools import lru_cache
from typing import Callable, Optional

import numpy as np

from ._types import FloatArray

logger = logging.getLogger(__name__)

Node = Callable[[float], float]

FALLBACK_VALUE: float = 0.0
MAX_TOKENS: int = 1000
MAX_DEPTH: int = 64   # nested parentheses, calls and signs


class ExpressionError(ValueError):
    """Raised by the parser for malformed or disallowed formulas."""


def _sign(v: float) -> float:
    return float((v > 0) - (v < 0))


def _pow(base: float, exponent: float) -> float:
    # math.pow raises instead of returning a complex number
    return math.pow(base, exponent)


CONSTANTS: dict[str, float] = {
    "PI": math.pi,
    "E": math.e,
}

# name -> (callable, min arity, max arity or None for variadic)
FUNCTIONS: dict[str, tuple[Callable[..., float], int, Optional[int]]] = {
    "sin":   (math.sin, 1, 1),
    "cos":   (math.cos, 1, 1),
    "tan":   (math.tan, 1, 1),
    "abs":   (abs, 1, 1),
    "floor": (lambda v: float(math.floor(v)), 1, 1),
    "ceil":  (lambda v: float(math.ceil(v)), 1, 1),
    "sign":  (_sign, 1, 1),
    "pow":   (_pow, 2, 2),
    "sqrt":  (math.sqrt, 1, 1),
    "max":   (lambda *v: max(v), 1, None),
    "min":   (lambda *v: min(v), 1, None),
}

ALLOWED_SYMBOLS: frozenset[str] = frozenset(CONSTANTS) | frozenset(FUNCTIONS)

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z_0-9]*)"
    r"|(?P<op>\*\*|[-+*/%(),])"
    r")"
)


def tokenize(text: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None or m.end() == pos:
            raise ExpressionError(f"Unexpected character {text[pos:].lstrip()[:1]!r} at {pos}")
        kind = m.lastgroup
        if kind is None:
            raise ExpressionError(f"Unexpected character at {pos}")
        tokens.append((kind, m.group(kind)))
        pos = m.end()
    return tokens


_BINARY: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "%": math.fmod,
}


def _chain(first: Node, rest: list[tuple[Callable[[float, float], float], Node]]) -> Node:
    """Left-associative run of same-precedence operators as one flat node."""
    if not rest:
        return first
    ops = tuple(rest)

    def node(x: float) -> float:
        acc = first(x)
        for op, rhs in ops:
            acc = op(acc, rhs(x))
        return acc

    return node


class _Parser:

    def __init__(self, tokens: list[tuple[str, str]]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    def parse(self) -> Node:
        if not self._tokens:
            raise ExpressionError("Empty expression")
        if len(self._tokens) > MAX_TOKENS:
            raise ExpressionError(
                f"Expression too long ({len(self._tokens)} tokens, max {MAX_TOKENS})"
            )
        node = self._expr()
        if self._pos != len(self._tokens):
            raise ExpressionError(f"Unexpected token {self._tokens[self._pos][1]!r}")
        return node

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _peek(self) -> Optional[str]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos][1]
        return None

    def _next(self) -> tuple[str, str]:
        if self._pos >= len(self._tokens):
            raise ExpressionError("Unexpected end of expression")
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, value: str) -> None:
        kind, text = self._next()
        if kind != "op" or text != value:
            raise ExpressionError(f"Expected {value!r}, got {text!r}")

    # ------------------------------------------------------------------
    # Grammar rules
    # ------------------------------------------------------------------

    def _expr(self) -> Node:
        first = self._term()
        rest: list[tuple[Callable[[float, float], float], Node]] = []
        while self._peek() in ("+", "-"):
            op = self._next()[1]
            rest.append((_BINARY[op], self._term()))
        return _chain(first, rest)

    def _term(self) -> Node:
        first = self._unary()
        rest: list[tuple[Callable[[float, float], float], Node]] = []
        while self._peek() in ("*", "/", "%"):
            op = self._next()[1]
            rest.append((_BINARY[op], self._unary()))
        return _chain(first, rest)

    def _unary(self) -> Node:
        # every nested construct passes through here
        self._depth += 1
        if self._depth > MAX_DEPTH:
            raise ExpressionError(f"Expression nested deeper than {MAX_DEPTH} levels")
        try:
            if self._peek() == "-":
                self._next()
                operand = self._unary()
                return lambda x: -operand(x)
            if self._peek() == "+":
                self._next()
                return self._unary()
            return self._power()
        finally:
            self._depth -= 1

    def _power(self) -> Node:
        base = self._primary()
        if self._peek() == "**":
            self._next()
            exponent = self._unary()   # right associative
            return lambda x: _pow(base(x), exponent(x))
        return base

    def _primary(self) -> Node:
        kind, text = self._next()
        if kind == "number":
            value = float(text)
            return lambda x: value
        if kind == "name":
            if text == "x":
                return lambda x: x
            if text in CONSTANTS:
                value = CONSTANTS[text]
                return lambda x: value
            if text in FUNCTIONS:
                return self._call(text)
            raise ExpressionError(f"Unknown symbol {text!r}")
        if text == "(":
            node = self._expr()
            self._expect(")")
            return node
        raise ExpressionError(f"Unexpected token {text!r}")

    def _call(self, name: str) -> Node:
        fn, min_args, max_args = FUNCTIONS[name]
        self._expect("(")
        args = [self._expr()]
        while self._peek() == ",":
            self._next()
            args.append(self._expr())
        self._expect(")")
        if len(args) < min_args or (max_args is not None and len(args) > max_args):
            raise ExpressionError(f"{name}() got {len(args)} argument(s)")
        if len(args) == 1:
            arg = args[0]
            return lambda x: fn(arg(x))
        return lambda x: fn(*(a(x) for a in args))


@lru_cache(maxsize=256)
def parse_expression(text: str) -> Node:
    """Parse *text* into a callable of ``x``; raises ``ExpressionError``."""
    return _Parser(tokenize(text)).parse()


def validate_expression(text: str) -> Optional[str]:
    """Return a human-readable parse error, or None when *text* parses."""
    try:
        parse_expression(text)
    except ExpressionError as exc:
        return str(exc)
    return None


def _run(node: Node, x: float) -> float:
    try:
        value = node(float(x))
    except (ArithmeticError, ValueError, TypeError):
        return FALLBACK_VALUE
    if isinstance(value, complex):
        return FALLBACK_VALUE
    value = float(value)
    return value if math.isfinite(value) else FALLBACK_VALUE


def evaluate(expression: str, x: float) -> float:
    """Evaluate *expression* at *x*; 0.0 on any parse or runtime failure."""
    try:
        node = parse_expression(expression)
    except ExpressionError as exc:
        logger.debug("expression %r rejected: %s", expression, exc)
        return FALLBACK_VALUE
    return _run(node, x)


def compile_expression(expression: str) -> Callable[[float], float]:
    """Return ``f(x)`` with the same fallback policy as :func:`evaluate`."""
    try:
        node = parse_expression(expression)
    except ExpressionError as exc:
        logger.debug("expression %r rejected: %s", expression, exc)
        return lambda x: FALLBACK_VALUE
    return lambda x: _run(node, x)


def evaluate_array(expression: str, xs: FloatArray) -> FloatArray:
    f = compile_expression(expression)
    xs = np.asarray(xs, dtype=np.float64)
    return np.fromiter((f(v) for v in xs.ravel()), dtype=np.float64,
                       count=xs.size).reshape(xs.shape)
