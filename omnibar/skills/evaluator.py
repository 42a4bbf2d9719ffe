"""Arithmetic expression evaluator.

Grammar (lowest to highest precedence)::

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/" | "%") unary)*
    unary   := ("+" | "-") unary | power
    power   := primary ("^" unary)?
    primary := NUMBER | CONST | FUNC primary | "(" expr ")"

``^`` is right-associative and binds tighter than unary minus, so
``-2^2 == -4``. Functions accept either ``sqrt(144)`` or ``sqrt 144``.
Division follows IEEE 754: ``1/0 == inf`` and ``0/0`` is NaN.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable

from omnibar.core.errors import InvalidExpression

_TOKEN_RE = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|([a-z_][a-z0-9_]*)|(.))", re.IGNORECASE)

FUNCTIONS: dict[str, Callable[[float], float]] = {
    "sqrt": math.sqrt,
    "abs": abs,
    "round": round,
    "floor": math.floor,
    "ceil": math.ceil,
    "exp": math.exp,
    "ln": math.log,
    "log": math.log10,
    "log10": math.log10,
    "log2": math.log2,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
}

CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}

_OPERATORS = frozenset("+-*/%^()")


def _tokenize(expr: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    text = expr.rstrip()
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:  # pragma: no cover - the catch-all group always matches
            raise InvalidExpression(f"unexpected input at {pos}")
        number, name, op = m.groups()
        if number is not None:
            tokens.append(("num", number))
        elif name is not None:
            tokens.append(("name", name.lower()))
        elif op in _OPERATORS:
            tokens.append(("op", op))
        else:
            raise InvalidExpression(f"unexpected character {op!r}")
        pos = m.end()
    return tokens


def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _modulo(left: float, right: float) -> float:
    if right == 0:
        return math.nan
    return math.fmod(left, right)


def _power(base: float, exponent: float) -> float:
    if base == 0 and exponent < 0:
        return math.inf
    try:
        result = math.pow(base, exponent)
    except OverflowError:
        return math.inf
    except ValueError as e:
        # Negative base with fractional exponent has no real result.
        raise InvalidExpression(str(e)) from e
    return result


class _Parser:
    __slots__ = ("_tokens", "_pos")

    def __init__(self, tokens: list[tuple[str, str]]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> float:
        if not self._tokens:
            raise InvalidExpression("empty expression")
        value = self._expr()
        if self._pos != len(self._tokens):
            raise InvalidExpression(f"unexpected token {self._tokens[self._pos][1]!r}")
        return value

    def _peek(self) -> tuple[str, str] | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _take_op(self, *ops: str) -> str | None:
        token = self._peek()
        if token is not None and token[0] == "op" and token[1] in ops:
            self._pos += 1
            return token[1]
        return None

    def _expr(self) -> float:
        value = self._term()
        while (op := self._take_op("+", "-")) is not None:
            right = self._term()
            value = value + right if op == "+" else value - right
        return value

    def _term(self) -> float:
        value = self._unary()
        while (op := self._take_op("*", "/", "%")) is not None:
            right = self._unary()
            if op == "*":
                value = value * right
            elif op == "/":
                value = _divide(value, right)
            else:
                value = _modulo(value, right)
        return value

    def _unary(self) -> float:
        op = self._take_op("+", "-")
        if op == "-":
            return -self._unary()
        if op == "+":
            return self._unary()
        return self._power()

    def _power(self) -> float:
        base = self._primary()
        if self._take_op("^") is not None:
            return _power(base, self._unary())
        return base

    def _primary(self) -> float:
        token = self._peek()
        if token is None:
            raise InvalidExpression("unexpected end of expression")
        kind, text = token
        self._pos += 1
        if kind == "num":
            return float(text)
        if kind == "name":
            if text in CONSTANTS:
                return CONSTANTS[text]
            func = FUNCTIONS.get(text)
            if func is None:
                raise InvalidExpression(f"unknown name {text!r}")
            argument = self._power()
            try:
                return float(func(argument))
            except OverflowError:
                return math.copysign(math.inf, argument)
            except ValueError as e:
                raise InvalidExpression(f"{text}: {e}") from e
        if text == "(":
            value = self._expr()
            if self._take_op(")") is None:
                raise InvalidExpression("missing closing parenthesis")
            return value
        raise InvalidExpression(f"unexpected token {text!r}")


def evaluate(expr: str) -> float:
    """Evaluate an arithmetic expression, raising ``InvalidExpression`` when malformed."""
    if not isinstance(expr, str):
        raise InvalidExpression("expression must be a string")
    try:
        return _Parser(_tokenize(expr)).parse()
    except RecursionError as e:
        raise InvalidExpression("expression is nested too deeply") from e


def format_number(value: float) -> str:
    """Render a result without float noise (``4.0`` → ``4``)."""
    if math.isfinite(value) and value == int(value) and abs(value) < 1e16:
        return str(int(value))
    return f"{value:.12g}"
