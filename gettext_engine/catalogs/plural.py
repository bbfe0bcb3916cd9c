"""Safe evaluator for gettext ``Plural-Forms`` headers.

The header looks like ``nplurals=3; plural=((n==1) ? 0 : (n>=2 && n<=4 ? 1 : 2));``.
The ``plural`` expression is parsed into a tree of closures over the single
variable ``n``; nothing from the catalog is ever handed to ``eval``.

Supported grammar, lowest precedence first::

    ternary   := or ( "?" ternary ":" ternary )?
    or        := and ( "||" and )*
    and       := equality ( "&&" equality )*
    equality  := relation ( ("==" | "!=") relation )*
    relation  := modulo ( ("<" | "<=" | ">" | ">=") modulo )*
    modulo    := unary ( "%" unary )*
    unary     := "!" unary | primary
    primary   := INTEGER | "n" | "(" ternary ")"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable

from gettext_engine.services.exceptions import ExpressionError

Evaluator = Callable[[int], int]

_TOKEN_RE = re.compile(r"\s*(?:(\d+)|(n)|(==|!=|<=|>=|&&|\|\||[<>!%?:()]))")

_COMPARISONS: dict[str, Callable[[int, int], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def _tokenize(expression: str) -> list[str]:
    tokens: list[str] = []
    position = 0
    length = len(expression)
    while position < length:
        if expression[position:].strip() == "":
            break
        match = _TOKEN_RE.match(expression, position)
        if match is None:
            raise ExpressionError(
                f"Unexpected character {expression[position:].lstrip()[:1]!r} in plural expression {expression!r}."
            )
        tokens.append(match.group(1) or match.group(2) or match.group(3))
        position = match.end()
    return tokens


def _c_modulo(left: int, right: int) -> int:
    if right == 0:
        raise ExpressionError("Modulo by zero in plural expression.")
    # C truncates towards zero, Python floors.
    remainder = abs(left) % abs(right)
    return -remainder if left < 0 else remainder


class _Parser:
    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.tokens = _tokenize(expression)
        self.position = 0

    def parse(self) -> Evaluator:
        if not self.tokens:
            raise ExpressionError("Plural expression is empty.")
        node = self._ternary()
        if self.position != len(self.tokens):
            raise ExpressionError(
                f"Unexpected token {self.tokens[self.position]!r} in plural expression {self.expression!r}."
            )
        return node

    def _peek(self) -> str | None:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise ExpressionError(f"Unexpected end of plural expression {self.expression!r}.")
        self.position += 1
        return token

    def _expect(self, expected: str) -> None:
        token = self._peek()
        if token != expected:
            found = "end of expression" if token is None else repr(token)
            raise ExpressionError(
                f"Expected {expected!r} but found {found} in plural expression {self.expression!r}."
            )
        self.position += 1

    def _ternary(self) -> Evaluator:
        condition = self._or()
        if self._peek() != "?":
            return condition
        self.position += 1
        when_true = self._ternary()
        self._expect(":")
        when_false = self._ternary()
        return lambda n: when_true(n) if condition(n) else when_false(n)

    def _or(self) -> Evaluator:
        node = self._and()
        while self._peek() == "||":
            self.position += 1
            node = self._combine_or(node, self._and())
        return node

    def _and(self) -> Evaluator:
        node = self._equality()
        while self._peek() == "&&":
            self.position += 1
            node = self._combine_and(node, self._equality())
        return node

    def _equality(self) -> Evaluator:
        node = self._relation()
        while self._peek() in ("==", "!="):
            node = self._compare(self._next(), node, self._relation())
        return node

    def _relation(self) -> Evaluator:
        node = self._modulo()
        while self._peek() in ("<", "<=", ">", ">="):
            node = self._compare(self._next(), node, self._modulo())
        return node

    def _modulo(self) -> Evaluator:
        node = self._unary()
        while self._peek() == "%":
            self.position += 1
            node = self._combine_modulo(node, self._unary())
        return node

    def _unary(self) -> Evaluator:
        if self._peek() == "!":
            self.position += 1
            operand = self._unary()
            return lambda n: int(not operand(n))
        return self._primary()

    def _primary(self) -> Evaluator:
        token = self._next()
        if token == "(":
            node = self._ternary()
            self._expect(")")
            return node
        if token == "n":
            return lambda n: n
        if token.isdigit():
            value = int(token)
            return lambda n: value
        raise ExpressionError(f"Unexpected token {token!r} in plural expression {self.expression!r}.")

    @staticmethod
    def _compare(operator: str, left: Evaluator, right: Evaluator) -> Evaluator:
        compare = _COMPARISONS[operator]
        return lambda n: int(compare(left(n), right(n)))

    @staticmethod
    def _combine_or(left: Evaluator, right: Evaluator) -> Evaluator:
        return lambda n: int(bool(left(n)) or bool(right(n)))

    @staticmethod
    def _combine_and(left: Evaluator, right: Evaluator) -> Evaluator:
        return lambda n: int(bool(left(n)) and bool(right(n)))

    @staticmethod
    def _combine_modulo(left: Evaluator, right: Evaluator) -> Evaluator:
        return lambda n: _c_modulo(left(n), right(n))


@dataclass(frozen=True)
class PluralRule:
    nplurals: int
    expression: str
    _evaluate: Evaluator = field(repr=False, compare=False)

    def form_index(self, count: int) -> int:
        """Return the plural form for ``count``, clamped to ``[0, nplurals)``."""

        index = self._evaluate(int(count))
        if index < 0:
            return 0
        return min(index, self.nplurals - 1)


def parse_expression(expression: str) -> Evaluator:
    try:
        return _Parser(expression).parse()
    except RecursionError as exc:
        raise ExpressionError("Plural expression is nested too deeply.") from exc


def _split_header(header: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for part in header.split(";"):
        name, separator, value = part.partition("=")
        if not separator:
            if part.strip():
                raise ExpressionError(f"Malformed Plural-Forms segment {part.strip()!r}.")
            continue
        values[name.strip().lower()] = value.strip()
    return values


@lru_cache(maxsize=64)
def compile_rule(header: str) -> PluralRule:
    """Compile a ``Plural-Forms`` header value into a :class:`PluralRule`."""

    values = _split_header(header)
    raw_count = values.get("nplurals")
    if raw_count is None or not raw_count.isdigit() or int(raw_count) < 1:
        raise ExpressionError(f"Plural-Forms header {header!r} declares no valid nplurals.")
    expression = values.get("plural")
    if expression is None:
        raise ExpressionError(f"Plural-Forms header {header!r} declares no plural expression.")
    return PluralRule(
        nplurals=int(raw_count),
        expression=expression,
        _evaluate=parse_expression(expression),
    )


__all__ = ["PluralRule", "compile_rule", "parse_expression"]
