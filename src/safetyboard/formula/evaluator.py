"""Formula evaluator — arithmetic over a fixed set of named numbers.

Formulas are user-authored free text, so evaluation never reaches a
general-purpose interpreter. The grammar is parsed by hand:

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | primary
    primary := NUMBER | NAME | '(' expr ')'

Before tokenizing, the text must match a character whitelist (digits,
ASCII letters, underscore, + - * /, parentheses, whitespace, '.').
Names resolve only against the supplied variable mapping.

evaluate() never raises: any failure (bad character, syntax error,
unknown name, non-finite result) yields None.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

_ALLOWED = re.compile(r"[0-9A-Za-z_+\-*/().\s]*")

_TOKEN = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>[-+*/()])"
    r")"
)

# Bound on nesting depth for the recursive descent.
MAX_DEPTH = 64


class FormulaError(ValueError):
    """Raised internally when a formula cannot be evaluated."""


@dataclass(frozen=True)
class Token:
    kind: str  # "number" | "name" | "op"
    text: str
    pos: int


def tokenize(expression: str) -> list[Token]:
    """Split a whitelisted expression into tokens.

    Raises FormulaError on characters outside the whitelist or on text
    that does not form a token.
    """
    if not _ALLOWED.fullmatch(expression):
        raise FormulaError("Formula contains disallowed characters")

    tokens: list[Token] = []
    pos = 0
    end = len(expression.rstrip())
    while pos < end:
        match = _TOKEN.match(expression, pos)
        if match is None or match.lastgroup is None:
            raise FormulaError(f"Unexpected input at position {pos}")
        kind = match.lastgroup
        tokens.append(Token(kind=kind, text=match.group(kind), pos=match.start(kind)))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive-descent evaluator over a token list."""

    def __init__(self, tokens: list[Token], variables: Mapping[str, float]) -> None:
        self._tokens = tokens
        self._variables = variables
        self._index = 0
        self._depth = 0

    def parse(self) -> float:
        if not self._tokens:
            raise FormulaError("Empty formula")
        value = self._expr()
        if self._index != len(self._tokens):
            tok = self._tokens[self._index]
            raise FormulaError(f"Unexpected {tok.text!r} at position {tok.pos}")
        return value

    def _peek(self) -> Optional[Token]:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _take_op(self, *ops: str) -> Optional[str]:
        tok = self._peek()
        if tok is not None and tok.kind == "op" and tok.text in ops:
            self._index += 1
            return tok.text
        return None

    def _expr(self) -> float:
        value = self._term()
        while (op := self._take_op("+", "-")) is not None:
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> float:
        value = self._unary()
        while (op := self._take_op("*", "/")) is not None:
            rhs = self._unary()
            if op == "*":
                value = value * rhs
            else:
                if rhs == 0:
                    raise FormulaError("Division by zero")
                value = value / rhs
        return value

    def _unary(self) -> float:
        op = self._take_op("+", "-")
        if op is None:
            return self._primary()
        self._enter()
        try:
            operand = self._unary()
        finally:
            self._depth -= 1
        return -operand if op == "-" else operand

    def _primary(self) -> float:
        tok = self._peek()
        if tok is None:
            raise FormulaError("Unexpected end of formula")
        self._index += 1

        if tok.kind == "number":
            return float(tok.text)
        if tok.kind == "name":
            return self._lookup(tok)
        if tok.text == "(":
            self._enter()
            try:
                value = self._expr()
            finally:
                self._depth -= 1
            if self._take_op(")") is None:
                raise FormulaError(f"Unclosed parenthesis at position {tok.pos}")
            return value
        raise FormulaError(f"Unexpected {tok.text!r} at position {tok.pos}")

    def _lookup(self, tok: Token) -> float:
        if tok.text not in self._variables:
            raise FormulaError(f"Unknown variable: {tok.text}")
        raw = self._variables[tok.text]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise FormulaError(f"Variable {tok.text} is not a number")
        return float(raw)

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > MAX_DEPTH:
            raise FormulaError("Formula nested too deeply")


def evaluate(expression: str, variables: Mapping[str, float]) -> Optional[float]:
    """Evaluate a formula over `variables`; None when invalid."""
    text = (expression or "").strip()
    if not text:
        return None
    try:
        result = _Parser(tokenize(text), variables).parse()
    except (FormulaError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return result


def format_number(value: Optional[float]) -> str:
    """Render a man-hour figure: '-' when invalid, else a grouped integer.

    Halves round away from zero.
    """
    if value is None or not math.isfinite(value):
        return "-"
    rounded = math.floor(abs(value) + 0.5)
    if value < 0 and rounded:
        return f"-{rounded:,}"
    return f"{rounded:,}"
