"""Parser for the textual query language.

The syntax is a small SQL-like boolean expression language::

    status = 'open' AND (priority >= 3 OR owner IS NULL)
    name LIKE 'Amst%' AND NOT region IN ('EU', 'US')

Property names are identifiers (``address.city``) or double-quoted names
(``"with space"``). Literals are single-quoted strings (``''`` escapes a quote),
numbers, ``TRUE``, ``FALSE`` and ``NULL``. Keywords are case-insensitive.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import NamedTuple

from featureserver.exceptions import ExternalParsingError

from .expressions import (
    BinaryComparisonName,
    BinaryComparisonOperator,
    BinaryLogicOperator,
    BinaryLogicType,
    InOperator,
    LikeOperator,
    Literal,
    NullOperator,
    Operator,
    UnaryLogicOperator,
    UnaryLogicType,
    ValueReference,
)

__all__ = ("parse_query",)

KEYWORDS = {"AND", "OR", "NOT", "LIKE", "IN", "IS", "NULL", "TRUE", "FALSE"}

TOKEN_REGEX = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<string>'(?:[^']|'')*')
    |(?P<number>[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?)
    |(?P<quoted_name>"[^"]+")
    |(?P<name>[A-Za-z_][A-Za-z0-9_.:-]*)
    |(?P<operator><=|>=|<>|!=|=|<|>)
    |(?P<punctuation>[(),])
    """,
    re.VERBOSE,
)


class Token(NamedTuple):
    type: str
    value: str
    position: int


def tokenize(text: str) -> list[Token]:
    """Split the text into tokens. Keywords are returned with their uppercase name as type."""
    tokens = []
    position = 0
    while position < len(text):
        match = TOKEN_REGEX.match(text, position)
        if match is None:
            raise ExternalParsingError(f"Unexpected character {text[position]!r} at {position}")

        type = match.lastgroup
        value = match.group()
        if type == "name" and value.upper() in KEYWORDS:
            type = value.upper()
        if type != "space":
            tokens.append(Token(type, value, position))
        position = match.end()

    return tokens


class QueryParser:
    """Recursive descent parser for the query language.

    Operator precedence: ``NOT`` binds strongest, then ``AND``, then ``OR``.
    """

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    def parse(self) -> Operator:
        if not self.tokens:
            raise ExternalParsingError("Empty query expression")

        expression = self.parse_or()
        if self.index < len(self.tokens):
            token = self.tokens[self.index]
            raise ExternalParsingError(f"Unexpected '{token.value}' at {token.position}")
        return expression

    def peek(self) -> Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def accept(self, *types: str) -> Token | None:
        """Consume the next token if it's one of the given types."""
        token = self.peek()
        if token is not None and token.type in types:
            self.index += 1
            return token
        return None

    def expect(self, *types: str) -> Token:
        token = self.accept(*types)
        if token is None:
            expected = " or ".join(types)
            found = self.peek()
            if found is None:
                raise ExternalParsingError(f"Expected {expected}, but the query ended")
            raise ExternalParsingError(
                f"Expected {expected}, found '{found.value}' at {found.position}"
            )
        return token

    def parse_or(self) -> Operator:
        operands = [self.parse_and()]
        while self.accept("OR"):
            operands.append(self.parse_and())
        return _combine(BinaryLogicType.Or, operands)

    def parse_and(self) -> Operator:
        operands = [self.parse_not()]
        while self.accept("AND"):
            operands.append(self.parse_not())
        return _combine(BinaryLogicType.And, operands)

    def parse_not(self) -> Operator:
        if self.accept("NOT"):
            return UnaryLogicOperator(UnaryLogicType.Not, self.parse_not())
        return self.parse_primary()

    def parse_primary(self) -> Operator:
        token = self.peek()
        if token is not None and token.value == "(":
            self.index += 1
            expression = self.parse_or()
            self.expect_punctuation(")")
            return expression
        return self.parse_predicate()

    def expect_punctuation(self, value: str):
        token = self.peek()
        if token is None or token.value != value:
            found = f"'{token.value}' at {token.position}" if token else "the end of the query"
            raise ExternalParsingError(f"Expected '{value}', found {found}")
        self.index += 1

    def parse_predicate(self) -> Operator:
        name = self.expect("name", "quoted_name")
        lhs = ValueReference(name.value.strip('"') if name.type == "quoted_name" else name.value)

        if operator := self.accept("operator"):
            return BinaryComparisonOperator(
                BinaryComparisonName.from_symbol(operator.value), (lhs, self.parse_literal())
            )
        elif self.accept("IS"):
            negate = self.accept("NOT") is not None
            self.expect("NULL")
            return NullOperator(lhs, negate=negate)

        negate = self.accept("NOT") is not None
        if self.accept("LIKE"):
            pattern = self.expect("string")
            return LikeOperator(lhs, self._string_literal(pattern), negate=negate)
        elif self.accept("IN"):
            self.expect_punctuation("(")
            values = [self.parse_literal()]
            while self.peek() is not None and self.peek().value == ",":
                self.index += 1
                values.append(self.parse_literal())
            self.expect_punctuation(")")
            return InOperator(lhs, tuple(values), negate=negate)

        raise ExternalParsingError(
            f"Expected a comparison after '{lhs.name}'"
            + (f" at {self.peek().position}" if self.peek() else "")
        )

    def parse_literal(self) -> Literal:
        token = self.expect("string", "number", "TRUE", "FALSE", "NULL")
        if token.type == "string":
            return self._string_literal(token)
        elif token.type == "number":
            return Literal(_parse_number(token.value))
        elif token.type == "NULL":
            return Literal(None)
        else:
            return Literal(token.type == "TRUE")

    def _string_literal(self, token: Token) -> Literal:
        return Literal(token.value[1:-1].replace("''", "'"))


def _combine(operator_type: BinaryLogicType, operands: list[Operator]) -> Operator:
    return operands[0] if len(operands) == 1 else BinaryLogicOperator(operator_type, operands)


def _parse_number(value: str) -> int | Decimal:
    if value.lstrip("+-").isdigit():
        return int(value)
    else:
        return Decimal(value)


def parse_query(text: str) -> Operator:
    """Parse the query language into an expression tree.

    :raises ExternalParsingError: When the text has a syntax error.
    """
    return QueryParser(text).parse()
