"""The nodes of a parsed query expression.

Inheritance structure:

* :class:`Expression`

 * :class:`ValueReference` a property name.
 * :class:`Literal` a string, number, boolean or ``NULL`` value.
 * :class:`Operator`

  * :class:`BinaryComparisonOperator` for ``=``, ``!=``, ``<``, ``<=``, ``>``, ``>=``.
  * :class:`LikeOperator` for ``[NOT] LIKE``.
  * :class:`InOperator` for ``[NOT] IN (...)``.
  * :class:`NullOperator` for ``IS [NOT] NULL``.
  * :class:`BinaryLogicOperator` for ``AND`` and ``OR``.
  * :class:`UnaryLogicOperator` for ``NOT``.

The repository translates these nodes into its own query format.
Calling ``str()`` on a node renders it back into the query language.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Union

#: The Python types a literal can hold.
ScalarTypes = Union[str, int, Decimal, bool, None]


class Expression:
    """Base class for all nodes in the expression tree."""

    def get_value_references(self) -> list[ValueReference]:
        """Tell which properties the expression reads."""
        return []


@dataclass(frozen=True)
class ValueReference(Expression):
    """A reference to a property of the feature (e.g. ``status``, or ``address.city``)."""

    name: str

    def get_value_references(self) -> list[ValueReference]:
        return [self]

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Literal(Expression):
    """A scalar value in the expression."""

    value: ScalarTypes

    def __str__(self):
        if self.value is None:
            return "NULL"
        elif isinstance(self.value, bool):
            return "TRUE" if self.value else "FALSE"
        elif isinstance(self.value, str):
            escaped = self.value.replace("'", "''")
            return f"'{escaped}'"
        else:
            return str(self.value)


class Operator(Expression):
    """Base class for all nodes that produce a boolean result."""


class BinaryComparisonName(Enum):
    """The comparison operators of the language, mapped to their lookup name."""

    EqualTo = "exact"
    NotEqualTo = "notequal"
    LessThan = "lt"
    GreaterThan = "gt"
    LessThanOrEqualTo = "lte"
    GreaterThanOrEqualTo = "gte"

    @classmethod
    def from_symbol(cls, symbol: str) -> BinaryComparisonName:
        return _COMPARISON_SYMBOLS[symbol]

    @property
    def symbol(self) -> str:
        return _COMPARISON_NAMES[self]

    def __repr__(self):
        # Make repr(expression) easier to copy-paste
        return f"{self.__class__.__name__}.{self.name}"


_COMPARISON_SYMBOLS = {
    "=": BinaryComparisonName.EqualTo,
    "!=": BinaryComparisonName.NotEqualTo,
    "<>": BinaryComparisonName.NotEqualTo,
    "<": BinaryComparisonName.LessThan,
    ">": BinaryComparisonName.GreaterThan,
    "<=": BinaryComparisonName.LessThanOrEqualTo,
    ">=": BinaryComparisonName.GreaterThanOrEqualTo,
}
_COMPARISON_NAMES = {
    BinaryComparisonName.EqualTo: "=",
    BinaryComparisonName.NotEqualTo: "!=",
    BinaryComparisonName.LessThan: "<",
    BinaryComparisonName.GreaterThan: ">",
    BinaryComparisonName.LessThanOrEqualTo: "<=",
    BinaryComparisonName.GreaterThanOrEqualTo: ">=",
}


class BinaryLogicType(Enum):
    """Operators that combine two or more expressions."""

    And = "AND"
    Or = "OR"

    def __repr__(self):
        return f"{self.__class__.__name__}.{self.name}"


class UnaryLogicType(Enum):
    Not = "NOT"

    def __repr__(self):
        return f"{self.__class__.__name__}.{self.name}"


@dataclass(frozen=True)
class BinaryComparisonOperator(Operator):
    """A comparison between a property and a value, e.g. ``status = 'open'``."""

    operatorType: BinaryComparisonName
    expression: tuple[ValueReference, Literal]

    def get_value_references(self) -> list[ValueReference]:
        return [self.expression[0]]

    def __str__(self):
        lhs, rhs = self.expression
        return f"{lhs} {self.operatorType.symbol} {rhs}"


@dataclass(frozen=True)
class LikeOperator(Operator):
    """A pattern match, e.g. ``name LIKE 'Amst%'``. The pattern uses ``%`` and ``_``."""

    valueReference: ValueReference
    pattern: Literal
    negate: bool = False

    def get_value_references(self) -> list[ValueReference]:
        return [self.valueReference]

    def __str__(self):
        keyword = "NOT LIKE" if self.negate else "LIKE"
        return f"{self.valueReference} {keyword} {self.pattern}"


@dataclass(frozen=True)
class InOperator(Operator):
    """A membership test, e.g. ``region IN ('EU', 'US')``."""

    valueReference: ValueReference
    values: tuple[Literal, ...]
    negate: bool = False

    def get_value_references(self) -> list[ValueReference]:
        return [self.valueReference]

    def __str__(self):
        keyword = "NOT IN" if self.negate else "IN"
        values = ", ".join(map(str, self.values))
        return f"{self.valueReference} {keyword} ({values})"


@dataclass(frozen=True)
class NullOperator(Operator):
    """The ``IS NULL`` check."""

    valueReference: ValueReference
    negate: bool = False

    def get_value_references(self) -> list[ValueReference]:
        return [self.valueReference]

    def __str__(self):
        keyword = "IS NOT NULL" if self.negate else "IS NULL"
        return f"{self.valueReference} {keyword}"


@dataclass(frozen=True)
class BinaryLogicOperator(Operator):
    """Combine expressions with ``AND`` or ``OR``.
    The parser collects chained operators (``a AND b AND c``) into one node.
    """

    operatorType: BinaryLogicType
    operands: tuple[Operator, ...]

    def __post_init__(self):
        # Allow passing lists, but keep the node hashable.
        object.__setattr__(self, "operands", tuple(self.operands))
        if len(self.operands) < 2:
            raise ValueError(f"{self.operatorType.value} needs at least two operands")

    @classmethod
    def and_(cls, *operands: Operator) -> BinaryLogicOperator:
        """Construct an ``AND`` node."""
        return cls(BinaryLogicType.And, operands)

    def get_value_references(self) -> list[ValueReference]:
        return [ref for operand in self.operands for ref in operand.get_value_references()]

    def __str__(self):
        return f" {self.operatorType.value} ".join(f"({operand})" for operand in self.operands)


@dataclass(frozen=True)
class UnaryLogicOperator(Operator):
    """The ``NOT`` operator."""

    operatorType: UnaryLogicType
    operands: Operator

    def get_value_references(self) -> list[ValueReference]:
        return self.operands.get_value_references()

    def __str__(self):
        return f"{self.operatorType.value} ({self.operands})"
