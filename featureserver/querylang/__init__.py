"""The boolean query language of the ``query=...`` parameter and stored views.

The request handling only depends on :func:`parse_query` returning an
:class:`Expression`, or raising an :class:`~featureserver.exceptions.ExternalParsingError`.
Another parser with that signature can be passed to the
:class:`~featureserver.normalizer.RequestNormalizer`.
"""

from .expressions import (
    BinaryComparisonName,
    BinaryComparisonOperator,
    BinaryLogicOperator,
    BinaryLogicType,
    Expression,
    InOperator,
    LikeOperator,
    Literal,
    NullOperator,
    Operator,
    UnaryLogicOperator,
    UnaryLogicType,
    ValueReference,
)
from .parser import parse_query

__all__ = [
    "parse_query",
    # Expressions
    "Expression",
    "Literal",
    "ValueReference",
    # Operators
    "BinaryComparisonName",
    "BinaryComparisonOperator",
    "BinaryLogicOperator",
    "BinaryLogicType",
    "InOperator",
    "LikeOperator",
    "NullOperator",
    "Operator",
    "UnaryLogicOperator",
    "UnaryLogicType",
]
