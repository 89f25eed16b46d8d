from decimal import Decimal

import pytest

from featureserver.exceptions import ExternalParsingError
from featureserver.querylang import (
    BinaryComparisonName,
    BinaryComparisonOperator,
    BinaryLogicOperator,
    BinaryLogicType,
    InOperator,
    LikeOperator,
    Literal,
    NullOperator,
    UnaryLogicOperator,
    UnaryLogicType,
    ValueReference,
    parse_query,
)


def _eq(name, value):
    return BinaryComparisonOperator(
        BinaryComparisonName.EqualTo, (ValueReference(name), Literal(value))
    )


@pytest.mark.parametrize(
    "text,expect",
    [
        ("status='open'", _eq("status", "open")),
        ("status = 'it''s'", _eq("status", "it's")),
        ('"with space" = 1', _eq("with space", 1)),
        ("address.city = 'Amsterdam'", _eq("address.city", "Amsterdam")),
        ("is_open = TRUE", _eq("is_open", True)),
        ("is_open = false", _eq("is_open", False)),
        (
            "rating >= 3.5",
            BinaryComparisonOperator(
                BinaryComparisonName.GreaterThanOrEqualTo,
                (ValueReference("rating"), Literal(Decimal("3.5"))),
            ),
        ),
        (
            "rating <> -1",
            BinaryComparisonOperator(
                BinaryComparisonName.NotEqualTo, (ValueReference("rating"), Literal(-1))
            ),
        ),
        ("owner IS NULL", NullOperator(ValueReference("owner"))),
        ("owner is not null", NullOperator(ValueReference("owner"), negate=True)),
        ("name LIKE 'Amst%'", LikeOperator(ValueReference("name"), Literal("Amst%"))),
        (
            "name NOT LIKE 'A_'",
            LikeOperator(ValueReference("name"), Literal("A_"), negate=True),
        ),
        (
            "region IN ('EU', 'US')",
            InOperator(ValueReference("region"), (Literal("EU"), Literal("US"))),
        ),
        (
            "region NOT IN (1)",
            InOperator(ValueReference("region"), (Literal(1),), negate=True),
        ),
    ],
)
def test_predicates(text, expect):
    assert parse_query(text) == expect


def test_precedence():
    """Prove that NOT binds stronger than AND, which binds stronger than OR."""
    result = parse_query("a = 1 OR NOT b = 2 AND c = 3")
    assert result == BinaryLogicOperator(
        BinaryLogicType.Or,
        [
            _eq("a", 1),
            BinaryLogicOperator(
                BinaryLogicType.And,
                [UnaryLogicOperator(UnaryLogicType.Not, _eq("b", 2)), _eq("c", 3)],
            ),
        ],
    )


def test_parentheses():
    result = parse_query("(a = 1 OR b = 2) AND c = 3")
    assert result == BinaryLogicOperator.and_(
        BinaryLogicOperator(BinaryLogicType.Or, [_eq("a", 1), _eq("b", 2)]),
        _eq("c", 3),
    )


def test_chained():
    """Prove that chained operators are collected in a single node."""
    result = parse_query("a = 1 and b = 2 and c = 3")
    assert result.operands == (_eq("a", 1), _eq("b", 2), _eq("c", 3))
    assert [ref.name for ref in result.get_value_references()] == ["a", "b", "c"]


def test_str():
    """Prove that the expression can be rendered back into the language."""
    text = "(region IN ('EU', 'US')) AND (NOT (name LIKE 'it''s%'))"
    assert str(parse_query(text)) == text


@pytest.mark.parametrize(
    "text,message",
    [
        ("", "Empty query expression"),
        ("   ", "Empty query expression"),
        ("status =", "Expected string or number or TRUE or FALSE or NULL, but the query ended"),
        ("= 'open'", "Expected name or quoted_name, found '=' at 0"),
        ("status 'open'", "Expected a comparison after 'status' at 7"),
        ("(a = 1", "Expected ')', found the end of the query"),
        ("a = 1)", "Unexpected ')' at 5"),
        ("a = 1 b = 2", "Unexpected 'b' at 6"),
        ("a = 'open", "Unexpected character \"'\" at 4"),
        ("a IS 1", "Expected NULL, found '1' at 5"),
        ("a IN 'x'", "Expected '(', found ''x'' at 5"),
    ],
)
def test_syntax_errors(text, message):
    with pytest.raises(ExternalParsingError) as exc_info:
        parse_query(text)

    assert str(exc_info.value) == message
