"""Stored views, and how they're combined with the request.

A view is a named combination of a query expression and a projection,
stored by the repository. When a request names a view (``with-view=...``),
the view acts as a baseline: the request can only narrow the selection further,
and add fields to the projection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import orjson

from featureserver.exceptions import (
    ExternalParsingError,
    ExternalValueError,
    InvalidExpression,
)
from featureserver.querylang import BinaryLogicOperator, Expression, parse_query

logger = logging.getLogger(__name__)

__all__ = ("ViewDefinition", "merge_selectors", "merge_projection")


@dataclass(frozen=True)
class ViewDefinition:
    """The stored definition of a view.

    This mirrors the stored JSON document::

        {"query": "region = 'EU'", "projection": ["id", "name"]}
    """

    #: The query expression, as text.
    query: str | None = None
    #: The fields that are always part of the output.
    projection: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ViewDefinition:
        """Construct the definition from a decoded JSON document."""
        if not isinstance(data, dict):
            raise ExternalValueError(f"View definition should be an object, not {data!r}")

        query = data.get("query")
        if query is not None and not isinstance(query, str):
            raise ExternalValueError(f"View query should be a string, not {query!r}")

        projection = data.get("projection")
        if projection is not None and (
            not isinstance(projection, list)
            or not all(isinstance(name, str) for name in projection)
        ):
            raise ExternalValueError(f"View projection should be a list of names: {projection!r}")

        return cls(query=query, projection=projection)

    @classmethod
    def from_json(cls, raw: bytes | str) -> ViewDefinition:
        """Parse the JSON document that the repository stored."""
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise ExternalValueError(f"View definition is not valid JSON: {e}") from e
        return cls.from_dict(data)


def merge_selectors(
    view_query: str | None,
    request_query: Expression | None,
    parser: Callable[[str], Expression] = parse_query,
) -> Expression | None:
    """Combine the query of the view with the query of the request.

    Both are combined using ``AND``, the view expression comes first.

    :raises InvalidExpression: When the stored view query can't be parsed.
    """
    if view_query is not None:
        try:
            view_expression = parser(view_query)
        except ExternalParsingError as e:
            raise InvalidExpression(
                f"Invalid query in view definition: {e}", locator="with-view"
            ) from e

        if request_query is not None:
            result = BinaryLogicOperator.and_(view_expression, request_query)
        else:
            result = view_expression
    else:
        result = request_query

    logger.debug("Merging optional selectors of view and query to: %s", result)
    return result


def merge_projection(
    view_projection: Sequence[str] | None, request_projection: Sequence[str] | None
) -> list[str]:
    """Combine the fields of the view and request.
    The view fields come first, duplicates are kept as-is.
    """
    result = [*(view_projection or ()), *(request_projection or ())]
    logger.debug("Merging optional projections of view and query to: %s", result)
    return result
