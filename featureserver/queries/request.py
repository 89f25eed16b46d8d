"""The feature query as the request describes it.

This is the validated form of the request parameters,
before a stored view is applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from featureserver import conf
from featureserver.exceptions import MalformedParameter
from featureserver.parsers.params import DEFAULT_QUERY_PARAMS, QueryParams, RawParameters
from featureserver.querylang import Expression

from .sorting import SortOrder

logger = logging.getLogger(__name__)

__all__ = ("FeatureCollectionRequest", "read_body_text")


@dataclass(frozen=True)
class FeatureCollectionRequest:
    """The parsed parameters of a feature query.

    This supports the syntax:

    .. code-block:: urlencoded

        ?bbox=...&query=...&projection=a,b&with-view=...&sort=a,b&sort-direction=DESC,ASC
        &start=...&limit=...

    The request body optionally holds a WKT geometry to intersect with.
    """

    #: The raw bbox parameter. Parsing needs the CRS of the collection.
    bbox: str | None = None
    #: The parsed ``query=...`` parameter.
    query: Expression | None = None
    #: Additional fields to return.
    projection: list[str] = field(default_factory=list)
    #: The name of the stored view to apply.
    with_view: str | None = None
    #: The fields to sort on.
    sort: list[str] = field(default_factory=list)
    #: The directions, matched by position with the sort fields.
    sort_directions: list[SortOrder] = field(default_factory=list)
    #: The first result to return
    start: int = 0
    #: The maximum number of results
    limit: int | None = None
    #: Geometry the features should intersect with.
    intersection_geometry_wkt: str | None = None

    @classmethod
    def from_query_params(
        cls,
        params: RawParameters,
        body: bytes | str | None = None,
        query_params: QueryParams = DEFAULT_QUERY_PARAMS,
    ) -> FeatureCollectionRequest:
        """Build this object from the query-string parameters and request body.

        :raises MalformedParameter: When a parameter can't be converted, or is empty.
        :raises InvalidExpression: When the ``query`` parameter has syntax errors.
        """
        return cls(
            bbox=query_params.extract("bbox", params),
            with_view=query_params.extract("with-view", params),
            limit=_extract_number(query_params, "limit", params),
            start=_extract_number(query_params, "start", params),
            projection=query_params.extract("projection", params) or [],
            sort=query_params.extract("sort", params) or [],
            sort_directions=query_params.extract("sort-direction", params) or [],
            query=query_params.extract("query", params),
            intersection_geometry_wkt=read_body_text(body),
        )


def _extract_number(query_params: QueryParams, name: str, params: RawParameters):
    """Read a number, which falls back to the default in non-strict mode."""
    try:
        return query_params.extract(name, params)
    except MalformedParameter as e:
        if conf.FEATURESERVER_STRICT_NUMERIC_PARAMS:
            raise

        default = query_params[name].default
        logger.debug("Ignoring %s, using default '%s' instead.", e, default)
        return default


def read_body_text(body: bytes | str | None) -> str | None:
    """Read the request body, which optionally contains a WKT geometry."""
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedParameter("Request body should be UTF-8 text", locator="body") from None

    if not body or body.isspace():
        return None
    return body.strip()
