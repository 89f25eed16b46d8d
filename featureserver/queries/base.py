"""The final query, as it's handed to the repository.

The :class:`QueryDescription` combines the request, the stored view
and the collection metadata into a single validated object.
"""

from __future__ import annotations

import logging
import typing
from dataclasses import dataclass, field

from featureserver import conf
from featureserver.exceptions import MalformedParameter
from featureserver.geometries import Envelope
from featureserver.querylang import Expression, parse_query

from .sorting import SortProperty, build_sort_spec
from .stored import ViewDefinition, merge_projection, merge_selectors

if typing.TYPE_CHECKING:
    from collections.abc import Callable

    from featureserver.repository import CollectionMetadata

    from .request import FeatureCollectionRequest

logger = logging.getLogger(__name__)

__all__ = ("QueryDescription",)


@dataclass(frozen=True)
class QueryDescription:
    """Everything the repository needs to execute a feature query."""

    #: The collection that's queried.
    metadata: CollectionMetadata
    #: Spatial filter, in the CRS of the collection.
    envelope: Envelope | None = None
    #: Geometry (as WKT) that the features should intersect with.
    intersection_geometry_wkt: str | None = None
    #: The combined expression of the view and request.
    selector: Expression | None = None
    #: The combined fields of the view and request.
    projection: list[str] = field(default_factory=list)
    #: The ordering of the results.
    sort: list[SortProperty] = field(default_factory=list)
    #: The first result to return
    start: int = 0
    #: The maximum number of results
    limit: int | None = None

    @classmethod
    def for_collection(cls, metadata: CollectionMetadata) -> QueryDescription:
        """Describe a query that returns the whole collection."""
        return cls(metadata=metadata)

    @classmethod
    def from_request(
        cls,
        metadata: CollectionMetadata,
        request: FeatureCollectionRequest,
        view: ViewDefinition,
        expression_parser: Callable[[str], Expression] = parse_query,
    ) -> QueryDescription:
        """Combine the parsed request with the (already retrieved) view definition.

        :raises InvalidExpression: When the view contains an invalid query.
        :raises MalformedParameter: For an unusable bbox when ``FEATURESERVER_STRICT_BBOX`` is set.
            This includes an empty ``bbox=`` parameter.
        """
        envelope = Envelope.from_string(request.bbox, metadata.crs)
        if envelope is None and request.bbox is not None and conf.FEATURESERVER_STRICT_BBOX:
            raise MalformedParameter(f"Invalid bbox argument: '{request.bbox}'", locator="bbox")

        return cls(
            metadata=metadata,
            envelope=envelope,
            intersection_geometry_wkt=request.intersection_geometry_wkt,
            selector=merge_selectors(view.query, request.query, parser=expression_parser),
            projection=merge_projection(view.projection, request.projection),
            sort=build_sort_spec(request.sort, request.sort_directions),
            start=request.start,
            limit=request.limit,
        )
