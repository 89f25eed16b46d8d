"""Turning the raw request into the query that the repository executes.

The :class:`RequestNormalizer` reads the request parameters, fetches the
stored view the request refers to, and combines both into a
:class:`~featureserver.queries.base.QueryDescription`.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable

from featureserver.parsers.params import QueryParams, RawParameters, build_query_params
from featureserver.queries.base import QueryDescription
from featureserver.queries.request import FeatureCollectionRequest
from featureserver.queries.stored import ViewDefinition
from featureserver.querylang import Expression, parse_query
from featureserver.repository import CollectionMetadata, Repository

logger = logging.getLogger(__name__)

__all__ = ("RequestNormalizer",)


class RequestNormalizer:
    """Build the feature query for a single collection request.

    The normalizer keeps no state between requests, so a single instance
    can be shared by all requests.
    """

    def __init__(
        self,
        repository: Repository,
        expression_parser: Callable[[str], Expression] = parse_query,
        query_params: QueryParams | None = None,
    ):
        self.repository = repository
        self.expression_parser = expression_parser
        self.query_params = query_params or build_query_params(expression_parser)

    def extract_request(
        self, params: RawParameters, body: bytes | str | None = None
    ) -> FeatureCollectionRequest:
        """Read the request parameters, without consulting the repository.

        :raises MalformedParameter: When a parameter can't be converted, or is empty.
        :raises InvalidExpression: When the ``query`` parameter has syntax errors.
        """
        return FeatureCollectionRequest.from_query_params(
            params, body=body, query_params=self.query_params
        )

    async def get_view_definition(
        self, db: str, collection: str, view_id: str | None
    ) -> ViewDefinition:
        """Fetch the stored view, or provide an empty definition when none is requested."""
        if view_id is None:
            return ViewDefinition()

        logger.debug("Retrieving view '%s' of %s, collection %s", view_id, db, collection)
        return await self.repository.get_view(db, collection, view_id)

    async def build_query_description(
        self, metadata: CollectionMetadata, request: FeatureCollectionRequest
    ) -> QueryDescription:
        """Combine the request with the stored view it refers to.

        :raises ViewNotFound: When the repository doesn't know the view.
        :raises InvalidExpression: When the view contains an invalid query.
        """
        view = await self.get_view_definition(
            metadata.db, metadata.collection, request.with_view
        )
        return QueryDescription.from_request(
            metadata, request, view, expression_parser=self.expression_parser
        )

    async def query(
        self,
        db: str,
        collection: str,
        params: RawParameters,
        body: bytes | str | None = None,
    ) -> tuple[int | None, AsyncIterator[dict]]:
        """Handle the feature query for a collection.

        :returns: The total number of matches (when known), and the features.
        """
        metadata = await self.repository.metadata(db, collection)
        request = self.extract_request(params, body=body)
        logger.debug("Query %r on %s, collection %s", request, db, collection)

        description = await self.build_query_description(metadata, request)
        return await self.repository.query(
            db, collection, description, description.start, description.limit
        )

    async def download(self, db: str, collection: str) -> tuple[int | None, AsyncIterator[dict]]:
        """Retrieve all features of a collection, without any filters."""
        metadata = await self.repository.metadata(db, collection)
        description = QueryDescription.for_collection(metadata)
        logger.debug("Download of %s, collection %s", db, collection)
        return await self.repository.query(db, collection, description)
