"""The interface of the storage layer.

The request handling doesn't execute queries itself. A :class:`Repository`
implementation provides the collection metadata and stored views,
and executes the final :class:`~featureserver.queries.base.QueryDescription`.
"""

from __future__ import annotations

import typing
from collections.abc import AsyncIterator
from dataclasses import dataclass

from featureserver.crs import CRS

if typing.TYPE_CHECKING:
    from featureserver.queries.base import QueryDescription
    from featureserver.queries.stored import ViewDefinition

__all__ = ("CollectionMetadata", "Repository")


@dataclass(frozen=True)
class CollectionMetadata:
    """Metadata of a feature collection."""

    #: The database the collection is stored in.
    db: str
    #: The name of the collection.
    collection: str
    #: The coordinate reference system of the stored geometries.
    crs: CRS


class Repository:
    """Storage backend for feature collections.

    Subclasses implement all methods as coroutines, so the request handling
    can run on an event loop without blocking it.
    """

    async def metadata(self, db: str, collection: str) -> CollectionMetadata:
        """Retrieve the metadata of a collection.

        :raises CollectionNotFound: When the collection doesn't exist.
        """
        raise NotImplementedError()

    async def get_view(self, db: str, collection: str, view_id: str) -> ViewDefinition:
        """Retrieve a stored view definition.

        :raises ViewNotFound: When the view doesn't exist.
        """
        raise NotImplementedError()

    async def query(
        self,
        db: str,
        collection: str,
        query: QueryDescription,
        start: int = 0,
        limit: int | None = None,
    ) -> tuple[int | None, AsyncIterator[dict]]:
        """Execute the query.

        :returns: The total number of matches (if the backend counts them),
            and the features of the requested page.
        """
        raise NotImplementedError()
