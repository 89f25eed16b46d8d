import asyncio

import pytest
from asgiref.sync import async_to_sync
from django.http import QueryDict

from featureserver.exceptions import (
    CollectionNotFound,
    InvalidExpression,
    MalformedParameter,
    ViewNotFound,
)
from featureserver.geometries import Envelope
from featureserver.normalizer import RequestNormalizer
from featureserver.parsers.params import build_query_params
from featureserver.queries.sorting import SortOrder, SortProperty
from featureserver.queries.stored import ViewDefinition
from featureserver.querylang import BinaryLogicOperator, Literal, parse_query
from tests.test_featureserver.repository import (
    FEATURES,
    RD_NEW,
    RESTAURANTS,
    BlockingRepository,
)


async def _read_all(features):
    return [feature async for feature in features]


class TestRequestNormalizer:
    def test_query(self, normalizer, repository):
        """Prove that the whole request is combined with the stored view."""
        params = QueryDict(
            "bbox=0,0,10,10&query=status='open'&with-view=v1&projection=name"
            "&sort=name&sort-direction=desc"
        )
        total, features = async_to_sync(normalizer.query)("cities", "restaurants", params)
        assert total == len(FEATURES)
        assert async_to_sync(_read_all)(features) == FEATURES

        assert repository.view_requests == ["v1"]
        (description, start, limit) = repository.queries[0]
        assert description.metadata is RESTAURANTS
        assert description.envelope == Envelope(0, 0, 10, 10, crs=RD_NEW)
        assert description.selector == BinaryLogicOperator.and_(
            parse_query("region = 'EU'"), parse_query("status = 'open'")
        )
        assert description.projection == ["id", "name"]
        assert description.sort == [SortProperty("name", SortOrder.DESC)]
        assert (start, limit) == (0, None)

    def test_paging(self, normalizer, repository):
        params = QueryDict("start=1&limit=1")
        total, features = async_to_sync(normalizer.query)("cities", "restaurants", params)
        assert total == 3
        assert async_to_sync(_read_all)(features) == [FEATURES[1]]
        (description, start, limit) = repository.queries[0]
        assert (description.start, description.limit) == (1, 1)
        assert (start, limit) == (1, 1)

    def test_body(self, normalizer, repository):
        async_to_sync(normalizer.query)(
            "cities", "restaurants", QueryDict(""), body=b"POINT (122410 486250)"
        )
        (description, _, _) = repository.queries[0]
        assert description.intersection_geometry_wkt == "POINT (122410 486250)"

    def test_no_view(self, normalizer, repository):
        """Prove that the repository isn't asked for a view when none is requested."""
        async_to_sync(normalizer.query)("cities", "restaurants", QueryDict("query=a=1"))
        assert repository.view_requests == []
        (description, _, _) = repository.queries[0]
        assert description.selector == parse_query("a = 1")
        assert description.projection == []

    def test_empty_view_id(self, normalizer, repository):
        """The empty view name is passed as-is, so the repository can report it."""
        with pytest.raises(ViewNotFound):
            async_to_sync(normalizer.query)("cities", "restaurants", QueryDict("with-view="))

        assert repository.view_requests == [""]
        assert repository.queries == []

    def test_view_projection_only(self, normalizer, repository):
        async_to_sync(normalizer.query)(
            "cities", "restaurants", QueryDict("with-view=names&projection=id")
        )
        (description, _, _) = repository.queries[0]
        assert description.selector is None
        assert description.projection == ["name", "id"]

    @pytest.mark.parametrize(
        "query_string,exc_class",
        [
            ("projection=", MalformedParameter),
            ("limit=abc", MalformedParameter),
            ("query=status ==", InvalidExpression),
            ("with-view=broken", InvalidExpression),
            ("with-view=unknown", ViewNotFound),
        ],
    )
    def test_errors(self, normalizer, repository, query_string, exc_class):
        """Prove that no query is executed for invalid requests."""
        with pytest.raises(exc_class):
            async_to_sync(normalizer.query)("cities", "restaurants", QueryDict(query_string))

        assert repository.queries == []

    def test_unknown_collection(self, normalizer, repository):
        with pytest.raises(CollectionNotFound):
            async_to_sync(normalizer.query)("cities", "unknown", QueryDict("limit=abc"))

        assert repository.queries == []

    def test_lenient_bbox(self, settings, normalizer, repository):
        settings.FEATURESERVER_STRICT_BBOX = False
        async_to_sync(normalizer.query)("cities", "restaurants", QueryDict("bbox=1,2,3"))
        (description, _, _) = repository.queries[0]
        assert description.envelope is None

    @pytest.mark.parametrize("query_string", ["bbox=1,2,3", "bbox="])
    def test_strict_bbox(self, settings, normalizer, repository, query_string):
        settings.FEATURESERVER_STRICT_BBOX = True
        with pytest.raises(MalformedParameter) as exc_info:
            async_to_sync(normalizer.query)("cities", "restaurants", QueryDict(query_string))

        assert exc_info.value.locator == "bbox"
        assert repository.queries == []

    def test_lenient_numbers(self, settings, normalizer, repository):
        settings.FEATURESERVER_STRICT_NUMERIC_PARAMS = False
        async_to_sync(normalizer.query)("cities", "restaurants", QueryDict("limit=abc&start=x"))
        (_, start, limit) = repository.queries[0]
        assert (start, limit) == (0, None)

    def test_extract_request(self, normalizer):
        request = normalizer.extract_request({"sort": ["b,a"], "sort-direction": "DESC"})
        assert request.sort == ["b", "a"]
        assert request.sort_directions == [SortOrder.DESC]

    def test_get_view_definition(self, normalizer, repository):
        view = async_to_sync(normalizer.get_view_definition)("cities", "restaurants", None)
        assert view == ViewDefinition()
        assert repository.view_requests == []

        view = async_to_sync(normalizer.get_view_definition)("cities", "restaurants", "open")
        assert view == ViewDefinition(query="status = 'open'")

    def test_download(self, normalizer, repository):
        total, features = async_to_sync(normalizer.download)("cities", "restaurants")
        assert total == 3
        assert async_to_sync(_read_all)(features) == FEATURES

        (description, start, limit) = repository.queries[0]
        assert description.selector is None
        assert description.envelope is None
        assert (start, limit) == (0, None)

    def test_custom_expression_parser(self, repository):
        def parser(text):
            return Literal(text)

        normalizer = RequestNormalizer(repository, expression_parser=parser)
        async_to_sync(normalizer.query)("cities", "restaurants", QueryDict("query=anything"))
        (description, _, _) = repository.queries[0]
        assert description.selector == Literal("anything")

    def test_custom_query_params(self, repository):
        query_params = build_query_params()
        normalizer = RequestNormalizer(repository, query_params=query_params)
        assert normalizer.query_params is query_params

    def test_cancel_during_view_fetch(self):
        """Prove that cancelling the request never reaches the query execution."""
        repository = BlockingRepository()
        normalizer = RequestNormalizer(repository)

        async def run():
            task = asyncio.create_task(
                normalizer.query("cities", "restaurants", QueryDict("with-view=v1"))
            )
            await repository.view_requested.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        async_to_sync(run)()
        assert repository.queries == []
