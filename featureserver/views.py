"""The view layer parses the request, and hands it to the normalizer.

The host project wires these views with ``db`` and ``collection`` URL arguments::

    path(
        "api/<db>/<collection>/query",
        FeatureCollectionView.as_view(repository=MyRepository()),
    )
"""

from __future__ import annotations

import logging
from urllib.parse import unquote_plus

from django.core.exceptions import ImproperlyConfigured
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from featureserver.exceptions import FeatureServerException
from featureserver.normalizer import RequestNormalizer
from featureserver.output import FeatureListRenderer, OutputRenderer, get_renderer_class
from featureserver.parsers.params import QueryParams, RawParameters
from featureserver.querylang import parse_query
from featureserver.repository import Repository

logger = logging.getLogger(__name__)

__all__ = (
    "FeatureServerView",
    "FeatureCollectionView",
    "FeatureListView",
    "CollectionDownloadView",
)


class FeatureServerView(View):
    """The base logic of the feature views."""

    #: The storage of the collections.
    repository: Repository | None = None

    #: The recognized query parameters, default is :func:`build_query_params`.
    query_params: QueryParams | None = None

    #: The parser of the ``query`` parameter.
    expression_parser = staticmethod(parse_query)

    @csrf_exempt
    async def dispatch(self, request, *args, **kwargs):
        """Render proper JSON errors for exceptions on all request types."""
        try:
            return await super().dispatch(request, *args, **kwargs)
        except Exception as e:
            response = self.handle_exception(e)
            if response is not None:
                return response
            raise

    def handle_exception(self, exc):
        """Transform an exception into a JSON response.
        When nothing is returned, the exception is raised instead.
        """
        if isinstance(exc, FeatureServerException):
            return exc.as_response()
        else:
            return None

    def get_repository(self) -> Repository:
        """Provide the storage backend. Override this to select it per request."""
        if self.repository is None:
            raise ImproperlyConfigured(f"{self.__class__.__name__}.repository is not set")
        return self.repository

    def get_normalizer(self) -> RequestNormalizer:
        """Provide the object that constructs the query."""
        return RequestNormalizer(
            self.get_repository(),
            expression_parser=self.expression_parser,
            query_params=self.query_params,
        )

    def get_output_options(
        self, normalizer: RequestNormalizer, params: RawParameters
    ) -> tuple[type[OutputRenderer], dict]:
        """Read the output parameters, before the query is started."""
        output_format = normalizer.query_params.extract("fmt", params)
        renderer_class = get_renderer_class(output_format)
        return renderer_class, renderer_class.get_render_options(normalizer.query_params, params)


class FeatureCollectionView(FeatureServerView):
    """Query the features of a collection.

    The query is given in the query-string,
    a ``POST`` request can also pass a WKT geometry to intersect with.
    """

    http_method_names = ["get", "post", "options"]

    async def get(self, request, db, collection):
        """Entry point to handle HTTP GET requests."""
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Parsing GET parameters:\n%s",
                unquote_plus(request.META["QUERY_STRING"].replace("&", "\n")).rstrip(),
            )
        return await self.query(request, db, collection, body=None)

    async def post(self, request, db, collection):
        """Entry point to handle HTTP POST requests.
        A text body (e.g. ``text/plain``) holds the intersection geometry as WKT.
        Other payloads, such as form data, are not read.
        """
        body = request.body if request.content_type.startswith("text/") else None
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Parsing POST (%s):\n%s",
                request.content_type,
                request.body.decode(errors="replace").rstrip(),
            )
        return await self.query(request, db, collection, body=body)

    async def query(self, request, db, collection, body):
        normalizer = self.get_normalizer()
        renderer_class, options = self.get_output_options(normalizer, request.GET)

        total, features = await normalizer.query(db, collection, request.GET, body=body)
        return await renderer_class(total, features, **options).get_response()


class FeatureListView(FeatureCollectionView):
    """List the features of a query as a plain JSON document.
    This accepts the same query as :class:`FeatureCollectionView`,
    but ignores the ``fmt``, ``sep`` and ``filename`` parameters.
    """

    def get_output_options(self, normalizer, params):
        return FeatureListRenderer, {}


class CollectionDownloadView(FeatureServerView):
    """Download all features of a collection.
    Only the output parameters (``fmt``, ``sep`` and ``filename``) are read.
    """

    http_method_names = ["get", "options"]

    async def get(self, request, db, collection):
        """Entry point to handle HTTP GET requests."""
        logger.info("Downloading %s/%s.", db, collection)
        normalizer = self.get_normalizer()
        renderer_class, options = self.get_output_options(normalizer, request.GET)

        total, features = await normalizer.download(db, collection)
        return await renderer_class(total, features, **options).get_response()
