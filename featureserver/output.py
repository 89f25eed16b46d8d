"""Streaming the features of a query result.

The renderers write the features as they come in from the repository,
so large collections never have to be held in memory.
"""

from __future__ import annotations

import csv
import logging
import typing
from collections.abc import AsyncIterator
from io import StringIO

import orjson
from django.conf import settings
from django.http import StreamingHttpResponse

if typing.TYPE_CHECKING:
    from featureserver.parsers.params import QueryParams, RawParameters

logger = logging.getLogger(__name__)

__all__ = (
    "OutputRenderer",
    "JsonRenderer",
    "NdJsonRenderer",
    "CsvRenderer",
    "FeatureListRenderer",
    "get_renderer_class",
)


class OutputRenderer:
    """Base class for rendering a feature stream."""

    #: Default content type for the HTTP response
    content_type = "application/octet-stream"

    def __init__(
        self, total: int | None, features: AsyncIterator[dict], filename: str | None = None
    ):
        self.total = total
        self.features = features
        self.filename = filename

    @classmethod
    def get_render_options(cls, query_params: QueryParams, params: RawParameters) -> dict:
        """Read the parameters that change the output.
        These are passed as keyword arguments to the constructor.
        """
        return {"filename": query_params.extract("filename", params)}

    async def get_response(self) -> StreamingHttpResponse:
        """Render the output as streaming response."""
        stream = self.render_stream()

        # Peek the generator so initial exceptions can still be handled,
        # and get rendered as normal HTTP responses with the proper status.
        start = await anext(stream)  # the streams always produce a chunk.

        # Handover to the ASGI server (starts streaming when reading the contents)
        return StreamingHttpResponse(
            streaming_content=self._trap_exceptions(start, stream),
            content_type=self.content_type,
            headers=self.get_headers(),
        )

    def get_headers(self) -> dict[str, str]:
        """Return the response headers"""
        if self.filename:
            return {"Content-Disposition": f'attachment; filename="{self.filename}"'}
        return {}

    async def _trap_exceptions(self, start: bytes, stream: AsyncIterator[bytes]):
        """Decorate the generator to show exceptions"""
        yield start
        try:
            async for chunk in stream:
                yield chunk
        except Exception as e:
            # Can't return 500 at this point,
            # but can still tell the client what happened.
            logger.exception("Rendering of the feature stream was interrupted")
            yield self.render_exception(e)
            raise

    def render_exception(self, exception: Exception) -> bytes:
        """Inform the client that the stream processing was interrupted with an exception.

        Purposefully, not much information is given, so avoid informing clients.
        The actual exception is still raised and logged server-side.
        """
        if settings.DEBUG:
            return f"\n{exception.__class__.__name__}: {exception}\n".encode()
        else:
            return f"\n{exception.__class__.__name__} during rendering!\n".encode()

    def render_stream(self) -> AsyncIterator[bytes]:
        """Implement this in subclasses to implement a custom output format.
        The first chunk should include the first feature, so errors from
        the repository are still reported as a regular error response.
        """
        raise NotImplementedError()


class JsonRenderer(OutputRenderer):
    """Render the features as a single JSON document::

    {"type": "FeatureCollection", "total": 2, "features": [{...}, {...}]}
    """

    content_type = "application/json"

    async def render_stream(self):
        header = b'{"type":"FeatureCollection","total":%s,"features":[' % orjson.dumps(
            self.total
        )
        separator = header
        async for feature in self.features:
            yield separator + orjson.dumps(feature)
            separator = b","

        if separator is header:
            # No features, still write a complete document.
            yield header + b"]}\n"
        else:
            yield b"]}\n"


class NdJsonRenderer(OutputRenderer):
    """Render the features as newline-delimited JSON, one feature per line."""

    content_type = "application/x-ndjson"

    async def render_stream(self):
        empty = True
        async for feature in self.features:
            empty = False
            yield orjson.dumps(feature, option=orjson.OPT_APPEND_NEWLINE)

        if empty:
            yield b""


class CsvRenderer(OutputRenderer):
    """Render the features as CSV, using a stream response.

    The columns are the properties of the first feature.
    Properties that later features add are not written.
    The complex encoding bits are handled by the "csv" library.
    """

    content_type = "text/csv; charset=utf-8"
    chunk_size = 40_000

    #: The outputted CSV dialect. This can be a csv.Dialect subclass
    #: or one of the registered names like: "unix", "excel", "excel-tab"
    dialect = "unix"

    def __init__(
        self,
        total: int | None,
        features: AsyncIterator[dict],
        filename: str | None = None,
        separator: str = ",",
    ):
        super().__init__(total, features, filename=filename)
        self.separator = separator

    @classmethod
    def get_render_options(cls, query_params, params):
        options = super().get_render_options(query_params, params)
        if separator := query_params.extract("sep", params):
            options["separator"] = separator
        return options

    async def render_stream(self):
        output = StringIO()
        writer = csv.writer(output, dialect=self.dialect, delimiter=self.separator)

        header = None
        async for feature in self.features:
            if header is None:
                header = list(feature)
                writer.writerow(header)

            writer.writerow([self.get_value(feature.get(name)) for name in header])

            # Only perform a 'yield' every once in a while,
            # as it goes back-and-forth for writing it to the client.
            if output.tell() > self.chunk_size:
                csv_chunk = output.getvalue()
                output.seek(0)
                output.truncate(0)
                yield csv_chunk.encode()

        yield output.getvalue().encode()

    def get_value(self, value):
        """Format a single property value."""
        if isinstance(value, (dict, list)):
            # Nested data is written as JSON text.
            return orjson.dumps(value).decode()
        return value


class FeatureListRenderer(OutputRenderer):
    """Render the features as a plain JSON listing::

    {"total": 3, "features": [{...}, {...}], "count": 2}

    The ``count`` is only known at the end of the stream, so it's written last.
    """

    content_type = "application/json"

    @classmethod
    def get_render_options(cls, query_params, params):
        return {}

    async def render_stream(self):
        header = b'{"total":%s,"features":[' % orjson.dumps(self.total)
        count = 0
        async for feature in self.features:
            yield (header if not count else b",") + orjson.dumps(feature)
            count += 1

        footer = b'],"count":%d}\n' % count
        yield footer if count else header + footer


#: All supported output formats, the first is the default.
RENDERER_CLASSES = {
    "json": JsonRenderer,
    "ndjson": NdJsonRenderer,
    "csv": CsvRenderer,
}


def get_renderer_class(output_format: str | None) -> type[OutputRenderer]:
    """Find the renderer for the ``fmt`` parameter.
    Unknown formats are rendered as JSON.
    """
    try:
        return RENDERER_CLASSES[output_format]
    except KeyError:
        if output_format:
            logger.debug("Unknown output format '%s', rendering JSON instead.", output_format)
        return JsonRenderer
