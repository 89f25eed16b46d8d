from __future__ import annotations

import orjson
from django.http.response import HttpResponseBase


async def read_response(response: HttpResponseBase) -> bytes:
    """Read both regular and (async) streaming responses."""
    if response.streaming:
        return b"".join([chunk async for chunk in response.streaming_content])
    else:
        return response.content


async def read_partial_response(response: HttpResponseBase) -> tuple[bytes, Exception | None]:
    """Read a response, allow it to be interrupted by an exception."""
    content_parts = []
    try:
        async for part in response.streaming_content:
            content_parts.append(part)
    except Exception as exc:
        return b"".join(content_parts), exc
    else:
        return b"".join(content_parts), None


def read_json(content) -> dict:
    try:
        return orjson.loads(content)
    except orjson.JSONDecodeError as e:
        raise AssertionError(f"Parsing JSON failed: {e}\nContent: {content[:600]!r}") from None
