"""Exceptions for the feature query handling.

The request parsing raises the :class:`InvalidQuery` subclasses, which the views
translate into a client error response. Low-level parsers raise the
:class:`ExternalValueError` and :class:`ExternalParsingError` instead,
so bad external input can be told apart from internal bugs.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

import orjson
from django.http import HttpResponse

logger = logging.getLogger(__name__)

__all__ = (
    "wrap_parser_errors",
    "ExternalValueError",
    "ExternalParsingError",
    "FeatureServerException",
    "InvalidQuery",
    "MalformedParameter",
    "InvalidExpression",
    "NotFound",
    "CollectionNotFound",
    "ViewNotFound",
)


@contextmanager
def wrap_parser_errors(name: str, locator: str):
    """Convert the value into a Python format.
    This catches any typical exceptions and transforms them into an :class:`InvalidQuery`.
    """
    try:
        yield
    except ExternalParsingError as e:
        raise InvalidExpression(
            f"Unable to parse {name} argument: {e}", locator=locator
        ) from None
    except (TypeError, ValueError) as e:
        # TypeError/ValueError are raised by most handlers for unexpected data
        raise MalformedParameter(f"Invalid {name} argument: {e}", locator=locator) from None


class ExternalValueError(ValueError):
    """Raise a ValueError for external input.
    This helps to distinguish between internal bugs
    (e.g. unpacking values) and malformed external input.
    """


class ExternalParsingError(ValueError):
    """Raise a ValueError for a parsing problem (e.g. a syntax error in the query language)."""


class FeatureServerException(Exception):
    """Base class for exceptions that are returned to the client."""

    status_code = 400
    reason = None
    code = None
    text_template = None

    def __init__(self, text=None, code=None, locator=None, status_code=None):
        text = text or self.text_template.format(code=self.code, locator=locator)
        if (code and len(text) < len(code)) or (locator and len(text) < len(locator)):
            raise ValueError(f"text/locator arguments are switched: {text!r}, locator={locator!r}")

        super().__init__(text)
        self.locator = locator
        self.text = text
        self.code = code or self.code or self.__class__.__name__
        self.status_code = status_code or self.status_code

    def as_json(self) -> dict:
        """Tell how the exception is presented to the client."""
        return {"code": self.code, "locator": self.locator, "message": self.text}

    def as_response(self) -> HttpResponse:
        """Return the exception as HTTP response."""
        logger.debug("Returning HTTP %d for %s: %s", self.status_code, self.code, self.text)
        return HttpResponse(
            orjson.dumps(self.as_json()),
            content_type="application/json",
            status=self.status_code,
            reason=self.reason,
        )


class InvalidQuery(FeatureServerException):
    """The request could not be turned into a query."""

    status_code = 400
    code = "InvalidQuery"
    text_template = "The request could not be parsed by the server."


class MalformedParameter(InvalidQuery):
    """A parameter value can't be converted, or is empty where a value is required."""

    code = "MalformedParameter"
    text_template = "Invalid value for '{locator}' parameter."


class InvalidExpression(InvalidQuery):
    """The query expression (or the one stored in a view) has a syntax error."""

    code = "InvalidExpression"
    text_template = "Invalid query expression in '{locator}'."


class NotFound(FeatureServerException):
    """The requested resource could not be found."""

    status_code = 404
    reason = "Not Found"
    code = "NotFound"
    text_template = "The requested resource does not exist."


class CollectionNotFound(NotFound):
    """Raised by repositories for unknown databases or collections."""

    code = "CollectionNotFound"
    text_template = "Collection does not exist."


class ViewNotFound(NotFound):
    """Raised by repositories for an unknown view."""

    code = "ViewNotFound"
    text_template = "The requested view does not exist."
