"""Typed extraction of the query-string parameters.

Each recognized parameter is described by a :class:`QueryParam`: a name and a
function that converts the raw text into a Python value.
The parameters are collected in a :class:`QueryParams` table, that's passed
explicitly to the code that reads the request.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Generic, TypeVar, Union

from django.utils.datastructures import MultiValueDict

from featureserver.exceptions import MalformedParameter, wrap_parser_errors
from featureserver.querylang import Expression, parse_query

from . import values

T = TypeVar("T")

#: The parameters as the HTTP layer provides them, e.g. a Django ``QueryDict``.
RawParameters = Union[MultiValueDict, Mapping[str, Union[Sequence[str], str]]]

__all__ = (
    "QueryParam",
    "QueryParams",
    "RawParameters",
    "build_query_params",
    "DEFAULT_QUERY_PARAMS",
)


def get_values(params: RawParameters, name: str) -> list[str]:
    """Find all values of a parameter, regardless of the mapping type."""
    if isinstance(params, MultiValueDict):
        # Using .get() would return the last value.
        return params.getlist(name)

    value = params.get(name)
    if value is None:
        return []
    elif isinstance(value, str):
        return [value]
    else:
        return list(value)


@dataclass(frozen=True)
class QueryParam(Generic[T]):
    """A named parameter, with the function to convert its value."""

    #: The name in the query string.
    name: str
    #: Converts the text, raises a ``ValueError`` for bad input.
    parser: Callable[[str], T]
    #: The value when the parameter is not part of the request.
    default: T | None = None
    #: Whether ``?name=`` is passed to the parser, or reported as empty value.
    allow_empty: bool = True

    def extract(self, params: RawParameters) -> T | None:
        """Retrieve the value from the request parameters.

        Only the first value is used when the parameter is given multiple times.

        :raises MalformedParameter: When the value can't be converted, or is empty.
        :raises InvalidExpression: When the parser reports a syntax error.
        """
        raw_values = get_values(params, self.name)
        if not raw_values:
            return self.default

        raw_value = raw_values[0]
        if not raw_value and not self.allow_empty:
            raise MalformedParameter(f"Empty '{self.name}' parameter", locator=self.name)

        with wrap_parser_errors(self.name, locator=self.name):
            return self.parser(raw_value)


class QueryParams(Mapping):
    """The read-only table of all recognized parameters, by name."""

    def __init__(self, *params: QueryParam):
        self._params = MappingProxyType({param.name: param for param in params})

    def __getitem__(self, name: str) -> QueryParam:
        return self._params[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self):
        return f"<QueryParams: {', '.join(self._params)}>"

    def extract(self, name: str, params: RawParameters):
        """Retrieve the value of a single parameter."""
        return self._params[name].extract(params)


def build_query_params(
    expression_parser: Callable[[str], Expression] = parse_query,
) -> QueryParams:
    """Construct the table of parameters that a feature query accepts.

    :param expression_parser: The function that parses the ``query`` parameter.
    """
    return QueryParams(
        # Kept as text, as parsing the bbox needs the CRS of the collection.
        QueryParam("bbox", values.parse_text),
        QueryParam("with-view", values.parse_text),
        QueryParam("limit", values.parse_non_negative_int),
        QueryParam("start", values.parse_non_negative_int, default=0),
        QueryParam("projection", values.parse_list, allow_empty=False),
        QueryParam("sort", values.parse_list, allow_empty=False),
        QueryParam("sort-direction", values.parse_sort_directions, allow_empty=False),
        QueryParam("query", expression_parser),
        # Output options, not part of the query itself:
        QueryParam("fmt", values.parse_format),
        QueryParam("filename", values.parse_filename),
        QueryParam("sep", values.parse_separator),
    )


#: The parameters with the default query language.
DEFAULT_QUERY_PARAMS = build_query_params()
