"""Parsing of the scalar values in the request.

Each function raises a ``ValueError`` (or :class:`ExternalValueError`) for bad input,
which :func:`~featureserver.exceptions.wrap_parser_errors` translates into the
proper error response.
"""

import logging
import re

from featureserver.exceptions import ExternalValueError
from featureserver.queries.sorting import SortOrder

logger = logging.getLogger(__name__)

RE_PATH_SEPARATOR = re.compile(r"[/\\]")
RE_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")

# Characters that the CSV writer needs for quoting and line endings.
RESERVED_SEPARATORS = ('"', "\r", "\n")


def parse_text(raw_value: str) -> str:
    """Keep the value as-is."""
    return raw_value


def parse_non_negative_int(raw_value: str) -> int:
    """Translate a number (e.g. for paging) into an integer."""
    value = int(raw_value)
    if value < 0:
        raise ExternalValueError(f"Expected a non-negative number, not {value}")
    return value


def parse_list(raw_value: str) -> list[str]:
    """Translate the comma-separated notation into a list."""
    values = [item.strip() for item in raw_value.split(",")]
    if not all(values):
        raise ExternalValueError(f"Empty item in the list '{raw_value}'")
    return values


def parse_sort_directions(raw_value: str) -> list[SortOrder]:
    """Translate the comma-separated ASC/DESC notation.
    Unknown (or empty) values become ASC, so the positions still match the sort fields.
    """
    return [SortOrder.from_string(value) for value in raw_value.split(",")]


def parse_format(raw_value: str) -> str:
    """Translate the output format name."""
    return raw_value.strip().lower()


def parse_separator(raw_value: str) -> str:
    """Validate the column separator of the CSV output."""
    if len(raw_value) != 1 or raw_value in RESERVED_SEPARATORS:
        raise ExternalValueError(f"Expected a single separator character, not '{raw_value}'")
    return raw_value


def parse_filename(raw_value: str) -> str | None:
    """Clean up the filename for the ``Content-Disposition`` header.
    Directory names are removed, and unsafe characters are replaced.
    When nothing usable remains, no filename is given.
    """
    basename = RE_PATH_SEPARATOR.split(raw_value)[-1]
    filename = RE_UNSAFE_FILENAME_CHARS.sub("_", basename).lstrip(". ").rstrip()
    if filename != raw_value:
        logger.debug("Filename '%s' is sent as '%s'", raw_value, filename)
    return filename or None
