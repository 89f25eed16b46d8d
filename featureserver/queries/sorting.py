"""Sorting of the query results.

The ``sort=...`` and ``sort-direction=...`` parameters are given as separate lists,
which are correlated by position: the Nth field takes the Nth direction.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

__all__ = ("SortOrder", "SortProperty", "build_sort_spec")


class SortOrder(Enum):
    #: Ascending order
    ASC = "ASC"
    #: Descending order
    DESC = "DESC"

    @classmethod
    def from_string(cls, direction: str | SortOrder) -> SortOrder:
        """Translate the direction token.
        Unknown tokens are treated as ascending order, instead of failing the request.
        """
        if isinstance(direction, SortOrder):
            return direction

        try:
            return cls[direction.strip().upper()]
        except KeyError:
            logger.debug("Unknown sort direction '%s', using ASC instead.", direction)
            return cls.ASC

    def __repr__(self):
        return f"{self.__class__.__name__}.{self.name}"


@dataclass(frozen=True)
class SortProperty:
    """A single sorting instruction, for one field."""

    field: str
    sort_order: SortOrder = SortOrder.ASC

    def __str__(self):
        return f"{self.field} {self.sort_order.name}"


def build_sort_spec(
    fields: Sequence[str], directions: Sequence[str | SortOrder]
) -> list[SortProperty]:
    """Combine the list of sort fields with their directions.

    * Excess directions are discarded, as there is no field to pair them with.
    * Unknown directions become ascending.
    * Fields without a direction are sorted ascending.

    The result follows the ordering of the fields.
    """
    directions = [SortOrder.from_string(direction) for direction in directions[: len(fields)]]
    directions += [SortOrder.ASC] * (len(fields) - len(directions))
    return [
        SortProperty(field, sort_order) for field, sort_order in zip(fields, directions)
    ]
