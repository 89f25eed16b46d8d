"""Helper classes to handle geometry data types.

The bounding box of a request is parsed into an :class:`Envelope`.
Other geometries (e.g. the intersection geometry) are passed as WKT text
to the repository, which knows how to interpret them.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from featureserver.crs import CRS

logger = logging.getLogger(__name__)

__all__ = ["Envelope"]

_NUMBER = r"\s*([-+]?[.\d]+(?:[eE][-+]?\d+)?)\s*"

#: The "minx,miny,maxx,maxy" notation of the bbox parameter.
RE_BBOX = re.compile(rf"\A{_NUMBER},{_NUMBER},{_NUMBER},{_NUMBER}\Z")


@dataclass(frozen=True)
class Envelope:
    """An axis-aligned bounding box in a given coordinate reference system.

    Instances created by :meth:`from_string` always have a positive extent
    on both axis, as empty boxes can't be used as spatial filter.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float
    crs: CRS | None = None

    @classmethod
    def from_string(cls, text: str | None, crs: CRS | None) -> Envelope | None:
        """Parse the ``bbox=minx,miny,maxx,maxy`` notation.

        This is deliberately lenient: anything that can't be used as bounding box
        (other shapes, non-numeric values, an empty extent) returns ``None``,
        so the query continues without a spatial filter.
        """
        if not text:
            return None

        bbox_match = RE_BBOX.match(text)
        if bbox_match is None:
            logger.debug("Ignoring bbox '%s', expected 4 comma-separated numbers.", text)
            return None

        try:
            # Numbers like "1.2.3" still match the regexp.
            coords = [float(value) for value in bbox_match.groups()]
        except ValueError:
            logger.debug("Ignoring bbox '%s', values are not numeric.", text)
            return None

        if not all(map(math.isfinite, coords)):
            logger.debug("Ignoring bbox '%s', values are out of range.", text)
            return None

        envelope = cls(*coords, crs=crs)
        if envelope.is_empty:
            logger.debug("Ignoring bbox '%s', it has no extent.", text)
            return None

        return envelope

    @property
    def is_empty(self) -> bool:
        """Tell whether the box has no area (or a negative extent)."""
        return not (self.min_x < self.max_x and self.min_y < self.max_y)

    @property
    def extent(self) -> tuple[float, float, float, float]:
        """The (minx, miny, maxx, maxy) values, as the GEOS/OGR objects expose them."""
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def __str__(self):
        return ",".join(map(str, self.extent))
