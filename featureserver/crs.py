"""Coordinate Reference System (CRS) identifiers for collections.

Each collection stores its geometries in a single CRS. That CRS is needed to
interpret the numbers of a ``bbox=...`` parameter. The numbers are read as given
(``minx,miny,maxx,maxy``), the repository applies the axis ordering of its CRS.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property

from featureserver.exceptions import ExternalValueError

CRS_URN_REGEX = re.compile(
    r"^urn:(?P<domain>[a-z]+)"
    r":def:crs:(?P<authority>[a-z]+)"
    r":(?P<version>[0-9]+(\.[0-9]+(\.[0-9]+)?)?)?"
    r":(?P<id>[0-9]+|crs84)"
    r"$",
    re.IGNORECASE,
)

#: The other notations of an EPSG code.
EPSG_PREFIXES = ("EPSG:", "http://www.opengis.net/def/crs/epsg/0/")

__all__ = [
    "CRS",
    "CRS84",
    "WEB_MERCATOR",
    "WGS84",
]

# Avoid reinitializing the common ones each time.
_COMMON_CRS_BY_STR = {}
_COMMON_CRS_BY_SRID = {}


@dataclass(frozen=True, eq=False)
class CRS:
    """A CRS identifier, preferably in the OGC URN notation
    (e.g. ``urn:ogc:def:crs:EPSG::28992``).

    Legacy notations (``EPSG:28992``, ``http://www.opengis.net/def/crs/epsg/0/28992``)
    and numeric SRID values are also accepted by :meth:`from_string`.
    """

    #: Either "ogc" or "opengis".
    domain: str

    #: Either "OGC" or "EPSG".
    authority: str

    #: The registry version, typically empty.
    version: str

    #: The identifier within the authority, e.g. "28992" or "CRS84".
    crsid: str

    #: Numeric spatial reference ID, as the storage backends use it.
    srid: int

    @classmethod
    def from_string(cls, uri: str | int) -> CRS:
        """Parse the CRS notation.

        The value can be:

        * A URI in OGC URN format.
        * A legacy notation (``EPSG:<SRID>`` or ``http://www.opengis.net/def/crs/epsg/0/<SRID>``).
        * A numeric SRID (which calls :meth:`from_srid()`).

        :raises ExternalValueError: When the notation is not recognized.
        """
        if known_crs := _COMMON_CRS_BY_STR.get(uri):
            return known_crs

        if isinstance(uri, int) or uri.isdigit():
            return cls.from_srid(int(uri))
        elif uri.startswith("urn:"):
            return cls._from_urn(uri)
        else:
            return cls._from_prefix(uri)

    @classmethod
    def from_srid(cls, srid: int) -> CRS:
        """Construct the CRS from a numeric spatial reference ID.
        This is identical to ``CRS.from_string("urn:ogc:def:crs:EPSG::<SRID>")``.
        """
        if common_crs := _COMMON_CRS_BY_SRID.get(srid):
            return common_crs

        return cls(domain="ogc", authority="EPSG", version="", crsid=str(srid), srid=int(srid))

    @classmethod
    def _from_urn(cls, urn: str) -> CRS:
        urn_match = CRS_URN_REGEX.match(urn)
        if not urn_match:
            raise ExternalValueError(
                f"Unknown CRS URN [{urn}] specified: {CRS_URN_REGEX.pattern}"
            )

        domain = urn_match.group("domain")
        authority = urn_match.group("authority").upper()
        crsid = urn_match.group("id").upper()
        if domain not in ("ogc", "opengis"):
            raise ExternalValueError(f"CRS URI [{urn}] contains unknown domain [{domain}]")

        if authority == "EPSG":
            if not crsid.isdigit():
                raise ExternalValueError(
                    f"CRS URI [{urn}] should contain a numeric SRID value."
                )
            srid = int(crsid)
        elif authority == "OGC":
            # urn:ogc:def:crs:OGC::CRS84 is WGS84 in longitude/latitude ordering.
            if crsid not in ("CRS84", "84"):
                raise ExternalValueError(f"OGC CRS URI [{urn}] contains unknown id [{crsid}]")
            srid = 4326
        else:
            raise ExternalValueError(f"CRS URI [{urn}] contains unknown authority [{authority}]")

        return cls(
            domain=domain,
            authority=authority,
            version=urn_match.group("version") or "",
            crsid=crsid,
            srid=srid,
        )

    @classmethod
    def _from_prefix(cls, uri: str) -> CRS:
        origin = uri.lower() if "://" in uri else uri.upper()
        for prefix in EPSG_PREFIXES:
            if origin.startswith(prefix):
                crsid = origin[len(prefix) :]
                if not crsid.isdigit():
                    raise ExternalValueError(
                        f"CRS URI [{uri}] should contain a numeric SRID value."
                    )
                return cls.from_srid(int(crsid))

        raise ExternalValueError(f"Unknown CRS URI [{uri}] specified")

    @cached_property
    def urn(self) -> str:
        """The OGC URN notation of this CRS."""
        return f"urn:{self.domain}:def:crs:{self.authority}:{self.version}:{self.crsid}"

    def __str__(self):
        return self.urn

    def __eq__(self, other):
        if isinstance(other, CRS):
            # "urn:ogc:def:crs:EPSG::4326" != "urn:ogc:def:crs:OGC::CRS84"
            return self.srid == other.srid and self.authority == other.authority
        else:
            return NotImplemented

    def __hash__(self):
        return hash((self.authority, self.srid))

    def cache_instance(self):
        """Register a common CRS, so requests using the same notation receive this instance."""
        if self.authority == "EPSG":
            _COMMON_CRS_BY_SRID[self.srid] = self

        _COMMON_CRS_BY_STR[str(self)] = self


#: Worldwide GPS, latitude/longitude (y/x). https://epsg.io/4326
WGS84 = CRS.from_string("urn:ogc:def:crs:EPSG::4326")

#: GeoJSON default. This is like WGS84 but with longitude/latitude (x/y).
CRS84 = CRS.from_string("urn:ogc:def:crs:OGC::CRS84")

#: Spherical Mercator (Google Maps, Bing Maps, OpenStreetMap, ...), see https://epsg.io/3857
WEB_MERCATOR = CRS.from_string("urn:ogc:def:crs:EPSG::3857")

WGS84.cache_instance()
CRS84.cache_instance()
WEB_MERCATOR.cache_instance()
