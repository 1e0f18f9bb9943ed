"""Helper classes to handle GeoJSON geometry data.

The bounding box is calculated within Python, by walking over all coordinates.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

__all__ = [
    "BoundingBox",
    "GEOMETRY_TYPES",
    "iter_positions",
]

#: The GeoJSON geometry types that can be encoded as GML.
GEOMETRY_TYPES = (
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
)


def _is_position(value) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) >= 2
        and isinstance(value[0], (int, float))
        and isinstance(value[1], (int, float))
    )


def iter_positions(coordinates) -> Iterator[list[float]]:
    """Walk through nested coordinate arrays, regardless of the geometry type."""
    if _is_position(coordinates):
        yield coordinates
    elif isinstance(coordinates, (list, tuple)):
        for child in coordinates:
            yield from iter_positions(child)


@dataclass
class BoundingBox:
    """A bounding box, as rendered in a ``<gml:Envelope>``.

    The X/Y coordinates can be either latitude or longitude, depending on the CRS.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_geometry(cls, geometry: dict) -> BoundingBox:
        """Calculate the extent of a GeoJSON geometry.

        A geometry without any coordinates gives the degenerate box ``(0, 0, 0, 0)``.
        """
        if geometry.get("type") not in GEOMETRY_TYPES:
            return cls(0, 0, 0, 0)

        # Start with an obviously invalid bbox,
        # which corrects at the first extend_to call.
        result = cls(math.inf, math.inf, -math.inf, -math.inf)
        found = False
        for position in iter_positions(geometry.get("coordinates")):
            found = True
            x, y = position[0], position[1]
            result.extend_to(x, y, x, y)

        return result if found else cls(0, 0, 0, 0)

    @property
    def lower_corner(self):
        return [self.min_x, self.min_y]

    @property
    def upper_corner(self):
        return [self.max_x, self.max_y]

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def extend_to(self, min_x: float, min_y: float, max_x: float, max_y: float):
        """Expand the bounding box in-place"""
        self.min_x = min(self.min_x, min_x)
        self.min_y = min(self.min_y, min_y)
        self.max_x = max(self.max_x, max_x)
        self.max_y = max(self.max_y, max_y)
