"""Axis orientation handling for the coordinates in GML responses.

Servers differ in the axis ordering they use for EPSG:4326.
The OGC URN notation (``urn:ogc:def:crs:EPSG::4326``) officially requires
latitude/longitude ordering, while the legacy ``EPSG:4326`` notation
is typically rendered in longitude/latitude (x/y) ordering.
See https://docs.geoserver.org/stable/en/user/services/wfs/axis_order.html

Note the detection here is a heuristic: any reference system name that contains
"4326" is treated as WGS84. There is no lookup in a CRS registry, so reference systems
which happen to contain "4326" in their code are treated the same way.
"""

from __future__ import annotations

from enum import Enum

__all__ = (
    "AxisOrderStrategy",
    "is_epsg_4326",
    "needs_swap",
    "apply_axis_order",
)


class AxisOrderStrategy(Enum):
    """How coordinates of parsed GML geometries should be ordered."""

    #: Keep the coordinates as the server sent them.
    preserve = "preserve"

    #: Swap EPSG:4326 coordinates, turning a lat/lon response into GeoJSON lon/lat ordering.
    forceLonLat = "forceLonLat"

    #: Swap all coordinates that are *not* EPSG:4326.
    forceLatLon = "forceLatLon"

    def __str__(self):
        return self.value


def is_epsg_4326(srs_name: str | None) -> bool:
    """Tell whether the reference system name denotes WGS84 (EPSG:4326)."""
    return "4326" in (srs_name or "").lower()


def needs_swap(strategy: AxisOrderStrategy, srs_name: str | None) -> bool:
    """Tell whether the first two axis need to be swapped."""
    if strategy is AxisOrderStrategy.forceLonLat:
        return is_epsg_4326(srs_name)
    elif strategy is AxisOrderStrategy.forceLatLon:
        return not is_epsg_4326(srs_name)
    else:
        return False


def apply_axis_order(
    position: list[float], strategy: AxisOrderStrategy, srs_name: str | None
) -> list[float]:
    """Reorder a single position according to the strategy."""
    if len(position) < 2 or not needs_swap(strategy, srs_name):
        return position
    return [position[1], position[0], *position[2:]]
