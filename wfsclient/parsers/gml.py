"""Decoding of GML geometries into GeoJSON geometries.

This handles both GML 3.1 (WFS 1.1) and GML 3.2 (WFS 2.0), as well as the GML 2
notations that some servers still use (``<gml:coordinates>``, ``<gml:outerBoundaryIs>``).
Elements are matched by their local name, so the GML namespace version doesn't matter.

The geometry of a feature is wrapped in a property element
whose name depends on the feature type (e.g. ``<app:geometry>``).
Hence :func:`parse_geometry_deep` searches the tree for the first geometry element.
"""

from __future__ import annotations

import logging
import re
from xml.etree.ElementTree import Element

from wfsclient.crs import AxisOrderStrategy, apply_axis_order
from wfsclient.exceptions import ExternalParsingError

from .xml import find_child, find_descendant, get_attribute, get_text, iter_descendants, local_name

logger = logging.getLogger(__name__)

__all__ = (
    "GML_PARSE_FUNCTIONS",
    "register_gml_tag",
    "parse_geometry",
    "parse_geometry_deep",
    "parse_numbers",
)

GML_PARSE_FUNCTIONS = {}
RE_NUMBER_SEPARATOR = re.compile(r"[\s,]+")


def register_gml_tag(*local_names):
    def _inc(func):
        for name in local_names:
            GML_PARSE_FUNCTIONS[name] = func
        return func

    return _inc


class _Context:
    """The inherited state while walking through a geometry."""

    def __init__(self, strategy: AxisOrderStrategy, srs_name: str | None, dimension: int | None):
        self.strategy = strategy
        self.srs_name = srs_name
        self.dimension = dimension

    def enter(self, element: Element) -> _Context:
        srs_name = get_attribute(element, "srsName") or self.srs_name
        dimension = _get_dimension(element) or self.dimension
        if srs_name == self.srs_name and dimension == self.dimension:
            return self
        return _Context(self.strategy, srs_name, dimension)

    def positions(self, element: Element | None) -> list[list[float]]:
        """Read the coordinates of a ``posList``, ``coordinates`` or ``pos`` element."""
        if element is None:
            return []

        numbers = parse_numbers(get_text(element))
        dimension = max(2, _get_dimension(element) or self.dimension or 2)
        positions = [
            numbers[i : i + dimension]
            for i in range(0, len(numbers), dimension)
            if len(numbers[i : i + dimension]) >= 2
        ]
        return [apply_axis_order(position, self.strategy, self.srs_name) for position in positions]


def _get_dimension(element: Element) -> int | None:
    value = get_attribute(element, "srsDimension")
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.debug("Ignoring invalid srsDimension=%r", value)
        return None


def parse_numbers(text: str | None) -> list[float]:
    """Parse a list of coordinates, which can be separated by whitespace or comma's."""
    if not text:
        return []

    try:
        return [float(value) for value in RE_NUMBER_SEPARATOR.split(text.strip()) if value]
    except ValueError as e:
        raise ExternalParsingError(f"Invalid coordinates in GML: {e}") from e


def _ring_positions(ring_container: Element, ctx: _Context) -> list[list[float]]:
    """Read the ring of an ``exterior``/``interior`` (GML 3) or ``outerBoundaryIs`` (GML 2)."""
    ring = find_child(ring_container, "LinearRing", "Ring")
    if ring is None:
        ring = ring_container

    node = find_descendant(ring, "posList", "coordinates")
    if node is not None:
        return ctx.positions(node)

    # A ring can also be written as a sequence of <gml:pos> elements.
    return [position for pos in iter_descendants(ring, "pos") for position in ctx.positions(pos)]


@register_gml_tag("Point")
def parse_point(element: Element, ctx: _Context) -> dict | None:
    positions = ctx.positions(find_descendant(element, "pos", "coordinates"))
    if not positions:
        return None
    return {"type": "Point", "coordinates": positions[0]}


@register_gml_tag("LineString", "Curve")
def parse_line_string(element: Element, ctx: _Context) -> dict | None:
    node = find_descendant(element, "posList", "coordinates")
    if node is not None:
        positions = ctx.positions(node)
    else:
        positions = [p for pos in iter_descendants(element, "pos") for p in ctx.positions(pos)]

    if not positions:
        return None
    elif len(positions) == 1:
        # Consumers expect at least 2 points in a line.
        positions = [positions[0], list(positions[0])]
    return {"type": "LineString", "coordinates": positions}


@register_gml_tag("Polygon", "Surface")
def parse_polygon(element: Element, ctx: _Context) -> dict | None:
    rings = []
    exterior = find_descendant(element, "exterior", "outerBoundaryIs")
    if exterior is not None:
        rings.append(_ring_positions(exterior, ctx))

    for interior in iter_descendants(element, "interior", "innerBoundaryIs"):
        positions = _ring_positions(interior, ctx)
        if positions:
            rings.append(positions)

    if not rings or not rings[0]:
        return None
    return {"type": "Polygon", "coordinates": rings}


def _parse_members(element: Element, ctx: _Context, parse_func, *names) -> list:
    members = []
    for node in iter_descendants(element, *names):
        geometry = parse_func(node, ctx.enter(node))
        if geometry is not None:
            members.append(geometry["coordinates"])
    return members


@register_gml_tag("MultiPoint")
def parse_multi_point(element: Element, ctx: _Context) -> dict | None:
    points = _parse_members(element, ctx, parse_point, "Point")
    return {"type": "MultiPoint", "coordinates": points} if points else None


@register_gml_tag("MultiLineString", "MultiCurve")
def parse_multi_line_string(element: Element, ctx: _Context) -> dict | None:
    lines = _parse_members(element, ctx, parse_line_string, "LineString", "Curve")
    return {"type": "MultiLineString", "coordinates": lines} if lines else None


@register_gml_tag("MultiPolygon", "MultiSurface")
def parse_multi_polygon(element: Element, ctx: _Context) -> dict | None:
    polygons = _parse_members(element, ctx, parse_polygon, "Polygon", "Surface")
    return {"type": "MultiPolygon", "coordinates": polygons} if polygons else None


def parse_geometry(
    element: Element,
    axis_order_strategy: AxisOrderStrategy = AxisOrderStrategy.preserve,
    srs_name: str | None = None,
    srs_dimension: int | None = None,
) -> dict | None:
    """Decode a single GML geometry element.

    This returns ``None`` when the element is not a (supported) geometry,
    or when it doesn't contain any coordinates.
    """
    try:
        parse_func = GML_PARSE_FUNCTIONS[local_name(element.tag)]
    except KeyError:
        return None

    ctx = _Context(AxisOrderStrategy(axis_order_strategy), srs_name, srs_dimension)
    return parse_func(element, ctx.enter(element))


def parse_geometry_deep(
    element: Element,
    axis_order_strategy: AxisOrderStrategy = AxisOrderStrategy.preserve,
    srs_name: str | None = None,
    srs_dimension: int | None = None,
) -> dict | None:
    """Find the first geometry in the tree, and decode it.

    The direct children are checked first, before descending further into the tree.
    The ``srsName`` and ``srsDimension`` attributes are inherited by child elements.
    """
    geometry = parse_geometry(element, axis_order_strategy, srs_name, srs_dimension)
    if geometry is not None:
        return geometry

    srs_name = get_attribute(element, "srsName") or srs_name
    srs_dimension = _get_dimension(element) or srs_dimension
    for child in element:
        geometry = parse_geometry(child, axis_order_strategy, srs_name, srs_dimension)
        if geometry is not None:
            return geometry

    for child in element:
        geometry = parse_geometry_deep(child, axis_order_strategy, srs_name, srs_dimension)
        if geometry is not None:
            return geometry

    return None
