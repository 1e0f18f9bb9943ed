"""Encoding of GeoJSON geometries and features as GML.

The same element names are used by GML 3.1 (WFS 1.1) and GML 3.2 (WFS 2.0),
only the namespace URI differs. That URI is declared by the document root,
so the encoding itself doesn't depend on the version.
"""

from __future__ import annotations

import logging

from wfsclient.types import is_wfs1

from .namespaces import resolve_property_tag, split_qname
from .tree import Text, XmlElement

logger = logging.getLogger(__name__)

__all__ = (
    "GML_RENDER_FUNCTIONS",
    "register_geometry_type",
    "build_geometry_element",
    "geometry_to_gml",
    "build_feature_element",
    "feature_to_insert_xml",
    "build_value_reference",
    "format_coordinate",
)

GML_RENDER_FUNCTIONS = {}


def register_geometry_type(geometry_type):
    def _inc(func):
        GML_RENDER_FUNCTIONS[geometry_type] = func
        return func

    return _inc


def format_coordinate(value) -> str:
    """Format a single ordinate. Whole floats are written without the ``.0`` suffix."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _pos(position) -> str:
    return " ".join(format_coordinate(value) for value in position)


def _pos_list(positions) -> str:
    return " ".join(_pos(position) for position in positions)


def _ring(tag: str, positions) -> XmlElement:
    return XmlElement(
        tag,
        children=[
            XmlElement(
                "gml:LinearRing",
                children=[XmlElement("gml:posList", children=[Text(_pos_list(positions))])],
            )
        ],
    )


@register_geometry_type("Point")
def render_gml_point(coordinates, srs_name=None) -> XmlElement:
    return XmlElement(
        "gml:Point",
        {"srsName": srs_name},
        [XmlElement("gml:pos", children=[Text(_pos(coordinates))])],
    )


@register_geometry_type("LineString")
def render_gml_line_string(coordinates, srs_name=None) -> XmlElement:
    return XmlElement(
        "gml:LineString",
        {"srsName": srs_name},
        [XmlElement("gml:posList", children=[Text(_pos_list(coordinates))])],
    )


@register_geometry_type("Polygon")
def render_gml_polygon(coordinates, srs_name=None) -> XmlElement:
    # The first ring is the outer boundary, all others are holes.
    exterior = coordinates[0] if coordinates else []
    polygon = XmlElement("gml:Polygon", {"srsName": srs_name}, [_ring("gml:exterior", exterior)])
    polygon.extend(_ring("gml:interior", interior) for interior in coordinates[1:])
    return polygon


@register_geometry_type("MultiPoint")
def render_gml_multi_point(coordinates, srs_name=None) -> XmlElement:
    return XmlElement(
        "gml:MultiPoint",
        {"srsName": srs_name},
        [XmlElement("gml:pointMember", children=[render_gml_point(point)]) for point in coordinates],
    )


@register_geometry_type("MultiLineString")
def render_gml_multi_line_string(coordinates, srs_name=None) -> XmlElement:
    return XmlElement(
        "gml:MultiLineString",
        {"srsName": srs_name},
        [
            XmlElement("gml:lineStringMember", children=[render_gml_line_string(line)])
            for line in coordinates
        ],
    )


@register_geometry_type("MultiPolygon")
def render_gml_multi_polygon(coordinates, srs_name=None) -> XmlElement:
    return XmlElement(
        "gml:MultiPolygon",
        {"srsName": srs_name},
        [
            XmlElement("gml:polygonMember", children=[render_gml_polygon(polygon)])
            for polygon in coordinates
        ],
    )


def build_geometry_element(geometry: dict, srs_name: str | None = None) -> XmlElement | None:
    """Encode a GeoJSON geometry as GML element.

    Only the outer element receives the ``srsName`` attribute.
    Unsupported geometry types (e.g. ``GeometryCollection``) give ``None``.
    """
    geometry_type = geometry.get("type") if geometry else None
    try:
        render_func = GML_RENDER_FUNCTIONS[geometry_type]
    except KeyError:
        logger.debug("No GML encoding for geometry type %r, skipped.", geometry_type)
        return None

    return render_func(geometry.get("coordinates") or [], srs_name=srs_name)


def geometry_to_gml(geometry: dict, version: str, srs_name: str | None = None) -> str:
    """Encode a GeoJSON geometry as GML fragment (e.g. ``<gml:Point>...</gml:Point>``).

    The ``version`` selects the GML dialect. As both dialects share the same
    element names, it only affects which namespace the ``gml`` prefix refers to.
    """
    element = build_geometry_element(geometry, srs_name=srs_name)
    return element.render() if element is not None else ""


def build_feature_element(
    feature: dict,
    type_name: str,
    geometry_property_name: str | None = None,
    srs_name: str | None = None,
) -> XmlElement:
    """Encode a GeoJSON feature as element of the given feature type.

    Properties are placed in the namespace of the type name, unless they carry
    their own prefix. Empty values are left out, so the server applies its defaults.
    """
    prefix, _ = split_qname(type_name)
    element = XmlElement(type_name.strip(), {"gml:id": feature.get("id")})

    for key, value in (feature.get("properties") or {}).items():
        if value is None or value == "":
            continue
        element.append(XmlElement(resolve_property_tag(key, prefix), children=[Text(value)]))

    if feature.get("geometry"):
        geometry = build_geometry_element(feature["geometry"], srs_name=srs_name)
        tag = resolve_property_tag(geometry_property_name or "geometry", prefix)
        element.append(XmlElement(tag, children=[geometry]) if geometry is not None else None)

    return element


def feature_to_insert_xml(
    feature: dict,
    type_name: str,
    version: str,
    geometry_property_name: str | None = None,
    srs_name: str | None = None,
) -> str:
    """Render the feature XML as it's placed inside a ``<wfs:Insert>`` action."""
    return build_feature_element(
        feature, type_name, geometry_property_name=geometry_property_name, srs_name=srs_name
    ).render()


def build_value_reference(value: str, version: str) -> XmlElement:
    """Build the element that references a property in a filter.

    WFS 1.1 uses ``<ogc:PropertyName>``, while FES 2.0 uses ``<fes:ValueReference>``.
    """
    if is_wfs1(version):
        return XmlElement("ogc:PropertyName", children=[Text(value)])
    else:
        return XmlElement("fes:ValueReference", children=[Text(value)])


def build_literal(prefix: str, value) -> XmlElement:
    """Build the ``<fes:Literal>`` element, ``None`` gives an empty literal."""
    return XmlElement(f"{prefix}:Literal", children=[Text(value)] if value is not None else [])


def build_envelope(lower_corner, upper_corner, srs_name: str | None = None) -> XmlElement:
    return XmlElement(
        "gml:Envelope",
        {"srsName": srs_name},
        [
            XmlElement("gml:lowerCorner", children=[Text(_pos(lower_corner))]),
            XmlElement("gml:upperCorner", children=[Text(_pos(upper_corner))]),
        ],
    )
