"""Compile filter expressions into the XML filter dialect of a WFS version.

WFS 1.1 uses the OGC Filter 1.1 dialect (``<ogc:Filter>``, ``<ogc:PropertyName>``),
while WFS 2.0 uses the FES 2.0 dialect (``<fes:Filter>``, ``<fes:ValueReference>``).
Both dialects share most of the operator element names.
"""

from __future__ import annotations

import logging

from wfsclient.filters import (
    And,
    Between,
    Comparison,
    Filter,
    IsNull,
    Like,
    Not,
    Or,
    ResourceId,
    Spatial,
    SpatialOp,
    to_filter,
)
from wfsclient.geometries import BoundingBox
from wfsclient.types import is_wfs1

from .gml import build_envelope, build_geometry_element, build_literal, build_value_reference
from .tree import Fragment, Node, XmlElement

logger = logging.getLogger(__name__)

__all__ = (
    "FILTER_COMPILE_FUNCTIONS",
    "register_filter_type",
    "filter_prefix",
    "filter_namespace_attributes",
    "build_filter_element",
    "build_filter_body",
    "build_bbox_filter_element",
    "compile_filter_xml",
    "build_geometry_filter_from_feature",
)

FILTER_COMPILE_FUNCTIONS = {}


def register_filter_type(filter_type):
    def _inc(func):
        FILTER_COMPILE_FUNCTIONS[filter_type] = func
        return func

    return _inc


def filter_prefix(version: str) -> str:
    """Tell which prefix the filter elements use in this version."""
    return "ogc" if is_wfs1(version) else "fes"


def filter_namespace_attributes(version: str) -> dict[str, str]:
    """The xmlns attributes for a standalone filter (e.g. in a KVP ``FILTER`` parameter)."""
    if is_wfs1(version):
        return {
            "xmlns:ogc": "http://www.opengis.net/ogc",
            "xmlns:gml": "http://www.opengis.net/gml",
        }
    else:
        return {
            "xmlns:fes": "http://www.opengis.net/fes/2.0",
            "xmlns:gml": "http://www.opengis.net/gml/3.2",
        }


def build_filter_body(filter: Filter | dict, version: str, srs_name: str | None = None) -> Node | None:
    """Compile the filter expression into its element.

    Unknown filter types give ``None``, which renders as empty content.
    """
    filter = to_filter(filter)
    try:
        compile_func = FILTER_COMPILE_FUNCTIONS[filter.__class__]
    except KeyError:
        logger.debug("No XML encoding for filter %r, rendered as empty content.", filter)
        return None

    return compile_func(filter, version, srs_name)


@register_filter_type(And)
@register_filter_type(Or)
def compile_binary_logic(filter: And, version: str, srs_name: str | None) -> XmlElement:
    prefix = filter_prefix(version)
    tag = "And" if filter.op == "and" else "Or"
    element = XmlElement(f"{prefix}:{tag}")
    element.extend(build_filter_body(child, version, srs_name) for child in filter.filters)
    return element


@register_filter_type(Not)
def compile_not(filter: Not, version: str, srs_name: str | None) -> XmlElement | None:
    if filter.filter is None:
        return None

    body = build_filter_body(filter.filter, version, srs_name)
    return XmlElement(f"{filter_prefix(version)}:Not", children=[body] if body is not None else [])


@register_filter_type(Comparison)
def compile_comparison(filter: Comparison, version: str, srs_name: str | None) -> XmlElement:
    prefix = filter_prefix(version)
    return XmlElement(
        f"{prefix}:{filter.operator.tag_name}",
        {"matchCase": filter.match_case},
        [build_value_reference(filter.property, version), build_literal(prefix, filter.value)],
    )


@register_filter_type(Like)
def compile_like(filter: Like, version: str, srs_name: str | None) -> XmlElement:
    prefix = filter_prefix(version)
    return XmlElement(
        f"{prefix}:PropertyIsLike",
        {
            "wildCard": filter.wild_card or "*",
            "singleChar": filter.single_char or ".",
            "escapeChar": filter.escape_char or "!",
            "matchCase": filter.match_case,
        },
        [build_value_reference(filter.property, version), build_literal(prefix, filter.value)],
    )


@register_filter_type(Between)
def compile_between(filter: Between, version: str, srs_name: str | None) -> XmlElement:
    prefix = filter_prefix(version)
    return XmlElement(
        f"{prefix}:PropertyIsBetween",
        children=[
            build_value_reference(filter.property, version),
            XmlElement(f"{prefix}:LowerBoundary", children=[build_literal(prefix, filter.lower)]),
            XmlElement(f"{prefix}:UpperBoundary", children=[build_literal(prefix, filter.upper)]),
        ],
    )


@register_filter_type(IsNull)
def compile_is_null(filter: IsNull, version: str, srs_name: str | None) -> XmlElement:
    return XmlElement(
        f"{filter_prefix(version)}:PropertyIsNull",
        children=[build_value_reference(filter.property, version)],
    )


@register_filter_type(ResourceId)
def compile_resource_id(filter: ResourceId, version: str, srs_name: str | None) -> Fragment:
    # These are different elements, not just a different prefix.
    if is_wfs1(version):
        return Fragment([XmlElement("ogc:FeatureId", {"fid": id}) for id in filter.ids])
    else:
        return Fragment([XmlElement("fes:ResourceId", {"rid": id}) for id in filter.ids])


@register_filter_type(Spatial)
def compile_spatial(filter: Spatial, version: str, srs_name: str | None) -> XmlElement:
    srs_name = filter.srs_name or srs_name
    if filter.operator is SpatialOp.bbox:
        bbox = BoundingBox.from_geometry(filter.geometry or {})
        operand = build_envelope(bbox.lower_corner, bbox.upper_corner, srs_name=srs_name)
    else:
        operand = build_geometry_element(filter.geometry or {}, srs_name=srs_name)

    element = XmlElement(
        f"{filter_prefix(version)}:{filter.operator.tag_name}",
        children=[build_value_reference(filter.property, version)],
    )
    element.append(operand)
    return element


def build_filter_element(
    filter: Filter | dict,
    version: str,
    srs_name: str | None = None,
    include_namespace_declarations: bool = False,
) -> XmlElement:
    """Build the ``<fes:Filter>`` or ``<ogc:Filter>`` element for the filter expression."""
    attrib = filter_namespace_attributes(version) if include_namespace_declarations else {}
    element = XmlElement(f"{filter_prefix(version)}:Filter", attrib)
    element.append(build_filter_body(filter, version, srs_name))
    return element


def compile_filter_xml(
    filter: Filter | dict,
    version: str,
    srs_name: str | None = None,
    include_namespace_declarations: bool = False,
) -> str:
    """Compile the filter expression into the filter XML of the given WFS version.

    This is a pure function, unknown operators give an empty filter.
    """
    return build_filter_element(
        filter,
        version,
        srs_name=srs_name,
        include_namespace_declarations=include_namespace_declarations,
    ).render()


def build_bbox_filter_element(bbox, version: str, property_name: str = "geometry") -> XmlElement:
    """Build a filter that matches a ``(min_x, min_y, max_x, max_y)`` bounding box."""
    min_x, min_y, max_x, max_y = bbox[:4]
    prefix = filter_prefix(version)
    return XmlElement(
        f"{prefix}:Filter",
        children=[
            XmlElement(
                f"{prefix}:BBOX",
                children=[
                    build_value_reference(property_name, version),
                    build_envelope([min_x, min_y], [max_x, max_y]),
                ],
            )
        ],
    )


def build_geometry_filter_from_feature(
    feature: dict, version: str, property_name: str = "geometry"
) -> str:
    """Build a filter that selects everything intersecting the feature's geometry.

    A feature without geometry gives an empty string.
    """
    if not feature.get("geometry"):
        return ""

    return compile_filter_xml(
        Spatial(SpatialOp.intersects, property_name, feature["geometry"]), version
    )
