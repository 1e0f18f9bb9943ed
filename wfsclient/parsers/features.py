"""Parsing of ``GetFeature`` and ``GetPropertyValue`` responses.

Servers may return GeoJSON when that was requested, which is passed through as-is.
Otherwise, the GML feature collection is translated into the same GeoJSON structure.

GML 3.1 (WFS 1.1) and GML 3.2 (WFS 2.0) wrap features differently:

* ``<wfs:member>`` (WFS 2.0) and ``<gml:featureMember>`` hold a single feature each.
* ``<gml:featureMembers>`` holds all features as direct children.
"""

from __future__ import annotations

import logging
import re
from xml.etree.ElementTree import Element

from wfsclient.crs import AxisOrderStrategy

from .gml import parse_geometry, parse_geometry_deep
from .xml import as_element, find_descendant, get_text, iter_children, local_name

logger = logging.getLogger(__name__)

__all__ = (
    "is_geojson_feature_collection",
    "empty_feature_collection",
    "parse_feature_collection",
    "parse_feature",
    "get_value",
    "normalize_element",
    "parse_value_collection",
)

COLLECTION_TAGS = ("FeatureCollection", "SimpleFeatureCollection")
MEMBER_TAGS = ("member", "featureMember")
MEMBERS_TAG = "featureMembers"

#: Elements of the GML base type that are not feature properties.
IGNORED_FEATURE_CHILDREN = ("boundedBy",)

RE_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
RE_LEADING_ZERO = re.compile(r"[-+]?0\d")


def is_geojson_feature_collection(payload) -> bool:
    return (
        isinstance(payload, dict)
        and payload.get("type") == "FeatureCollection"
        and isinstance(payload.get("features"), list)
    )


def empty_feature_collection() -> dict:
    return {"type": "FeatureCollection", "features": []}


def get_value(element: Element):
    """Give the text of an element, with numbers parsed as ``int`` or ``float``.

    This gives the same property values as a GeoJSON response of the server.
    Values with leading zeros (e.g. postal codes) are kept as text.
    """
    text = get_text(element)
    if text is None or not RE_NUMBER.fullmatch(text) or RE_LEADING_ZERO.match(text):
        return text

    try:
        return int(text)
    except ValueError:
        return float(text)


def normalize_element(element: Element):
    """Translate an XML element into a plain Python value.

    * An element without child elements gives its value (or ``None``), see :func:`get_value`.
    * An element with a single child element is unwrapped to the value of that child.
    * Otherwise, a dictionary is returned, keyed by the local names of the children.
      Repeated elements are collected in a list.
    """
    children = list(element)
    if not children:
        return get_value(element)

    groups = {}
    for child in children:
        groups.setdefault(local_name(child.tag), []).append(child)

    if len(groups) == 1:
        (only,) = groups.values()
        if len(only) == 1:
            return normalize_element(only[0])
        return [normalize_element(child) for child in only]

    return {
        name: (
            normalize_element(nodes[0])
            if len(nodes) == 1
            else [normalize_element(node) for node in nodes]
        )
        for name, nodes in groups.items()
    }


def _unwrap_member(member: Element) -> Element | None:
    """Find the feature element inside a ``<wfs:member>`` element."""
    candidates = list(member)
    if len(candidates) > 1:
        candidates = [
            child for child in candidates if local_name(child.tag) not in ("Tuple", *COLLECTION_TAGS)
        ]

    if not candidates or local_name(candidates[0].tag) in COLLECTION_TAGS:
        # Nested collections (e.g. for multiple queries) have their members collected separately.
        return None
    return candidates[0]


def parse_feature(
    element: Element, axis_order_strategy: AxisOrderStrategy = AxisOrderStrategy.preserve
) -> dict:
    """Translate a single GML feature into a GeoJSON feature.

    The first child that holds a geometry becomes the feature geometry,
    the other children become the properties (keyed by their local name).
    """
    gml_id = next((value for key, value in element.attrib.items() if key.endswith("}id")), None)
    feature_id = gml_id or element.attrib.get("fid") or element.attrib.get("id")
    geometry = None
    properties = {}

    for child in element:
        name = local_name(child.tag)
        if name in IGNORED_FEATURE_CHILDREN:
            continue

        if geometry is None:
            geometry = parse_geometry_deep(child, axis_order_strategy)
            if geometry is not None:
                continue

        properties[name] = normalize_element(child)

    return {
        "type": "Feature",
        "id": feature_id,
        "geometry": geometry,
        "properties": properties,
    }


def _iter_feature_elements(collection: Element):
    for node in collection.iter():
        name = local_name(node.tag)
        if name in MEMBER_TAGS:
            feature = _unwrap_member(node)
            if feature is not None:
                yield feature
        elif name == MEMBERS_TAG:
            yield from iter_children(node)


def parse_feature_collection(
    payload, axis_order_strategy: AxisOrderStrategy | str = AxisOrderStrategy.preserve
) -> dict:
    """Parse the ``GetFeature`` response into a GeoJSON feature collection.

    A GeoJSON feature collection is returned as-is. Payloads that are not XML,
    or XML without a feature collection, give an empty collection.
    When the server locked the features, the ``lockId`` is included in the result.
    """
    if is_geojson_feature_collection(payload):
        return payload

    root = as_element(payload)
    if root is None:
        return empty_feature_collection()

    collection = find_descendant(root, *COLLECTION_TAGS)
    if collection is None:
        logger.debug("No feature collection found in <%s> response.", root.tag)
        return empty_feature_collection()

    strategy = AxisOrderStrategy(axis_order_strategy)
    result = empty_feature_collection()
    result["features"] = [
        parse_feature(element, strategy) for element in _iter_feature_elements(collection)
    ]

    lock_id = collection.attrib.get("lockId") or collection.attrib.get("lockid")
    if lock_id:
        result["lockId"] = lock_id
    return result


def _normalize_value_member(member: Element, strategy: AxisOrderStrategy):
    tuple_element = find_descendant(member, "Tuple")
    if tuple_element is not None:
        # Flatten the tuple members into a single dictionary, keyed by the value element names.
        values = {}
        for child in iter_children(tuple_element):
            nodes = list(child) if local_name(child.tag) == "member" else [child]
            if not nodes:
                _add_value(values, local_name(child.tag), get_value(child))
            for node in nodes:
                _add_value(values, local_name(node.tag), _normalize_value(node, strategy))
        return values

    children = list(member)
    if not children:
        return get_value(member)
    elif len(children) == 1:
        return _normalize_value(children[0], strategy)
    else:
        return [normalize_element(child) for child in children]


def _normalize_value(element: Element, strategy: AxisOrderStrategy):
    geometry = parse_geometry(element, strategy)
    return geometry if geometry is not None else normalize_element(element)


def _add_value(values: dict, name: str, value):
    if name not in values:
        values[name] = value
    elif isinstance(values[name], list):
        values[name].append(value)
    else:
        values[name] = [values[name], value]


def parse_value_collection(
    payload, axis_order_strategy: AxisOrderStrategy | str = AxisOrderStrategy.preserve
) -> list:
    """Parse the ``<wfs:ValueCollection>`` of a ``GetPropertyValue`` response.

    A JSON array is returned as-is. Geometry values are returned as GeoJSON.
    """
    if isinstance(payload, list):
        return payload

    root = as_element(payload)
    if root is None:
        return []

    collection = find_descendant(root, "ValueCollection")
    if collection is None:
        return []

    strategy = AxisOrderStrategy(axis_order_strategy)
    return [
        _normalize_value_member(member, strategy)
        for member in iter_children(collection, "member")
    ]
