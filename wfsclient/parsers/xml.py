"""XML parsing for all server responses.

This logic uses the etree logic from the standard library.
Using defusedxml, malicious responses (e.g. entity expansion) are rejected.

The responses of different servers use different namespace prefixes,
and WFS 1.1 and 2.0 even use different namespaces for the same elements.
Hence, the lookup functions in this module match elements and attributes
on their local name only, ignoring the namespace.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from enum import Enum
from xml.etree.ElementTree import Element, TreeBuilder

from defusedxml.ElementTree import DefusedXMLParser, ParseError

from wfsclient.exceptions import ExternalParsingError

logger = logging.getLogger(__name__)

__all__ = (
    "xmlns",
    "parse_xml_from_string",
    "as_element",
    "split_ns",
    "local_name",
    "get_attribute",
    "get_text",
    "iter_children",
    "find_child",
    "child_text",
    "child_texts",
    "find_descendant",
    "iter_descendants",
)


class xmlns(Enum):
    """Common namespaces within WFS land.
    Note these short aliases are arbitrary in XML syntax; the XML code may use any alias (such as ns0).
    The full qualified name (e.g. ``<{http://www.opengis.net/gml/3.2}Point>``) is the actual tag name.
    """

    # XML standard
    xml = "http://www.w3.org/XML/1998/namespace"
    xsd = "http://www.w3.org/2001/XMLSchema"
    xlink = "http://www.w3.org/1999/xlink"

    # APIs by the Open Geospatial Consortium (OGC)
    ogc = "http://www.opengis.net/ogc"
    ows10 = "http://www.opengis.net/ows"
    ows11 = "http://www.opengis.net/ows/1.1"
    wfs1 = "http://www.opengis.net/wfs"
    wfs20 = "http://www.opengis.net/wfs/2.0"
    fes20 = "http://www.opengis.net/fes/2.0"
    gml31 = "http://www.opengis.net/gml"
    gml32 = "http://www.opengis.net/gml/3.2"

    def __str__(self):
        # Python 3.11+ has StrEnum for this.
        return self.value

    def qname(self, local_name) -> str:
        """Convert the tag name into a fully qualified name."""
        return f"{{{self.value}}}{local_name}"  # same as QName(..).text


def parse_xml_from_string(xml_string: str | bytes) -> Element:
    """Provide a safe and consistent way for parsing XML.

    :raises ExternalParsingError: When the response is not well-formed XML.
    """
    # Passing a custom parser potentially circumvents defusedxml,
    # so note the parser is again configured in the same way:
    parser = DefusedXMLParser(
        target=TreeBuilder(),
        forbid_dtd=True,
        forbid_entities=True,
        forbid_external=True,
    )

    # Not allowing DTD, do a primitive strip, and allow parsing to fail if it was mangled.
    if isinstance(xml_string, str):
        xml_string = xml_string.lstrip()
        if xml_string.startswith("<?"):
            xml_string = xml_string[xml_string.find("?>") + 2 :]

    try:
        parser.feed(xml_string)
        return parser.close()
    except ParseError as e:
        # Offer consistent results for callers to check for invalid data.
        logger.debug("Parsing XML error: %s: %s", e, xml_string)
        raise ExternalParsingError(str(e)) from e


def as_element(payload) -> Element | None:
    """Translate a response payload into an XML element.

    Payloads that are not XML (e.g. decoded JSON) give ``None``.
    """
    if isinstance(payload, Element):
        return payload
    elif isinstance(payload, bytes):
        payload = payload.decode("utf-8")

    if isinstance(payload, str) and payload.lstrip().startswith("<"):
        return parse_xml_from_string(payload)
    return None


def split_ns(xml_name: str) -> tuple[str | None, str]:
    """Split the element tag or attribute/text value into the namespace and
    local name. The stdlib etree doesn't have the properties for this (lxml does).
    """
    # Tags may start with a `{ns}`
    if xml_name.startswith("{"):
        end = xml_name.index("}")
        return xml_name[1:end], xml_name[end + 1 :]
    else:
        # Also handle prefixed values, e.g. an attribute that holds "wfs:Query".
        return None, xml_name.rpartition(":")[2]


def local_name(xml_name: str) -> str:
    """Provide the name without namespace."""
    return split_ns(xml_name)[1]


def get_attribute(element: Element, name: str, default=None):
    """Find an attribute by its local name (so ``gml:id`` is found as ``id``)."""
    value = element.attrib.get(name)
    if value is not None:
        return value

    for key, value in element.attrib.items():
        if local_name(key) == name:
            return value
    return default


def get_text(element: Element | None) -> str | None:
    """Provide the text of an element, stripped. Empty text gives ``None``."""
    if element is None or element.text is None:
        return None
    return element.text.strip() or None


def iter_children(element: Element, *names: str) -> Iterator[Element]:
    """Iterate over the direct children, optionally limited to the given local names."""
    for child in element:
        if not names or local_name(child.tag) in names:
            yield child


def find_child(element: Element, *names: str) -> Element | None:
    return next(iter_children(element, *names), None)


def child_text(element: Element, *names: str) -> str | None:
    return get_text(find_child(element, *names))


def child_texts(element: Element, *names: str) -> list[str]:
    """Provide the text of all children with the given name, ignoring empty elements."""
    return [text for child in iter_children(element, *names) if (text := get_text(child))]


def iter_descendants(element: Element, *names: str) -> Iterator[Element]:
    """Walk over all elements with the given local name, in document order.

    The element itself is included when it matches.
    """
    for node in element.iter():
        if local_name(node.tag) in names:
            yield node


def find_descendant(element: Element, *names: str) -> Element | None:
    return next(iter_descendants(element, *names), None)
