"""Bookkeeping of the XML namespaces in outgoing requests.

Type names and property names are passed as QName strings (e.g. ``topp:states``).
Every prefix that such a name references must be declared on the root element,
otherwise the server can't resolve the name. The protocol prefixes
(``wfs``, ``gml``, ``fes``, ...) are always declared for the request version.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from wfsclient.exceptions import InvalidQName, MissingNamespaceMapping
from wfsclient.filters import Filter, to_filter
from wfsclient.parsers.xml import xmlns
from wfsclient.types import is_wfs1

logger = logging.getLogger(__name__)

__all__ = (
    "RESERVED_PREFIXES",
    "ROOT_PREFIX_ORDER",
    "default_namespaces",
    "collect_qname_prefixes",
    "collect_type_name_prefixes",
    "collect_filter_prefixes",
    "resolve_namespaces",
    "ordered_namespaces",
    "split_qname",
    "resolve_property_tag",
)

#: Prefixes which the protocol defines, these never need a caller-supplied URI.
RESERVED_PREFIXES = frozenset(("wfs", "gml", "fes", "ogc", "ows", "xlink", "xml", "xmlns"))

#: The ordering of the xmlns attributes, other prefixes follow alphabetically.
ROOT_PREFIX_ORDER = ("wfs", "gml", "fes", "ogc", "ows", "xlink")

RE_QNAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*(?::[A-Za-z_][A-Za-z0-9_.-]*)?$")
RE_NCNAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*$")
RE_QNAME_PREFIX = re.compile(r"\b([A-Za-z_][A-Za-z0-9_.-]*):[A-Za-z_][A-Za-z0-9_.-]*")
RE_TYPE_NAME_SEPARATOR = re.compile(r"[\s,]+")

WFS11_NAMESPACES = {
    "wfs": xmlns.wfs1.value,
    "gml": xmlns.gml31.value,
    "fes": xmlns.ogc.value,
    "ogc": xmlns.ogc.value,
    "ows": xmlns.ows10.value,
    "xlink": xmlns.xlink.value,
}

WFS20_NAMESPACES = {
    "wfs": xmlns.wfs20.value,
    "gml": xmlns.gml32.value,
    "fes": xmlns.fes20.value,
    "ogc": xmlns.fes20.value,
    "ows": xmlns.ows11.value,
    "xlink": xmlns.xlink.value,
}


def default_namespaces(version: str) -> dict[str, str]:
    """Provide the protocol namespaces for a WFS version, in ``{prefix: uri}`` format."""
    return dict(WFS11_NAMESPACES if is_wfs1(version) else WFS20_NAMESPACES)


def collect_qname_prefixes(value: str | None, out: set[str]):
    """Collect all ``prefix:name`` prefixes that occur in a value (e.g. an XPath)."""
    if value:
        out.update(RE_QNAME_PREFIX.findall(value))


def collect_type_name_prefixes(type_names: Iterable[str], out: set[str]):
    """Collect the prefixes of type names.

    Each entry may hold multiple names (e.g. for joins),
    and may carry an alias (``ns:name=alias``) which is ignored here.
    """
    for type_name in type_names or ():
        for token in RE_TYPE_NAME_SEPARATOR.split(type_name):
            candidate = token.split("=", 1)[0]
            collect_qname_prefixes(candidate, out)


def collect_filter_prefixes(filter: Filter | dict | None, out: set[str]):
    """Collect the prefixes of all properties that the filter references."""
    if filter is None:
        return

    for property_name in to_filter(filter).iter_property_names():
        collect_qname_prefixes(property_name, out)


def resolve_namespaces(
    version: str, namespaces: dict[str, str] | None, required_prefixes: Iterable[str] = ()
) -> dict[str, str]:
    """Determine which namespaces to declare on the root element.

    The caller's namespaces are added to (or override) the protocol namespaces.
    Each required prefix is checked to have a URI, as leaving it out would produce
    a request that the server can't interpret.

    :raises MissingNamespaceMapping: When a referenced prefix is not known.
    """
    result = default_namespaces(version)
    for prefix, uri in (namespaces or {}).items():
        if uri:
            result[prefix] = uri

    for prefix in sorted(required_prefixes):
        if prefix not in RESERVED_PREFIXES and not result.get(prefix):
            logger.debug("No namespace for prefix '%s', available: %r", prefix, result)
            raise MissingNamespaceMapping(prefix)

    return ordered_namespaces(result)


def ordered_namespaces(namespaces: dict[str, str]) -> dict[str, str]:
    """Sort the namespaces in their stable rendering order."""
    ordered = {prefix: namespaces[prefix] for prefix in ROOT_PREFIX_ORDER if namespaces.get(prefix)}
    for prefix in sorted(namespaces):
        if prefix not in ordered and namespaces[prefix]:
            ordered[prefix] = namespaces[prefix]
    return ordered


def split_qname(type_name: str) -> tuple[str | None, str]:
    """Split a type name into the prefix and local name.

    :raises InvalidQName: When the type name is not a valid XML name.
    """
    normalized = (type_name or "").strip()
    if not normalized:
        raise InvalidQName("typeName must be a non-empty QName", type_name)

    if ":" in normalized:
        if not RE_QNAME.match(normalized):
            raise InvalidQName(f'Invalid typeName QName "{type_name}"', type_name)
        prefix, local_name = normalized.split(":", 1)
        return prefix, local_name

    if not RE_NCNAME.match(normalized):
        raise InvalidQName(f'Invalid typeName "{type_name}"', type_name)
    return None, normalized


def resolve_property_tag(property_name: str, default_prefix: str | None = None) -> str:
    """Determine the element name for a property, placing it in the type's namespace."""
    normalized = (property_name or "").strip()
    if not normalized:
        raise InvalidQName("Property name must be a non-empty QName", property_name)

    if ":" in normalized:
        if not RE_QNAME.match(normalized):
            raise InvalidQName(f'Invalid property QName "{property_name}"', property_name)
        return normalized

    if not RE_NCNAME.match(normalized):
        raise InvalidQName(f'Invalid property name "{property_name}"', property_name)
    return f"{default_prefix}:{normalized}" if default_prefix else normalized
