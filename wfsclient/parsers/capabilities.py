"""Parsing of the ``GetCapabilities`` response.

Only the parts the client needs are read: the service version, the service title
and abstract, and the GET/POST endpoints of each operation.
The parsed XML root is kept in :attr:`ParsedCapabilities.raw` for further inspection.
"""

from __future__ import annotations

import logging

from wfsclient.types import OperationBinding, ParsedCapabilities, WFSOperation

from .xml import as_element, child_text, find_descendant, get_attribute, iter_descendants

logger = logging.getLogger(__name__)

__all__ = ("parse_capabilities",)

ROOT_TAGS = ("WFS_Capabilities", "WMT_MS_Capabilities", "Capabilities")
KNOWN_OPERATIONS = frozenset(operation.value for operation in WFSOperation)


def _get_href(operation, method: str) -> str | None:
    node = find_descendant(operation, method)
    return get_attribute(node, "href") if node is not None else None


def parse_capabilities(payload) -> ParsedCapabilities:
    """Parse the capabilities document.

    Operations that this client doesn't perform are ignored.
    Payloads that are not XML give an empty result.
    """
    root = as_element(payload)
    if root is None:
        return ParsedCapabilities(raw=payload)

    capabilities = find_descendant(root, *ROOT_TAGS)
    version = capabilities.attrib.get("version") if capabilities is not None else None

    operations = {}
    for operation in iter_descendants(root, "Operation"):
        name = operation.attrib.get("name")
        if name not in KNOWN_OPERATIONS:
            continue

        operations[name] = OperationBinding(
            get=_get_href(operation, "Get"),
            post=_get_href(operation, "Post"),
        )

    service = find_descendant(root, "ServiceIdentification")
    result = ParsedCapabilities(
        version=version,
        title=child_text(service, "Title") if service is not None else None,
        abstract=child_text(service, "Abstract") if service is not None else None,
        operations=operations,
        raw=root,
    )
    logger.debug(
        "Parsed capabilities for WFS %s, operations: %s", version, ", ".join(operations)
    )
    return result
