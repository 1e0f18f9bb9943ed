"""Parsing of the stored query responses (WFS 2.0 only)."""

from __future__ import annotations

from wfsclient.types import (
    StoredQueryDescription,
    StoredQueryListItem,
    StoredQueryParameter,
    StoredQueryStatus,
)

from .xml import as_element, child_texts, find_descendant, iter_children, iter_descendants

__all__ = (
    "parse_list_stored_queries",
    "parse_describe_stored_queries",
    "parse_create_stored_query",
    "parse_drop_stored_query",
)


def parse_list_stored_queries(payload) -> list[StoredQueryListItem]:
    root = as_element(payload)
    if root is None:
        return []

    return [
        StoredQueryListItem(
            id=node.attrib.get("id", ""),
            titles=child_texts(node, "Title"),
            return_feature_types=child_texts(node, "ReturnFeatureType"),
        )
        for node in iter_descendants(root, "StoredQuery")
    ]


def parse_describe_stored_queries(payload) -> list[StoredQueryDescription]:
    root = as_element(payload)
    if root is None:
        return []

    return [
        StoredQueryDescription(
            id=node.attrib.get("id", ""),
            titles=child_texts(node, "Title"),
            abstracts=child_texts(node, "Abstract"),
            parameters=[
                StoredQueryParameter(
                    name=parameter.attrib.get("name", ""),
                    type=parameter.attrib.get("type") or "xsd:string",
                )
                for parameter in iter_children(node, "Parameter")
            ],
        )
        for node in iter_descendants(root, "StoredQueryDescription")
    ]


def _parse_status(payload, *response_tags) -> StoredQueryStatus:
    if not isinstance(payload, (str, bytes)):
        return StoredQueryStatus(status="UNKNOWN", raw=payload)

    root = as_element(payload)
    node = find_descendant(root, *response_tags) if root is not None else None
    if node is None:
        return StoredQueryStatus(status="OK", raw=root if root is not None else payload)

    status = node.attrib.get("status") or (node.text or "").strip() or "OK"
    return StoredQueryStatus(status=status, raw=root)


def parse_create_stored_query(payload) -> StoredQueryStatus:
    """Parse the ``<wfs:CreateStoredQueryResponse status="OK">``."""
    return _parse_status(payload, "CreateStoredQueryResponse", "ExecutionStatus")


def parse_drop_stored_query(payload) -> StoredQueryStatus:
    """Parse the ``<wfs:DropStoredQueryResponse status="OK">``."""
    return _parse_status(payload, "DropStoredQueryResponse", "ExecutionStatus")
