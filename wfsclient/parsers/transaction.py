"""Parsing of the ``<wfs:TransactionResponse>``.

The totals of the ``<wfs:TransactionSummary>`` are kept as ``None`` when
the server didn't report them, so they are not confused with a reported zero.
"""

from __future__ import annotations

import logging
from xml.etree.ElementTree import Element

from wfsclient.types import ActionResult, TransactionResult

from .xml import as_element, child_text, find_descendant, iter_descendants

logger = logging.getLogger(__name__)

__all__ = ("parse_transaction_result", "collect_resource_ids")


def collect_resource_ids(element: Element) -> list[str]:
    """Collect the identifiers of ``<fes:ResourceId rid>`` (2.0) and ``<ogc:FeatureId fid>`` (1.1)."""
    ids = []
    for node in iter_descendants(element, "ResourceId"):
        value = node.attrib.get("rid") or node.attrib.get("fid")
        if value:
            ids.append(value)
    for node in iter_descendants(element, "FeatureId"):
        value = node.attrib.get("fid") or node.attrib.get("id")
        if value:
            ids.append(value)
    return ids


def _to_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.debug("Ignoring invalid transaction total: %r", value)
        return None


def _parse_action_results(response: Element, name: str) -> list[ActionResult]:
    results = find_descendant(response, name)
    if results is None:
        return []

    return [
        ActionResult(handle=feature.attrib.get("handle"), resource_ids=collect_resource_ids(feature))
        for feature in iter_descendants(results, "Feature")
    ]


def parse_transaction_result(payload) -> TransactionResult:
    root = as_element(payload)
    if root is None:
        return TransactionResult(raw=payload)

    response = find_descendant(root, "TransactionResponse")
    if response is None:
        return TransactionResult(raw=root)

    summary = find_descendant(response, "TransactionSummary")
    if summary is not None:
        totals = {
            name: _to_int(child_text(summary, name))
            for name in ("totalInserted", "totalUpdated", "totalReplaced", "totalDeleted")
        }
    else:
        totals = {}

    return TransactionResult(
        total_inserted=totals.get("totalInserted"),
        total_updated=totals.get("totalUpdated"),
        total_replaced=totals.get("totalReplaced"),
        total_deleted=totals.get("totalDeleted"),
        insert_results=_parse_action_results(response, "InsertResults"),
        update_results=_parse_action_results(response, "UpdateResults"),
        replace_results=_parse_action_results(response, "ReplaceResults"),
        raw=root,
    )
