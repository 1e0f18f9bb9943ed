"""Parsing of the ``<wfs:LockFeatureResponse>``."""

from __future__ import annotations

from wfsclient.types import LockResult

from .transaction import collect_resource_ids
from .xml import as_element, find_descendant, get_text

__all__ = ("parse_lock_result",)


def _collect_ids(response, name: str) -> list[str]:
    node = find_descendant(response, name)
    return collect_resource_ids(node) if node is not None else []


def parse_lock_result(payload) -> LockResult:
    """Parse the lock response.

    WFS 1.1 reports the lock as ``<wfs:LockId>`` element, WFS 2.0 uses a ``lockId`` attribute.
    """
    root = as_element(payload)
    if root is None:
        return LockResult(raw=payload)

    response = find_descendant(root, "LockFeatureResponse")
    if response is None:
        return LockResult(raw=root)

    lock_id = (
        response.attrib.get("lockId")
        or response.attrib.get("lockid")
        or get_text(find_descendant(response, "LockId"))
    )

    return LockResult(
        lock_id=lock_id,
        locked_resource_ids=_collect_ids(response, "FeaturesLocked"),
        not_locked_resource_ids=_collect_ids(response, "FeaturesNotLocked"),
        raw=root,
    )
