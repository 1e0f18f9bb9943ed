"""Parsing of OWS exception reports.

Servers report errors as ``<ows:ExceptionReport>`` (OWS 1.0/1.1),
as the older ``<ServiceExceptionReport>``, or as a JSON object when
a JSON output format was requested. Both shapes are translated
into a list of :class:`~wfsclient.exceptions.OWSExceptionItem` objects.

See:
https://docs.opengeospatial.org/is/09-025r2/09-025r2.html#35
"""

from __future__ import annotations

import logging

from wfsclient.exceptions import ExternalParsingError, OWSExceptionItem

from .xml import as_element, child_texts, find_descendant, get_attribute, get_text, iter_descendants

logger = logging.getLogger(__name__)

__all__ = ("parse_ows_exceptions", "DEFAULT_EXCEPTION_TEXT")

DEFAULT_EXCEPTION_TEXT = "Unknown OWS exception"

REPORT_TAGS = ("ExceptionReport", "ServiceExceptionReport")
EXCEPTION_TAGS = ("Exception", "ServiceException")

#: JSON keys that hold the exception report.
JSON_REPORT_KEYS = ("ExceptionReport", "exceptionReport", "error")

#: JSON keys that hold the list of exceptions.
JSON_EXCEPTION_KEYS = ("Exception", "exceptions")

#: JSON keys that make a plain object an exception.
JSON_INLINE_KEYS = ("exceptionCode", "exceptionText", "locator", "code", "text")


def parse_ows_exceptions(payload) -> list[OWSExceptionItem]:
    """Find all exceptions in the payload.

    This returns an empty list when the payload doesn't carry an exception report.
    """
    if isinstance(payload, dict):
        return _parse_json_exceptions(payload)
    elif isinstance(payload, list):
        return []

    try:
        root = as_element(payload)
    except ExternalParsingError:
        # e.g. an HTML error page from a proxy.
        logger.debug("Error response is not well-formed XML, no exceptions parsed.")
        return []

    if root is None:
        return []

    report = find_descendant(root, *REPORT_TAGS)
    if report is None:
        return []

    return [_parse_xml_exception(node) for node in iter_descendants(report, *EXCEPTION_TAGS)]


def _parse_xml_exception(node) -> OWSExceptionItem:
    texts = child_texts(node, "ExceptionText")
    if not texts and (text := get_text(node)):
        # <ServiceException code="..">text</ServiceException>
        texts = [text]

    return OWSExceptionItem(
        text="\n".join(texts) or DEFAULT_EXCEPTION_TEXT,
        code=get_attribute(node, "exceptionCode") or get_attribute(node, "code"),
        locator=get_attribute(node, "locator"),
    )


def _parse_json_exceptions(data: dict) -> list[OWSExceptionItem]:
    container = next(
        (data[key] for key in JSON_REPORT_KEYS if isinstance(data.get(key), dict)), data
    )

    entries = next(
        (container[key] for key in JSON_EXCEPTION_KEYS if container.get(key)), None
    )
    if entries is None:
        if not any(key in container for key in JSON_INLINE_KEYS):
            return []
        entries = [container]
    elif isinstance(entries, dict):
        entries = [entries]

    return [_parse_json_exception(entry) for entry in entries if isinstance(entry, dict)]


def _parse_json_exception(entry: dict) -> OWSExceptionItem:
    text = entry.get("exceptionText") or entry.get("text") or entry.get("message")
    if isinstance(text, list):
        text = "\n".join(str(line) for line in text)

    code = entry.get("exceptionCode") or entry.get("code")
    locator = entry.get("locator")
    return OWSExceptionItem(
        text=str(text) if text else DEFAULT_EXCEPTION_TEXT,
        code=str(code) if code else None,
        locator=str(locator) if locator else None,
    )
