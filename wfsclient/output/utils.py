"""General utilities for outputting XML content"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal as D

import orjson

AUTO_STR = (int, float, D, date, time)

__all__ = (
    "attr_escape",
    "tag_escape",
    "value_to_xml_string",
    "value_to_attr_string",
)


def tag_escape(s: str):
    """Escape a value for usage in XML text."""
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def attr_escape(s: str):
    """Escape a value for usage in an XML attribute.
    This is slightly faster than ``html.escape()`` as it doesn't replace single quotes.
    """
    # Having tried all possible variants, this code still outperforms other forms of escaping.
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def _value_to_str(value) -> str:
    if isinstance(value, str):  # most cases
        return value
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat()
    elif isinstance(value, (date, time)):
        return value.isoformat()
    elif isinstance(value, AUTO_STR):
        return str(value)
    else:
        # Structured values (e.g. dicts) are sent as their JSON notation.
        return orjson.dumps(value).decode()


def value_to_xml_string(value) -> str:
    """Format a Python value for usage in XML text. ``None`` becomes an empty string."""
    if value is None:
        return ""
    return tag_escape(_value_to_str(value))


def value_to_attr_string(value) -> str:
    """Format a Python value for usage in an XML attribute."""
    if value is None:
        return ""
    return attr_escape(_value_to_str(value))
