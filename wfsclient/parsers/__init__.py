"""All parser logic to process the server responses.

The XML responses are parsed with defusedxml into an element tree.
Elements are matched on their local name only, as servers use different
namespace prefixes (and even different namespaces) for the same elements.
JSON responses are decoded by the transport, and passed as-is.
"""
