"""Exceptions raised by the WFS client.

There are 3 groups of errors:

* Codec errors (:class:`CodecError`) are raised before any request is sent,
  as they point to a configuration error of the caller.
* Protocol errors (:class:`ServiceException`) are raised when the server
  returned an OWS exception report, or an HTTP error status.
* Transport errors (e.g. ``httpx.ConnectError``) are not wrapped, and reach the caller as-is.

See:
https://docs.opengeospatial.org/is/09-025r2/09-025r2.html#35
https://docs.opengeospatial.org/is/09-025r2/09-025r2.html#411
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

#: Substrings in an exception report that point to an unsupported output format.
OUTPUT_FORMAT_ERROR_HINTS = ("outputformat", "invalidparametervalue", "operationprocessingfailed")


@dataclass(frozen=True)
class OWSExceptionItem:
    """A single ``<ows:Exception>`` entry of an exception report."""

    text: str
    code: str | None = None
    locator: str | None = None

    def __str__(self):
        prefix = f"{self.code}: " if self.code else ""
        suffix = f" (locator: {self.locator})" if self.locator else ""
        return f"{prefix}{self.text}{suffix}"


class WFSClientError(Exception):
    """Base class for all errors raised by this package."""


class CodecError(WFSClientError, ValueError):
    """The request could not be serialized."""


class MissingNamespaceMapping(CodecError):
    """A QName prefix is referenced, but no XML namespace is configured for it."""

    def __init__(self, prefix: str):
        super().__init__(
            f'Missing namespace mapping for prefix "{prefix}".'
            " Provide it via WFSClientConfig.namespaces or settings.WFS_CLIENT_NAMESPACES."
        )
        self.prefix = prefix


class InvalidQName(CodecError):
    """A type name or property name is not a valid XML name."""

    def __init__(self, message: str, value: str):
        super().__init__(message)
        self.value = value


class ExternalParsingError(WFSClientError, ValueError):
    """Raise a ValueError for a parsing problem of the server response."""


class ServiceException(WFSClientError):
    """The WFS server reported an error.

    This holds all ``<ows:Exception>`` entries the server returned,
    along with the context of the request that failed.
    """

    def __init__(
        self,
        operation: str,
        exceptions: list[OWSExceptionItem],
        version: str | None = None,
        url: str | None = None,
        method: str | None = None,
        status: int | None = None,
        payload=None,
    ):
        self.operation = operation
        self.exceptions = exceptions
        self.version = version
        self.url = url
        self.method = method
        self.status = status
        self.payload = payload

        message = f"WFS {operation} failed with status {status}"
        if exceptions:
            message = f"{message}: {exceptions[0]}"
        super().__init__(message)

    @property
    def codes(self) -> list[str]:
        """Tell which exception codes the server reported."""
        return [exception.code for exception in self.exceptions if exception.code]

    def is_output_format_error(self) -> bool:
        """Tell whether the server most likely rejected the requested output format."""
        for exception in self.exceptions:
            haystack = " ".join(filter(None, (exception.code, exception.locator, exception.text)))
            haystack = haystack.lower()
            if any(hint in haystack for hint in OUTPUT_FORMAT_ERROR_HINTS):
                return True
        return False
