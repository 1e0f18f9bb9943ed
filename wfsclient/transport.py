"""The HTTP layer of the client.

The client only depends on an object with an async ``send()`` method,
so tests (or applications) can provide their own transport.
The default :class:`HttpxTransport` uses an ``httpx.AsyncClient``.

HTTP error statuses are returned as a normal response, because the body
typically holds the OWS exception report that explains the error.
Network errors (``httpx.HTTPError`` subclasses) are not caught here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Protocol

import httpx
import orjson

logger = logging.getLogger(__name__)

__all__ = (
    "TransportRequest",
    "TransportResponse",
    "Transport",
    "HttpxTransport",
    "decode_body",
)


@dataclass
class TransportRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] | None = None
    data: str | None = None
    auth: httpx.Auth | tuple[str, str] | None = None
    timeout: float | None = None


@dataclass
class TransportResponse:
    """The received response.

    The ``data`` holds the decoded JSON when the server returned JSON,
    otherwise it holds the response text.
    """

    status: int
    text: str
    content_type: str = ""
    url: str = ""
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)

    @cached_property
    def data(self):
        return decode_body(self.text, self.content_type)

    @property
    def is_error(self) -> bool:
        return self.status >= 400


def decode_body(text: str, content_type: str = ""):
    """Decode the JSON body, or return the text as-is.

    The body is also tried as JSON when it looks like an object or array,
    since not all servers send the proper content type.
    A body that is not valid JSON is returned as text.
    """
    if not text:
        return ""

    stripped = text.lstrip()
    if "json" in content_type.lower() or stripped.startswith(("{", "[")):
        try:
            return orjson.loads(text)
        except orjson.JSONDecodeError:
            logger.debug("Response is not valid JSON, using it as text.")
            return text

    return text


class Transport(Protocol):
    async def send(self, request: TransportRequest) -> TransportResponse: ...


class HttpxTransport:
    """Send the requests using ``httpx``.

    Pass an existing ``httpx.AsyncClient`` to share its connection pool,
    or to use an ``httpx.MockTransport`` in tests.
    A client created by this class is also closed by :meth:`aclose`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        default_headers: dict[str, str] | None = None,
        auth=None,
        timeout: float | None = None,
    ):
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()
        self.default_headers = default_headers or {}
        self.auth = auth
        self.timeout = timeout

    async def send(self, request: TransportRequest) -> TransportResponse:
        timeout = request.timeout if request.timeout is not None else self.timeout
        auth = request.auth if request.auth is not None else self.auth
        extra = {"auth": auth} if auth is not None else {}
        if timeout is not None:
            extra["timeout"] = timeout

        logger.debug("Sending %s %s", request.method, request.url)
        response = await self.client.request(
            request.method,
            request.url,
            params=request.params,
            content=request.data.encode("utf-8") if request.data is not None else None,
            headers={**self.default_headers, **request.headers},
            **extra,
        )

        return TransportResponse(
            status=response.status_code,
            text=response.text,
            content_type=response.headers.get("content-type", ""),
            url=str(response.request.url),
            method=request.method,
            headers=dict(response.headers),
        )

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
