from __future__ import annotations

import logging
from pathlib import Path
from xml.etree import ElementTree

import httpx
import orjson

from wfsclient.transport import HttpxTransport, TransportRequest, TransportResponse

logger = logging.getLogger(__name__)

FILES_ROOT = Path(__file__).parent.joinpath("files")

BASE_URL = "https://wfs.example.com/wfs"
APP_NS = "http://example.org/app"

# Namespaces for tag retrieval in tests
NAMESPACES = {
    "app": APP_NS,
    "fes": "http://www.opengis.net/fes/2.0",
    "gml": "http://www.opengis.net/gml/3.2",
    "ogc": "http://www.opengis.net/ogc",
    "ows": "http://www.opengis.net/ows/1.1",
    "wfs": "http://www.opengis.net/wfs/2.0",
    "wfs1": "http://www.opengis.net/wfs",
    "gml31": "http://www.opengis.net/gml",
}


def read_file(name: str) -> str:
    """Read a response fixture from the ``tests/files`` folder."""
    return FILES_ROOT.joinpath(name).read_text(encoding="utf-8")


def parse_xml(xml: str) -> ElementTree.Element:
    """Parse the generated XML, which also proves the document is well-formed."""
    return ElementTree.fromstring(xml)


class MockServer:
    """A fake WFS server, which answers each request with the next queued response.

    The received requests are recorded, so tests can inspect what the client sent.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []

    def add(self, content: str, status: int = 200, content_type: str = "text/xml"):
        self.responses.append(
            httpx.Response(status, content=content.encode(), headers={"content-type": content_type})
        )

    def add_file(self, name: str, status: int = 200):
        self.add(read_file(name), status=status)

    def add_json(self, data, status: int = 200):
        self.add(orjson.dumps(data).decode(), status=status, content_type="application/json")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        logger.debug("Mock server received %s %s", request.method, request.url)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self.responses.pop(0)

    def transport(self) -> HttpxTransport:
        return HttpxTransport(
            client=httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        )

    def params(self, index: int = -1) -> dict[str, str]:
        """Provide the query parameters of a received request."""
        return dict(self.requests[index].url.params)

    def body(self, index: int = -1) -> str:
        return self.requests[index].content.decode()


class RecordingTransport:
    """A custom transport that doesn't use ``httpx``.

    Each queued item is either returned as response, or raised when it's an exception.
    """

    def __init__(self, *responses):
        self.requests: list[TransportRequest] = []
        self.responses = list(responses)

    def add_file(self, name: str, status: int = 200):
        self.responses.append(TransportResponse(status=status, text=read_file(name)))

    async def send(self, request: TransportRequest) -> TransportResponse:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
