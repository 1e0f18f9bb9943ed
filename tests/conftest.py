import pytest

from tests.utils import APP_NS, BASE_URL, MockServer
from wfsclient.client import WFSClient, WFSClientConfig


@pytest.fixture()
def server() -> MockServer:
    return MockServer()


@pytest.fixture()
def client(server) -> WFSClient:
    """A client with a fixed version, so no version negotiation happens."""
    return WFSClient(
        WFSClientConfig(
            base_url=BASE_URL,
            version_strategy="2.0.2",
            namespaces={"app": APP_NS},
            transport=server.transport(),
        )
    )


@pytest.fixture()
def auto_client(server) -> WFSClient:
    """A client that negotiates the version with the server."""
    return WFSClient(
        WFSClientConfig(
            base_url=BASE_URL,
            version_strategy="auto",
            namespaces={"app": APP_NS},
            transport=server.transport(),
        )
    )
