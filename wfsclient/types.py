"""The data types returned by the WFS client.

Feature collections are returned as plain GeoJSON dictionaries,
so they can be passed directly to other GeoJSON consumers.
The other responses are parsed into the dataclasses below.
None of these objects refer back to the request that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = (
    "SUPPORTED_VERSIONS",
    "WFS_1_1_0",
    "WFSOperation",
    "RequestStyle",
    "OperationBinding",
    "ParsedCapabilities",
    "ActionResult",
    "TransactionResult",
    "LockResult",
    "StoredQueryListItem",
    "StoredQueryParameter",
    "StoredQueryDescription",
    "StoredQueryStatus",
    "is_wfs1",
)

WFS_1_1_0 = "1.1.0"

#: All versions in the order of preference.
SUPPORTED_VERSIONS = ("2.0.2", "2.0.0", WFS_1_1_0)


def is_wfs1(version: str) -> bool:
    """Tell whether the version uses the WFS 1.1 dialect (OGC Filter 1.1 / GML 3.1)."""
    return version == WFS_1_1_0


class WFSOperation(Enum):
    """The WFS operations this client can perform."""

    GetCapabilities = "GetCapabilities"
    DescribeFeatureType = "DescribeFeatureType"
    GetFeature = "GetFeature"
    GetFeatureWithLock = "GetFeatureWithLock"
    GetPropertyValue = "GetPropertyValue"
    Transaction = "Transaction"
    LockFeature = "LockFeature"
    ListStoredQueries = "ListStoredQueries"
    DescribeStoredQueries = "DescribeStoredQueries"
    CreateStoredQuery = "CreateStoredQuery"
    DropStoredQuery = "DropStoredQuery"

    def __str__(self):
        # Python 3.11+ has StrEnum for this.
        return self.value


class RequestStyle(Enum):
    """How the request is encoded: query parameters (KVP) or an XML body."""

    GET = "GET"
    POST = "POST"

    def __str__(self):
        return self.value


@dataclass
class OperationBinding:
    """The endpoints that the capabilities document advertises for an operation."""

    get: str | None = None
    post: str | None = None

    def pick(self, style: RequestStyle) -> str | None:
        """Choose the URL for the request style, falling back to the other binding."""
        if style is RequestStyle.GET:
            return self.get or self.post
        else:
            return self.post or self.get


@dataclass
class ParsedCapabilities:
    """The parsed ``GetCapabilities`` response."""

    version: str | None = None
    title: str | None = None
    abstract: str | None = None
    operations: dict[str, OperationBinding] = field(default_factory=dict)
    raw: object = field(default=None, repr=False)

    def get_binding(self, operation: WFSOperation | str) -> OperationBinding | None:
        return self.operations.get(str(operation))


@dataclass
class ActionResult:
    """The outcome of a single insert/update/replace action in a transaction."""

    handle: str | None = None
    resource_ids: list[str] = field(default_factory=list)


@dataclass
class TransactionResult:
    """The parsed ``<wfs:TransactionResponse>``.

    The totals are ``None`` when the server didn't report them,
    which is different from a reported total of zero.
    """

    total_inserted: int | None = None
    total_updated: int | None = None
    total_replaced: int | None = None
    total_deleted: int | None = None
    insert_results: list[ActionResult] = field(default_factory=list)
    update_results: list[ActionResult] = field(default_factory=list)
    replace_results: list[ActionResult] = field(default_factory=list)
    raw: object = field(default=None, repr=False)


@dataclass
class LockResult:
    """The parsed ``<wfs:LockFeatureResponse>``."""

    lock_id: str | None = None
    locked_resource_ids: list[str] = field(default_factory=list)
    not_locked_resource_ids: list[str] = field(default_factory=list)
    raw: object = field(default=None, repr=False)


@dataclass
class StoredQueryListItem:
    """An entry of the ``<wfs:ListStoredQueriesResponse>``."""

    id: str
    titles: list[str] = field(default_factory=list)
    return_feature_types: list[str] = field(default_factory=list)


@dataclass
class StoredQueryParameter:
    name: str
    type: str = "xsd:string"


@dataclass
class StoredQueryDescription:
    """An entry of the ``<wfs:DescribeStoredQueriesResponse>``."""

    id: str
    titles: list[str] = field(default_factory=list)
    abstracts: list[str] = field(default_factory=list)
    parameters: list[StoredQueryParameter] = field(default_factory=list)


@dataclass
class StoredQueryStatus:
    """The response of ``CreateStoredQuery`` and ``DropStoredQuery``."""

    status: str
    raw: object = field(default=None, repr=False)
