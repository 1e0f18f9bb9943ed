"""The options that each WFS operation accepts.

These are plain dataclasses, which the serializers in :mod:`wfsclient.operations.kvp`
and :mod:`wfsclient.operations.xml` translate into the request for a particular version.
All options are keyword-only, so the ordering of fields can be changed in the future.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import ClassVar, Union

from wfsclient.filters import Filter, to_filter
from wfsclient.output.tree import XmlOverride
from wfsclient.types import RequestStyle

__all__ = (
    "SerializerContext",
    "RawRequestOptions",
    "GeoServerOptions",
    "BaseOperationOptions",
    "GetCapabilitiesOptions",
    "DescribeFeatureTypeOptions",
    "GetFeatureOptions",
    "GetFeatureWithLockOptions",
    "GetPropertyValueOptions",
    "UpdateProperty",
    "InsertAction",
    "UpdateAction",
    "ReplaceAction",
    "DeleteAction",
    "NativeAction",
    "TransactionAction",
    "TransactionOptions",
    "LockFeatureOptions",
    "ListStoredQueriesOptions",
    "DescribeStoredQueriesOptions",
    "StoredQueryParameterDefinition",
    "QueryExpressionText",
    "StoredQueryDefinition",
    "CreateStoredQueryOptions",
    "DropStoredQueryOptions",
)


@dataclass
class SerializerContext:
    """The request-wide settings for the serializers."""

    version: str
    namespaces: dict[str, str] | None = None


@dataclass(kw_only=True)
class RawRequestOptions:
    """Escape hatch to add what the typed options don't support.

    :param kvp: Extra query parameters, these override the generated parameters.
    :param xml_overrides: XML fragments to splice into the request body.
    :param headers: Extra HTTP headers for this request.
    """

    kvp: dict[str, str] = field(default_factory=dict)
    xml_overrides: list[XmlOverride] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(kw_only=True)
class GeoServerOptions:
    """GeoServer vendor parameters.

    These are only sent when GeoServer support is enabled in the client configuration,
    except for the ``xml_hints`` which are always added to the request body.
    """

    cql_filter: str | None = None
    view_params: str | None = None
    format_options: str | None = None
    vendor_params: dict[str, str] = field(default_factory=dict)
    xml_hints: list[str] = field(default_factory=list)


@dataclass(kw_only=True)
class BaseOperationOptions:
    """Options that every operation accepts."""

    #: Override the version for this call.
    version: str | None = None
    #: Override the request style (GET with KVP parameters, or POST with an XML body).
    request_style: RequestStyle | None = None
    output_format: str | None = None
    raw: RawRequestOptions | None = None

    @property
    def xml_overrides(self) -> list[XmlOverride]:
        return self.raw.xml_overrides if self.raw is not None else []

    @property
    def raw_kvp(self) -> dict[str, str]:
        return self.raw.kvp if self.raw is not None else {}

    @property
    def raw_headers(self) -> dict[str, str]:
        return self.raw.headers if self.raw is not None else {}


@dataclass(kw_only=True)
class GetCapabilitiesOptions(BaseOperationOptions):
    accept_versions: list[str] | None = None


@dataclass(kw_only=True)
class DescribeFeatureTypeOptions(BaseOperationOptions):
    type_names: list[str] = field(default_factory=list)


@dataclass(kw_only=True)
class GetFeatureOptions(BaseOperationOptions):
    """The query options of ``GetFeature``.

    The ``count`` is sent as ``maxFeatures`` for WFS 1.1.
    The ``bbox`` is only used when no ``filter`` is given.
    """

    type_names: list[str]
    srs_name: str | None = None
    property_names: list[str] = field(default_factory=list)
    filter: Filter | dict | None = None
    bbox: tuple[float, float, float, float] | None = None
    start_index: int | None = None
    count: int | None = None
    result_type: str | None = None  # "results" or "hits"
    resolve: str | None = None  # "local", "remote", "all" or "none"
    resolve_depth: int | str | None = None
    resolve_timeout: int | None = None
    geoserver: GeoServerOptions | None = None


@dataclass(kw_only=True)
class GetFeatureWithLockOptions(GetFeatureOptions):
    expiry: int | None = None
    lock_action: str | None = None  # "ALL" or "SOME"


@dataclass(kw_only=True)
class GetPropertyValueOptions(BaseOperationOptions):
    type_names: list[str]
    value_reference: str
    resolve_path: str | None = None
    filter: Filter | dict | None = None
    start_index: int | None = None
    count: int | None = None
    result_type: str | None = None
    resolve: str | None = None
    resolve_depth: int | str | None = None
    resolve_timeout: int | None = None
    geoserver: GeoServerOptions | None = None


@dataclass(kw_only=True)
class UpdateProperty:
    """A single property change of an update action.

    When the ``value`` is ``None``, no ``<wfs:Value>`` is sent, which clears the property.
    The ``action`` is only used by WFS 2.0
    (``replace``, ``insertBefore``, ``insertAfter`` or ``remove``).
    """

    name: str
    value: object = None
    action: str | None = None


class TransactionActionBase:
    """Base class of the transaction actions."""

    kind: ClassVar[str] = ""

    def iter_qnames(self) -> Iterator[str]:
        """Tell which QName values the action references, to declare their namespaces."""
        return iter(())

    def get_filter(self) -> Filter | None:
        filter = getattr(self, "filter", None)
        return to_filter(filter) if filter is not None else None


@dataclass(kw_only=True)
class InsertAction(TransactionActionBase):
    kind: ClassVar[str] = "insert"
    type_name: str
    features: list[dict]
    geometry_property_name: str | None = None
    handle: str | None = None
    input_format: str | None = None
    srs_name: str | None = None

    def iter_qnames(self):
        yield self.type_name
        if self.geometry_property_name:
            yield self.geometry_property_name
        for feature in self.features:
            yield from (feature.get("properties") or {}).keys()


@dataclass(kw_only=True)
class UpdateAction(TransactionActionBase):
    """Update the matched features. Without a filter, all features are updated."""

    kind: ClassVar[str] = "update"
    type_name: str
    properties: list[UpdateProperty]
    filter: Filter | dict | None = None
    handle: str | None = None
    input_format: str | None = None
    srs_name: str | None = None

    def iter_qnames(self):
        yield self.type_name
        for update in self.properties:
            yield update.name


@dataclass(kw_only=True)
class ReplaceAction(TransactionActionBase):
    kind: ClassVar[str] = "replace"
    type_name: str
    feature: dict
    filter: Filter | dict
    geometry_property_name: str | None = None
    handle: str | None = None
    input_format: str | None = None
    srs_name: str | None = None

    def iter_qnames(self):
        yield self.type_name
        if self.geometry_property_name:
            yield self.geometry_property_name
        yield from (self.feature.get("properties") or {}).keys()


@dataclass(kw_only=True)
class DeleteAction(TransactionActionBase):
    kind: ClassVar[str] = "delete"
    type_name: str
    filter: Filter | dict
    handle: str | None = None

    def iter_qnames(self):
        yield self.type_name


@dataclass(kw_only=True)
class NativeAction(TransactionActionBase):
    """A vendor-specific action.

    The ``any_xml`` is placed as-is, otherwise the ``value`` is sent as escaped text.
    """

    kind: ClassVar[str] = "native"
    vendor_id: str
    safe_to_ignore: bool
    value: str | None = None
    any_xml: str | None = None
    handle: str | None = None


TransactionAction = Union[InsertAction, UpdateAction, ReplaceAction, DeleteAction, NativeAction]


@dataclass(kw_only=True)
class TransactionOptions(BaseOperationOptions):
    actions: list[TransactionAction]
    lock_id: str | None = None
    release_action: str | None = None  # "ALL" or "SOME"
    srs_name: str | None = None


@dataclass(kw_only=True)
class LockFeatureOptions(BaseOperationOptions):
    type_names: list[str] = field(default_factory=list)
    filter: Filter | dict | None = None
    lock_id: str | None = None
    expiry: int | None = None
    lock_action: str | None = None


@dataclass(kw_only=True)
class ListStoredQueriesOptions(BaseOperationOptions):
    pass


@dataclass(kw_only=True)
class DescribeStoredQueriesOptions(BaseOperationOptions):
    stored_query_ids: list[str] = field(default_factory=list)


@dataclass(kw_only=True)
class StoredQueryParameterDefinition:
    name: str
    type: str
    title: str | None = None
    abstract: str | None = None


@dataclass(kw_only=True)
class QueryExpressionText:
    """The query that a stored query executes, the ``xml`` is included as-is."""

    return_feature_types: list[str]
    language: str
    xml: str
    is_private: bool = False


@dataclass(kw_only=True)
class StoredQueryDefinition:
    id: str
    query_expression_texts: list[QueryExpressionText]
    title: str | None = None
    abstract: str | None = None
    parameters: list[StoredQueryParameterDefinition] = field(default_factory=list)


@dataclass(kw_only=True)
class CreateStoredQueryOptions(BaseOperationOptions):
    definitions: list[StoredQueryDefinition]


@dataclass(kw_only=True)
class DropStoredQueryOptions(BaseOperationOptions):
    id: str
