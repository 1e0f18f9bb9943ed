"""The WFS client, which dispatches the operations to the server.

Usage::

    async with WFSClient(WFSClientConfig(base_url="https://example.com/geoserver/wfs")) as client:
        collection = await client.get_feature(
            GetFeatureOptions(type_names=["topp:states"], count=10)
        )

The client negotiates the protocol version on first use (unless a fixed version
is configured), and remembers the endpoints that the capabilities document advertises.
Each response is checked for OWS exceptions before it's parsed,
these are raised as :class:`~wfsclient.exceptions.ServiceException`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace

import httpx

from wfsclient import conf
from wfsclient.crs import AxisOrderStrategy
from wfsclient.exceptions import OWSExceptionItem, ServiceException
from wfsclient.operations import kvp, xml
from wfsclient.operations.base import (
    BaseOperationOptions,
    CreateStoredQueryOptions,
    DescribeFeatureTypeOptions,
    DescribeStoredQueriesOptions,
    DropStoredQueryOptions,
    GeoServerOptions,
    GetCapabilitiesOptions,
    GetFeatureOptions,
    GetFeatureWithLockOptions,
    GetPropertyValueOptions,
    ListStoredQueriesOptions,
    LockFeatureOptions,
    SerializerContext,
    TransactionOptions,
)
from wfsclient.parsers.capabilities import parse_capabilities
from wfsclient.parsers.features import parse_feature_collection, parse_value_collection
from wfsclient.parsers.locks import parse_lock_result
from wfsclient.parsers.ows import parse_ows_exceptions
from wfsclient.parsers.stored import (
    parse_create_stored_query,
    parse_describe_stored_queries,
    parse_drop_stored_query,
    parse_list_stored_queries,
)
from wfsclient.parsers.transaction import parse_transaction_result
from wfsclient.transport import HttpxTransport, Transport, TransportRequest, TransportResponse
from wfsclient.types import (
    SUPPORTED_VERSIONS,
    LockResult,
    ParsedCapabilities,
    RequestStyle,
    StoredQueryDescription,
    StoredQueryListItem,
    StoredQueryStatus,
    TransactionResult,
    WFSOperation,
    is_wfs1,
)
from wfsclient.versions import (
    AUTO,
    check_version_strategy,
    get_version_fallback_chain,
    resolve_initial_version,
)

logger = logging.getLogger(__name__)

__all__ = ("GeoServerConfig", "WFSClientConfig", "WFSClient")

XML_CONTENT_TYPE = "text/xml; charset=UTF-8"

#: The request style of each operation, when the call doesn't define one.
DEFAULT_REQUEST_STYLES = {
    WFSOperation.GetCapabilities: RequestStyle.GET,
    WFSOperation.DescribeFeatureType: RequestStyle.GET,
    WFSOperation.GetFeature: RequestStyle.GET,
    WFSOperation.GetPropertyValue: RequestStyle.GET,
}

_MISSING = object()


@dataclass(kw_only=True)
class GeoServerConfig:
    """GeoServer support. Vendor parameters are only sent when this is enabled."""

    enabled: bool = False
    #: Vendor parameters for every query, the parameters of a call take precedence.
    default_vendor_params: dict[str, str] = field(default_factory=dict)


@dataclass(kw_only=True)
class WFSClientConfig:
    """The configuration of a single client.

    The defaults are read from the Django settings (see :mod:`wfsclient.conf`).
    """

    base_url: str
    version_strategy: str = field(default_factory=lambda: conf.WFS_CLIENT_VERSION_STRATEGY)
    axis_order_strategy: AxisOrderStrategy | str = field(
        default_factory=lambda: conf.WFS_CLIENT_AXIS_ORDER_STRATEGY
    )
    #: XML namespaces by prefix, added to the ``WFS_CLIENT_NAMESPACES`` setting.
    namespaces: dict[str, str] = field(default_factory=dict)
    #: Fixed endpoints by operation name, these take precedence over the capabilities.
    endpoints: dict[str, str] = field(default_factory=dict)
    default_headers: dict[str, str] = field(default_factory=dict)
    auth: httpx.Auth | tuple[str, str] | None = None
    timeout: float | None = None
    geoserver: GeoServerConfig = field(default_factory=GeoServerConfig)
    #: Custom transport, e.g. for testing. By default, an ``httpx`` transport is created.
    transport: Transport | None = None

    def __post_init__(self):
        check_version_strategy(self.version_strategy)
        self.axis_order_strategy = AxisOrderStrategy(self.axis_order_strategy)
        self.endpoints = {str(operation): url for operation, url in self.endpoints.items()}


class WFSClient:
    """Perform WFS operations on a remote server.

    All operations are coroutines. The client holds the negotiated version
    and the last parsed capabilities document, which are shared by all calls.
    """

    def __init__(self, config: WFSClientConfig | None = None, **kwargs):
        self.config = config if config is not None else WFSClientConfig(**kwargs)

        # Also given with each request, so a custom transport receives them too.
        self.default_headers = {**conf.WFS_CLIENT_DEFAULT_HEADERS, **self.config.default_headers}
        self.timeout = (
            self.config.timeout
            if self.config.timeout is not None
            else conf.WFS_CLIENT_REQUEST_TIMEOUT
        )

        if self.config.transport is not None:
            self.transport = self.config.transport
            self._owns_transport = False
        else:
            self.transport = HttpxTransport(
                default_headers=self.default_headers,
                auth=self.config.auth,
                timeout=self.timeout,
            )
            self._owns_transport = True

        self._negotiated_version: str | None = None
        self._capabilities: ParsedCapabilities | None = None
        self._negotiation_lock = asyncio.Lock()

    def __repr__(self):
        return f"<{self.__class__.__name__}: {self.config.base_url}>"

    @property
    def capabilities(self) -> ParsedCapabilities | None:
        """The last parsed capabilities document."""
        return self._capabilities

    @property
    def negotiated_version(self) -> str | None:
        return self._negotiated_version

    async def aclose(self):
        if self._owns_transport:
            await self.transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # -- operations

    async def get_capabilities(
        self, options: GetCapabilitiesOptions | None = None
    ) -> ParsedCapabilities:
        """Retrieve the capabilities document.

        The result replaces the cached capabilities, so later calls use the advertised endpoints.
        """
        options = options or GetCapabilitiesOptions()
        version = await self._resolve_version(options.version)
        response = await self._dispatch(
            WFSOperation.GetCapabilities,
            options,
            version,
            build_kvp=kvp.build_capabilities_kvp,
            build_xml=xml.build_get_capabilities_xml,
        )

        capabilities = parse_capabilities(response.text)
        self._store_capabilities(capabilities)
        return capabilities

    async def describe_feature_type(self, options: DescribeFeatureTypeOptions | None = None):
        """Retrieve the feature type schema.

        This gives the decoded JSON when the server returned JSON, otherwise the XML schema text.
        """
        options = options or DescribeFeatureTypeOptions()
        version = await self._resolve_version(options.version)
        response = await self._dispatch(
            WFSOperation.DescribeFeatureType,
            options,
            version,
            build_kvp=kvp.build_describe_feature_type_kvp,
            build_xml=xml.build_describe_feature_type_xml,
        )
        return response.data

    async def get_feature(self, options: GetFeatureOptions) -> dict:
        """Retrieve features as GeoJSON feature collection.

        GeoJSON output is requested first. When the server rejects that output format,
        the query is repeated once without an output format, and the GML response is parsed.
        """
        version = await self._resolve_version(options.version)
        options = replace(
            options,
            geoserver=self._get_geoserver_options(options.geoserver),
            output_format=options.output_format or conf.WFS_CLIENT_GEOJSON_OUTPUT_FORMATS[0],
        )

        try:
            response = await self._dispatch(
                WFSOperation.GetFeature,
                options,
                version,
                build_kvp=kvp.build_get_feature_kvp,
                build_xml=xml.build_get_feature_xml,
            )
        except ServiceException as e:
            if not e.is_output_format_error():
                raise

            logger.info(
                "Server rejected outputFormat=%s, retrying GetFeature without output format: %s",
                options.output_format,
                e,
            )
            response = await self._dispatch(
                WFSOperation.GetFeature,
                replace(options, output_format=None),
                version,
                build_kvp=kvp.build_get_feature_kvp,
                build_xml=xml.build_get_feature_xml,
            )

        return self._parse_features(response)

    async def get_feature_with_lock(self, options: GetFeatureWithLockOptions) -> dict:
        """Retrieve and lock features.

        The result is a GeoJSON feature collection, with a ``lockId`` entry
        when the server reported the lock identifier.
        """
        version = await self._resolve_version(options.version)
        options = replace(
            options,
            geoserver=self._get_geoserver_options(options.geoserver),
            output_format=options.output_format or conf.WFS_CLIENT_GEOJSON_OUTPUT_FORMATS[0],
        )
        response = await self._dispatch(
            WFSOperation.GetFeatureWithLock,
            options,
            version,
            build_kvp=kvp.build_get_feature_with_lock_kvp,
            build_xml=xml.build_get_feature_with_lock_xml,
        )
        return self._parse_features(response)

    async def get_property_value(self, options: GetPropertyValueOptions) -> list:
        """Retrieve the values of a single property.

        WFS 1.1 doesn't have this operation, hence a ``GetFeature`` request
        is performed instead, and the value is read from the feature properties.
        """
        version = await self._resolve_version(options.version)
        if is_wfs1(version):
            return await self._get_property_value_wfs1(options, version)

        options = replace(options, geoserver=self._get_geoserver_options(options.geoserver))
        response = await self._dispatch(
            WFSOperation.GetPropertyValue,
            options,
            version,
            build_kvp=kvp.build_get_property_value_kvp,
            build_xml=xml.build_get_property_value_xml,
        )

        if isinstance(response.data, list):
            return response.data
        return parse_value_collection(response.text, self.config.axis_order_strategy)

    async def _get_property_value_wfs1(self, options: GetPropertyValueOptions, version: str) -> list:
        collection = await self.get_feature(
            GetFeatureOptions(
                version=version,
                request_style=options.request_style,
                output_format=options.output_format,
                raw=options.raw,
                type_names=options.type_names,
                filter=options.filter,
                start_index=options.start_index,
                count=options.count,
                result_type=options.result_type,
                resolve=options.resolve,
                resolve_depth=options.resolve_depth,
                resolve_timeout=options.resolve_timeout,
                geoserver=options.geoserver,
            )
        )

        values = []
        for feature in collection.get("features", ()):
            value = resolve_value_reference(feature.get("properties"), options.value_reference)
            if value is not _MISSING:
                values.append(value)
        return values

    async def transaction(self, options: TransactionOptions) -> TransactionResult:
        version = await self._resolve_version(options.version)
        response = await self._dispatch(
            WFSOperation.Transaction,
            options,
            version,
            build_kvp=lambda options, version: kvp.build_simple_kvp(
                WFSOperation.Transaction, version, options.raw_kvp
            ),
            build_xml=xml.build_transaction_xml,
        )
        return parse_transaction_result(response.text)

    async def lock_feature(self, options: LockFeatureOptions) -> LockResult:
        version = await self._resolve_version(options.version)
        response = await self._dispatch(
            WFSOperation.LockFeature,
            options,
            version,
            build_kvp=kvp.build_lock_feature_kvp,
            build_xml=xml.build_lock_feature_xml,
        )
        return parse_lock_result(response.text)

    async def list_stored_queries(
        self, options: ListStoredQueriesOptions | None = None
    ) -> list[StoredQueryListItem]:
        options = options or ListStoredQueriesOptions()
        version = await self._resolve_version(options.version)
        response = await self._dispatch(
            WFSOperation.ListStoredQueries,
            options,
            version,
            build_kvp=kvp.build_list_stored_queries_kvp,
            build_xml=xml.build_list_stored_queries_xml,
        )
        return parse_list_stored_queries(response.text)

    async def describe_stored_queries(
        self, options: DescribeStoredQueriesOptions | None = None
    ) -> list[StoredQueryDescription]:
        options = options or DescribeStoredQueriesOptions()
        version = await self._resolve_version(options.version)
        response = await self._dispatch(
            WFSOperation.DescribeStoredQueries,
            options,
            version,
            build_kvp=kvp.build_describe_stored_queries_kvp,
            build_xml=xml.build_describe_stored_queries_xml,
        )
        return parse_describe_stored_queries(response.text)

    async def create_stored_query(self, options: CreateStoredQueryOptions) -> StoredQueryStatus:
        version = await self._resolve_version(options.version)
        response = await self._dispatch(
            WFSOperation.CreateStoredQuery,
            options,
            version,
            build_kvp=lambda options, version: kvp.build_simple_kvp(
                WFSOperation.CreateStoredQuery, version, options.raw_kvp
            ),
            build_xml=xml.build_create_stored_query_xml,
        )
        return parse_create_stored_query(response.text)

    async def drop_stored_query(self, options: DropStoredQueryOptions) -> StoredQueryStatus:
        version = await self._resolve_version(options.version)
        response = await self._dispatch(
            WFSOperation.DropStoredQuery,
            options,
            version,
            build_kvp=kvp.build_drop_stored_query_kvp,
            build_xml=xml.build_drop_stored_query_xml,
        )
        return parse_drop_stored_query(response.text)

    # -- version negotiation

    async def _resolve_version(self, explicit: str | None = None) -> str:
        """Tell which version to use for a request.

        The version of the call takes precedence, then the configured version.
        Otherwise, the version is negotiated once with the server.
        """
        if explicit:
            return explicit
        elif self.config.version_strategy != AUTO:
            return self.config.version_strategy
        elif self._negotiated_version:
            return self._negotiated_version

        async with self._negotiation_lock:
            # Another task may have completed the negotiation in the meantime.
            if not self._negotiated_version:
                self._negotiated_version = await self._negotiate()
            return self._negotiated_version

    async def _negotiate(self) -> str:
        """Probe the server with a ``GetCapabilities`` request for each version.

        The first version that the server answers without an error is used.
        When all attempts fail, the preferred version is used,
        so the actual request can still report the error.
        """
        preferred = resolve_initial_version(self.config.version_strategy)
        for version in get_version_fallback_chain(preferred, self.config.version_strategy):
            logger.debug("Negotiating WFS version %s with %s", version, self.config.base_url)
            request = self._new_request(
                RequestStyle.GET,
                self.config.base_url,
                params=kvp.build_capabilities_kvp(GetCapabilitiesOptions(), version),
            )

            try:
                response = await self.transport.send(request)
                self._check_response(WFSOperation.GetCapabilities, version, response)
                capabilities = parse_capabilities(response.text)
            except Exception as e:
                # The transport can be anything, so any failure means the next version is tried.
                logger.debug("WFS version %s is not available: %r", version, e)
                continue

            self._capabilities = capabilities
            negotiated = (
                capabilities.version if capabilities.version in SUPPORTED_VERSIONS else version
            )
            logger.debug("Negotiated WFS version %s with %s", negotiated, self.config.base_url)
            return negotiated

        logger.debug("Version negotiation failed, using WFS %s", preferred)
        return preferred

    def _store_capabilities(self, capabilities: ParsedCapabilities):
        if self._capabilities is not None:
            logger.debug("Replacing the cached capabilities of %s", self.config.base_url)
        self._capabilities = capabilities

        if self.config.version_strategy == AUTO and capabilities.version in SUPPORTED_VERSIONS:
            self._negotiated_version = capabilities.version

    # -- request handling

    def _get_serializer_context(self, version: str) -> SerializerContext:
        return SerializerContext(
            version=version,
            namespaces={**conf.WFS_CLIENT_NAMESPACES, **self.config.namespaces},
        )

    def _get_geoserver_options(self, geoserver: GeoServerOptions | None) -> GeoServerOptions | None:
        """Apply the GeoServer configuration to the options of a call.

        When GeoServer support is disabled, only the XML hints are kept.
        """
        settings = self.config.geoserver
        if not settings.enabled:
            if geoserver is None or not geoserver.xml_hints:
                return None
            return GeoServerOptions(xml_hints=geoserver.xml_hints)

        geoserver = geoserver or GeoServerOptions()
        return replace(
            geoserver,
            vendor_params={**settings.default_vendor_params, **geoserver.vendor_params},
        )

    def _resolve_endpoint(self, operation: WFSOperation, style: RequestStyle) -> str:
        """Tell where the request should be sent to.

        A configured endpoint takes precedence over the capabilities document.
        """
        try:
            return self.config.endpoints[str(operation)]
        except KeyError:
            pass

        if self._capabilities is not None:
            binding = self._capabilities.get_binding(operation)
            if binding is not None:
                return binding.pick(style) or self.config.base_url

        return self.config.base_url

    async def _dispatch(
        self,
        operation: WFSOperation,
        options: BaseOperationOptions,
        version: str,
        build_kvp,
        build_xml,
    ) -> TransportResponse:
        """Serialize the request in the requested style, send it, and check the response.

        The ``build_kvp`` and ``build_xml`` arguments are the serializer functions of the operation.
        Only the serializer of the request style is called.
        """
        style = options.request_style or DEFAULT_REQUEST_STYLES.get(operation, RequestStyle.POST)
        style = RequestStyle(style)
        url = self._resolve_endpoint(operation, style)
        if style is RequestStyle.GET:
            request = self._new_request(
                style, url, headers=options.raw_headers, params=build_kvp(options, version)
            )
        else:
            request = self._new_request(
                style,
                url,
                headers={"Content-Type": XML_CONTENT_TYPE, **options.raw_headers},
                data=build_xml(options, self._get_serializer_context(version)),
            )

        logger.debug("WFS %s %s request (version %s) to %s", operation, style, version, url)
        response = await self.transport.send(request)
        self._check_response(operation, version, response)
        return response

    def _new_request(
        self, style: RequestStyle, url: str, headers: dict | None = None, **kwargs
    ) -> TransportRequest:
        """Create the request, with the configured headers, authentication and timeout."""
        return TransportRequest(
            method=str(style),
            url=url,
            headers={**self.default_headers, **(headers or {})},
            auth=self.config.auth,
            timeout=self.timeout,
            **kwargs,
        )

    def _check_response(self, operation: WFSOperation, version: str, response: TransportResponse):
        """Raise a :class:`ServiceException` when the server reported an error."""
        exceptions = parse_ows_exceptions(response.data)
        if not response.is_error and not exceptions:
            return

        if not exceptions:
            exceptions = [
                OWSExceptionItem(
                    code="HTTP_ERROR",
                    text=f"HTTP request failed with status {response.status}",
                )
            ]

        raise ServiceException(
            operation=str(operation),
            exceptions=exceptions,
            version=version,
            url=response.url,
            method=response.method,
            status=response.status,
            payload=response.data,
        )

    def _parse_features(self, response: TransportResponse) -> dict:
        return parse_feature_collection(response.data, self.config.axis_order_strategy)


def resolve_value_reference(properties: dict | None, value_reference: str):
    """Read the value reference from the properties of a feature.

    The properties may or may not have the namespace prefix of the reference,
    so this tries the exact key, then the local name, and then follows
    the path (separated by ``/`` or ``.``) through nested values.
    This returns ``_MISSING`` when the value is not found.
    """
    if not isinstance(properties, dict):
        return _MISSING

    if value_reference in properties:
        return properties[value_reference]

    local = _local_name(value_reference)
    if local != value_reference and local in properties:
        return properties[local]

    for path in _value_reference_paths(value_reference):
        value = _read_path(properties, path)
        if value is not _MISSING:
            return value

    return _MISSING


def _local_name(value: str) -> str:
    return value.partition(":")[2] or value


def _value_reference_paths(value_reference: str) -> list[list[str]]:
    reference = value_reference.strip()
    separator = "/" if "/" in reference else "." if "." in reference else None
    if not separator:
        return []

    segments = [segment for segment in reference.split(separator) if segment]
    if not segments:
        return []

    local_segments = [_local_name(segment) for segment in segments]
    return [segments] if local_segments == segments else [segments, local_segments]


def _read_path(source: dict, path: list[str]):
    current = source
    for segment in path:
        if not isinstance(current, dict):
            return _MISSING

        if segment in current:
            current = current[segment]
            continue

        local = _local_name(segment)
        key = next((key for key in current if _local_name(key) == local), None)
        if key is None:
            return _MISSING
        current = current[key]

    return current
