"""Build the query parameters (KVP encoding) of the WFS operations.

Each function returns a dictionary, which is sent as query string in a GET request.
The ``raw.kvp`` entries are applied last, so they can override any generated parameter.
"""

from __future__ import annotations

from wfsclient.output.fes import compile_filter_xml
from wfsclient.output.gml import format_coordinate
from wfsclient.types import WFSOperation, is_wfs1

from .base import (
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
)

__all__ = (
    "type_names_parameter",
    "build_capabilities_kvp",
    "build_describe_feature_type_kvp",
    "build_get_feature_kvp",
    "build_get_feature_with_lock_kvp",
    "build_get_property_value_kvp",
    "build_lock_feature_kvp",
    "build_simple_kvp",
    "build_list_stored_queries_kvp",
    "build_describe_stored_queries_kvp",
    "build_drop_stored_query_kvp",
)


def type_names_parameter(version: str) -> str:
    """WFS 1.1 uses the singular ``typeName`` parameter."""
    return "typeName" if is_wfs1(version) else "typeNames"


def _build_filter(filter, version: str) -> str | None:
    if filter is None:
        return None

    # The filter is a standalone document here, so it declares its own namespaces.
    return compile_filter_xml(filter, version, include_namespace_declarations=True)


def _apply_optional(params: dict, **values):
    for name, value in values.items():
        if value is not None and value != "":
            params[name] = str(value)


def _apply_geoserver_params(params: dict, geoserver: GeoServerOptions | None):
    if geoserver is None:
        return

    _apply_optional(
        params,
        cql_filter=geoserver.cql_filter,
        viewParams=geoserver.view_params,
        format_options=geoserver.format_options,
    )
    params.update(geoserver.vendor_params or {})


def build_simple_kvp(
    request: WFSOperation | str, version: str, raw: dict[str, str] | None = None
) -> dict[str, str]:
    """Build the parameters that every request has."""
    return {
        "service": "WFS",
        "version": version,
        "request": str(request),
        **(raw or {}),
    }


def build_capabilities_kvp(options: GetCapabilitiesOptions, version: str) -> dict[str, str]:
    accept_versions = options.accept_versions or [version]
    return {
        "service": "WFS",
        "version": version,
        "request": str(WFSOperation.GetCapabilities),
        "acceptVersions": ",".join(accept_versions),
        **options.raw_kvp,
    }


def build_describe_feature_type_kvp(
    options: DescribeFeatureTypeOptions, version: str
) -> dict[str, str]:
    params = build_simple_kvp(WFSOperation.DescribeFeatureType, version)
    if options.type_names:
        params[type_names_parameter(version)] = ",".join(options.type_names)
    _apply_optional(params, outputFormat=options.output_format)
    params.update(options.raw_kvp)
    return params


def build_get_feature_kvp(options: GetFeatureOptions, version: str) -> dict[str, str]:
    """Build the ``GetFeature`` parameters.

    The result limit is named ``maxFeatures`` in WFS 1.1 and ``count`` in WFS 2.0.
    """
    params = build_simple_kvp(WFSOperation.GetFeature, version)
    params[type_names_parameter(version)] = ",".join(options.type_names)

    _apply_optional(
        params,
        outputFormat=options.output_format,
        srsName=options.srs_name,
        propertyName=",".join(options.property_names) if options.property_names else None,
        startIndex=options.start_index,
    )
    if options.count is not None:
        params["maxFeatures" if is_wfs1(version) else "count"] = str(options.count)

    _apply_optional(
        params,
        resultType=options.result_type,
        filter=_build_filter(options.filter, version),
    )
    if options.bbox:
        bbox = ",".join(format_coordinate(value) for value in options.bbox)
        params["bbox"] = f"{bbox},{options.srs_name}" if options.srs_name else bbox

    _apply_optional(
        params,
        resolve=options.resolve,
        resolveDepth=options.resolve_depth,
        resolveTimeout=options.resolve_timeout,
    )
    _apply_geoserver_params(params, options.geoserver)
    params.update(options.raw_kvp)
    return params


def build_get_feature_with_lock_kvp(
    options: GetFeatureWithLockOptions, version: str
) -> dict[str, str]:
    """The same query as ``GetFeature``, with the lock parameters added."""
    params = build_get_feature_kvp(options, version)
    params["request"] = str(WFSOperation.GetFeatureWithLock)
    _apply_optional(params, expiry=options.expiry, lockAction=options.lock_action)
    params.update(options.raw_kvp)
    return params


def build_get_property_value_kvp(options: GetPropertyValueOptions, version: str) -> dict[str, str]:
    params = build_simple_kvp(WFSOperation.GetPropertyValue, version)
    params["valueReference"] = options.value_reference
    params[type_names_parameter(version)] = ",".join(options.type_names)

    # Only WFS 2.0 has this operation, hence this always uses "count".
    _apply_optional(
        params,
        resolvePath=options.resolve_path,
        startIndex=options.start_index,
        count=options.count,
        resultType=options.result_type,
        filter=_build_filter(options.filter, version),
        resolve=options.resolve,
        resolveDepth=options.resolve_depth,
        resolveTimeout=options.resolve_timeout,
    )
    _apply_geoserver_params(params, options.geoserver)
    params.update(options.raw_kvp)
    return params


def build_lock_feature_kvp(options: LockFeatureOptions, version: str) -> dict[str, str]:
    params = build_simple_kvp(WFSOperation.LockFeature, version)
    _apply_optional(
        params, lockId=options.lock_id, expiry=options.expiry, lockAction=options.lock_action
    )
    params.update(options.raw_kvp)
    return params


def build_list_stored_queries_kvp(options: ListStoredQueriesOptions, version: str) -> dict[str, str]:
    return build_simple_kvp(WFSOperation.ListStoredQueries, version, options.raw_kvp)


def build_describe_stored_queries_kvp(
    options: DescribeStoredQueriesOptions, version: str
) -> dict[str, str]:
    params = build_simple_kvp(WFSOperation.DescribeStoredQueries, version, options.raw_kvp)
    if options.stored_query_ids:
        params["storedQueryId"] = ",".join(options.stored_query_ids)
    return params


def build_drop_stored_query_kvp(options: DropStoredQueryOptions, version: str) -> dict[str, str]:
    params = build_simple_kvp(WFSOperation.DropStoredQuery, version, options.raw_kvp)
    params["id"] = options.id
    return params
