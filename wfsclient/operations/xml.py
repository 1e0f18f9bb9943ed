"""Build the XML request bodies (POST encoding) of the WFS operations.

Each builder constructs an element tree, declares the namespaces that the request
references on the root element, and applies the ``raw.xml_overrides`` as final step.
"""

from __future__ import annotations

import logging

from wfsclient.geometries import GEOMETRY_TYPES
from wfsclient.output.fes import build_bbox_filter_element, build_filter_element
from wfsclient.output.gml import build_feature_element, build_geometry_element
from wfsclient.output.namespaces import (
    collect_filter_prefixes,
    collect_qname_prefixes,
    collect_type_name_prefixes,
    resolve_namespaces,
)
from wfsclient.output.tree import RawXml, Text, XmlElement, render
from wfsclient.types import WFSOperation, is_wfs1

from .base import (
    CreateStoredQueryOptions,
    DeleteAction,
    DescribeFeatureTypeOptions,
    DescribeStoredQueriesOptions,
    DropStoredQueryOptions,
    GetCapabilitiesOptions,
    GetFeatureOptions,
    GetFeatureWithLockOptions,
    GetPropertyValueOptions,
    InsertAction,
    ListStoredQueriesOptions,
    LockFeatureOptions,
    NativeAction,
    ReplaceAction,
    SerializerContext,
    StoredQueryDefinition,
    TransactionOptions,
    UpdateAction,
    UpdateProperty,
)
from .kvp import type_names_parameter

logger = logging.getLogger(__name__)

__all__ = (
    "build_get_capabilities_xml",
    "build_describe_feature_type_xml",
    "build_get_feature_xml",
    "build_get_feature_with_lock_xml",
    "build_get_property_value_xml",
    "build_transaction_xml",
    "build_lock_feature_xml",
    "build_list_stored_queries_xml",
    "build_describe_stored_queries_xml",
    "build_create_stored_query_xml",
    "build_drop_stored_query_xml",
)


def _root(
    operation: WFSOperation, ctx: SerializerContext, required_prefixes=(), **attrib
) -> XmlElement:
    """Build the root element, with all namespace declarations."""
    namespaces = resolve_namespaces(ctx.version, ctx.namespaces, required_prefixes)
    root_attrib = {f"xmlns:{prefix}": uri for prefix, uri in namespaces.items()}
    root_attrib["service"] = "WFS"
    root_attrib["version"] = ctx.version
    root_attrib.update(attrib)
    return XmlElement(f"wfs:{operation}", root_attrib)


def _text_element(tag: str, value) -> XmlElement | None:
    return XmlElement(tag, children=[Text(value)]) if value else None


def _paging_attributes(options, version: str) -> dict:
    return {
        "startIndex": options.start_index,
        "maxFeatures" if is_wfs1(version) else "count": options.count,
        "resultType": options.result_type,
        "resolve": options.resolve,
        "resolveDepth": options.resolve_depth,
        "resolveTimeout": options.resolve_timeout,
    }


def _query_filter(options, version: str) -> XmlElement | None:
    if options.filter is not None:
        return build_filter_element(options.filter, version)
    elif getattr(options, "bbox", None):
        return build_bbox_filter_element(options.bbox, version)
    else:
        return None


def _xml_hints(options) -> list[RawXml]:
    hints = options.geoserver.xml_hints if options.geoserver is not None else None
    return [RawXml(hint) for hint in hints or ()]


def build_get_capabilities_xml(options: GetCapabilitiesOptions, ctx: SerializerContext) -> str:
    root = _root(WFSOperation.GetCapabilities, ctx)
    if options.accept_versions:
        root.append(
            XmlElement(
                "ows:AcceptVersions",
                children=[_text_element("ows:Version", v) for v in options.accept_versions],
            )
        )
    return render(root, options.xml_overrides)


def build_describe_feature_type_xml(
    options: DescribeFeatureTypeOptions, ctx: SerializerContext
) -> str:
    required = set()
    collect_type_name_prefixes(options.type_names, required)
    root = _root(
        WFSOperation.DescribeFeatureType, ctx, required, outputFormat=options.output_format
    )
    root.extend(_text_element("wfs:TypeName", type_name) for type_name in options.type_names)
    return render(root, options.xml_overrides)


def _build_get_feature_tree(options: GetFeatureOptions, ctx: SerializerContext) -> XmlElement:
    required = set()
    collect_type_name_prefixes(options.type_names, required)
    for property_name in options.property_names:
        collect_qname_prefixes(property_name, required)
    collect_filter_prefixes(options.filter, required)

    query = XmlElement(
        "wfs:Query",
        {
            type_names_parameter(ctx.version): " ".join(options.type_names),
            "srsName": options.srs_name,
        },
    )
    query.extend(_text_element("wfs:PropertyName", name) for name in options.property_names)
    query.append(_query_filter(options, ctx.version))

    root = _root(
        WFSOperation.GetFeature,
        ctx,
        required,
        outputFormat=options.output_format,
        **_paging_attributes(options, ctx.version),
    )
    root.append(query)
    root.extend(_xml_hints(options))
    return root


def build_get_feature_xml(options: GetFeatureOptions, ctx: SerializerContext) -> str:
    return render(_build_get_feature_tree(options, ctx), options.xml_overrides)


def build_get_feature_with_lock_xml(
    options: GetFeatureWithLockOptions, ctx: SerializerContext
) -> str:
    """Build the ``GetFeatureWithLock`` request.

    This reuses the ``GetFeature`` document, so the query is identical for both operations.
    """
    root = _build_get_feature_tree(options, ctx)
    root.tag = f"wfs:{WFSOperation.GetFeatureWithLock}"
    root.attrib["expiry"] = options.expiry
    root.attrib["lockAction"] = options.lock_action
    return render(root, options.xml_overrides)


def build_get_property_value_xml(options: GetPropertyValueOptions, ctx: SerializerContext) -> str:
    required = set()
    collect_type_name_prefixes(options.type_names, required)
    collect_qname_prefixes(options.value_reference, required)
    collect_filter_prefixes(options.filter, required)

    query = XmlElement(
        "wfs:Query", {type_names_parameter(ctx.version): " ".join(options.type_names)}
    )
    query.append(_query_filter(options, ctx.version))

    root = _root(
        WFSOperation.GetPropertyValue,
        ctx,
        required,
        valueReference=options.value_reference,
        resolvePath=options.resolve_path,
        **_paging_attributes(options, ctx.version),
    )
    root.append(query)
    root.extend(_xml_hints(options))
    return render(root, options.xml_overrides)


def _build_update_property(update: UpdateProperty, version: str) -> XmlElement:
    if is_wfs1(version):
        name = XmlElement("wfs:Name", children=[Text(update.name)])
    else:
        name = XmlElement("wfs:ValueReference", {"action": update.action}, [Text(update.name)])

    element = XmlElement("wfs:Property", children=[name])
    if update.value is not None:
        value = update.value
        if isinstance(value, dict) and value.get("type") in GEOMETRY_TYPES:
            # A geometry value is written as GML, not as JSON text.
            element.append(XmlElement("wfs:Value", children=[build_geometry_element(value)]))
        else:
            element.append(XmlElement("wfs:Value", children=[Text(value)]))
    return element


def _build_action(action, options: TransactionOptions, version: str) -> XmlElement | None:
    srs_name = getattr(action, "srs_name", None) or options.srs_name
    if isinstance(action, InsertAction):
        element = XmlElement(
            "wfs:Insert",
            {"handle": action.handle, "inputFormat": action.input_format, "srsName": srs_name},
        )
        element.extend(
            build_feature_element(
                feature,
                action.type_name,
                geometry_property_name=action.geometry_property_name,
                srs_name=srs_name,
            )
            for feature in action.features
        )
        return element
    elif isinstance(action, UpdateAction):
        element = XmlElement(
            "wfs:Update",
            {
                "typeName": action.type_name,
                "handle": action.handle,
                "inputFormat": action.input_format,
                "srsName": srs_name,
            },
        )
        element.extend(_build_update_property(update, version) for update in action.properties)
        if action.filter is not None:
            element.append(build_filter_element(action.filter, version, srs_name=srs_name))
        return element
    elif isinstance(action, ReplaceAction):
        return XmlElement(
            "wfs:Replace",
            {"handle": action.handle, "inputFormat": action.input_format, "srsName": srs_name},
            [
                build_feature_element(
                    action.feature,
                    action.type_name,
                    geometry_property_name=action.geometry_property_name,
                    srs_name=srs_name,
                ),
                build_filter_element(action.filter, version, srs_name=srs_name),
            ],
        )
    elif isinstance(action, DeleteAction):
        return XmlElement(
            "wfs:Delete",
            {"typeName": action.type_name, "handle": action.handle},
            [build_filter_element(action.filter, version, srs_name=options.srs_name)],
        )
    elif isinstance(action, NativeAction):
        # Both attributes are always written, the server needs to know whether to fail.
        return XmlElement(
            "wfs:Native",
            {
                "vendorId": action.vendor_id,
                "safeToIgnore": bool(action.safe_to_ignore),
                "handle": action.handle,
            },
            [RawXml(action.any_xml) if action.any_xml is not None else Text(action.value or "")],
        )
    else:
        logger.debug("Unknown transaction action %r, skipped.", action)
        return None


def build_transaction_xml(options: TransactionOptions, ctx: SerializerContext) -> str:
    required = set()
    for action in options.actions:
        for qname in action.iter_qnames():
            collect_qname_prefixes(qname, required)
        collect_filter_prefixes(action.get_filter(), required)

    root = _root(
        WFSOperation.Transaction,
        ctx,
        required,
        lockId=options.lock_id,
        releaseAction=options.release_action,
        srsName=options.srs_name,
    )
    root.extend(_build_action(action, options, ctx.version) for action in options.actions)
    return render(root, options.xml_overrides)


def build_lock_feature_xml(options: LockFeatureOptions, ctx: SerializerContext) -> str:
    """Build the ``LockFeature`` request.

    WFS 1.1 selects the features with a ``<wfs:Lock>`` element, WFS 2.0 uses ``<wfs:Query>``.
    """
    required = set()
    collect_type_name_prefixes(options.type_names, required)
    collect_filter_prefixes(options.filter, required)

    root = _root(
        WFSOperation.LockFeature,
        ctx,
        required,
        lockId=options.lock_id,
        expiry=options.expiry,
        lockAction=options.lock_action,
    )
    if options.type_names:
        query = XmlElement(
            "wfs:Lock" if is_wfs1(ctx.version) else "wfs:Query",
            {type_names_parameter(ctx.version): " ".join(options.type_names)},
        )
        if options.filter is not None:
            query.append(build_filter_element(options.filter, ctx.version))
        root.append(query)

    return render(root, options.xml_overrides)


def build_list_stored_queries_xml(options: ListStoredQueriesOptions, ctx: SerializerContext) -> str:
    return render(_root(WFSOperation.ListStoredQueries, ctx), options.xml_overrides)


def build_describe_stored_queries_xml(
    options: DescribeStoredQueriesOptions, ctx: SerializerContext
) -> str:
    root = _root(WFSOperation.DescribeStoredQueries, ctx)
    root.extend(_text_element("wfs:StoredQueryId", id) for id in options.stored_query_ids)
    return render(root, options.xml_overrides)


def _build_stored_query_definition(definition: StoredQueryDefinition) -> XmlElement:
    element = XmlElement("wfs:StoredQueryDefinition", {"id": definition.id})
    element.append(_text_element("wfs:Title", definition.title))
    element.append(_text_element("wfs:Abstract", definition.abstract))
    for parameter in definition.parameters:
        element.append(
            XmlElement(
                "wfs:Parameter",
                {"name": parameter.name, "type": parameter.type},
                [
                    child
                    for child in (
                        _text_element("wfs:Title", parameter.title),
                        _text_element("wfs:Abstract", parameter.abstract),
                    )
                    if child is not None
                ],
            )
        )
    for query in definition.query_expression_texts:
        element.append(
            XmlElement(
                "wfs:QueryExpressionText",
                {
                    "returnFeatureTypes": " ".join(query.return_feature_types),
                    "language": query.language,
                    "isPrivate": bool(query.is_private),
                },
                [RawXml(query.xml)],
            )
        )
    return element


def build_create_stored_query_xml(options: CreateStoredQueryOptions, ctx: SerializerContext) -> str:
    root = _root(WFSOperation.CreateStoredQuery, ctx)
    root.extend(_build_stored_query_definition(definition) for definition in options.definitions)
    return render(root, options.xml_overrides)


def build_drop_stored_query_xml(options: DropStoredQueryOptions, ctx: SerializerContext) -> str:
    return render(_root(WFSOperation.DropStoredQuery, ctx, id=options.id), options.xml_overrides)
