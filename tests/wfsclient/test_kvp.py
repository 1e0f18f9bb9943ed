"""Prove that the GET request parameters are properly generated."""

from tests.utils import parse_xml
from wfsclient.filters import Comparison, ComparisonOp
from wfsclient.operations.base import (
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
    RawRequestOptions,
)
from wfsclient.operations.kvp import (
    build_capabilities_kvp,
    build_describe_feature_type_kvp,
    build_describe_stored_queries_kvp,
    build_drop_stored_query_kvp,
    build_get_feature_kvp,
    build_get_feature_with_lock_kvp,
    build_get_property_value_kvp,
    build_list_stored_queries_kvp,
    build_lock_feature_kvp,
)


class TestGetCapabilities:
    def test_defaults(self):
        """Prove that the requested version is also sent as acceptVersions."""
        assert build_capabilities_kvp(GetCapabilitiesOptions(), "2.0.2") == {
            "service": "WFS",
            "version": "2.0.2",
            "request": "GetCapabilities",
            "acceptVersions": "2.0.2",
        }

    def test_accept_versions(self):
        params = build_capabilities_kvp(
            GetCapabilitiesOptions(accept_versions=["2.0.0", "1.1.0"]), "2.0.0"
        )
        assert params["acceptVersions"] == "2.0.0,1.1.0"


def test_describe_feature_type():
    options = DescribeFeatureTypeOptions(
        type_names=["app:places", "app:roads"], output_format="application/json"
    )
    assert build_describe_feature_type_kvp(options, "1.1.0") == {
        "service": "WFS",
        "version": "1.1.0",
        "request": "DescribeFeatureType",
        "typeName": "app:places,app:roads",
        "outputFormat": "application/json",
    }


class TestGetFeature:
    def test_wfs20(self):
        options = GetFeatureOptions(
            type_names=["app:places"],
            srs_name="EPSG:4326",
            property_names=["app:name", "app:rating"],
            output_format="application/json",
            start_index=5,
            count=10,
            result_type="hits",
            bbox=(1.0, 2, 3.5, 4),
        )
        assert build_get_feature_kvp(options, "2.0.0") == {
            "service": "WFS",
            "version": "2.0.0",
            "request": "GetFeature",
            "typeNames": "app:places",
            "outputFormat": "application/json",
            "srsName": "EPSG:4326",
            "propertyName": "app:name,app:rating",
            "startIndex": "5",
            "count": "10",
            "resultType": "hits",
            "bbox": "1,2,3.5,4,EPSG:4326",
        }

    def test_wfs11(self):
        """Prove that WFS 1.1 uses typeName and maxFeatures."""
        options = GetFeatureOptions(type_names=["app:places"], count=0, bbox=(1, 2, 3, 4))
        assert build_get_feature_kvp(options, "1.1.0") == {
            "service": "WFS",
            "version": "1.1.0",
            "request": "GetFeature",
            "typeName": "app:places",
            "maxFeatures": "0",
            "bbox": "1,2,3,4",
        }

    def test_filter(self):
        """Prove that the filter is sent as standalone XML document."""
        options = GetFeatureOptions(
            type_names=["app:places"],
            filter=Comparison(ComparisonOp.eq, "app:name", "Park"),
        )
        params = build_get_feature_kvp(options, "2.0.0")
        root = parse_xml(params["filter"])
        assert root.tag == "{http://www.opengis.net/fes/2.0}Filter"

    def test_resolve(self):
        options = GetFeatureOptions(
            type_names=["app:places"], resolve="local", resolve_depth="*", resolve_timeout=30
        )
        params = build_get_feature_kvp(options, "2.0.0")
        assert params["resolve"] == "local"
        assert params["resolveDepth"] == "*"
        assert params["resolveTimeout"] == "30"

    def test_geoserver(self):
        options = GetFeatureOptions(
            type_names=["app:places"],
            geoserver=GeoServerOptions(
                cql_filter="rating > 3",
                view_params="low:1;high:5",
                format_options="callback:cb",
                vendor_params={"env": "color:red"},
            ),
        )
        params = build_get_feature_kvp(options, "2.0.0")
        assert params["cql_filter"] == "rating > 3"
        assert params["viewParams"] == "low:1;high:5"
        assert params["format_options"] == "callback:cb"
        assert params["env"] == "color:red"

    def test_raw_kvp(self):
        """Prove that the raw parameters override the generated parameters."""
        options = GetFeatureOptions(
            type_names=["app:places"],
            count=10,
            raw=RawRequestOptions(kvp={"count": "99", "foo": "bar"}),
        )
        params = build_get_feature_kvp(options, "2.0.0")
        assert params["count"] == "99"
        assert params["foo"] == "bar"


def test_get_feature_with_lock():
    options = GetFeatureWithLockOptions(type_names=["app:places"], expiry=5, lock_action="SOME")
    params = build_get_feature_with_lock_kvp(options, "2.0.0")
    assert params["request"] == "GetFeatureWithLock"
    assert params["expiry"] == "5"
    assert params["lockAction"] == "SOME"
    assert params["typeNames"] == "app:places"


def test_get_property_value():
    options = GetPropertyValueOptions(
        type_names=["app:places"], value_reference="app:name", count=3, resolve_path="app:x"
    )
    assert build_get_property_value_kvp(options, "2.0.2") == {
        "service": "WFS",
        "version": "2.0.2",
        "request": "GetPropertyValue",
        "valueReference": "app:name",
        "typeNames": "app:places",
        "resolvePath": "app:x",
        "count": "3",
    }


def test_lock_feature():
    options = LockFeatureOptions(lock_id="lock-1", expiry=2, lock_action="ALL")
    params = build_lock_feature_kvp(options, "2.0.0")
    assert params["request"] == "LockFeature"
    assert params["lockId"] == "lock-1"
    assert params["expiry"] == "2"
    assert params["lockAction"] == "ALL"


class TestStoredQueries:
    def test_list(self):
        assert build_list_stored_queries_kvp(ListStoredQueriesOptions(), "2.0.0") == {
            "service": "WFS",
            "version": "2.0.0",
            "request": "ListStoredQueries",
        }

    def test_describe(self):
        options = DescribeStoredQueriesOptions(stored_query_ids=["q1", "q2"])
        params = build_describe_stored_queries_kvp(options, "2.0.0")
        assert params["storedQueryId"] == "q1,q2"

    def test_drop(self):
        params = build_drop_stored_query_kvp(DropStoredQueryOptions(id="q1"), "2.0.0")
        assert params["request"] == "DropStoredQuery"
        assert params["id"] == "q1"
