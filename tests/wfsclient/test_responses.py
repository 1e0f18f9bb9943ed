"""Prove that the non-feature responses are parsed into their result objects."""

import pytest

from tests.utils import read_file
from wfsclient.exceptions import OWSExceptionItem, ServiceException
from wfsclient.parsers.capabilities import parse_capabilities
from wfsclient.parsers.locks import parse_lock_result
from wfsclient.parsers.ows import DEFAULT_EXCEPTION_TEXT, parse_ows_exceptions
from wfsclient.parsers.stored import (
    parse_create_stored_query,
    parse_describe_stored_queries,
    parse_drop_stored_query,
    parse_list_stored_queries,
)
from wfsclient.parsers.transaction import parse_transaction_result
from wfsclient.types import (
    ActionResult,
    OperationBinding,
    RequestStyle,
    StoredQueryDescription,
    StoredQueryListItem,
    StoredQueryParameter,
    WFSOperation,
)


class TestCapabilities:
    def test_wfs20(self):
        capabilities = parse_capabilities(read_file("capabilities_20.xml"))
        assert capabilities.version == "2.0.0"
        assert capabilities.title == "Example WFS"
        assert capabilities.abstract == "Places and roads."
        assert capabilities.raw is not None

        # Unknown operations are not included.
        assert capabilities.operations == {
            "GetCapabilities": OperationBinding(get="https://wfs.example.com/caps"),
            "GetFeature": OperationBinding(
                get="https://wfs.example.com/get", post="https://wfs.example.com/post"
            ),
            "Transaction": OperationBinding(post="https://wfs.example.com/transaction"),
        }

    def test_wfs11(self):
        capabilities = parse_capabilities(read_file("capabilities_11.xml"))
        assert capabilities.version == "1.1.0"
        assert capabilities.title == "Legacy WFS"
        assert capabilities.abstract is None
        binding = capabilities.get_binding(WFSOperation.GetFeature)
        assert binding.get == "https://legacy.example.com/wfs?"

    def test_binding_fallback(self):
        """Prove that an operation without a POST binding falls back to the GET binding."""
        capabilities = parse_capabilities(read_file("capabilities_20.xml"))
        transaction = capabilities.get_binding("Transaction")
        assert transaction.pick(RequestStyle.GET) == "https://wfs.example.com/transaction"
        get_feature = capabilities.get_binding("GetFeature")
        assert get_feature.pick(RequestStyle.POST) == "https://wfs.example.com/post"
        assert capabilities.get_binding("LockFeature") is None

    def test_not_xml(self):
        capabilities = parse_capabilities({"foo": "bar"})
        assert capabilities.version is None
        assert capabilities.operations == {}
        assert capabilities.raw == {"foo": "bar"}


class TestTransactionResult:
    def test_wfs20(self):
        result = parse_transaction_result(read_file("transaction_response_20.xml"))
        assert result.total_inserted == 2
        assert result.total_updated == 0
        assert result.total_deleted == 1
        assert result.total_replaced is None  # not reported, not zero
        assert result.insert_results == [
            ActionResult(handle="insert-1", resource_ids=["places.10", "places.11"])
        ]
        assert result.update_results == []
        assert result.replace_results == []

    def test_wfs11(self):
        result = parse_transaction_result(read_file("transaction_response_11.xml"))
        assert result.total_inserted == 1
        assert result.total_updated is None
        assert result.insert_results == [ActionResult(resource_ids=["roads.99"])]

    def test_other_document(self):
        result = parse_transaction_result("<other/>")
        assert result.total_inserted is None
        assert result.insert_results == []


class TestLockResult:
    def test_wfs20(self):
        result = parse_lock_result(read_file("lock_response_20.xml"))
        assert result.lock_id == "lock-20"
        assert result.locked_resource_ids == ["places.1", "places.2"]
        assert result.not_locked_resource_ids == ["places.3"]

    def test_wfs11(self):
        """Prove that the LockId element of WFS 1.1 is read."""
        result = parse_lock_result(read_file("lock_response_11.xml"))
        assert result.lock_id == "lock-11"
        assert result.locked_resource_ids == ["roads.1"]
        assert result.not_locked_resource_ids == ["roads.2"]

    def test_not_xml(self):
        result = parse_lock_result("")
        assert result.lock_id is None
        assert result.locked_resource_ids == []


class TestStoredQueries:
    def test_list(self):
        assert parse_list_stored_queries(read_file("list_stored_queries.xml")) == [
            StoredQueryListItem(
                id="urn:ogc:def:query:OGC-WFS::GetFeatureById",
                titles=["Get feature by identifier"],
                return_feature_types=["app:places", "app:roads"],
            ),
            StoredQueryListItem(id="placesByName", return_feature_types=["app:places"]),
        ]

    def test_describe(self):
        assert parse_describe_stored_queries(read_file("describe_stored_queries.xml")) == [
            StoredQueryDescription(
                id="placesByName",
                titles=["Places by name"],
                abstracts=["Find the places with a given name."],
                parameters=[
                    StoredQueryParameter(name="name", type="xs:string"),
                    StoredQueryParameter(name="limit", type="xsd:string"),
                ],
            )
        ]

    def test_not_xml(self):
        assert parse_list_stored_queries({}) == []
        assert parse_describe_stored_queries(None) == []

    @pytest.mark.parametrize(
        "payload,expected",
        [
            ('<wfs:CreateStoredQueryResponse xmlns:wfs="urn:x" status="OK"/>', "OK"),
            ('<wfs:CreateStoredQueryResponse xmlns:wfs="urn:x" status="FAILED"/>', "FAILED"),
            ("<CreateStoredQueryResponse> DONE </CreateStoredQueryResponse>", "DONE"),
            ("<other/>", "OK"),
            ("", "OK"),
            ({"status": "OK"}, "UNKNOWN"),
        ],
    )
    def test_create(self, payload, expected):
        assert parse_create_stored_query(payload).status == expected

    def test_drop(self):
        result = parse_drop_stored_query('<DropStoredQueryResponse status="OK"/>')
        assert result.status == "OK"
        assert result.raw is not None


class TestOWSExceptionsXml:
    def test_single(self):
        exceptions = parse_ows_exceptions(read_file("exception_report.xml"))
        assert exceptions == [
            OWSExceptionItem(
                text="Failed to find response for output format application/json",
                code="InvalidParameterValue",
                locator="outputFormat",
            )
        ]

    def test_multiple(self):
        """Prove that all texts are joined, and empty exceptions get a default text."""
        exceptions = parse_ows_exceptions(read_file("exception_report_multiple.xml"))
        assert exceptions == [
            OWSExceptionItem(
                text="The query should specify a typeName.\nSee the documentation for details.",
                code="MissingParameterValue",
                locator="typeName",
            ),
            OWSExceptionItem(text=DEFAULT_EXCEPTION_TEXT),
        ]

    def test_service_exception_report(self):
        xml = (
            "<ServiceExceptionReport>"
            '<ServiceException code="InvalidFormat">Unknown format</ServiceException>'
            "</ServiceExceptionReport>"
        )
        assert parse_ows_exceptions(xml) == [
            OWSExceptionItem(text="Unknown format", code="InvalidFormat")
        ]

    @pytest.mark.parametrize(
        "payload", ["", "<html><body>Bad gateway</body></html>", "<html><br></html>", b"plain", None]
    )
    def test_no_report(self, payload):
        """Prove that other payloads (e.g. a proxy error page) give no exceptions."""
        assert parse_ows_exceptions(payload) == []


class TestOWSExceptionsJson:
    def test_exception_report(self):
        data = {
            "ExceptionReport": {
                "Exception": [
                    {
                        "exceptionCode": "InvalidParameterValue",
                        "locator": "typeNames",
                        "exceptionText": ["Unknown type", "app:foo"],
                    }
                ]
            }
        }
        assert parse_ows_exceptions(data) == [
            OWSExceptionItem(
                text="Unknown type\napp:foo", code="InvalidParameterValue", locator="typeNames"
            )
        ]

    def test_exceptions_list(self):
        data = {"exceptions": [{"code": 42, "text": "Broken"}, "ignored"]}
        assert parse_ows_exceptions(data) == [OWSExceptionItem(text="Broken", code="42")]

    def test_inline(self):
        data = {"error": {"code": "NoApplicableCode", "message": "Internal error"}}
        assert parse_ows_exceptions(data) == [
            OWSExceptionItem(text="Internal error", code="NoApplicableCode")
        ]

    def test_no_report(self):
        assert parse_ows_exceptions({"type": "FeatureCollection", "features": []}) == []
        assert parse_ows_exceptions([{"code": "x"}]) == []


class TestServiceException:
    def test_message(self):
        exc = ServiceException(
            "GetFeature",
            [OWSExceptionItem(text="Bad value", code="InvalidParameterValue", locator="count")],
            status=400,
        )
        assert str(exc) == (
            "WFS GetFeature failed with status 400: "
            "InvalidParameterValue: Bad value (locator: count)"
        )
        assert exc.codes == ["InvalidParameterValue"]

    @pytest.mark.parametrize(
        "item,expected",
        [
            (OWSExceptionItem(text="x", code="InvalidParameterValue"), True),
            (OWSExceptionItem(text="x", locator="outputFormat"), True),
            (OWSExceptionItem(text="Unknown outputFormat requested"), True),
            (OWSExceptionItem(text="x", code="MissingParameterValue", locator="typeName"), False),
        ],
    )
    def test_is_output_format_error(self, item, expected):
        assert ServiceException("GetFeature", [item]).is_output_format_error() is expected
