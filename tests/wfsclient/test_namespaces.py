import pytest

from wfsclient.exceptions import CodecError, InvalidQName, MissingNamespaceMapping
from wfsclient.filters import Comparison, ComparisonOp
from wfsclient.output.namespaces import (
    collect_filter_prefixes,
    collect_qname_prefixes,
    collect_type_name_prefixes,
    default_namespaces,
    resolve_namespaces,
    split_qname,
)


class TestCollectPrefixes:
    def test_type_names(self):
        """Prove that joins and aliases are handled."""
        out = set()
        collect_type_name_prefixes(["app:places", "topp:roads=r app:rivers", "plain"], out)
        assert out == {"app", "topp"}

    def test_xpath(self):
        out = set()
        collect_qname_prefixes("app:address/addr:street", out)
        assert out == {"app", "addr"}

    def test_filter(self):
        out = set()
        collect_filter_prefixes(Comparison(ComparisonOp.eq, "app:name", "x"), out)
        collect_filter_prefixes(None, out)
        assert out == {"app"}


class TestResolveNamespaces:
    def test_defaults(self):
        """Prove that the protocol namespaces differ per version."""
        assert default_namespaces("1.1.0")["wfs"] == "http://www.opengis.net/wfs"
        assert default_namespaces("2.0.2")["wfs"] == "http://www.opengis.net/wfs/2.0"
        assert default_namespaces("2.0.0")["fes"] == "http://www.opengis.net/fes/2.0"

    def test_ordering(self):
        """Prove that the protocol prefixes come first, then the others alphabetically."""
        result = resolve_namespaces(
            "2.0.0", {"zz": "http://example.org/zz", "app": "http://example.org/app"}, {"app"}
        )
        assert list(result) == ["wfs", "gml", "fes", "ogc", "ows", "xlink", "app", "zz"]

    def test_override(self):
        result = resolve_namespaces("2.0.0", {"gml": "http://www.opengis.net/gml"})
        assert result["gml"] == "http://www.opengis.net/gml"

    def test_missing(self):
        """Prove that an unknown prefix is reported before anything is sent."""
        with pytest.raises(MissingNamespaceMapping) as exc_info:
            resolve_namespaces("2.0.0", {}, {"topp"})

        assert exc_info.value.prefix == "topp"
        assert isinstance(exc_info.value, CodecError)
        assert isinstance(exc_info.value, ValueError)

    def test_reserved_prefixes(self):
        """Prove that protocol prefixes never need a mapping."""
        result = resolve_namespaces("1.1.0", None, {"wfs", "gml", "xml"})
        assert "xml" not in result


class TestSplitQName:
    def test_prefixed(self):
        assert split_qname(" app:places ") == ("app", "places")

    def test_local(self):
        assert split_qname("places") == (None, "places")

    @pytest.mark.parametrize("value", ["", "  ", "app:", ":places", "1abc", "a:b:c", "with space"])
    def test_invalid(self, value):
        with pytest.raises(InvalidQName) as exc_info:
            split_qname(value)

        assert exc_info.value.value == value
