"""Prove that GeoJSON geometries and features are properly encoded as GML."""

import pytest

from wfsclient.crs import AxisOrderStrategy
from wfsclient.exceptions import InvalidQName
from wfsclient.output.gml import (
    build_value_reference,
    feature_to_insert_xml,
    format_coordinate,
    geometry_to_gml,
)
from wfsclient.output.namespaces import default_namespaces
from wfsclient.parsers.gml import parse_geometry
from wfsclient.parsers.xml import parse_xml_from_string


class TestGeometryToGML:
    def test_point(self):
        xml = geometry_to_gml({"type": "Point", "coordinates": [5.0, 52.25]}, "2.0.0", "EPSG:4326")
        assert xml == '<gml:Point srsName="EPSG:4326"><gml:pos>5 52.25</gml:pos></gml:Point>'

    def test_line_string(self):
        xml = geometry_to_gml({"type": "LineString", "coordinates": [[1, 2], [3, 4]]}, "1.1.0")
        assert xml == "<gml:LineString><gml:posList>1 2 3 4</gml:posList></gml:LineString>"

    def test_polygon_with_hole(self):
        """Prove that the first ring becomes the exterior, the others are interior rings."""
        xml = geometry_to_gml(
            {
                "type": "Polygon",
                "coordinates": [
                    [[0, 0], [10, 0], [10, 10], [0, 0]],
                    [[2, 2], [4, 2], [4, 4], [2, 2]],
                ],
            },
            "2.0.0",
        )
        assert xml == (
            "<gml:Polygon>"
            "<gml:exterior><gml:LinearRing>"
            "<gml:posList>0 0 10 0 10 10 0 0</gml:posList>"
            "</gml:LinearRing></gml:exterior>"
            "<gml:interior><gml:LinearRing>"
            "<gml:posList>2 2 4 2 4 4 2 2</gml:posList>"
            "</gml:LinearRing></gml:interior>"
            "</gml:Polygon>"
        )

    def test_multi_point(self):
        """Prove that only the outer element receives the srsName."""
        xml = geometry_to_gml(
            {"type": "MultiPoint", "coordinates": [[1, 2], [3, 4]]}, "2.0.0", "EPSG:28992"
        )
        assert xml == (
            '<gml:MultiPoint srsName="EPSG:28992">'
            "<gml:pointMember><gml:Point><gml:pos>1 2</gml:pos></gml:Point></gml:pointMember>"
            "<gml:pointMember><gml:Point><gml:pos>3 4</gml:pos></gml:Point></gml:pointMember>"
            "</gml:MultiPoint>"
        )

    def test_multi_line_string(self):
        xml = geometry_to_gml({"type": "MultiLineString", "coordinates": [[[1, 2], [3, 4]]]}, "2.0.0")
        assert xml == (
            "<gml:MultiLineString><gml:lineStringMember>"
            "<gml:LineString><gml:posList>1 2 3 4</gml:posList></gml:LineString>"
            "</gml:lineStringMember></gml:MultiLineString>"
        )

    def test_multi_polygon(self):
        xml = geometry_to_gml(
            {"type": "MultiPolygon", "coordinates": [[[[0, 0], [1, 0], [1, 1], [0, 0]]]]}, "2.0.0"
        )
        assert xml.startswith("<gml:MultiPolygon><gml:polygonMember><gml:Polygon><gml:exterior>")

    def test_unsupported(self):
        geometry = {"type": "GeometryCollection", "geometries": []}
        assert geometry_to_gml(geometry, "2.0.0") == ""


POLYGON_WITH_HOLE = [
    [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]],
    [[2, 2], [4, 2], [4, 4], [2, 2]],
]


class TestGeometryRoundTrip:
    """Prove that decoding the generated GML gives back the original geometry."""

    @pytest.mark.parametrize("version", ["1.1.0", "2.0.0"])
    @pytest.mark.parametrize(
        "geometry",
        [
            {"type": "Point", "coordinates": [5.5, 52.25]},
            {"type": "LineString", "coordinates": [[1, 2], [3, 4], [5, 6]]},
            {"type": "Polygon", "coordinates": POLYGON_WITH_HOLE},
            {"type": "MultiPoint", "coordinates": [[1, 2], [3, 4]]},
            {"type": "MultiLineString", "coordinates": [[[1, 2], [3, 4]], [[5, 6], [7, 8]]]},
            {
                "type": "MultiPolygon",
                "coordinates": [POLYGON_WITH_HOLE, [[[20, 20], [30, 20], [30, 30], [20, 20]]]],
            },
        ],
        ids=lambda geometry: geometry["type"],
    )
    def test_round_trip(self, geometry, version):
        xml = geometry_to_gml(geometry, version, "EPSG:4326")
        # Only the outer element has the srsName, which also receives the namespace declaration.
        namespace = default_namespaces(version)["gml"]
        xml = xml.replace(" srsName=", f' xmlns:gml="{namespace}" srsName=', 1)

        element = parse_xml_from_string(xml)
        assert parse_geometry(element, AxisOrderStrategy.preserve) == geometry


@pytest.mark.parametrize(
    "value,expected",
    [(1.0, "1"), (-0.0, "0"), (1.5, "1.5"), (3, "3"), (121400.25, "121400.25")],
)
def test_format_coordinate(value, expected):
    assert format_coordinate(value) == expected


class TestFeatureToInsertXml:
    def test_feature(self):
        """Prove that properties are placed in the namespace of the feature type."""
        feature = {
            "type": "Feature",
            "id": "places.1",
            "properties": {"name": "Café & Bar", "rating": 4, "note": None, "empty": ""},
            "geometry": {"type": "Point", "coordinates": [1, 2]},
        }
        xml = feature_to_insert_xml(feature, "app:places", "2.0.0", srs_name="EPSG:4326")
        assert xml == (
            '<app:places gml:id="places.1">'
            "<app:name>Café &amp; Bar</app:name>"
            "<app:rating>4</app:rating>"
            '<app:geometry><gml:Point srsName="EPSG:4326"><gml:pos>1 2</gml:pos></gml:Point></app:geometry>'
            "</app:places>"
        )

    def test_geometry_property_name(self):
        feature = {"properties": {"other:name": "x"}, "geometry": {"type": "Point", "coordinates": [1, 2]}}
        xml = feature_to_insert_xml(feature, "app:places", "2.0.0", geometry_property_name="the_geom")
        assert xml == (
            "<app:places>"
            "<other:name>x</other:name>"
            "<app:the_geom><gml:Point><gml:pos>1 2</gml:pos></gml:Point></app:the_geom>"
            "</app:places>"
        )

    def test_invalid_type_name(self):
        with pytest.raises(InvalidQName):
            feature_to_insert_xml({"properties": {}}, "app:places:x", "2.0.0")

    def test_invalid_property(self):
        with pytest.raises(InvalidQName):
            feature_to_insert_xml({"properties": {"not valid": 1}}, "app:places", "2.0.0")


def test_value_reference():
    assert build_value_reference("app:name", "2.0.0").render() == (
        "<fes:ValueReference>app:name</fes:ValueReference>"
    )
    assert build_value_reference("app:name", "1.1.0").render() == (
        "<ogc:PropertyName>app:name</ogc:PropertyName>"
    )
