from datetime import datetime, timezone

from wfsclient.output.tree import RawXml, SplicePosition, Text, XmlElement, XmlOverride, render


def _document():
    return XmlElement(
        "wfs:GetFeature",
        {"service": "WFS", "count": None, "resultType": ""},
        [
            XmlElement("wfs:Query", {"typeNames": "app:places"}),
            XmlElement("wfs:Query", {"typeNames": "app:roads"}),
        ],
    )


class TestXmlElement:
    def test_render(self):
        """Prove that empty attributes are left out, and empty elements are self-closing."""
        assert _document().render() == (
            '<wfs:GetFeature service="WFS">'
            '<wfs:Query typeNames="app:places"/>'
            '<wfs:Query typeNames="app:roads"/>'
            "</wfs:GetFeature>"
        )

    def test_values(self):
        element = XmlElement(
            "app:item",
            {"flag": True, "text": 'a "quoted" <value>'},
            [Text(datetime(2024, 5, 1, 12, tzinfo=timezone.utc)), RawXml("<b/>")],
        )
        assert element.render() == (
            '<app:item flag="true" text="a &quot;quoted&quot; &lt;value&gt;">'
            "2024-05-01T12:00:00+00:00<b/>"
            "</app:item>"
        )

    def test_append_none(self):
        element = XmlElement("a")
        element.append(None)
        element.extend([None, XmlElement("b")])
        assert str(element) == "<a><b/></a>"

    def test_find(self):
        document = _document()
        assert document.find("wfs:Query").attrib["typeNames"] == "app:places"
        assert document.find("fes:Filter") is None


class TestXmlOverrides:
    """Prove that literal XML can be spliced into the generated document."""

    def test_after(self):
        xml = render(_document(), [XmlOverride("wfs:Query", "<vendor:Hint/>")])
        assert xml == (
            '<wfs:GetFeature service="WFS">'
            '<wfs:Query typeNames="app:places"/>'
            "<vendor:Hint/>"
            '<wfs:Query typeNames="app:roads"/>'
            "</wfs:GetFeature>"
        )

    def test_before(self):
        xml = render(_document(), [XmlOverride("wfs:Query", "<vendor:Hint/>", "before")])
        assert xml.startswith('<wfs:GetFeature service="WFS"><vendor:Hint/><wfs:Query')

    def test_replace(self):
        override = XmlOverride("wfs:Query", "<wfs:StoredQuery id='x'/>", SplicePosition.replace)
        xml = render(_document(), [override])
        assert xml == (
            '<wfs:GetFeature service="WFS">'
            "<wfs:StoredQuery id='x'/>"
            '<wfs:Query typeNames="app:roads"/>'
            "</wfs:GetFeature>"
        )

    def test_root_target(self):
        """Prove that the root element itself can be targeted."""
        xml = render(XmlElement("wfs:GetFeature"), [XmlOverride("wfs:GetFeature", "<!-- end -->")])
        assert xml == "<wfs:GetFeature/><!-- end -->"

    def test_replace_root(self):
        """Prove that replacing a self-closing root gives exactly the override XML."""
        override = XmlOverride("wfs:GetCapabilities", "<custom/>", "replace")
        assert render(XmlElement("wfs:GetCapabilities"), [override]) == "<custom/>"

    def test_missing_target(self):
        """Prove that overrides for absent elements are ignored."""
        xml = render(_document(), [XmlOverride("fes:Filter", "<x/>")])
        assert xml == _document().render()

    def test_order(self):
        """Prove that overrides are applied in the given ordering."""
        xml = render(
            XmlElement("root", children=[XmlElement("a")]),
            [XmlOverride("a", "<one/>"), XmlOverride("a", "<two/>")],
        )
        assert xml == "<root><a/><two/><one/></root>"
