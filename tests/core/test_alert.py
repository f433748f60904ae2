"""Tests for the alert feed decoding module.

Tests are pure - no mocking needed since functions have no side effects.
"""

import pytest

from src.core.alert import Alert, parse_alert_feed
from src.core.errors import ParseError


FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:cap="urn:oasis:names:tc:emergency:cap:1.2">
  <id>https://api.weather.gov/alerts/active.atom?zone=NJZ103</id>
  <title>Current watches, warnings, and advisories for Western Bergen (NJZ103) NJ</title>
  <updated>2024-06-10T14:00:00-04:00</updated>
  <entry>
    <id>urn:oid:2.49.0.1.840.0.A1</id>
    <updated>2024-06-10T13:55:00-04:00</updated>
    <published>2024-06-10T13:50:00-04:00</published>
    <title>Flood Warning issued June 10 at 1:50PM EDT by NWS New York NY</title>
    <link href="https://api.weather.gov/alerts/urn:oid:2.49.0.1.840.0.A1"/>
    <summary>The Flood Warning continues for the Saddle River.</summary>
    <cap:event>Flood Warning</cap:event>
    <cap:effective>2024-06-10T13:50:00-04:00</cap:effective>
    <cap:expires>2024-06-11T02:00:00-04:00</cap:expires>
    <cap:status>Actual</cap:status>
    <cap:msgType>Alert</cap:msgType>
    <cap:category>Met</cap:category>
    <cap:urgency>Immediate</cap:urgency>
    <cap:severity>Severe</cap:severity>
    <cap:certainty>Observed</cap:certainty>
    <cap:areaDesc>Western Bergen</cap:areaDesc>
    <cap:polygon>40.9,-74.2 41.0,-74.1 40.9,-74.0 40.9,-74.2</cap:polygon>
    <cap:geocode>
      <valueName>SAME</valueName>
      <value>034003</value>
      <valueName>UGC</valueName>
      <value>NJZ103</value>
    </cap:geocode>
    <cap:parameter>
      <valueName>VTEC</valueName>
      <value>/O.NEW.KOKX.FL.W.0012.240610T1750Z-240611T0600Z/</value>
    </cap:parameter>
    <cap:parameter>
      <valueName>VTEC</valueName>
      <value>/O.CON.KOKX.FL.W.0011.000000T0000Z-240611T0600Z/</value>
    </cap:parameter>
  </entry>
  <entry>
    <id>urn:oid:2.49.0.1.840.0.A2</id>
    <updated>2024-06-10T13:40:00-04:00</updated>
    <title>Heat Advisory</title>
    <link>https://api.weather.gov/alerts/urn:oid:2.49.0.1.840.0.A2</link>
    <summary>Heat index values up to 100.</summary>
    <cap:event>Heat Advisory</cap:event>
    <cap:severity>Moderate</cap:severity>
    <cap:geocode>
      <SAME>034003</SAME>
      <SAME>034017</SAME>
      <UGC>NJZ103</UGC>
      <UGC>NJZ104</UGC>
    </cap:geocode>
  </entry>
</feed>
"""


class TestParseAlertFeed:
    """Tests for parse_alert_feed function."""

    def test_returns_entries_in_feed_order(self):
        """Should decode every entry, preserving order."""
        alerts = parse_alert_feed(FEED)

        assert [a.id for a in alerts] == [
            "urn:oid:2.49.0.1.840.0.A1",
            "urn:oid:2.49.0.1.840.0.A2",
        ]

    def test_strips_namespaces_from_cap_fields(self):
        """Should read cap:-prefixed elements by local name."""
        alert = parse_alert_feed(FEED)[0]

        assert alert.event == "Flood Warning"
        assert alert.status == "Actual"
        assert alert.msg_type == "Alert"
        assert alert.category == "Met"
        assert alert.urgency == "Immediate"
        assert alert.severity == "Severe"
        assert alert.certainty == "Observed"
        assert alert.area_desc == "Western Bergen"
        assert alert.expires == "2024-06-11T02:00:00-04:00"

    def test_link_from_href_attribute(self):
        """Should take the link from the href attribute."""
        alert = parse_alert_feed(FEED)[0]
        assert alert.link == "https://api.weather.gov/alerts/urn:oid:2.49.0.1.840.0.A1"

    def test_link_falls_back_to_element_text(self):
        """Should use the link text when there is no href."""
        alert = parse_alert_feed(FEED)[1]
        assert alert.link == "https://api.weather.gov/alerts/urn:oid:2.49.0.1.840.0.A2"

    def test_geocodes_from_value_pairs(self):
        """Should read SAME/UGC from valueName/value pairs."""
        alert = parse_alert_feed(FEED)[0]

        assert alert.same_codes == ("034003",)
        assert alert.ugc_codes == ("NJZ103",)

    def test_geocodes_from_repeated_child_elements(self):
        """Should read repeated SAME/UGC child elements in order."""
        alert = parse_alert_feed(FEED)[1]

        assert alert.same_codes == ("034003", "034017")
        assert alert.ugc_codes == ("NJZ103", "NJZ104")

    def test_repeated_parameters_are_grouped(self):
        """Should collect every value of a repeated parameter."""
        alert = parse_alert_feed(FEED)[0]

        assert alert.parameter("VTEC") == (
            "/O.NEW.KOKX.FL.W.0012.240610T1750Z-240611T0600Z/",
            "/O.CON.KOKX.FL.W.0011.000000T0000Z-240611T0600Z/",
        )
        assert alert.parameter("missing") == ()

    def test_missing_optional_fields_are_none(self):
        """Should leave omitted CAP fields as None."""
        alert = parse_alert_feed(FEED)[1]

        assert alert.urgency is None
        assert alert.instruction is None
        assert alert.parameters == ()

    def test_empty_feed_returns_empty_list(self):
        """A feed with no entries is valid."""
        xml = '<feed xmlns="http://www.w3.org/2005/Atom"><title>Empty</title></feed>'
        assert parse_alert_feed(xml) == []

    def test_accepts_bytes(self):
        """Should decode a raw response body."""
        assert len(parse_alert_feed(FEED.encode("utf-8"))) == 2

    def test_malformed_xml_raises_parse_error(self):
        """Should raise ParseError for broken XML."""
        with pytest.raises(ParseError):
            parse_alert_feed("<feed><entry></feed>")

    def test_wrong_root_raises_parse_error(self):
        """Should raise ParseError when the root is not <feed>."""
        with pytest.raises(ParseError, match="root element"):
            parse_alert_feed("<rss><channel/></rss>")


class TestAlert:
    """Tests for Alert helpers."""

    @pytest.mark.parametrize("severity,expected", [
        ("Extreme", True),
        ("Severe", True),
        ("Moderate", False),
        ("Minor", False),
        (None, False),
    ])
    def test_is_severe(self, severity, expected):
        """Only Severe and Extreme alerts are severe."""
        assert Alert(id="x", severity=severity).is_severe is expected

    def test_alert_is_immutable(self):
        """Alert should be frozen."""
        alert = Alert(id="x")
        with pytest.raises(AttributeError):
            alert.id = "y"
