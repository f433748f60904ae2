"""Weather alert models and feed decoding - Pure functions.

This module decodes NWS Atom/CAP feed documents into typed Alert objects.
All functions are pure with no side effects; fetching the document is
handled by the shell (feed_client).
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass

from src.core.errors import ParseError


# CAP 1.2 closed value sets, kept as the upstream strings
STATUS_VALUES = ("Actual", "Exercise", "System", "Test", "Draft")
MSG_TYPES = ("Alert", "Update", "Cancel", "Ack", "Error")
URGENCY_LEVELS = ("Immediate", "Expected", "Future", "Past", "Unknown")
SEVERITY_LEVELS = ("Extreme", "Severe", "Moderate", "Minor", "Unknown")
CERTAINTY_LEVELS = ("Observed", "Likely", "Possible", "Unlikely", "Unknown")

SEVERE_LEVELS = frozenset({"Extreme", "Severe"})

# Entry elements copied verbatim when present: tag -> Alert field
_OPTIONAL_TEXT_FIELDS = {
    "published": "published",
    "event": "event",
    "effective": "effective",
    "expires": "expires",
    "status": "status",
    "msgType": "msg_type",
    "category": "category",
    "urgency": "urgency",
    "severity": "severity",
    "certainty": "certainty",
    "areaDesc": "area_desc",
    "polygon": "polygon",
    "description": "description",
    "instruction": "instruction",
}


@dataclass(frozen=True)
class Alert:
    """Immutable weather alert decoded from one feed entry.

    Attributes:
        id: Unique alert ID assigned by the feed (stable across re-fetches)
        title: Entry title
        updated: Last update timestamp (ISO 8601 string)
        summary: Short summary text
        link: Canonical link to the alert
        published: Publication timestamp
        event: Event name (e.g., "Flood Warning")
        effective: Start of the validity window
        expires: End of the validity window
        status: CAP status (see STATUS_VALUES)
        msg_type: CAP message type (see MSG_TYPES)
        category: CAP category (e.g., "Met")
        urgency: CAP urgency (see URGENCY_LEVELS)
        severity: CAP severity (see SEVERITY_LEVELS)
        certainty: CAP certainty (see CERTAINTY_LEVELS)
        area_desc: Affected area description
        polygon: Affected area polygon as a space separated string
        description: Full description text
        instruction: Recommended actions
        same_codes: SAME geocodes, in feed order
        ugc_codes: UGC zone codes, in feed order
        parameters: (name, values) pairs, in feed order
    """
    id: str
    title: str = ""
    updated: str = ""
    summary: str = ""
    link: str = ""
    published: str | None = None
    event: str | None = None
    effective: str | None = None
    expires: str | None = None
    status: str | None = None
    msg_type: str | None = None
    category: str | None = None
    urgency: str | None = None
    severity: str | None = None
    certainty: str | None = None
    area_desc: str | None = None
    polygon: str | None = None
    description: str | None = None
    instruction: str | None = None
    same_codes: tuple[str, ...] = ()
    ugc_codes: tuple[str, ...] = ()
    parameters: tuple[tuple[str, tuple[str, ...]], ...] = ()

    @property
    def is_severe(self) -> bool:
        """True for Severe and Extreme alerts."""
        return self.severity in SEVERE_LEVELS

    def parameter(self, name: str) -> tuple[str, ...]:
        """Return the values of a named parameter (empty if absent)."""
        for param_name, values in self.parameters:
            if param_name == name:
                return values
        return ()


def _local_name(tag: str) -> str:
    """Strip the namespace from an element tag ('{ns}entry' -> 'entry')."""
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    if ":" in tag:
        return tag.rsplit(":", 1)[1]
    return tag


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _child_text(element: ET.Element, name: str) -> str | None:
    """Return stripped text of the first child with a local name, or None."""
    for child in _children(element, name):
        text = (child.text or "").strip()
        return text or None
    return None


def _parse_link(entry: ET.Element) -> str:
    links = _children(entry, "link")
    if not links:
        return ""
    link = links[0]
    return link.get("href") or (link.text or "").strip()


def _parse_name_value_pairs(element: ET.Element) -> list[tuple[str, str]]:
    """Pair up valueName/value children in document order."""
    pairs = []
    pending_name = None
    for child in element:
        tag = _local_name(child.tag)
        text = (child.text or "").strip()
        if tag == "valueName":
            pending_name = text
        elif tag == "value" and pending_name:
            if text:
                pairs.append((pending_name, text))
    return pairs


def _parse_geocodes(entry: ET.Element) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Collect SAME and UGC codes from every geocode element.

    Handles both valueName/value pairs and SAME/UGC child elements,
    whether they appear once or repeated.
    """
    same: list[str] = []
    ugc: list[str] = []

    for geocode in _children(entry, "geocode"):
        pairs = _parse_name_value_pairs(geocode)
        for child in geocode:
            tag = _local_name(child.tag)
            if tag in ("SAME", "UGC") and (child.text or "").strip():
                pairs.append((tag, child.text.strip()))

        for name, value in pairs:
            if name == "SAME":
                same.append(value)
            elif name == "UGC":
                ugc.append(value)

    return tuple(same), tuple(ugc)


def _parse_parameters(entry: ET.Element) -> tuple[tuple[str, tuple[str, ...]], ...]:
    params: dict[str, list[str]] = {}

    for param in _children(entry, "parameter"):
        for name, value in _parse_name_value_pairs(param):
            params.setdefault(name, []).append(value)

    return tuple((name, tuple(values)) for name, values in params.items())


def parse_alert_entry(entry: ET.Element) -> Alert:
    """Decode a single Atom entry into an Alert.

    Pure function. Always-present fields default to empty strings;
    optional fields are None when the entry omits them.

    Args:
        entry: <entry> element from the feed

    Returns:
        Alert object
    """
    optional = {
        field_name: _child_text(entry, tag)
        for tag, field_name in _OPTIONAL_TEXT_FIELDS.items()
    }
    same_codes, ugc_codes = _parse_geocodes(entry)

    return Alert(
        id=_child_text(entry, "id") or "",
        title=_child_text(entry, "title") or "",
        updated=_child_text(entry, "updated") or "",
        summary=_child_text(entry, "summary") or "",
        link=_parse_link(entry),
        same_codes=same_codes,
        ugc_codes=ugc_codes,
        parameters=_parse_parameters(entry),
        **optional,
    )


def parse_alert_feed(xml_text: str | bytes) -> list[Alert]:
    """Decode an Atom alert feed document into Alerts.

    Pure function. Entries are returned in feed order.

    Args:
        xml_text: Raw feed document

    Returns:
        List of alerts (empty when the feed has no entries)

    Raises:
        ParseError: If the document is not XML or has no <feed> root
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ParseError(f"Malformed feed XML: {e}") from e

    if _local_name(root.tag) != "feed":
        raise ParseError(f"Invalid feed structure: root element is <{_local_name(root.tag)}>")

    return [parse_alert_entry(entry) for entry in _children(root, "entry")]

