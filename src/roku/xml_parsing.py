"""
ECP XML reply parsing
Maps device-info, app list, active-app and media replies to plain dicts
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional

from .errors import ProtocolError

logger = logging.getLogger(__name__)


def _parse_xml(xml: bytes) -> ET.Element:
    """Parse the raw reply; the XML declaration decides the encoding (UTF-8 when absent)"""
    try:
        return ET.fromstring(xml)
    except (ET.ParseError, UnicodeError, LookupError, ValueError) as e:
        raise ProtocolError(f"Failed to parse Roku XML response: {e}")


def _field_name(tag: str) -> str:
    return tag.replace('-', '_')


def _text(elem: Optional[ET.Element]) -> Optional[str]:
    if elem is None:
        return None
    text = (elem.text or "").strip()
    return text or None


def _app_record(elem: ET.Element) -> Dict[str, Optional[str]]:
    return {
        "id": elem.get("id"),
        "name": _text(elem),
        "type": elem.get("type"),
        "version": elem.get("version"),
    }


def parse_device_info(xml: bytes) -> Dict[str, Optional[str]]:
    """<device-info> children become {field_name: text}, e.g. model_name, serial_number"""
    root = _parse_xml(xml)
    return {_field_name(child.tag): _text(child) for child in root}


def parse_apps(xml: bytes) -> List[Dict[str, Optional[str]]]:
    root = _parse_xml(xml)
    return [_app_record(app) for app in root.findall("app")]


def parse_active_app(xml: bytes) -> Optional[Dict[str, Optional[str]]]:
    """
    Return the active app record, or None when the home screen is showing.
    Some firmware reports the home screen as an <app> without an id; that is
    treated the same as a missing record.
    """
    root = _parse_xml(xml)
    app = root.find("app")
    if app is None or app.get("id") is None:
        return None
    return _app_record(app)


def element_to_dict(elem: ET.Element) -> Any:
    """Convert an element to attributes + children; leaf elements collapse to their text"""
    result: Dict[str, Any] = {_field_name(k): v for k, v in elem.attrib.items()}
    children = list(elem)

    if not children:
        text = _text(elem)
        if not result:
            return text
        if text is not None:
            result["value"] = text
        return result

    for child in children:
        key = _field_name(child.tag)
        value = element_to_dict(child)
        if key in result:
            # Repeated tags become a list
            if not isinstance(result[key], list):
                result[key] = [result[key]]
            result[key].append(value)
        else:
            result[key] = value
    return result


def parse_media_state(xml: bytes) -> Dict[str, Any]:
    root = _parse_xml(xml)
    state = element_to_dict(root)
    if not isinstance(state, dict):
        state = {"value": state} if state is not None else {}
    state["available"] = True
    return state
