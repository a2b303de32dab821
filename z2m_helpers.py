"""Helper functions for mapping zigbee2mqtt values and exposes."""

import json
import logging
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from constants import MQTT_PAYLOAD_OFF, MQTT_PAYLOAD_ON
from models import BridgeDeviceExposeFeature, DataType, DeviceContact, FeatureAccess

logger = logging.getLogger(__name__)

_Z2M_TYPES = {
    "binary": DataType.BOOL,
    "numeric": DataType.DOUBLE,
    "enum": DataType.STRING,
}


def map_z2m_type_to_data_type(z2m_type: Optional[str]) -> Optional[DataType]:
    """Map a zigbee2mqtt expose type to a contact data type, None if unsupported."""
    return _Z2M_TYPES.get(z2m_type)


def payload_value_to_text(value: Any) -> Optional[str]:
    """
    zigbee2mqtt payload values arrive as JSON scalars or objects.
    Normalize them to the textual form the value mapper expects.
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def conduct_value_to_payload(value: Any, data_type: Optional[DataType] = None) -> str:
    """
    Serialize a conduct value for a /set topic.

    "true"/"false" always become ON/OFF. For a boolean contact "on"/"off" and
    numbers are coerced too. Anything else is sent as text.
    """
    text = payload_value_to_text(value)
    if text is None:
        return ""
    if data_type == DataType.BOOL:
        typed = map_z2m_value_to_value(DataType.BOOL, text)
        if not isinstance(typed, bool):
            typed = map_z2m_value_to_value(DataType.DOUBLE, text)
            if isinstance(typed, float):
                typed = typed != 0
        if isinstance(typed, bool):
            return MQTT_PAYLOAD_ON if typed else MQTT_PAYLOAD_OFF
        return text
    if text.lower() == "true":
        return MQTT_PAYLOAD_ON
    if text.lower() == "false":
        return MQTT_PAYLOAD_OFF
    return text


def _value_to_bool(value: Optional[str]) -> Any:
    if value is None:
        return None
    text = value.strip().lower()
    if text in ("true", "on"):
        return True
    if text in ("false", "off"):
        return False
    return value


def _value_to_numeric(value: Optional[str]) -> Any:
    try:
        return float(value)
    except (TypeError, ValueError):
        return value


def map_z2m_value_to_value(data_type: DataType, value: Optional[str]) -> Any:
    """
    Coerce a textual zigbee2mqtt value to the contact data type.
    Unparsable values are returned unchanged.
    """
    if data_type == DataType.BOOL:
        return _value_to_bool(value)
    if data_type == DataType.DOUBLE:
        return _value_to_numeric(value)
    return value


def _flatten_exposes(
    exposes: Iterable[BridgeDeviceExposeFeature],
) -> Iterator[BridgeDeviceExposeFeature]:
    # Composite exposes (light, switch, ...) carry the actual properties as features
    for expose in exposes:
        yield from expose.features
        yield expose


def infer_contacts(
    exposes: Iterable[BridgeDeviceExposeFeature],
    device_identifier: Optional[str] = None,
) -> Tuple[List[DeviceContact], List[DeviceContact]]:
    """
    Build input and output contacts from device exposes.

    Readable or requestable features become inputs, writable features become
    outputs. A feature can be both.
    """
    inputs: List[DeviceContact] = []
    outputs: List[DeviceContact] = []
    for feature in _flatten_exposes(exposes):
        name = feature.property
        z2m_type = feature.type

        # Must have name and type
        if not name or not name.strip() or not z2m_type or not z2m_type.strip():
            continue

        data_type = map_z2m_type_to_data_type(z2m_type)
        if data_type is None:
            logger.warning(
                f"Failed to map input {name} type {z2m_type} for device {device_identifier}"
            )
            continue

        if feature.access & (FeatureAccess.READ | FeatureAccess.REQUEST):
            inputs.append(
                DeviceContact(
                    name,
                    data_type,
                    is_readonly=bool(feature.access & FeatureAccess.READ),
                )
            )
        if feature.access & FeatureAccess.WRITE:
            outputs.append(DeviceContact(name, data_type))

    return inputs, outputs
