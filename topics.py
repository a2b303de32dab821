"""Topic utilities for MQTT."""

from typing import Optional

from constants import (
    Z2M_BRIDGE_DEVICES,
    Z2M_BRIDGE_DEVICES_GET,
    Z2M_BRIDGE_LOGGING,
    Z2M_BRIDGE_PERMIT_JOIN,
)


def topic_subscription(base_topic: str) -> str:
    """Get wildcard subscription covering everything the bridge publishes."""
    return f"{base_topic}/#"


def topic_bridge_devices(base_topic: str) -> str:
    """Get topic carrying the full bridge device list."""
    return f"{base_topic}/{Z2M_BRIDGE_DEVICES}"


def topic_devices_get(base_topic: str) -> str:
    """Get topic requesting the bridge device list."""
    return f"{base_topic}/{Z2M_BRIDGE_DEVICES_GET}"


def topic_permit_join(base_topic: str) -> str:
    """Get topic controlling bridge pairing."""
    return f"{base_topic}/{Z2M_BRIDGE_PERMIT_JOIN}"


def topic_device_set(base_topic: str, alias: str, contact: str) -> str:
    """Get topic for setting one contact of a device."""
    return f"{base_topic}/{alias}/set/{contact}"


def topic_device_get(base_topic: str, alias: str) -> str:
    """Get topic for requesting device state."""
    return f"{base_topic}/{alias}/get"


def is_logging_topic(base_topic: str, topic: str) -> bool:
    """Check whether topic belongs to the bridge logging channel."""
    return topic.startswith(f"{base_topic}/{Z2M_BRIDGE_LOGGING}")


def alias_from_topic(base_topic: str, topic: str) -> Optional[str]:
    """Strip the base topic prefix, returning the device alias."""
    prefix = f"{base_topic}/"
    if not topic.startswith(prefix):
        return None
    alias = topic[len(prefix):]
    return alias or None
