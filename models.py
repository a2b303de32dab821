"""Data models and dataclasses."""

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


class DataType(str, enum.Enum):
    """Value type of a device contact."""
    BOOL = "bool"
    DOUBLE = "double"
    STRING = "string"


class FeatureAccess(enum.IntFlag):
    """Access flags of a zigbee2mqtt exposed feature."""
    NONE = 0
    READ = 0x1  # published by the device
    WRITE = 0x2
    REQUEST = 0x4  # can be requested with /get


@dataclass
class MqttMessage:
    """Message received from MQTT."""
    topic: str
    payload: str


@dataclass(frozen=True)
class DeviceTarget:
    """One addressable contact on one device."""
    identifier: str
    contact: Optional[str] = None

    def with_contact(self, contact: str) -> "DeviceTarget":
        return replace(self, contact=contact)


@dataclass(frozen=True)
class DeviceContact:
    """Input or output channel of a device endpoint."""
    name: str
    data_type: DataType
    is_readonly: bool = False


@dataclass
class DeviceEndpoint:
    """Named group of device contacts."""
    name: str
    inputs: List[DeviceContact] = field(default_factory=list)
    outputs: List[DeviceContact] = field(default_factory=list)


@dataclass
class DeviceConfiguration:
    """Device known to the beacon."""
    alias: str
    identifier: str
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    endpoints: List[DeviceEndpoint] = field(default_factory=list)

    @property
    def inputs(self) -> List[DeviceContact]:
        return [i for e in self.endpoints for i in e.inputs]

    @property
    def outputs(self) -> List[DeviceContact]:
        return [o for e in self.endpoints for o in e.outputs]


@dataclass(frozen=True)
class Conduct:
    """Requested state change of a device contact."""
    target: Optional[DeviceTarget]
    value: Any


@dataclass(frozen=True)
class Process:
    """Automation rule: triggers, condition and conducts."""
    alias: str
    is_disabled: bool = False
    condition: Any = None
    triggers: List[DeviceTarget] = field(default_factory=list)
    conducts: List[Conduct] = field(default_factory=list)


@dataclass
class BridgeDeviceExposeFeature:
    """Normalized zigbee2mqtt expose entry."""
    access: FeatureAccess = FeatureAccess.NONE
    property: Optional[str] = None
    type: Optional[str] = None
    features: List["BridgeDeviceExposeFeature"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeDeviceExposeFeature":
        return cls(
            access=FeatureAccess(int(data.get("access") or 0) & 0x7),
            property=data.get("property"),
            type=data.get("type"),
            features=[cls.from_dict(f) for f in data.get("features") or []],
        )


@dataclass
class BridgeDeviceDefinition:
    """Vendor definition of a zigbee2mqtt device."""
    model: Optional[str] = None
    vendor: Optional[str] = None
    exposes: Optional[List[BridgeDeviceExposeFeature]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeDeviceDefinition":
        exposes = data.get("exposes")
        return cls(
            model=data.get("model"),
            vendor=data.get("vendor"),
            exposes=(
                [BridgeDeviceExposeFeature.from_dict(e) for e in exposes]
                if exposes is not None
                else None
            ),
        )


@dataclass
class BridgeDevice:
    """Device entry of the zigbee2mqtt bridge/devices list."""
    ieee_address: Optional[str] = None
    friendly_name: Optional[str] = None
    definition: Optional[BridgeDeviceDefinition] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeDevice":
        definition = data.get("definition")
        return cls(
            ieee_address=data.get("ieee_address"),
            friendly_name=data.get("friendly_name"),
            definition=BridgeDeviceDefinition.from_dict(definition) if definition else None,
        )
