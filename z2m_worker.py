"""zigbee2mqtt worker: device discovery, state updates and conducts."""

import asyncio
import json
import logging
from typing import Any, List, Optional, Tuple

from conducts import ConductManager, conduct_from_dict
from constants import (
    BEACON_DEFAULT_CONDUCTS_TOPIC,
    DEFAULT_ENDPOINT_NAME,
    MQTT_PAYLOAD_PERMIT_JOIN,
    Z2M_DEFAULT_BASE_TOPIC,
)
from devices import AliasInUseError, DeviceStateManager, DevicesDao
from models import (
    BridgeDevice,
    Conduct,
    DeviceConfiguration,
    DeviceEndpoint,
    DeviceTarget,
    MqttMessage,
)
from topics import (
    alias_from_topic,
    is_logging_topic,
    topic_bridge_devices,
    topic_device_get,
    topic_device_set,
    topic_devices_get,
    topic_permit_join,
)
from z2m_helpers import (
    conduct_value_to_payload,
    infer_contacts,
    map_z2m_value_to_value,
    payload_value_to_text,
)

logger = logging.getLogger(__name__)


class DeviceNotFoundError(Exception):
    """Device is not registered."""


class Z2MWorker:
    """Translates zigbee2mqtt topics to device state and conducts to zigbee2mqtt commands."""

    def __init__(
        self,
        devices_dao: DevicesDao,
        device_state_manager: DeviceStateManager,
        conduct_manager: ConductManager,
        mqtt,
        base_topic: str = Z2M_DEFAULT_BASE_TOPIC,
        conducts_topic: str = BEACON_DEFAULT_CONDUCTS_TOPIC,
        stop_event: Optional[asyncio.Event] = None,
    ):
        self.devices_dao = devices_dao
        self.device_state_manager = device_state_manager
        self.conduct_manager = conduct_manager
        self.mqtt = mqtt
        self.base_topic = base_topic
        self.conducts_topic = conducts_topic
        self.stop_event = stop_event or asyncio.Event()

    def start(self):
        """Subscribe to conducts and ask the bridge for its devices."""
        self.conduct_manager.subscribe(self.handle_conduct)

        self.mqtt.publish(topic_devices_get(self.base_topic), None)
        # New devices may only pair after explicit operator action
        self.mqtt.publish(topic_permit_join(self.base_topic), MQTT_PAYLOAD_PERMIT_JOIN)
        logger.info(f"zigbee2mqtt worker started on {self.base_topic}")

    async def run(self, msg_queue: "asyncio.Queue[MqttMessage]"):
        """Handle queued messages one at a time until the stop signal is set."""
        stop_wait = asyncio.create_task(self.stop_event.wait())
        try:
            while True:
                get = asyncio.create_task(msg_queue.get())
                done, _ = await asyncio.wait(
                    {get, stop_wait}, return_when=asyncio.FIRST_COMPLETED
                )
                if stop_wait in done:
                    get.cancel()
                    break
                await self.handle_message(get.result())
        finally:
            stop_wait.cancel()
        logger.info("zigbee2mqtt worker stopped")

    async def handle_message(self, message: MqttMessage):
        """Route one MQTT message. Never raises."""
        try:
            topic, payload = message.topic, message.payload

            # Ignore logging
            if is_logging_topic(self.base_topic, topic):
                return

            if self.stop_event.is_set():
                logger.debug(f"Stopping, message on {topic} dropped")
                return

            if topic == topic_bridge_devices(self.base_topic):
                await self.handle_devices_config_change(payload)
            elif topic == self.conducts_topic:
                await self.handle_conducts_message(payload)
            else:
                await self.handle_device_topic(topic, payload)
        except Exception as e:
            logger.warning(f"Failed to process message on {message.topic}: {e}", exc_info=True)

    async def handle_device_topic(self, topic: str, payload: str):
        """Set device state from a <base>/<alias> payload."""
        alias = alias_from_topic(self.base_topic, topic)
        device = await self.devices_dao.get_by_alias(alias) if alias else None
        if device is None:
            logger.debug(f"Device {topic} not found")
            return

        inputs = device.inputs
        if not inputs:
            logger.debug(f"Device {topic} has no inputs")
            return

        values = json.loads(payload)
        if not isinstance(values, dict):
            logger.warning(f"Unexpected payload on {topic}")
            return

        device_target = DeviceTarget(device.identifier)
        for name, raw in values.items():
            contact = next((i for i in inputs if i.name == name), None)
            if contact is None:
                continue

            target = device_target.with_contact(name)
            value = payload_value_to_text(raw)
            mapped_value = map_z2m_value_to_value(contact.data_type, value)
            try:
                await self.device_state_manager.set_state(target, mapped_value)
            except Exception as e:
                logger.warning(
                    f"Failed to set device state {target} to {value}: {e}", exc_info=True
                )

    async def handle_devices_config_change(self, payload: str):
        """
        Process the bridge device list snapshot.

        Known devices are reconciled before new ones are registered, so an alias
        released by a rename is free for a new device in the same snapshot.
        """
        items = json.loads(payload)
        if not isinstance(items, list):
            logger.warning("Unexpected bridge devices payload")
            return

        known: List[Tuple[DeviceConfiguration, BridgeDevice]] = []
        new: List[BridgeDevice] = []
        for item in items:
            try:
                bridge_device = BridgeDevice.from_dict(item)
                if not bridge_device.ieee_address or not bridge_device.ieee_address.strip():
                    logger.warning(
                        f"Invalid IEEE address {bridge_device.ieee_address}. Device skipped."
                    )
                    continue

                existing = await self.devices_dao.get(self._identifier(bridge_device.ieee_address))
                if existing is None:
                    new.append(bridge_device)
                else:
                    known.append((existing, bridge_device))
            except Exception as e:
                logger.warning(f"Failed to process bridge device {item!r}: {e}", exc_info=True)

        # Renames blocked by an alias released later in the snapshot are retried
        while known:
            deferred: List[Tuple[DeviceConfiguration, BridgeDevice]] = []
            for existing, bridge_device in known:
                try:
                    await self.update_device(existing, bridge_device)
                except AliasInUseError:
                    deferred.append((existing, bridge_device))
                except Exception as e:
                    logger.warning(
                        f"Failed to update device {existing.identifier}: {e}", exc_info=True
                    )
            if len(deferred) == len(known):
                for existing, bridge_device in deferred:
                    logger.warning(
                        f"Device {existing.identifier} not renamed to "
                        f"{bridge_device.friendly_name}: alias already in use"
                    )
                break
            known = deferred

        for bridge_device in new:
            try:
                await self.new_device(bridge_device)
            except Exception as e:
                logger.warning(
                    f"Failed to add device {bridge_device.ieee_address}: {e}", exc_info=True
                )

    def _identifier(self, ieee_address: str) -> str:
        return f"{self.base_topic}/{ieee_address}"

    def _device_from_bridge(self, bridge_device: BridgeDevice) -> DeviceConfiguration:
        device = DeviceConfiguration(
            alias=bridge_device.friendly_name or bridge_device.ieee_address,
            identifier=self._identifier(bridge_device.ieee_address),
        )

        definition = bridge_device.definition
        if definition is not None:
            device.model = definition.model
            device.manufacturer = definition.vendor

            if definition.exposes is not None:
                inputs, outputs = infer_contacts(definition.exposes, device.identifier)
                if inputs or outputs:
                    device.endpoints = [DeviceEndpoint(DEFAULT_ENDPOINT_NAME, inputs, outputs)]
        return device

    async def new_device(self, bridge_device: BridgeDevice):
        """Register a device seen for the first time and request its state."""
        if not bridge_device.ieee_address or not bridge_device.ieee_address.strip():
            raise ValueError("Device IEEE address is required.")

        device = self._device_from_bridge(bridge_device)
        await self.devices_dao.register(device)
        self.refresh_device(device)

    async def update_device(self, existing: DeviceConfiguration, bridge_device: BridgeDevice):
        """
        Reconcile a known device with its current bridge description.

        The identifier is kept. Alias, model, manufacturer and endpoints follow
        the bridge. Unchanged devices are left alone; when contacts drifted the
        device state is requested again.
        """
        discovered = self._device_from_bridge(bridge_device)
        if discovered == existing:
            logger.debug(f"Device {existing.identifier} up to date")
            return

        if discovered.endpoints != existing.endpoints:
            logger.info(f"Device {existing.identifier} capabilities changed")
        await self.devices_dao.update(discovered)
        if discovered.endpoints != existing.endpoints:
            self.refresh_device(discovered)

    def refresh_device(self, device: DeviceConfiguration):
        """Request current values of all requestable inputs."""
        for contact in device.inputs:
            if contact.is_readonly:
                continue
            self.mqtt.publish(
                topic_device_get(self.base_topic, device.alias),
                json.dumps({contact.name: ""}),
            )

    async def handle_conducts_message(self, payload: str):
        """Publish conducts received over MQTT."""
        data = json.loads(payload)
        items: List[Any] = data if isinstance(data, list) else [data]
        conducts: List[Conduct] = []
        for item in items:
            try:
                conducts.append(conduct_from_dict(item))
            except ValueError as e:
                logger.warning(f"Conduct skipped: {e}")
        await self.conduct_manager.publish(conducts)

    async def handle_conduct(self, conduct: Conduct):
        """Forward a conduct to zigbee2mqtt."""
        if conduct is None or conduct.target is None or conduct.target.contact is None:
            raise ValueError(f"Conduct target or contact is missing. Conduct: {conduct}")

        await self.publish_state(conduct.target.identifier, conduct.target.contact, conduct.value)

    async def publish_state(self, device_identifier: str, contact_name: str, value: Any):
        """Publish a /set command. Failures are logged, never raised."""
        try:
            device = await self.devices_dao.get(device_identifier)
            if device is None:
                raise DeviceNotFoundError(f"Device with identifier {device_identifier} not found.")

            output = next((o for o in device.outputs if o.name == contact_name), None)
            payload = conduct_value_to_payload(value, output.data_type if output else None)
            self.mqtt.publish(topic_device_set(self.base_topic, device.alias, contact_name), payload)
        except Exception as e:
            logger.error(f"Failed to publish message: {e}", exc_info=True)
