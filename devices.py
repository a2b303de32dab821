"""In-memory device registry and device state."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from models import DeviceConfiguration, DeviceTarget

logger = logging.getLogger(__name__)

StateChangedHandler = Callable[[DeviceTarget], Awaitable[None]]


class AliasInUseError(ValueError):
    """Alias is already held by another device."""


class DevicesDao:
    """Registry of known devices, looked up by identifier or alias."""

    def __init__(self):
        self._by_identifier: Dict[str, DeviceConfiguration] = {}
        self._lock = asyncio.Lock()

    async def get(self, identifier: str) -> Optional[DeviceConfiguration]:
        """Get device by identifier."""
        async with self._lock:
            return self._by_identifier.get(identifier)

    async def get_by_alias(self, alias: str) -> Optional[DeviceConfiguration]:
        """Get device by alias (topic name)."""
        async with self._lock:
            for device in self._by_identifier.values():
                if device.alias == alias:
                    return device
            return None

    async def register(self, device: DeviceConfiguration):
        """Add a newly discovered device. Identifier and alias must be unique."""
        async with self._lock:
            if device.identifier in self._by_identifier:
                raise ValueError(f"Device {device.identifier} already registered")
            self._check_alias(device)
            self._by_identifier[device.identifier] = device
        logger.info(f"Device registered: {device.identifier} (alias {device.alias})")

    async def update(self, device: DeviceConfiguration):
        """Replace the configuration of a registered device."""
        async with self._lock:
            if device.identifier not in self._by_identifier:
                raise ValueError(f"Device {device.identifier} not registered")
            self._check_alias(device)
            self._by_identifier[device.identifier] = device
        logger.info(f"Device updated: {device.identifier}")

    def _check_alias(self, device: DeviceConfiguration):
        for other in self._by_identifier.values():
            if other.alias == device.alias and other.identifier != device.identifier:
                raise AliasInUseError(
                    f"Device alias {device.alias} already in use by {other.identifier}"
                )


class DeviceStateManager:
    """Holds last known contact values and notifies subscribers on change."""

    def __init__(self):
        self._states: Dict[DeviceTarget, Any] = {}
        self._subscribers: List[StateChangedHandler] = []

    def subscribe(self, handler: StateChangedHandler):
        """Register a handler called with the target of every state change."""
        self._subscribers.append(handler)

    def get_state(self, target: DeviceTarget) -> Any:
        """Get last known value of target, None if unknown."""
        return self._states.get(target)

    async def set_state(self, target: DeviceTarget, value: Any):
        """Store value for target, notifying subscribers when it changed."""
        if target.contact is None:
            raise ValueError(f"Target {target} has no contact")

        if target in self._states and self._states[target] == value:
            logger.debug(f"State of {target} unchanged: {value!r}")
            return
        self._states[target] = value
        logger.debug(f"State of {target} set to {value!r}")

        for handler in list(self._subscribers):
            try:
                await handler(target)
            except Exception as e:
                logger.error(f"State change handler failed for {target}: {e}", exc_info=True)
