"""Main zigbee2mqtt beacon application."""

import asyncio
import logging
from typing import Any, Dict

from conditions import ConditionEvaluator
from conducts import ConductManager
from constants import (
    BEACON_DEFAULT_CONDUCTS_TOPIC,
    PROCESSES_CACHE_TTL,
    SHUTDOWN_DRAIN_TIMEOUT,
    Z2M_DEFAULT_BASE_TOPIC,
)
from devices import DeviceStateManager, DevicesDao
from models import MqttMessage
from mqtt_bridge import MqttBridge
from process_store import HttpProcessStore, YamlProcessStore
from processor import Processor
from topics import topic_subscription
from z2m_worker import Z2MWorker

logger = logging.getLogger(__name__)


class Z2MBeacon:
    """Main beacon application."""

    def __init__(self, config: Dict[str, Any]):
        self.loop = asyncio.get_running_loop()
        self.msg_queue: asyncio.Queue[MqttMessage] = asyncio.Queue()
        self.stop_event = asyncio.Event()

        base_topic = config['zigbee2mqtt'].get('base_topic') or Z2M_DEFAULT_BASE_TOPIC
        conducts_topic = config['beacon'].get('conducts_topic') or BEACON_DEFAULT_CONDUCTS_TOPIC

        mqtt_config = config['mqtt']
        self.mqtt = MqttBridge(
            self.loop,
            self.msg_queue,
            host=mqtt_config['host'],
            port=mqtt_config['port'],
            subscriptions=[topic_subscription(base_topic), conducts_topic],
            username=mqtt_config.get('username'),
            password=mqtt_config.get('password'),
            client_id=mqtt_config.get('client_id'),
        )

        if config.get('processes_url'):
            self.processes = HttpProcessStore(
                config['processes_url'],
                cache_ttl=config.get('processes_cache_ttl', PROCESSES_CACHE_TTL),
            )
        else:
            self.processes = YamlProcessStore(config.get('processes') or [])

        self.devices = DevicesDao()
        self.states = DeviceStateManager()
        self.conducts = ConductManager()
        self.processor = Processor(
            ConditionEvaluator(self.states),
            self.processes,
            self.states,
            self.conducts,
        )
        self.worker = Z2MWorker(
            self.devices,
            self.states,
            self.conducts,
            self.mqtt,
            base_topic=base_topic,
            conducts_topic=conducts_topic,
            stop_event=self.stop_event,
        )

        self.running = True

    async def start(self):
        """Start the beacon."""
        self.processor.start()
        self.mqtt.connect()
        logger.info("MQTT bridge connected")

        self.worker.start()
        self._task = asyncio.create_task(self.worker.run(self.msg_queue), name="z2m_worker")

        # Wait until the worker finishes (it won't until stopped)
        await self._task

    async def stop(self):
        """Stop the beacon."""
        if not self.running:
            return
        self.running = False

        # Drop new messages, let the one in flight complete
        self.stop_event.set()
        task = getattr(self, "_task", None)
        if task is not None and not task.done():
            done, _ = await asyncio.wait({task}, timeout=SHUTDOWN_DRAIN_TIMEOUT)
            if not done:
                logger.warning("Worker did not stop in time, cancelling")
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        # Then close resources
        try:
            self.mqtt.close()
        except Exception as e:
            logger.debug(f"Error closing MQTT bridge: {e}")
        if isinstance(self.processes, HttpProcessStore):
            try:
                await self.processes.close()
            except Exception as e:
                logger.debug(f"Error closing process store: {e}")
