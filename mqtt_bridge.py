"""MQTT bridge implementation."""

import asyncio
import logging
from typing import List, Optional

import paho.mqtt.client as mqtt

from constants import MQTT_KEEPALIVE, MQTT_QOS
from models import MqttMessage

logger = logging.getLogger(__name__)


class MqttBridge:
    """Bridge between MQTT and asyncio event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        msg_queue: "asyncio.Queue[MqttMessage]",
        host: str,
        port: int,
        subscriptions: List[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: Optional[str] = None,
        keepalive: int = MQTT_KEEPALIVE,
    ):
        self.loop = loop
        self.msg_queue = msg_queue
        self.host = host
        self.port = port
        self.keepalive = keepalive
        self.subscriptions = list(subscriptions)
        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id or "")
        if username:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message

    def connect(self):
        """Connect to MQTT broker."""
        try:
            self.client.connect(self.host, self.port, keepalive=self.keepalive)
            self.client.loop_start()
            logger.info(f"Connected to MQTT broker at {self.host}:{self.port}")
        except Exception as e:
            logger.error(f"Failed to connect to MQTT broker: {e}")
            raise

    def close(self):
        """Close MQTT connection."""
        try:
            self.client.loop_stop()
        finally:
            self.client.disconnect()

    def publish(self, topic: str, payload: Optional[str]):
        """Publish a message."""
        self.client.publish(topic, payload=payload, qos=MQTT_QOS, retain=False)
        logger.debug(f"Published to {topic}: {payload}")

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        """Handle MQTT connection."""
        if reason_code == 0:
            logger.info("Connected to MQTT broker successfully")
        else:
            logger.warning(f"Connected to MQTT broker with code {reason_code}")
        for topic in self.subscriptions:
            client.subscribe(topic, qos=MQTT_QOS)
            logger.info(f"Subscribed to: {topic}")

    def _on_message(self, client, userdata, msg):
        """Handle incoming MQTT message."""
        try:
            payload = (msg.payload or b"").decode("utf-8", errors="replace")
            message = MqttMessage(topic=msg.topic, payload=payload)
            # push into asyncio loop safely from MQTT thread
            self.loop.call_soon_threadsafe(self.msg_queue.put_nowait, message)
        except Exception as e:
            logger.error(f"Error handling MQTT message: {e}", exc_info=True)
