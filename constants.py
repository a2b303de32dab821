"""Constants for the zigbee2mqtt beacon."""

# Default configuration paths
DEFAULT_CONFIG_FILE = "z2m_beacon.yaml"
DEFAULT_CONFIG_EXAMPLE_FILE = "z2m_beacon.yaml.example"
CONFIG_FILE_ENV = "Z2M_BEACON_CONFIG"

# zigbee2mqtt topics (relative to base topic)
Z2M_DEFAULT_BASE_TOPIC = "zigbee2mqtt"
Z2M_BRIDGE_LOGGING = "bridge/logging"
Z2M_BRIDGE_DEVICES = "bridge/devices"
Z2M_BRIDGE_DEVICES_GET = "bridge/config/devices/get"
Z2M_BRIDGE_PERMIT_JOIN = "bridge/config/permit_join"

# Beacon topics
BEACON_DEFAULT_CONDUCTS_TOPIC = "beacon/conducts"

# MQTT payloads
MQTT_PAYLOAD_ON = "ON"
MQTT_PAYLOAD_OFF = "OFF"
MQTT_PAYLOAD_PERMIT_JOIN = "false"

# Device endpoints
DEFAULT_ENDPOINT_NAME = "main"

# Timeouts (seconds)
SHUTDOWN_DRAIN_TIMEOUT = 5.0
PROCESSES_FETCH_TIMEOUT = 10.0

# Process store cache (seconds)
PROCESSES_CACHE_TTL = 60

# MQTT settings
MQTT_QOS = 1
MQTT_KEEPALIVE = 60
