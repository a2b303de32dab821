"""Tests for configuration loading."""

import pytest

from config import ConfigError, load_config

VALID = """
mqtt:
  host: localhost
  port: "1883"
processes:
  - alias: test
    triggers: []
"""


def write(tmp_path, text):
    path = tmp_path / "z2m_beacon.yaml"
    path.write_text(text)
    return str(path)


def test_valid_config(tmp_path):
    config = load_config(write(tmp_path, VALID))

    assert config["mqtt"]["port"] == 1883
    assert config["zigbee2mqtt"] == {}
    assert config["beacon"] == {}
    assert config["processes"][0]["alias"] == "test"


def test_path_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("Z2M_BEACON_CONFIG", write(tmp_path, VALID))

    assert load_config()["mqtt"]["host"] == "localhost"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / "missing.yaml"))


@pytest.mark.parametrize(
    "text, message",
    [
        ("", "is empty"),
        ("mqtt: [", "Invalid YAML"),
        ("- a\n- b\n", "must contain a mapping"),
        ("zigbee2mqtt: {}\n", "Missing 'mqtt' section"),
        ("mqtt:\n  port: 1883\n", "mqtt.host"),
        ("mqtt:\n  host: localhost\n", "mqtt.port"),
        ("mqtt:\n  host: localhost\n  port: abc\n", "Invalid 'mqtt.port'"),
        ("mqtt:\n  host: h\n  port: 1\nprocesses: {}\n", "must be a list"),
        (
            "mqtt:\n  host: h\n  port: 1\nprocesses_url: http://x\nprocesses:\n  - alias: a\n",
            "not both",
        ),
    ],
)
def test_invalid_config(tmp_path, text, message):
    with pytest.raises(ConfigError, match=message):
        load_config(write(tmp_path, text))
