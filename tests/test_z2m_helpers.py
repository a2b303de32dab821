"""Tests for value mapping and capability inference."""

import pytest

from models import BridgeDeviceExposeFeature, DataType, DeviceContact, FeatureAccess
from z2m_helpers import (
    conduct_value_to_payload,
    infer_contacts,
    map_z2m_type_to_data_type,
    map_z2m_value_to_value,
    payload_value_to_text,
)


def feature(prop, z2m_type, access, features=None):
    return BridgeDeviceExposeFeature.from_dict(
        {"property": prop, "type": z2m_type, "access": access, "features": features}
    )


class TestValueMapping:
    @pytest.mark.parametrize("raw", ["true", "TRUE", "True", "on", "ON"])
    def test_bool_true(self, raw):
        assert map_z2m_value_to_value(DataType.BOOL, raw) is True

    @pytest.mark.parametrize("raw", ["false", "off", "OFF"])
    def test_bool_false(self, raw):
        assert map_z2m_value_to_value(DataType.BOOL, raw) is False

    def test_bool_unparsable_returns_raw(self):
        assert map_z2m_value_to_value(DataType.BOOL, "toggle") == "toggle"

    def test_bool_none(self):
        assert map_z2m_value_to_value(DataType.BOOL, None) is None

    def test_numeric(self):
        assert map_z2m_value_to_value(DataType.DOUBLE, "21.5") == 21.5
        assert map_z2m_value_to_value(DataType.DOUBLE, "-3") == -3.0

    def test_numeric_unparsable_returns_raw(self):
        assert map_z2m_value_to_value(DataType.DOUBLE, "warm") == "warm"
        assert map_z2m_value_to_value(DataType.DOUBLE, None) is None

    def test_string_passthrough(self):
        assert map_z2m_value_to_value(DataType.STRING, "ON") == "ON"

    def test_payload_value_to_text(self):
        assert payload_value_to_text(True) == "true"
        assert payload_value_to_text(23.5) == "23.5"
        assert payload_value_to_text("ON") == "ON"
        assert payload_value_to_text({"x": 1}) == '{"x": 1}'
        assert payload_value_to_text(None) is None


class TestTypeMapping:
    def test_known_types(self):
        assert map_z2m_type_to_data_type("binary") == DataType.BOOL
        assert map_z2m_type_to_data_type("numeric") == DataType.DOUBLE
        assert map_z2m_type_to_data_type("enum") == DataType.STRING

    @pytest.mark.parametrize("z2m_type", ["light", "composite", "text", "", None])
    def test_unknown_types(self, z2m_type):
        assert map_z2m_type_to_data_type(z2m_type) is None


class TestConductPayload:
    def test_booleans(self):
        assert conduct_value_to_payload(True) == "ON"
        assert conduct_value_to_payload(False) == "OFF"
        assert conduct_value_to_payload("TRUE") == "ON"
        assert conduct_value_to_payload("false") == "OFF"

    def test_other_values_unchanged(self):
        assert conduct_value_to_payload(128) == "128"
        assert conduct_value_to_payload("toggle") == "toggle"


class TestInferContacts:
    def test_read_write_feature_is_input_and_output(self):
        inputs, outputs = infer_contacts([feature("state", "binary", 3)])

        assert inputs == [DeviceContact("state", DataType.BOOL, is_readonly=True)]
        assert outputs == [DeviceContact("state", DataType.BOOL)]

    def test_requestable_input_is_not_readonly(self):
        inputs, outputs = infer_contacts([feature("brightness", "numeric", 6)])

        assert inputs == [DeviceContact("brightness", DataType.DOUBLE, is_readonly=False)]
        assert outputs == [DeviceContact("brightness", DataType.DOUBLE)]

    def test_write_only(self):
        inputs, outputs = infer_contacts([feature("effect", "enum", 2)])

        assert inputs == []
        assert outputs == [DeviceContact("effect", DataType.STRING)]

    def test_nested_features_flattened(self):
        light = feature(
            None,
            "light",
            0,
            features=[
                {"property": "state", "type": "binary", "access": 7},
                {"property": "brightness", "type": "numeric", "access": 7},
                {"property": "color_xy", "type": "composite", "access": 7},
            ],
        )
        inputs, outputs = infer_contacts([light, feature("linkquality", "numeric", 1)])

        assert [c.name for c in inputs] == ["state", "brightness", "linkquality"]
        assert [c.name for c in outputs] == ["state", "brightness"]

    def test_skips_missing_name_or_type(self):
        inputs, outputs = infer_contacts(
            [feature("", "binary", 7), feature("state", None, 7), feature("  ", "enum", 7)]
        )
        assert inputs == [] and outputs == []

    def test_unmapped_type_dropped_with_warning(self, caplog):
        inputs, outputs = infer_contacts([feature("color", "composite", 7)], "zigbee2mqtt/0x1")

        assert inputs == [] and outputs == []
        assert "Failed to map input color type composite" in caplog.text

    def test_duplicate_names_kept(self):
        inputs, _ = infer_contacts(
            [feature("state", "binary", 1), feature("state", "enum", 1)]
        )
        assert [c.data_type for c in inputs] == [DataType.BOOL, DataType.STRING]

    def test_access_flags(self):
        f = feature("state", "binary", 5)
        assert f.access == FeatureAccess.READ | FeatureAccess.REQUEST


class TestConductPayloadForBoolContact:
    @pytest.mark.parametrize("value", ["on", "ON", 1, "1", True, "true"])
    def test_on(self, value):
        assert conduct_value_to_payload(value, DataType.BOOL) == "ON"

    @pytest.mark.parametrize("value", ["off", 0, "0.0", False])
    def test_off(self, value):
        assert conduct_value_to_payload(value, DataType.BOOL) == "OFF"

    def test_unparsable_kept(self):
        assert conduct_value_to_payload("toggle", DataType.BOOL) == "toggle"

    def test_numeric_contact_not_coerced(self):
        assert conduct_value_to_payload(1, DataType.DOUBLE) == "1"
        assert conduct_value_to_payload("on", DataType.STRING) == "on"
