"""
Tests for custom_id encoding of select and confirm callbacks.
"""
import pytest

from assist.exceptions import ProtocolError
from assist.interactions import (
    MAX_CUSTOM_ID_LENGTH,
    confirm_custom_id,
    parse_custom_id,
    select_custom_id,
)
from assist.types import ConfirmCallback, SelectCallback


def test_select_id_parses_with_value():
    custom_id = select_custom_id("123456789012345678")
    assert custom_id == "req_sel:123456789012345678"
    assert parse_custom_id(custom_id, ["3"]) == SelectCallback("123456789012345678", 3)


def test_confirm_id_parses():
    callback = ConfirmCallback("123456789012345678", "radarr", 7)
    custom_id = confirm_custom_id(callback)
    assert custom_id == "req_add:123456789012345678:radarr:7"
    assert parse_custom_id(custom_id) == callback


def test_foreign_ids_are_ignored():
    assert parse_custom_id("some_other_bot:button") is None
    assert parse_custom_id("") is None


@pytest.mark.parametrize(
    "custom_id, values",
    [
        ("req_sel:", ["0"]),
        ("req_sel:123", []),
        ("req_sel:123", ["abc"]),
        ("req_sel:123", ["-1"]),
        ("req_add:123:sonarr", ()),
        ("req_add:123:sonarr:1:extra", ()),
        ("req_add::sonarr:1", ()),
        ("req_add:123::1", ()),
        ("req_add:123:sonarr:x", ()),
    ],
)
def test_malformed_owned_ids_raise(custom_id, values):
    with pytest.raises(ProtocolError):
        parse_custom_id(custom_id, values)


def test_overlong_confirm_id_is_rejected():
    callback = ConfirmCallback("9" * MAX_CUSTOM_ID_LENGTH, "sonarr", 0)
    with pytest.raises(ProtocolError):
        confirm_custom_id(callback)
