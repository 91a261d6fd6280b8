"""Unit tests for the UserApps protobuf payload."""

from __future__ import annotations

import pytest

from core.errors import RecordSerializationError
from core.types import InstallRecord
from store.user_apps_payload import UserApps, encode_install_record


def test_encode_uses_packed_apps_and_double_coordinates() -> None:
    """Payload bytes should match the UserApps wire layout."""
    record = InstallRecord(app_ids=(1, 2), latitude=0.0, longitude=0.0)

    payload = encode_install_record(record)

    assert payload[:4] == b"\x0a\x02\x01\x02"
    assert payload[4:] == b"\x11" + bytes(8) + b"\x19" + bytes(8)


def test_encoded_payload_parses_as_user_apps() -> None:
    record = InstallRecord(app_ids=(42, 4294967295), latitude=55.55, longitude=37.37)

    message = UserApps.FromString(encode_install_record(record))

    assert list(message.apps) == [42, 4294967295]
    assert message.lat == 55.55 and message.lon == 37.37


def test_encode_rejects_out_of_range_app_id() -> None:
    record = InstallRecord(app_ids=(2**32,), latitude=1.0, longitude=2.0)

    with pytest.raises(RecordSerializationError):
        encode_install_record(record)
