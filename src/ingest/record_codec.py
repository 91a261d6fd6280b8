"""Installed-apps line codec.

This module parses one tab-separated input line into a typed record
and serializes it into the upload item written to a cache shard.
"""

from __future__ import annotations

import re

from core.constants import (
    APP_ID_SEPARATOR,
    FIELD_SEPARATOR,
    INT32_MAX,
    INT32_MIN,
    RECORD_FIELD_COUNT,
    UINT32_MASK,
)
from core.errors import InvalidAppIdError, InvalidGeoError, MalformedLineError
from core.types import InstallRecord, ParsedLine, UploadItem
from store.user_apps_payload import decode_install_record, encode_install_record

_APP_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_COORDINATE_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|nan|inf|infinity)",
    re.IGNORECASE,
)


def parse_line(line: str) -> ParsedLine:
    """Parse one ``type, id, lat, lon, apps`` line.

    Args:
        line: Raw decompressed line, with or without its line terminator.

    Returns:
        Parsed device identity and install record.

    Raises:
        MalformedLineError: If the line does not have exactly five fields.
        InvalidGeoError: If latitude or longitude is not a number.
        InvalidAppIdError: If any app id is not a 32-bit integer.
    """
    fields = line.rstrip("\r\n").split(FIELD_SEPARATOR)
    if len(fields) != RECORD_FIELD_COUNT:
        raise MalformedLineError(
            f"Expected {RECORD_FIELD_COUNT} tab-separated fields, got {len(fields)}: {line!r}"
        )
    device_type, device_id, raw_lat, raw_lon, raw_apps = fields
    if not device_type or not device_id:
        raise MalformedLineError(f"Missing device type or device id: {line!r}")
    record = InstallRecord(
        app_ids=parse_app_ids(raw_apps),
        latitude=_parse_coordinate("latitude", raw_lat),
        longitude=_parse_coordinate("longitude", raw_lon),
    )
    return ParsedLine(device_type=device_type, device_id=device_id, record=record)


def parse_app_ids(raw_apps: str) -> tuple[int, ...]:
    """Parse a comma-separated app id list into unsigned 32-bit values.

    Tokens are signed decimal integers; negatives wrap to their
    unsigned 32-bit value. An empty field is an empty list.

    Raises:
        InvalidAppIdError: If a token is empty, non-numeric, or out of range.
    """
    if not raw_apps:
        return ()
    app_ids: list[int] = []
    for token in raw_apps.split(APP_ID_SEPARATOR):
        if not _APP_ID_PATTERN.fullmatch(token):
            raise InvalidAppIdError(f"Invalid app id {token!r} in {raw_apps!r}")
        value = int(token)
        if not INT32_MIN <= value <= INT32_MAX:
            raise InvalidAppIdError(f"App id {token} is outside the 32-bit range")
        app_ids.append(value & UINT32_MASK)
    return tuple(app_ids)


def _parse_coordinate(name: str, raw_value: str) -> float:
    if not _COORDINATE_PATTERN.fullmatch(raw_value):
        raise InvalidGeoError(f"Invalid {name} {raw_value!r}")
    try:
        return float(raw_value)
    except ValueError as error:
        raise InvalidGeoError(f"Invalid {name} {raw_value!r}") from error


def serialize_record(record: InstallRecord) -> bytes:
    """Serialize a record into its cached binary payload.

    Raises:
        RecordSerializationError: If the record cannot be encoded.
    """
    return encode_install_record(record)


def decode_record(payload: bytes) -> InstallRecord:
    """Decode a cached payload back into a record."""
    return decode_install_record(payload)


def build_upload_item(line: str) -> UploadItem:
    """Parse and serialize one line into an upload item.

    Args:
        line: Raw decompressed line.

    Returns:
        Key, payload, and shard label for the line.

    Raises:
        RecordError: If the line cannot be parsed or serialized.
    """
    parsed = parse_line(line)
    return UploadItem(
        key=parsed.key,
        value=serialize_record(parsed.record),
        device_type=parsed.device_type,
    )
