"""Protobuf payload stored for each device.

This module builds the ``appsinstalled.UserApps`` message class from
an in-code descriptor and converts install records to and from it.
"""

from __future__ import annotations

from typing import Any

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, EncodeError

from core.constants import (
    USER_APPS_MESSAGE_NAME,
    USER_APPS_PROTO_FILE,
    USER_APPS_PROTO_PACKAGE,
)
from core.errors import RecordSerializationError
from core.types import InstallRecord


def _build_user_apps_class() -> Any:
    """Register ``UserApps`` in a private pool and return its message class.

    The layout is::

        message UserApps {
            repeated uint32 apps = 1 [packed=true];
            optional double lat = 2;
            optional double lon = 3;
        }
    """
    field_proto = descriptor_pb2.FieldDescriptorProto
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=USER_APPS_PROTO_FILE,
        package=USER_APPS_PROTO_PACKAGE,
        syntax="proto2",
    )
    message_proto = file_proto.message_type.add(name=USER_APPS_MESSAGE_NAME)
    message_proto.field.add(
        name="apps",
        number=1,
        type=field_proto.TYPE_UINT32,
        label=field_proto.LABEL_REPEATED,
        options=descriptor_pb2.FieldOptions(packed=True),
    )
    message_proto.field.add(
        name="lat", number=2, type=field_proto.TYPE_DOUBLE, label=field_proto.LABEL_OPTIONAL
    )
    message_proto.field.add(
        name="lon", number=3, type=field_proto.TYPE_DOUBLE, label=field_proto.LABEL_OPTIONAL
    )
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    descriptor = pool.FindMessageTypeByName(
        f"{USER_APPS_PROTO_PACKAGE}.{USER_APPS_MESSAGE_NAME}"
    )
    return message_factory.GetMessageClass(descriptor)


UserApps = _build_user_apps_class()


def encode_install_record(record: InstallRecord) -> bytes:
    """Encode an install record as a ``UserApps`` payload.

    Args:
        record: Parsed install record.

    Returns:
        Serialized protobuf bytes.

    Raises:
        RecordSerializationError: If any field cannot be encoded.
    """
    try:
        message = UserApps(
            apps=list(record.app_ids), lat=record.latitude, lon=record.longitude
        )
        return message.SerializeToString()
    except (EncodeError, TypeError, ValueError) as error:
        raise RecordSerializationError(
            f"Failed to encode install record with {len(record.app_ids)} apps: {error}"
        ) from error


def decode_install_record(payload: bytes) -> InstallRecord:
    """Decode a ``UserApps`` payload.

    Raises:
        RecordSerializationError: If payload is not a valid message.
    """
    try:
        message = UserApps.FromString(payload)
    except DecodeError as error:
        raise RecordSerializationError(f"Failed to decode UserApps payload: {error}") from error
    return InstallRecord(
        app_ids=tuple(message.apps), latitude=message.lat, longitude=message.lon
    )
