"""Core constants used across appsload modules.

This module centralizes defaults and format literals.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEVICE_TYPES = ("idfa", "gaid", "adid", "dvid")
DEFAULT_SHARD_ADDRESSES = {
    "idfa": "127.0.0.1:33013",
    "gaid": "127.0.0.1:33014",
    "adid": "127.0.0.1:33015",
    "dvid": "127.0.0.1:33016",
}
DEFAULT_PATTERN = "data/appsinstalled/*.tsv.gz"
DEFAULT_FILE_WORKERS = 2
DEFAULT_PARSER_MULTIPLIER = 2
DEFAULT_UPLOADER_MULTIPLIER = 4
DEFAULT_QUEUE_CAPACITY = 128
DEFAULT_MEMCACHE_TIMEOUT_SECONDS = 3.0
DEFAULT_MAX_ERROR_RATE = 0.01
DONE_MARKER = "."
FIELD_SEPARATOR = "\t"
APP_ID_SEPARATOR = ","
KEY_SEPARATOR = ":"
RECORD_FIELD_COUNT = 5
INPUT_ENCODING = "utf-8"
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
UINT32_MASK = 0xFFFFFFFF
USER_APPS_PROTO_FILE = "appsinstalled.proto"
USER_APPS_PROTO_PACKAGE = "appsinstalled"
USER_APPS_MESSAGE_NAME = "UserApps"
