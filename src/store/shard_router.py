"""Device-type sharded cache writes.

This module owns one long-lived memcached client per device type
and routes every upload item to the shard of its device type.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol

from pymemcache.client.base import PooledClient
from pymemcache.exceptions import MemcacheError

from core.errors import ShardWriteError, UnknownShardError
from core.logging_config import get_logger
from core.types import ShardAddress, ShardTable, UploadItem

_LOGGER = get_logger(__name__)


class KeyValueClient(Protocol):
    """Minimal cache client used by the router."""

    def set(self, key: str, value: bytes, noreply: bool | None = None) -> bool:
        """Store ``value`` under ``key``."""

    def close(self) -> None:
        """Release client connections."""


ClientFactory = Callable[[ShardAddress], KeyValueClient]


def create_memcache_client(address: ShardAddress, timeout: float) -> KeyValueClient:
    """Create a thread-safe pooled memcached client.

    Args:
        address: Shard address.
        timeout: Connect and socket timeout in seconds.

    Returns:
        Pooled pymemcache client.
    """
    return PooledClient(
        (address.host, address.port),
        connect_timeout=timeout,
        timeout=timeout,
        no_delay=True,
    )


class DryRunClient:
    """Client that logs writes instead of sending them."""

    def __init__(self, address: ShardAddress, logger: Any = None) -> None:
        self._address = address
        self._logger = logger or _LOGGER

    def set(self, key: str, value: bytes, noreply: bool | None = None) -> bool:
        self._logger.debug(
            "dry_run_write", shard=str(self._address), key=key, value_size=len(value)
        )
        return True

    def close(self) -> None:
        return None


class ShardRouter:
    """Routes upload items to per-device-type cache clients."""

    def __init__(self, clients: Mapping[str, KeyValueClient], logger: Any = None) -> None:
        self._clients = dict(clients)
        self._logger = logger or _LOGGER

    @classmethod
    def from_shard_table(
        cls,
        shard_table: ShardTable,
        client_factory: ClientFactory,
        logger: Any = None,
    ) -> "ShardRouter":
        """Build one client per configured shard.

        Args:
            shard_table: Address per device type.
            client_factory: Builds a client for one address.
            logger: Structured logger.

        Returns:
            Router owning the created clients.
        """
        clients = {
            device_type: client_factory(shard_table.addresses[device_type])
            for device_type in shard_table.device_types
        }
        return cls(clients, logger)

    @property
    def device_types(self) -> tuple[str, ...]:
        """Device types with a configured client."""
        return tuple(sorted(self._clients))

    def dispatch(self, item: UploadItem) -> None:
        """Write one item to its shard with a single attempt.

        Args:
            item: Serialized upload item.

        Raises:
            UnknownShardError: If no client serves ``item.device_type``.
            ShardWriteError: If the backend fails or does not store the item.
        """
        client = self._clients.get(item.device_type)
        if client is None:
            raise UnknownShardError(
                f"No shard configured for device type {item.device_type!r} (key {item.key})"
            )
        try:
            stored = client.set(item.key, item.value, noreply=False)
        except (MemcacheError, OSError) as error:
            raise ShardWriteError(
                f"Failed to write {item.key} to {item.device_type} shard: {error}"
            ) from error
        if not stored:
            raise ShardWriteError(f"Shard {item.device_type} did not store {item.key}")

    def close(self) -> None:
        """Close every shard client."""
        for device_type, client in self._clients.items():
            client.close()
            self._logger.debug("shard_client_closed", device_type=device_type)
