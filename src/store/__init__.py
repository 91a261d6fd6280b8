"""Cache storage layer.

This module encodes install records as protobuf payloads and routes
writes to the memcached shard of each device type.
"""
