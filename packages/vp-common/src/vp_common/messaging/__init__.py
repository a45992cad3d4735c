"""Messaging helpers (Redis streams and pub/sub) for VoxPay."""

from vp_common.messaging.redis_client import RedisClient

__all__ = ["RedisClient"]
