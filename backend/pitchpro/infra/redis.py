"""Shared Redis client.

Modules import `redis_client` once; the connection behind it is opened on first
use from `settings.redis_url` and can be replaced (fakeredis in tests) without
touching those imports.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as redis

from pitchpro.settings import settings


class RedisProxy:
	def __init__(self, url: str) -> None:
		self._url = url
		self._client: Optional[redis.Redis] = None

	@property
	def client(self) -> redis.Redis:
		if self._client is None:
			self._client = redis.from_url(self._url, decode_responses=True)
		return self._client

	def swap(self, client: Optional[redis.Redis]) -> Optional[redis.Redis]:
		"""Install `client` and return the previous one (None means not yet connected)."""
		previous, self._client = self._client, client
		return previous

	async def close(self) -> None:
		if self._client is None:
			return
		client, self._client = self._client, None
		await client.aclose()

	def __getattr__(self, item):
		return getattr(self.client, item)


redis_client = RedisProxy(settings.redis_url)


def set_redis_client(client: Optional[redis.Redis]) -> Optional[redis.Redis]:
	return redis_client.swap(client)
