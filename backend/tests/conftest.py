import os
import sys
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Settings are read at import time
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("DOCUMENT_BACKEND", "memory")
os.environ.setdefault("BLOB_BACKEND", "local")
os.environ.setdefault("UPLOAD_ROOT", tempfile.mkdtemp(prefix="pitchpro-uploads-"))

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from pitchpro.infra import blobs
from pitchpro.infra.auth import AuthenticatedUser
from pitchpro.infra.documents import set_document_store
from pitchpro.infra.memory_store import MemoryDocumentStore
from pitchpro.infra.redis import set_redis_client
from pitchpro.main import app
from pitchpro.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	client = FakeRedis(decode_responses=True)
	previous = set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(previous)
		await client.flushall()


@pytest_asyncio.fixture(autouse=True)
async def store():
	memory = MemoryDocumentStore()
	set_document_store(memory)
	try:
		yield memory
	finally:
		set_document_store(None)


@pytest.fixture(autouse=True)
def blob_store():
	local = blobs.LocalBlobStore(settings.upload_root, "http://testserver/files")
	blobs.set_blob_store(local)
	try:
		yield local
	finally:
		blobs.set_blob_store(None)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate via X-User-Id headers, which are only accepted in dev mode."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture
def user_a() -> AuthenticatedUser:
	return AuthenticatedUser(id="A", email="a@example.com")


@pytest.fixture
def user_b() -> AuthenticatedUser:
	return AuthenticatedUser(id="B", email="b@example.com")


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
