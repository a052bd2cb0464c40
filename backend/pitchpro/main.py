"""ASGI entrypoint.

`app` serves the REST API; `socket_app` wraps it with the `/chat` Socket.IO
namespace and is what uvicorn runs (`uvicorn pitchpro.main:socket_app`).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from pitchpro.api import chat, ops, profile, recruitment, uploads
from pitchpro.api.errors import install_error_handlers
from pitchpro.domain.chat.sockets import ChatNamespace
from pitchpro.infra.documents import get_document_store
from pitchpro.infra.redis import redis_client
from pitchpro.obs import init as obs_init
from pitchpro.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	store = get_document_store()
	logger.info(
		"startup",
		extra={
			"environment": settings.environment,
			"document_backend": type(store).__name__,
			"blob_backend": settings.blob_backend,
		},
	)
	try:
		yield
	finally:
		await redis_client.close()
		logger.info("shutdown")


app = FastAPI(title="PitchPro API", lifespan=lifespan)
obs_init(app)
install_error_handlers(app)

allow_origins = settings.cors_origins()
app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# local blobs are served under /files; a mount on /uploads would shadow POST /uploads/{kind}
if settings.blob_backend == "local":
	upload_root = Path(settings.upload_root).resolve()
	upload_root.mkdir(parents=True, exist_ok=True)
	app.mount("/files", StaticFiles(directory=str(upload_root)), name="files")

app.include_router(profile.router, tags=["profile"])
app.include_router(uploads.router, tags=["uploads"])
app.include_router(chat.router)
app.include_router(recruitment.router)
app.include_router(ops.router)

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
sio.register_namespace(ChatNamespace())
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
