"""Logging and metrics wiring for the API process."""

from __future__ import annotations

from fastapi import FastAPI

from pitchpro.obs import logging as obs_logging
from pitchpro.obs import middleware
from pitchpro.settings import settings

_logging_configured = False


def init(app: FastAPI) -> None:
	"""Install request instrumentation; JSON logging is configured once per process."""
	global _logging_configured
	middleware.install(app, access_log=settings.obs_enabled)
	if settings.obs_enabled and not _logging_configured:
		obs_logging.configure_logging()
		_logging_configured = True


__all__ = ["init"]
