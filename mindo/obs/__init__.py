"""Logging and Prometheus instrumentation for the API process."""

from __future__ import annotations

from fastapi import FastAPI

from mindo.obs import logging as obs_logging
from mindo.obs import middleware
from mindo.settings import settings


def init(app: FastAPI) -> None:
	"""Configure JSON logging and attach the request middleware once per app."""
	if not settings.obs_enabled or getattr(app.state, "obs_installed", False):
		return
	obs_logging.configure_logging()
	middleware.install(app)
	app.state.obs_installed = True
