"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindo.api import admin, auth, notifications, status, tickets, users
from mindo.api.errors import install_error_handlers
from mindo.api.request_id import RequestIdMiddleware
from mindo.clubs import jobs as club_jobs
from mindo.clubs.api import router as clubs_router
from mindo.infra import postgres
from mindo.infra.migrations import apply_migrations
from mindo.infra.scheduler import SweepScheduler
from mindo.maintenance.retention import purge_notifications
from mindo.obs import init as obs_init
from mindo.obs import logging as obs_logging
from mindo.settings import settings

logger = obs_logging.get_logger("mindo.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = await postgres.init_pool()
	if settings.auto_migrate:
		applied = await apply_migrations(pool)
		if applied:
			logger.info("migrations_applied", extra={"files": applied})
	scheduler: SweepScheduler | None = None
	if settings.expiry_jobs_enabled:
		scheduler = SweepScheduler()
		for job in club_jobs.build_jobs():
			scheduler.add_sweep(job.name, job.run_once, every=timedelta(minutes=settings.expiry_sweep_minutes))
		scheduler.add_sweep(
			"notifications-retention",
			purge_notifications,
			every=timedelta(hours=settings.retention_sweep_hours),
		)
		scheduler.start()
		app.state.scheduler = scheduler
	try:
		yield
	finally:
		if scheduler is not None:
			scheduler.shutdown()
		await postgres.close_pool()


app = FastAPI(title="Mindo Stack API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else [settings.public_app_url]

# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else [settings.public_app_url]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)
app.add_middleware(RequestIdMiddleware)

app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(clubs_router)
app.include_router(tickets.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(admin.router, prefix="/api")
app.include_router(status.router)
