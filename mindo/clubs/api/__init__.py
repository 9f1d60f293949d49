"""FastAPI routers for the clubs domain."""

from __future__ import annotations

from fastapi import APIRouter

from mindo.clubs.api import (
	announcements,
	applications,
	bans,
	clubs,
	content,
	invitations,
	members,
	roles,
	trips,
	violations,
)

router = APIRouter(prefix="/api")

router.include_router(clubs.router)
router.include_router(roles.router)
router.include_router(members.router)
router.include_router(applications.router)
router.include_router(invitations.router)
router.include_router(announcements.router)
router.include_router(trips.router)
router.include_router(content.router)
router.include_router(bans.router)
router.include_router(violations.router)
