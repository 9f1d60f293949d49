"""User profile endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from mindo.api.errors import to_http_error
from mindo.api.responses import Envelope, ok
from mindo.domain.identity import models, schemas
from mindo.domain.identity.service import IdentityService
from mindo.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/users", tags=["users"])
_service = IdentityService()


@router.get("/me", response_model=Envelope[models.UserProfile])
async def get_me_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> Envelope[models.UserProfile]:
	try:
		return ok(await _service.get_me(auth_user))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/me", response_model=Envelope[models.UserProfile])
async def update_me_endpoint(
	payload: schemas.ProfileUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.UserProfile]:
	try:
		return ok(await _service.update_me(auth_user, payload), "Profile updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/search", response_model=Envelope[list[models.PublicUser]])
async def search_users_endpoint(
	q: str = Query(default=""),
	limit: int = Query(default=10, ge=1, le=50),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[list[models.PublicUser]]:
	try:
		return ok(await _service.search(auth_user, q, limit=limit))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/{user_id}", response_model=Envelope[models.PublicUser])
async def get_user_endpoint(
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.PublicUser]:
	try:
		return ok(await _service.get_public(user_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
