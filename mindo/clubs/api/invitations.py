"""Club invitation routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, done, ok
from mindo.clubs.api import deps
from mindo.clubs.domain import models
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.domain.invitations_service import InvitationsService
from mindo.clubs.schemas import dto
from mindo.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:invitations"])
_service = InvitationsService()

_invite_members = deps.require_permission("invite_members")


class AcceptedInvitation(BaseModel):
	invitation: models.ClubInvitation
	membership: models.ClubMember


@router.post("/clubs/{club_id}/invitations", response_model=Envelope[models.ClubInvitation], status_code=201)
async def invite_endpoint(
	payload: dto.InvitationCreateRequest,
	ctx: ClubContext = Depends(_invite_members),
) -> Envelope[models.ClubInvitation]:
	try:
		return ok(await _service.invite(ctx, payload), "Invitation sent successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/invitations", response_model=Envelope[list[models.ClubInvitation]])
async def list_club_invitations_endpoint(
	ctx: ClubContext = Depends(_invite_members),
) -> Envelope[list[models.ClubInvitation]]:
	try:
		return ok(await _service.list_for_club(ctx))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/invitations/my-invitations", response_model=Envelope[list[models.ClubInvitation]])
async def my_invitations_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[list[models.ClubInvitation]]:
	try:
		return ok(await _service.my_invitations(auth_user))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/invitations/{invitation_id}/accept", response_model=Envelope[AcceptedInvitation])
async def accept_invitation_endpoint(
	invitation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[AcceptedInvitation]:
	try:
		invitation, member = await _service.accept(auth_user, invitation_id)
		return ok(AcceptedInvitation(invitation=invitation, membership=member), "Invitation accepted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/invitations/{invitation_id}/decline", response_model=Envelope[models.ClubInvitation])
async def decline_invitation_endpoint(
	invitation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.ClubInvitation]:
	try:
		return ok(await _service.decline(auth_user, invitation_id), "Invitation declined")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/invitations/{invitation_id}", response_model=ActionResponse)
async def cancel_invitation_endpoint(
	invitation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ActionResponse:
	try:
		await _service.cancel(auth_user, invitation_id)
		return done("Invitation cancelled successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
