"""Announcement, comment, poll and form routes."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, PageEnvelope, done, ok, page
from mindo.clubs.api import deps
from mindo.clubs.domain.announcements import ClubAnnouncement, Comment, FormResponse, Reply
from mindo.clubs.domain.announcements_service import AnnouncementsService
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.schemas import dto
from mindo.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:announcements"])
_service = AnnouncementsService()

_BASE = "/clubs/{club_id}/announcements"


@router.post(_BASE, response_model=Envelope[ClubAnnouncement], status_code=201)
async def create_announcement_endpoint(
	payload: dto.AnnouncementCreateRequest,
	ctx: ClubContext = Depends(deps.require_permission("post_announcements")),
) -> Envelope[ClubAnnouncement]:
	try:
		return ok(await _service.create(ctx, payload), "Announcement created successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE, response_model=PageEnvelope[ClubAnnouncement])
async def list_announcements_endpoint(
	type: Optional[str] = None,
	page_number: int = Query(default=1, alias="page", ge=1),
	limit: int = Query(default=20, ge=1),
	ctx: ClubContext = Depends(deps.club_member),
) -> PageEnvelope[ClubAnnouncement]:
	try:
		items, total, current, size = await _service.list_announcements(ctx, type=type, page=page_number, limit=limit)
		return page(items, page=current, limit=size, total=total)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/announcements/my-announcements", response_model=PageEnvelope[ClubAnnouncement])
async def my_announcements_endpoint(
	page_number: int = Query(default=1, alias="page", ge=1),
	limit: int = Query(default=20, ge=1),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> PageEnvelope[ClubAnnouncement]:
	try:
		items, total, current, size = await _service.my_announcements(auth_user, page=page_number, limit=limit)
		return page(items, page=current, limit=size, total=total)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE + "/{announcement_id}", response_model=Envelope[ClubAnnouncement])
async def get_announcement_endpoint(
	announcement_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[ClubAnnouncement]:
	try:
		return ok(await _service.get(ctx, announcement_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{announcement_id}", response_model=Envelope[ClubAnnouncement])
async def update_announcement_endpoint(
	announcement_id: str,
	payload: dto.AnnouncementUpdateRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[ClubAnnouncement]:
	try:
		return ok(await _service.update(ctx, announcement_id, payload), "Announcement updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete(_BASE + "/{announcement_id}", response_model=ActionResponse)
async def delete_announcement_endpoint(
	announcement_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> ActionResponse:
	try:
		await _service.delete(ctx, announcement_id)
		return done("Announcement deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{announcement_id}/pin", response_model=Envelope[ClubAnnouncement])
async def pin_announcement_endpoint(
	announcement_id: str,
	ctx: ClubContext = Depends(deps.require_permission("post_announcements")),
) -> Envelope[ClubAnnouncement]:
	try:
		announcement = await _service.toggle_pin(ctx, announcement_id)
		message = "Announcement pinned" if announcement.is_pinned else "Announcement unpinned"
		return ok(announcement, message)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


# --- Comments ------------------------------------------------------------


@router.post(_BASE + "/{announcement_id}/comments", response_model=Envelope[Comment], status_code=201)
async def add_comment_endpoint(
	announcement_id: str,
	payload: dto.CommentRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[Comment]:
	try:
		return ok(await _service.add_comment(ctx, announcement_id, payload.text), "Comment added successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{announcement_id}/comments/{comment_id}", response_model=Envelope[Comment])
async def edit_comment_endpoint(
	announcement_id: str,
	comment_id: str,
	payload: dto.CommentRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[Comment]:
	try:
		comment = await _service.edit_comment(ctx, announcement_id, comment_id, payload.text)
		return ok(comment, "Comment updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete(_BASE + "/{announcement_id}/comments/{comment_id}", response_model=ActionResponse)
async def delete_comment_endpoint(
	announcement_id: str,
	comment_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> ActionResponse:
	try:
		await _service.delete_comment(ctx, announcement_id, comment_id)
		return done("Comment deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post(_BASE + "/{announcement_id}/comments/{comment_id}/reply", response_model=Envelope[Reply], status_code=201)
async def add_reply_endpoint(
	announcement_id: str,
	comment_id: str,
	payload: dto.CommentRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[Reply]:
	try:
		reply = await _service.add_reply(ctx, announcement_id, comment_id, payload.text)
		return ok(reply, "Reply added successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete(_BASE + "/{announcement_id}/comments/{comment_id}/replies/{reply_id}", response_model=ActionResponse)
async def delete_reply_endpoint(
	announcement_id: str,
	comment_id: str,
	reply_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> ActionResponse:
	try:
		await _service.delete_reply(ctx, announcement_id, comment_id, reply_id)
		return done("Reply deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


# --- Polls ---------------------------------------------------------------


@router.post(_BASE + "/{announcement_id}/poll/vote", response_model=Envelope[dict[str, Any]])
async def vote_endpoint(
	announcement_id: str,
	payload: dto.VoteRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[dict[str, Any]]:
	try:
		return ok(await _service.vote(ctx, announcement_id, payload.option_ids), "Vote recorded successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete(_BASE + "/{announcement_id}/poll/vote", response_model=Envelope[dict[str, Any]])
async def remove_vote_endpoint(
	announcement_id: str,
	option_id: Optional[str] = None,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[dict[str, Any]]:
	try:
		return ok(await _service.remove_vote(ctx, announcement_id, option_id), "Vote removed successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE + "/{announcement_id}/poll/results", response_model=Envelope[dict[str, Any]])
async def poll_results_endpoint(
	announcement_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[dict[str, Any]]:
	try:
		return ok(await _service.poll_results(ctx, announcement_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{announcement_id}/poll/close", response_model=Envelope[ClubAnnouncement])
async def close_poll_endpoint(
	announcement_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[ClubAnnouncement]:
	try:
		return ok(await _service.close_poll(ctx, announcement_id), "Poll closed successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


# --- Forms ---------------------------------------------------------------


@router.post(_BASE + "/{announcement_id}/form/submit", response_model=Envelope[FormResponse], status_code=201)
async def submit_form_endpoint(
	announcement_id: str,
	payload: dto.FormAnswersRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[FormResponse]:
	try:
		response = await _service.submit_response(ctx, announcement_id, payload.answers)
		return ok(response, "Form submitted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE + "/{announcement_id}/form/responses", response_model=Envelope[list[FormResponse]])
async def list_form_responses_endpoint(
	announcement_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[list[FormResponse]]:
	try:
		return ok(await _service.list_responses(ctx, announcement_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{announcement_id}/form/responses/{response_id}", response_model=Envelope[FormResponse])
async def update_form_response_endpoint(
	announcement_id: str,
	response_id: str,
	payload: dto.FormAnswersRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[FormResponse]:
	try:
		response = await _service.update_response(ctx, announcement_id, response_id, payload.answers)
		return ok(response, "Response updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete(_BASE + "/{announcement_id}/form/responses/{response_id}", response_model=ActionResponse)
async def delete_form_response_endpoint(
	announcement_id: str,
	response_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> ActionResponse:
	try:
		await _service.delete_response(ctx, announcement_id, response_id)
		return done("Response deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{announcement_id}/form/close", response_model=Envelope[ClubAnnouncement])
async def close_form_endpoint(
	announcement_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[ClubAnnouncement]:
	try:
		return ok(await _service.close_form(ctx, announcement_id), "Form closed successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
