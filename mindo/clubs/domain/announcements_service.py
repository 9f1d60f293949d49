"""Announcements plus their poll, form, and comment engagement.

Engagement operations load the announcement under a row lock, apply one
mutation from :mod:`mindo.clubs.domain.announcements`, and write the document
back in the same transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional, TypeVar
from uuid import UUID

from mindo.clubs.domain import repo as repo_module
from mindo.clubs.domain.announcements import (
	ClubAnnouncement,
	Comment,
	Form,
	FormField,
	FormResponse,
	FormSettings,
	Poll,
	PollOption,
	PollSettings,
	Reply,
)
from mindo.clubs.domain.authorization import ClubContext, parse_id
from mindo.clubs.schemas import dto
from mindo.domain.common import pagination
from mindo.domain.common.exceptions import ForbiddenError, NotFoundError, ValidationError
from mindo.infra.auth import AuthenticatedUser
from mindo.obs import metrics as obs_metrics
from mindo.settings import settings

ResultT = TypeVar("ResultT")


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def build_poll(request: Optional[dto.PollRequest]) -> Poll:
	if request is None:
		raise ValidationError("Poll details are required for poll announcements")
	options = [text.strip() for text in request.options if text and text.strip()]
	if len(options) < 2:
		raise ValidationError("A poll needs at least two options")
	return Poll(
		question=request.question.strip(),
		options=[PollOption(text=text) for text in options],
		settings=PollSettings(**request.settings.model_dump()),
	)


def build_form(request: Optional[dto.FormRequest]) -> Form:
	if request is None or not request.fields:
		raise ValidationError("A form needs at least one field")
	fields = []
	for item in request.fields:
		if item.type == "select" and not item.options:
			raise ValidationError(f"Select field needs options: {item.label}")
		fields.append(FormField(label=item.label.strip(), type=item.type, required=item.required, options=item.options))
	return Form(fields=fields, settings=FormSettings(**request.settings.model_dump()))


class AnnouncementsService:
	def __init__(
		self,
		*,
		repository: repo_module.ClubsRepository | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self._clock = clock or _utcnow

	# ------------------------------------------------------------------
	# Helpers

	async def _load(self, ctx: ClubContext, announcement_id: str) -> ClubAnnouncement:
		announcement = await self.repo.get_announcement(parse_id(announcement_id, what="announcement"))
		if announcement is None or announcement.club_id != ctx.club.id:
			raise NotFoundError("Announcement not found")
		return announcement

	async def _mutate(
		self,
		ctx: ClubContext,
		announcement_id: str,
		mutator: Callable[[ClubAnnouncement], ResultT],
	) -> tuple[ClubAnnouncement, ResultT]:
		announcement = await self._load(ctx, announcement_id)
		result = await self.repo.mutate_announcement(announcement.id, mutator)
		if result is None:
			raise NotFoundError("Announcement not found")
		return result

	@staticmethod
	def _is_author(ctx: ClubContext, announcement: ClubAnnouncement) -> bool:
		return announcement.announcer_id == ctx.user_id

	def _require_manager(self, ctx: ClubContext, announcement: ClubAnnouncement, action: str) -> None:
		if not (self._is_author(ctx, announcement) or ctx.can("post_announcements")):
			raise ForbiddenError(f"Not authorized to {action}")

	# ------------------------------------------------------------------
	# Announcements

	async def create(self, ctx: ClubContext, payload: dto.AnnouncementCreateRequest) -> ClubAnnouncement:
		data: dict[str, Any] = {
			"club_id": ctx.club.id,
			"title": payload.title.strip(),
			"content": payload.content.strip(),
			"type": payload.type,
			"announcer_id": ctx.user_id,
			"announcer_name": ctx.user.display_name,
			"poll": build_poll(payload.poll) if payload.type == "poll" else None,
			"form": build_form(payload.form) if payload.type == "form" else None,
		}
		return await self.repo.create_announcement(data)

	async def list_announcements(
		self,
		ctx: ClubContext,
		*,
		type: Optional[str] = None,
		page: int = 1,
		limit: int = 20,
	) -> tuple[list[ClubAnnouncement], int, int, int]:
		page, limit, offset = pagination.clamp(page, limit)
		items, total = await self.repo.list_announcements(ctx.club.id, type=type or None, limit=limit, offset=offset)
		return items, total, page, limit

	async def get(self, ctx: ClubContext, announcement_id: str) -> ClubAnnouncement:
		return await self._load(ctx, announcement_id)

	async def update(self, ctx: ClubContext, announcement_id: str, payload: dto.AnnouncementUpdateRequest) -> ClubAnnouncement:
		announcement = await self._load(ctx, announcement_id)
		self._require_manager(ctx, announcement, "update this announcement")
		fields = {key: value.strip() for key, value in payload.model_dump(exclude_none=True).items()}
		updated = await self.repo.update_announcement(announcement.id, **fields)
		if updated is None:
			raise NotFoundError("Announcement not found")
		return updated

	async def delete(self, ctx: ClubContext, announcement_id: str) -> None:
		announcement = await self._load(ctx, announcement_id)
		if not (self._is_author(ctx, announcement) or ctx.is_president):
			raise ForbiddenError("Not authorized to delete this announcement")
		await self.repo.delete_announcement(announcement.id)

	async def toggle_pin(self, ctx: ClubContext, announcement_id: str) -> ClubAnnouncement:
		if not ctx.can("post_announcements"):
			raise ForbiddenError("Access denied. You need the 'post_announcements' permission to perform this action")
		announcement, _ = await self._mutate(ctx, announcement_id, lambda item: item.toggle_pin())
		return announcement

	async def my_announcements(self, user: AuthenticatedUser, *, page: int = 1, limit: int = 20) -> tuple[list[ClubAnnouncement], int, int, int]:
		page, limit, offset = pagination.clamp(page, limit)
		items, total = await self.repo.list_user_feed(UUID(user.id), limit=limit, offset=offset)
		return items, total, page, limit

	# ------------------------------------------------------------------
	# Comments

	async def add_comment(self, ctx: ClubContext, announcement_id: str, text: str) -> Comment:
		now = self._clock()
		_, comment = await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.add_comment(ctx.user_id, ctx.user.display_name, text, now),
		)
		return comment

	async def edit_comment(self, ctx: ClubContext, announcement_id: str, comment_id: str, text: str) -> Comment:
		now = self._clock()
		window = settings.comment_edit_window_minutes
		_, comment = await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.edit_comment(comment_id, ctx.user_id, text, now, window_minutes=window),
		)
		return comment

	async def delete_comment(self, ctx: ClubContext, announcement_id: str, comment_id: str) -> None:
		await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.delete_comment(comment_id, ctx.user_id, moderator=ctx.is_president),
		)

	async def add_reply(self, ctx: ClubContext, announcement_id: str, comment_id: str, text: str) -> Reply:
		now = self._clock()
		_, reply = await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.add_reply(comment_id, ctx.user_id, ctx.user.display_name, text, now),
		)
		return reply

	async def delete_reply(self, ctx: ClubContext, announcement_id: str, comment_id: str, reply_id: str) -> None:
		await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.delete_reply(comment_id, reply_id, ctx.user_id, moderator=ctx.is_president),
		)

	# ------------------------------------------------------------------
	# Polls

	async def vote(self, ctx: ClubContext, announcement_id: str, option_ids: list[str]) -> dict[str, Any]:
		now = self._clock()
		announcement, chosen = await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.vote(ctx.user_id, ctx.user.display_name, option_ids, now),
		)
		obs_metrics.inc_poll_vote("cast")
		results = announcement.poll_results(now)
		results["user_votes"] = chosen
		return results

	async def remove_vote(self, ctx: ClubContext, announcement_id: str, option_id: Optional[str] = None) -> dict[str, Any]:
		now = self._clock()
		announcement, _ = await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.remove_vote(ctx.user_id, now, option_id),
		)
		obs_metrics.inc_poll_vote("removed")
		return announcement.poll_results(now)

	async def poll_results(self, ctx: ClubContext, announcement_id: str) -> dict[str, Any]:
		announcement = await self._load(ctx, announcement_id)
		results = announcement.poll_results(self._clock())
		if announcement.poll is not None:
			results["user_votes"] = [option.id for option in announcement.poll.options_voted_by(ctx.user_id)]
		return results

	async def close_poll(self, ctx: ClubContext, announcement_id: str) -> ClubAnnouncement:
		announcement = await self._load(ctx, announcement_id)
		self._require_manager(ctx, announcement, "close this poll")
		updated, _ = await self._mutate(ctx, announcement_id, lambda item: item.close_poll())
		return updated

	# ------------------------------------------------------------------
	# Forms

	async def submit_response(self, ctx: ClubContext, announcement_id: str, answers: dict[str, Any]) -> FormResponse:
		now = self._clock()
		_, response = await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.submit_response(ctx.user_id, ctx.user.display_name, answers, now),
		)
		obs_metrics.inc_form_response("submitted")
		return response

	async def update_response(
		self,
		ctx: ClubContext,
		announcement_id: str,
		response_id: str,
		answers: dict[str, Any],
	) -> FormResponse:
		now = self._clock()
		_, response = await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.update_response(response_id, ctx.user_id, answers, now),
		)
		obs_metrics.inc_form_response("updated")
		return response

	async def delete_response(self, ctx: ClubContext, announcement_id: str, response_id: str) -> None:
		await self._mutate(
			ctx,
			announcement_id,
			lambda item: item.delete_response(response_id, ctx.user_id, moderator=ctx.is_president),
		)
		obs_metrics.inc_form_response("deleted")

	async def list_responses(self, ctx: ClubContext, announcement_id: str) -> list[FormResponse]:
		announcement = await self._load(ctx, announcement_id)
		if not (self._is_author(ctx, announcement) or ctx.can("post_announcements") or ctx.is_president):
			raise ForbiddenError("Not authorized to view form responses")
		if announcement.type != "form" or announcement.form is None:
			raise ValidationError("This announcement is not a form")
		return announcement.form.responses

	async def close_form(self, ctx: ClubContext, announcement_id: str) -> ClubAnnouncement:
		announcement = await self._load(ctx, announcement_id)
		self._require_manager(ctx, announcement, "close this form")
		updated, _ = await self._mutate(ctx, announcement_id, lambda item: item.close_form())
		return updated
