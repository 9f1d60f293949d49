"""Shared club resources with role-based visibility."""

from __future__ import annotations

from typing import Optional

from mindo.clubs.domain import models, repo as repo_module
from mindo.clubs.domain.authorization import ClubContext, parse_id
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ForbiddenError, NotFoundError


class ContentService:
	def __init__(self, *, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	@staticmethod
	def _full_access(ctx: ClubContext) -> bool:
		return ctx.is_president or ctx.can("manage_content")

	def _visible(self, ctx: ClubContext, content: models.ClubContent) -> bool:
		return content.visible_to(ctx.membership.role, full_access=self._full_access(ctx))

	async def _load(self, ctx: ClubContext, content_id: str) -> models.ClubContent:
		content = await self.repo.get_content(parse_id(content_id, what="content"))
		if content is None or content.club_id != ctx.club.id:
			raise NotFoundError("Content not found")
		return content

	def _require_editor(self, ctx: ClubContext, content: models.ClubContent) -> None:
		if content.uploaded_by != ctx.user_id and not self._full_access(ctx):
			raise ForbiddenError("Not authorized to modify this content")

	async def create(self, ctx: ClubContext, payload: dto.ContentCreateRequest) -> models.ClubContent:
		if not (ctx.can("upload_content") or ctx.can("manage_content")):
			raise ForbiddenError("Access denied. You need the 'upload_content' permission to perform this action")
		data = payload.model_dump(exclude_none=True)
		data.update(club_id=ctx.club.id, uploaded_by=ctx.user_id, uploader_name=ctx.user.display_name)
		return await self.repo.create_content(data)

	async def list_content(self, ctx: ClubContext, *, category: Optional[str] = None) -> list[models.ClubContent]:
		items = await self.repo.list_content(ctx.club.id, category=category or None)
		return [item for item in items if self._visible(ctx, item)]

	async def categories(self, ctx: ClubContext) -> list[str]:
		return await self.repo.list_content_categories(ctx.club.id)

	async def get(self, ctx: ClubContext, content_id: str) -> models.ClubContent:
		content = await self._load(ctx, content_id)
		if not self._visible(ctx, content):
			raise ForbiddenError("You do not have access to this content")
		return content

	async def update(self, ctx: ClubContext, content_id: str, payload: dto.ContentUpdateRequest) -> models.ClubContent:
		content = await self._load(ctx, content_id)
		self._require_editor(ctx, content)
		updated = await self.repo.update_content(content.id, **payload.model_dump(exclude_none=True))
		if updated is None:
			raise NotFoundError("Content not found")
		return updated

	async def toggle_pin(self, ctx: ClubContext, content_id: str) -> models.ClubContent:
		content = await self._load(ctx, content_id)
		self._require_editor(ctx, content)
		updated = await self.repo.update_content(content.id, is_pinned=not content.is_pinned)
		if updated is None:
			raise NotFoundError("Content not found")
		return updated

	async def delete(self, ctx: ClubContext, content_id: str) -> None:
		content = await self._load(ctx, content_id)
		self._require_editor(ctx, content)
		await self.repo.delete_content(content.id)

	async def download(self, ctx: ClubContext, content_id: str) -> dto.DownloadResponse:
		content = await self.get(ctx, content_id)
		updated = await self.repo.increment_download(content.id) or content
		return dto.DownloadResponse(
			file_url=updated.file_url,
			file_name=updated.file_name,
			download_count=updated.download_count,
		)
