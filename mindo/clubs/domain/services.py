"""Service layer orchestrating club lifecycle, roles, and configuration."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from mindo.clubs.domain import models, permissions, repo as repo_module
from mindo.clubs.domain.authorization import ClubAuthorizer, ClubContext
from mindo.clubs.schemas import dto
from mindo.domain.common import pagination
from mindo.domain.common.exceptions import NotFoundError, ValidationError
from mindo.domain.notifications.service import NotificationsService
from mindo.infra.auth import AuthenticatedUser
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics

logger = obs_logging.get_logger("mindo.clubs")


def _default_role() -> models.CustomRole:
	return models.CustomRole(
		name=permissions.DEFAULT_ROLE,
		permissions=list(permissions.DEFAULT_ROLE_PERMISSIONS),
		color=permissions.DEFAULT_ROLE_COLOR,
	)


def _guard_role_name(name: str) -> str:
	name = name.strip()
	if not name:
		raise ValidationError("Role name is required")
	if name.lower() == permissions.PRESIDENT_ROLE:
		raise ValidationError("The president role is reserved for the club owner")
	return name


def build_roles(requested: list[dto.RoleRequest]) -> list[models.CustomRole]:
	"""Validate requested roles and seed ``Member`` when it is missing."""
	roles: list[models.CustomRole] = []
	for item in requested:
		name = _guard_role_name(item.name)
		if any(role.name.lower() == name.lower() for role in roles):
			raise ValidationError(f"Duplicate role name: {name}")
		roles.append(
			models.CustomRole(
				name=name,
				permissions=permissions.ensure_known(item.permissions),
				color=item.color or permissions.DEFAULT_ROLE_COLOR,
			)
		)
	if not any(role.name == permissions.DEFAULT_ROLE for role in roles):
		roles.insert(0, _default_role())
	return roles


def build_questions(requested: Optional[list[dto.QuestionRequest]]) -> list[models.FormQuestion]:
	if not requested:
		return [models.FormQuestion.model_validate(item) for item in permissions.DEFAULT_APPLICATION_QUESTIONS]
	questions: list[models.FormQuestion] = []
	for index, item in enumerate(requested, start=1):
		if item.type == "multiple-choice" and len([opt for opt in item.options if opt.strip()]) < 2:
			raise ValidationError("Multiple-choice questions need at least two options")
		questions.append(
			models.FormQuestion(
				id=item.id or f"q{index}",
				question=item.question.strip(),
				type=item.type,
				options=[opt.strip() for opt in item.options if opt.strip()],
				required=item.required,
			)
		)
	return questions


class ClubsService:
	"""Implements club creation, configuration, and role management."""

	def __init__(
		self,
		repository: repo_module.ClubsRepository | None = None,
		notifications: NotificationsService | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self.auth = ClubAuthorizer(repository=self.repo)
		self.notifications = notifications or NotificationsService()

	# ------------------------------------------------------------------
	# Clubs

	async def create_club(self, user: AuthenticatedUser, payload: dto.ClubCreateRequest) -> models.Club:
		owner_id = UUID(user.id)
		if await self.repo.user_owns_club(owner_id):
			raise ValidationError("You already own a club. Each user can only be the president of one club.")
		if await self.repo.user_has_active_membership(owner_id):
			raise ValidationError(
				"You are currently a member of another club. Leave that club before creating your own."
			)
		form_in = payload.application_form or dto.ApplicationFormRequest()
		form = models.ApplicationForm(
			enabled=True if form_in.enabled is None else form_in.enabled,
			is_open=bool(form_in.is_open),
			questions=build_questions(form_in.questions),
		)
		club = await self.repo.create_club(
			name=payload.name,
			description=payload.description,
			category=payload.category,
			tags=payload.tags,
			logo=payload.logo,
			owner_id=owner_id,
			custom_roles=build_roles(payload.custom_roles),
			application_form=form,
		)
		obs_metrics.inc_club_created()
		logger.info("club_created", extra={"club_id": str(club.id), "owner_id": user.id})
		await self.notifications.broadcast(
			"system",
			"New club created",
			f'A new club "{club.name}" was just created. Check it out!',
			exclude=owner_id,
			link=f"/clubs/{club.id}",
			club_id=club.id,
			priority="low",
		)
		return club

	async def list_clubs(
		self,
		*,
		search: Optional[str] = None,
		category: Optional[str] = None,
		tag: Optional[str] = None,
		page: int = 1,
		limit: int = 20,
	) -> tuple[list[models.Club], int, int, int]:
		page, limit, offset = pagination.clamp(page, limit)
		clubs, total = await self.repo.list_clubs(
			search=(search or "").strip() or None,
			category=category or None,
			tag=tag or None,
			limit=limit,
			offset=offset,
		)
		return clubs, total, page, limit

	async def get_club(self, user: AuthenticatedUser | None, club_id: str) -> dto.ClubDetailResponse:
		if user is None:
			club = await self.auth.load_club(club_id)
			return dto.ClubDetailResponse(club=club)
		club, membership = await self.auth.optional_context(user, club_id)
		if membership is None:
			return dto.ClubDetailResponse(club=club)
		granted = [perm for perm in permissions.PERMISSIONS if membership.has_permission(club, perm)]
		return dto.ClubDetailResponse(
			club=club,
			is_member=True,
			membership=dto.MembershipView(
				role=membership.role,
				is_president=membership.is_president,
				permissions=granted,
			),
		)

	async def my_clubs(self, user: AuthenticatedUser) -> list[models.Club]:
		return await self.repo.list_owned_clubs(UUID(user.id))

	async def my_memberships(self, user: AuthenticatedUser) -> list[dto.MyMembership]:
		user_id = UUID(user.id)
		result = [
			dto.MyMembership(club=club, role=permissions.PRESIDENT_ROLE, is_president=True, joined_at=club.created_at)
			for club in await self.repo.list_owned_clubs(user_id)
		]
		for member in await self.repo.list_user_memberships(user_id):
			club = await self.repo.get_club(member.club_id)
			if club is None:
				continue
			result.append(dto.MyMembership(club=club, role=member.role, is_president=False, joined_at=member.joined_at))
		return result

	async def update_club(self, ctx: ClubContext, payload: dto.ClubUpdateRequest) -> models.Club:
		fields = payload.model_dump(exclude_unset=True)
		for key in ("name", "description", "category"):
			if key in fields:
				if fields[key] is None or not str(fields[key]).strip():
					raise ValidationError(f"{key.capitalize()} cannot be empty")
				fields[key] = str(fields[key]).strip()
		if "tags" in fields:
			fields["tags"] = dto.strip_tags(fields["tags"] or [])
		updated = await self.repo.update_club(ctx.club.id, **fields)
		if updated is None:
			raise NotFoundError("Club not found")
		return updated

	async def delete_club(self, ctx: ClubContext) -> None:
		if not await self.repo.delete_club(ctx.club.id):
			raise NotFoundError("Club not found")
		logger.info("club_deleted", extra={"club_id": str(ctx.club.id), "actor_id": ctx.user.id})

	async def stats(self, ctx: ClubContext) -> dto.ClubStats:
		distribution = await self.repo.role_distribution(ctx.club.id)
		return dto.ClubStats(
			total_members=sum(distribution.values()),
			role_distribution=distribution,
			violations=ctx.club.violation_count,
			custom_roles=len(ctx.club.custom_roles),
			created_at=ctx.club.created_at,
		)

	async def update_application_form(self, ctx: ClubContext, payload: dto.ApplicationFormRequest) -> models.ApplicationForm:
		questions = build_questions(payload.questions) if payload.questions is not None else None

		def mutate(club: models.Club) -> models.ApplicationForm:
			form = club.application_form
			if payload.enabled is not None:
				form.enabled = payload.enabled
			if payload.is_open is not None:
				form.is_open = payload.is_open
			if questions is not None:
				form.questions = questions
			return form

		result = await self.repo.mutate_club(ctx.club.id, mutate, columns=("application_form",))
		if result is None:
			raise NotFoundError("Club not found")
		return result[1]

	# ------------------------------------------------------------------
	# Roles

	async def list_roles(self, ctx: ClubContext) -> list[models.CustomRole]:
		return ctx.club.custom_roles

	async def create_role(self, ctx: ClubContext, payload: dto.RoleRequest) -> models.CustomRole:
		name = _guard_role_name(payload.name)
		role = models.CustomRole(
			name=name,
			permissions=permissions.ensure_known(payload.permissions),
			color=payload.color or permissions.DEFAULT_ROLE_COLOR,
		)

		def mutate(club: models.Club) -> models.CustomRole:
			if any(existing.name.lower() == name.lower() for existing in club.custom_roles):
				raise ValidationError("A role with this name already exists")
			club.custom_roles.append(role)
			return role

		result = await self.repo.mutate_club(ctx.club.id, mutate, columns=("custom_roles",))
		if result is None:
			raise NotFoundError("Club not found")
		return result[1]

	async def update_role(self, ctx: ClubContext, role_name: str, payload: dto.RoleUpdateRequest) -> models.CustomRole:
		new_name = _guard_role_name(payload.name) if payload.name is not None else None
		perms = permissions.ensure_known(payload.permissions) if payload.permissions is not None else None

		def mutate(club: models.Club) -> models.CustomRole:
			role = club.get_role(role_name)
			if role is None:
				raise NotFoundError("Role not found")
			if new_name and new_name != role.name:
				if role.name == permissions.DEFAULT_ROLE:
					raise ValidationError("The default Member role cannot be renamed")
				if any(other.name.lower() == new_name.lower() for other in club.custom_roles if other is not role):
					raise ValidationError("A role with this name already exists")
				role.name = new_name
			if perms is not None:
				role.permissions = perms
			if payload.color is not None:
				role.color = payload.color
			return role

		result = await self.repo.mutate_role(ctx.club.id, role_name, mutate)
		if result is None:
			raise NotFoundError("Club not found")
		role, moved = result
		if role.name != role_name:
			logger.info("club_role_renamed", extra={"club_id": str(ctx.club.id), "members": moved})
		return role

	async def delete_role(self, ctx: ClubContext, role_name: str) -> None:
		if role_name == permissions.DEFAULT_ROLE:
			raise ValidationError("The default Member role cannot be deleted")
		if ctx.club.get_role(role_name) is None:
			raise NotFoundError("Role not found")
		holders = await self.repo.count_members_with_role(ctx.club.id, role_name)
		if holders:
			raise ValidationError(
				f"Cannot delete role. {holders} member(s) currently have this role. Please reassign them first."
			)

		def mutate(club: models.Club) -> None:
			club.custom_roles = [role for role in club.custom_roles if role.name != role_name]

		await self.repo.mutate_club(ctx.club.id, mutate, columns=("custom_roles",))
