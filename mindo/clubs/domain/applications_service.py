"""Join requests: submission, interviews, review, and withdrawal."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import UUID

from mindo.clubs.domain import models, permissions, repo as repo_module
from mindo.clubs.domain.authorization import ClubAuthorizer, parse_id
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from mindo.domain.notifications.service import NotificationsService
from mindo.infra.auth import AuthenticatedUser
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics

logger = obs_logging.get_logger("mindo.clubs.applications")


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def missing_required(form: models.ApplicationForm, answers: list[models.ApplicationAnswer]) -> list[str]:
	"""Return the required questions that have no non-blank answer."""
	answered = {item.question.strip() for item in answers if item.answer and item.answer.strip()}
	return [
		question.question
		for question in form.questions
		if question.required and question.question.strip() not in answered and question.id not in answered
	]


class ApplicationsService:
	def __init__(
		self,
		*,
		repository: repo_module.ClubsRepository | None = None,
		notifications: NotificationsService | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self.auth = ClubAuthorizer(repository=self.repo)
		self.notifications = notifications or NotificationsService()
		self._clock = clock or _utcnow

	async def _load(self, application_id: str) -> models.ClubApplication:
		application = await self.repo.get_application(parse_id(application_id, what="application"))
		if application is None:
			raise NotFoundError("Application not found")
		return application

	async def _require(self, user: AuthenticatedUser, application: models.ClubApplication, permission: str) -> models.Club:
		ctx = await self.auth.require_permission(user, application.club_id, permission)
		return ctx.club

	async def submit(
		self,
		user: AuthenticatedUser,
		club_id: str,
		payload: dto.ApplicationSubmitRequest,
	) -> models.ClubApplication:
		club = await self.auth.load_club(club_id)
		user_id = UUID(user.id)
		if club.is_owner(user_id):
			raise ValidationError("You are the president of this club")
		if club.is_suspended:
			raise ValidationError("This club is currently suspended and cannot accept applications")
		if not club.application_form.enabled or not club.application_form.is_open:
			raise ValidationError("This club is not currently accepting applications")
		member = await self.repo.get_member(club.id, user_id)
		if member is not None and member.is_active:
			raise ValidationError("You are already a member of this club")
		if await self.repo.get_ban_in_force(club.id, user_id, now=self._clock()) is not None:
			raise ForbiddenError("You are banned from this club")
		if await self.repo.get_pending_application(club.id, user_id) is not None:
			raise ConflictError("You already have a pending application for this club")
		if missing_required(club.application_form, payload.answers):
			raise ValidationError("Please answer all required questions")

		application = await self.repo.create_application(
			club_id=club.id,
			user_id=user_id,
			message=payload.message.strip(),
			answers=payload.answers,
		)
		logger.info("application_submitted", extra={"club_id": str(club.id), "user_id": user.id})

		reviewers = {club.owner_id}
		for candidate in await self.repo.list_members(club.id):
			role = club.get_role(candidate.role)
			for perm in ("view_applications", "approve_applications"):
				if permissions.role_grants(role.permissions if role else None, candidate.custom_permissions, perm):
					reviewers.add(candidate.user_id)
		for reviewer in reviewers:
			await self.notifications.notify(
				reviewer,
				"club_join_request",
				"New club application",
				f"{user.display_name} applied to join {club.name}",
				link=f"/clubs/{club.id}/applications",
				club_id=club.id,
				entity_type="application",
				entity_id=application.id,
			)
		return application

	async def list_for_club(self, user: AuthenticatedUser, club_id: str, *, status: Optional[str] = None) -> list[models.ClubApplication]:
		ctx = await self.auth.require_permission(user, club_id, "view_applications")
		return await self.repo.list_applications(ctx.club.id, status=status or None)

	async def my_applications(self, user: AuthenticatedUser) -> list[models.ClubApplication]:
		return await self.repo.list_user_applications(UUID(user.id))

	async def get(self, user: AuthenticatedUser, application_id: str) -> models.ClubApplication:
		application = await self._load(application_id)
		if str(application.user_id) == user.id:
			return application
		club, membership = await self.auth.optional_context(user, application.club_id)
		if membership is None or not membership.has_permission(club, "view_applications"):
			raise ForbiddenError("Access denied")
		return application

	async def schedule_interview(
		self,
		user: AuthenticatedUser,
		application_id: str,
		payload: dto.InterviewRequest,
	) -> models.ClubApplication:
		application = await self._load(application_id)
		club = await self._require(user, application, "interview_applicants")
		if application.status != "pending":
			raise ValidationError("Interviews can only be scheduled for pending applications")
		interview = models.Interview(
			scheduled_at=payload.scheduled_at,
			location=payload.location.strip(),
			notes=payload.notes,
			scheduled_by=UUID(user.id),
		)
		updated = await self.repo.set_application_interview(application.id, interview)
		if updated is None:
			raise ValidationError("Interviews can only be scheduled for pending applications")
		await self.notifications.notify(
			application.user_id,
			"club_join_request",
			"Interview scheduled",
			f"Your interview for {club.name} has been scheduled for {payload.scheduled_at.date().isoformat()}",
			club_id=club.id,
			entity_type="application",
			entity_id=application.id,
			priority="high",
		)
		return updated

	async def complete_interview(
		self,
		user: AuthenticatedUser,
		application_id: str,
		payload: dto.InterviewCompleteRequest,
	) -> models.ClubApplication:
		application = await self._load(application_id)
		await self._require(user, application, "interview_applicants")
		if application.interview is None:
			raise ValidationError("No interview has been scheduled for this application")
		interview = application.interview.model_copy(
			update={
				"completed": True,
				"completed_at": self._clock(),
				"notes": payload.notes if payload.notes is not None else application.interview.notes,
			}
		)
		updated = await self.repo.set_application_interview(application.id, interview)
		if updated is None:
			raise ValidationError("Application has already been reviewed")
		return updated

	async def approve(self, user: AuthenticatedUser, application_id: str) -> models.ClubApplication:
		application = await self._load(application_id)
		club = await self._require(user, application, "approve_applications")
		approved, member = await self.repo.approve_application(
			application.id,
			reviewer_id=UUID(user.id),
			now=self._clock(),
		)
		obs_metrics.inc_application_reviewed("approved")
		obs_metrics.inc_membership("joined")
		logger.info(
			"application_approved",
			extra={"club_id": str(club.id), "member_id": str(member.id), "user_id": str(member.user_id)},
		)
		await self.notifications.notify(
			application.user_id,
			"club_join_request",
			"Application approved",
			f"Congratulations! Your application to join {club.name} has been approved",
			link=f"/clubs/{club.id}",
			club_id=club.id,
			entity_type="application",
			entity_id=application.id,
			priority="high",
		)
		return approved

	async def reject(
		self,
		user: AuthenticatedUser,
		application_id: str,
		payload: dto.ApplicationRejectRequest,
	) -> models.ClubApplication:
		application = await self._load(application_id)
		club = await self._require(user, application, "approve_applications")
		if application.status != "pending":
			raise ValidationError("Application has already been reviewed")
		reason = (payload.reason or "").strip() or None
		rejected = await self.repo.reject_application(
			application.id,
			reviewer_id=UUID(user.id),
			reason=reason,
			now=self._clock(),
		)
		if rejected is None:
			raise ValidationError("Application has already been reviewed")
		obs_metrics.inc_application_reviewed("rejected")
		suffix = f": {reason}" if reason else ""
		await self.notifications.notify(
			application.user_id,
			"club_join_request",
			"Application update",
			f"Your application to join {club.name} was not approved{suffix}",
			club_id=club.id,
			entity_type="application",
			entity_id=application.id,
		)
		return rejected

	async def withdraw(self, user: AuthenticatedUser, application_id: str) -> None:
		application = await self._load(application_id)
		if str(application.user_id) != user.id:
			raise ForbiddenError("You can only withdraw your own applications")
		if application.status == "approved":
			raise ValidationError("Cannot withdraw an approved application")
		await self.repo.delete_application(application.id)
