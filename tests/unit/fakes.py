"""In-memory stand-ins for the Postgres repositories used by service tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from mindo.clubs.domain import models, permissions
from mindo.clubs.domain.announcements import ClubAnnouncement
from mindo.clubs.domain.trips import ClubTrip
from mindo.domain.common.exceptions import ConflictError, NotFoundError, ValidationError
from mindo.domain.identity import models as identity_models


def _now() -> datetime:
	return datetime.now(timezone.utc)


class FakeClubsRepository:
	"""Keeps clubs, members and their user back-references consistent like the SQL layer."""

	def __init__(self) -> None:
		self.clubs: dict[UUID, models.Club] = {}
		self.members: dict[tuple[UUID, UUID], models.ClubMember] = {}
		self.applications: dict[UUID, models.ClubApplication] = {}
		self.invitations: dict[UUID, models.ClubInvitation] = {}
		self.announcements: dict[UUID, ClubAnnouncement] = {}
		self.trips: dict[UUID, ClubTrip] = {}
		self.bans: dict[UUID, models.ClubBan] = {}
		self.violations: dict[UUID, models.ClubViolation] = {}
		self.users: dict[UUID, dict[str, Any]] = {}
		self.user_memberships: dict[UUID, list[UUID]] = {}
		self.user_applications: dict[UUID, list[UUID]] = {}

	def add_user(self, username: str) -> UUID:
		user_id = uuid4()
		self.users[user_id] = {"id": user_id, "username": username, "email": f"{username}@example.com"}
		return user_id

	# --- clubs

	async def create_club(
		self,
		*,
		name: str,
		description: str,
		category: str,
		tags,
		logo,
		owner_id: UUID,
		custom_roles,
		application_form: models.ApplicationForm,
	) -> models.Club:
		if any(club.name == name for club in self.clubs.values()):
			raise ValidationError("A club with this name already exists")
		now = _now()
		club = models.Club(
			id=uuid4(),
			name=name,
			description=description,
			category=category,
			tags=list(tags),
			logo=logo,
			owner_id=owner_id,
			custom_roles=list(custom_roles),
			application_form=application_form,
			created_at=now,
			updated_at=now,
		)
		self.clubs[club.id] = club
		return club.model_copy(deep=True)

	async def get_club(self, club_id: UUID) -> models.Club | None:
		club = self.clubs.get(club_id)
		return club.model_copy(deep=True) if club else None

	async def list_clubs(self, *, search=None, category=None, tag=None, limit: int = 20, offset: int = 0):
		clubs = [club for club in self.clubs.values() if not search or search.lower() in club.name.lower()]
		return [club.model_copy(deep=True) for club in clubs[offset:offset + limit]], len(clubs)

	async def list_owned_clubs(self, user_id: UUID) -> list[models.Club]:
		return [club.model_copy(deep=True) for club in self.clubs.values() if club.owner_id == user_id]

	async def user_owns_club(self, user_id: UUID) -> bool:
		return any(club.owner_id == user_id for club in self.clubs.values())

	async def user_has_active_membership(self, user_id: UUID) -> bool:
		return any(member.user_id == user_id and member.status == "active" for member in self.members.values())

	async def update_club(self, club_id: UUID, **fields: Any) -> models.Club | None:
		club = self.clubs.get(club_id)
		if club is None:
			return None
		self.clubs[club_id] = club.model_copy(update={**fields, "updated_at": _now()})
		return self.clubs[club_id].model_copy(deep=True)

	async def mutate_club(self, club_id: UUID, mutator, *, columns=()):
		club = self.clubs.get(club_id)
		if club is None:
			return None
		working = club.model_copy(deep=True)
		result = mutator(working)
		self.clubs[club_id] = working
		return working.model_copy(deep=True), result

	async def mutate_role(self, club_id: UUID, role_name: str, mutator):
		result = await self.mutate_club(club_id, mutator)
		if result is None:
			return None
		role = result[1]
		moved = 0
		if role.name != role_name:
			for (cid, _), member in self.members.items():
				if cid == club_id and member.role == role_name:
					member.role = role.name
					moved += 1
		return role, moved

	async def delete_club(self, club_id: UUID) -> bool:
		if self.clubs.pop(club_id, None) is None:
			return False
		for key in [key for key in self.members if key[0] == club_id]:
			member = self.members.pop(key)
			self._drop_back_ref(member)
		return True

	async def set_suspension(self, club_id: UUID, *, suspended: bool, end_date, reason) -> models.Club | None:
		return await self.update_club(
			club_id,
			is_suspended=suspended,
			suspension_end_date=end_date,
			suspension_reason=reason,
		)

	async def lift_expired_suspensions(self, now: datetime) -> int:
		lifted = 0
		for club_id, club in list(self.clubs.items()):
			if club.is_suspended and club.suspension_end_date is not None and club.suspension_end_date < now:
				await self.set_suspension(club_id, suspended=False, end_date=None, reason=None)
				lifted += 1
		return lifted

	async def reconcile_member_counts(self) -> int:
		corrected = 0
		for club_id, club in self.clubs.items():
			actual = sum(1 for (cid, _), member in self.members.items() if cid == club_id and member.status == "active")
			if club.member_count != actual:
				club.member_count = actual
				corrected += 1
		return corrected

	async def club_counts(self) -> dict[str, int]:
		return {
			"total_clubs": len(self.clubs),
			"suspended_clubs": sum(1 for club in self.clubs.values() if club.is_suspended),
		}

	async def role_distribution(self, club_id: UUID) -> dict[str, int]:
		distribution: dict[str, int] = {}
		for (cid, _), member in self.members.items():
			if cid == club_id and member.status == "active":
				distribution[member.role] = distribution.get(member.role, 0) + 1
		return distribution

	async def get_user_summary(self, user_id: UUID) -> dict[str, Any] | None:
		return self.users.get(user_id)

	# --- members

	def _bump(self, club_id: UUID, delta: int) -> None:
		club = self.clubs[club_id]
		club.member_count = max(club.member_count + delta, 0)

	def _drop_back_ref(self, member: models.ClubMember) -> None:
		refs = self.user_memberships.get(member.user_id, [])
		if member.id in refs:
			refs.remove(member.id)

	def _insert_member(self, club_id: UUID, user_id: UUID, role: str) -> models.ClubMember:
		if any(club.owner_id == user_id for club in self.clubs.values()):
			raise ValidationError("User is already a president of another club and cannot join as a member.")
		if (club_id, user_id) in self.members:
			raise ConflictError("User is already a member of this club")
		member = models.ClubMember(id=uuid4(), club_id=club_id, user_id=user_id, role=role, joined_at=_now())
		self.members[(club_id, user_id)] = member
		self.user_memberships.setdefault(user_id, []).append(member.id)
		self._bump(club_id, 1)
		return member

	async def get_member(self, club_id: UUID, user_id: UUID) -> models.ClubMember | None:
		member = self.members.get((club_id, user_id))
		return member.model_copy(deep=True) if member else None

	async def list_members(self, club_id: UUID, *, status: Optional[str] = "active", role: Optional[str] = None):
		return [
			member.model_copy(deep=True)
			for (cid, _), member in self.members.items()
			if cid == club_id and (status is None or member.status == status) and (role is None or member.role == role)
		]

	async def list_user_memberships(self, user_id: UUID) -> list[models.ClubMember]:
		return [
			member.model_copy(deep=True)
			for member in self.members.values()
			if member.user_id == user_id and member.status == "active"
		]

	async def add_member(self, club_id: UUID, user_id: UUID, *, role: str = permissions.DEFAULT_ROLE) -> models.ClubMember:
		return self._insert_member(club_id, user_id, role).model_copy(deep=True)

	async def remove_member(self, club_id: UUID, user_id: UUID) -> bool:
		member = self.members.pop((club_id, user_id), None)
		if member is None:
			return False
		if member.status == "active":
			self._bump(club_id, -1)
		self._drop_back_ref(member)
		return True

	async def set_member_status(self, club_id: UUID, user_id: UUID, status: str) -> models.ClubMember | None:
		member = self.members.get((club_id, user_id))
		if member is None:
			return None
		if member.status != status:
			if member.status == "active":
				self._bump(club_id, -1)
			elif status == "active":
				self._bump(club_id, 1)
			member.status = status
		return member.model_copy(deep=True)

	async def update_member(self, club_id: UUID, user_id: UUID, *, role=None, custom_permissions=None, title=None, notes=None):
		member = self.members.get((club_id, user_id))
		if member is None:
			return None
		if role is not None:
			member.role = role
		if custom_permissions is not None:
			member.custom_permissions = list(custom_permissions)
		if title is not None:
			member.title = title
		if notes is not None:
			member.notes = notes
		return member.model_copy(deep=True)

	# --- applications

	async def create_application(self, *, club_id: UUID, user_id: UUID, message: str, answers) -> models.ClubApplication:
		if await self.get_pending_application(club_id, user_id) is not None:
			raise ConflictError("You already have a pending application for this club")
		application = models.ClubApplication(
			id=uuid4(),
			club_id=club_id,
			user_id=user_id,
			message=message,
			answers=list(answers),
			applied_at=_now(),
		)
		self.applications[application.id] = application
		self.user_applications.setdefault(user_id, []).append(application.id)
		return application.model_copy(deep=True)

	async def get_application(self, application_id: UUID) -> models.ClubApplication | None:
		application = self.applications.get(application_id)
		return application.model_copy(deep=True) if application else None

	async def get_pending_application(self, club_id: UUID, user_id: UUID) -> models.ClubApplication | None:
		for application in self.applications.values():
			if application.club_id == club_id and application.user_id == user_id and application.status == "pending":
				return application.model_copy(deep=True)
		return None

	async def list_applications(self, club_id: UUID, *, status: Optional[str] = None):
		return [
			application.model_copy(deep=True)
			for application in self.applications.values()
			if application.club_id == club_id and (status is None or application.status == status)
		]

	async def list_user_applications(self, user_id: UUID) -> list[models.ClubApplication]:
		return [a.model_copy(deep=True) for a in self.applications.values() if a.user_id == user_id]

	async def set_application_interview(self, application_id: UUID, interview: models.Interview):
		application = self.applications.get(application_id)
		if application is None or application.status != "pending":
			return None
		application.interview = interview
		return application.model_copy(deep=True)

	async def approve_application(self, application_id: UUID, *, reviewer_id: UUID, now: datetime):
		application = self.applications.get(application_id)
		if application is None:
			raise NotFoundError("Application not found")
		if application.status != "pending":
			raise ValidationError("Application has already been reviewed")
		member = self._insert_member(application.club_id, application.user_id, permissions.DEFAULT_ROLE)
		application.status = "approved"
		application.reviewed_at = now
		application.reviewed_by = reviewer_id
		return application.model_copy(deep=True), member.model_copy(deep=True)

	async def reject_application(self, application_id: UUID, *, reviewer_id: UUID, reason, now: datetime):
		application = self.applications.get(application_id)
		if application is None or application.status != "pending":
			return None
		application.status = "rejected"
		application.reviewed_at = now
		application.reviewed_by = reviewer_id
		application.rejection_reason = reason
		return application.model_copy(deep=True)

	async def delete_application(self, application_id: UUID) -> bool:
		application = self.applications.pop(application_id, None)
		if application is None:
			return False
		refs = self.user_applications.get(application.user_id, [])
		if application_id in refs:
			refs.remove(application_id)
		return True

	# --- invitations

	async def create_invitation(self, *, club_id, user_id, invited_by, message, role, expires_at) -> models.ClubInvitation:
		invitation = models.ClubInvitation(
			id=uuid4(),
			club_id=club_id,
			user_id=user_id,
			invited_by=invited_by,
			message=message,
			role=role,
			expires_at=expires_at,
			created_at=_now(),
		)
		self.invitations[invitation.id] = invitation
		return invitation.model_copy(deep=True)

	async def get_invitation(self, invitation_id: UUID) -> models.ClubInvitation | None:
		invitation = self.invitations.get(invitation_id)
		return invitation.model_copy(deep=True) if invitation else None

	async def get_pending_invitation(self, club_id: UUID, user_id: UUID) -> models.ClubInvitation | None:
		for invitation in self.invitations.values():
			if invitation.club_id == club_id and invitation.user_id == user_id and invitation.status == "pending":
				return invitation.model_copy(deep=True)
		return None

	async def list_club_invitations(self, club_id: UUID, *, status: Optional[str] = "pending"):
		return [
			i.model_copy(deep=True)
			for i in self.invitations.values()
			if i.club_id == club_id and (status is None or i.status == status)
		]

	async def list_user_invitations(self, user_id: UUID, *, now: datetime):
		return [
			i.model_copy(deep=True)
			for i in self.invitations.values()
			if i.user_id == user_id and i.status == "pending" and i.expires_at > now
		]

	async def set_invitation_status(self, invitation_id: UUID, status: str, *, now: datetime, expected: str = "pending"):
		invitation = self.invitations.get(invitation_id)
		if invitation is None or invitation.status != expected:
			return None
		invitation.status = status
		if status in ("accepted", "declined"):
			invitation.responded_at = now
		return invitation.model_copy(deep=True)

	async def accept_invitation(self, invitation_id: UUID, *, role: str, now: datetime):
		invitation = self.invitations.get(invitation_id)
		if invitation is None:
			raise NotFoundError("Invitation not found")
		if invitation.status != "pending":
			raise ValidationError(f"Invitation is already {invitation.status}")
		member = self._insert_member(invitation.club_id, invitation.user_id, role)
		invitation.status = "accepted"
		invitation.responded_at = now
		return invitation.model_copy(deep=True), member.model_copy(deep=True)

	async def delete_invitation(self, invitation_id: UUID) -> bool:
		return self.invitations.pop(invitation_id, None) is not None

	async def expire_invitations(self, now: datetime) -> int:
		expired = 0
		for invitation in self.invitations.values():
			if invitation.status == "pending" and invitation.expires_at < now:
				invitation.status = "expired"
				expired += 1
		return expired

	# --- announcements

	async def create_announcement(self, announcement: dict[str, Any]) -> ClubAnnouncement:
		now = _now()
		item = ClubAnnouncement.model_validate({**announcement, "id": uuid4(), "created_at": now, "updated_at": now})
		self.announcements[item.id] = item
		return item.model_copy(deep=True)

	async def get_announcement(self, announcement_id: UUID) -> ClubAnnouncement | None:
		item = self.announcements.get(announcement_id)
		return item.model_copy(deep=True) if item else None

	async def mutate_announcement(self, announcement_id: UUID, mutator):
		item = self.announcements.get(announcement_id)
		if item is None:
			return None
		working = item.model_copy(deep=True)
		result = mutator(working)
		self.announcements[announcement_id] = working
		return working.model_copy(deep=True), result

	# --- trips

	async def create_trip(self, trip: dict[str, Any]) -> ClubTrip:
		now = _now()
		item = ClubTrip.model_validate({**trip, "id": uuid4(), "created_at": now, "updated_at": now})
		self.trips[item.id] = item
		return item.model_copy(deep=True)

	async def get_trip(self, trip_id: UUID) -> ClubTrip | None:
		item = self.trips.get(trip_id)
		return item.model_copy(deep=True) if item else None

	async def update_trip(self, trip_id: UUID, **fields: Any) -> ClubTrip | None:
		item = self.trips.get(trip_id)
		if item is None:
			return None
		self.trips[trip_id] = item.model_copy(update={**fields, "updated_at": _now()})
		return self.trips[trip_id].model_copy(deep=True)

	async def delete_trip(self, trip_id: UUID) -> bool:
		return self.trips.pop(trip_id, None) is not None

	async def mutate_trip(self, trip_id: UUID, mutator):
		item = self.trips.get(trip_id)
		if item is None:
			return None
		working = item.model_copy(deep=True)
		result = mutator(working)
		self.trips[trip_id] = working
		return working.model_copy(deep=True), result

	# --- bans and violations

	async def create_ban(self, ban: dict[str, Any]) -> models.ClubBan:
		item = models.ClubBan.model_validate({**ban, "id": uuid4(), "banned_at": _now()})
		self.bans[item.id] = item
		await self.set_member_status(item.club_id, item.user_id, "banned")
		return item.model_copy(deep=True)

	async def get_ban(self, ban_id: UUID) -> models.ClubBan | None:
		item = self.bans.get(ban_id)
		return item.model_copy(deep=True) if item else None

	async def list_user_bans(self, user_id: UUID, *, include_expired: bool = False) -> list[models.ClubBan]:
		return [
			b.model_copy(deep=True)
			for b in self.bans.values()
			if b.user_id == user_id and (include_expired or b.status in ("active", "appealed"))
		]

	async def mutate_ban(self, ban_id: UUID, mutator):
		item = self.bans.get(ban_id)
		if item is None:
			return None
		working = item.model_copy(deep=True)
		result = mutator(working)
		self.bans[ban_id] = working
		return working.model_copy(deep=True), result

	async def review_ban_appeal(self, ban_id: UUID, mutator, *, reinstate: bool):
		result = await self.mutate_ban(ban_id, mutator)
		if result is not None and reinstate:
			await self.set_member_status(result[0].club_id, result[0].user_id, "active")
		return result

	async def get_ban_in_force(self, club_id: UUID, user_id: UUID, *, now: datetime) -> models.ClubBan | None:
		for ban in self.bans.values():
			if ban.club_id == club_id and ban.user_id == user_id and ban.is_in_force(now):
				return ban.model_copy(deep=True)
		return None

	async def expire_bans(self, now: datetime) -> int:
		expired = 0
		for ban in self.bans.values():
			if ban.status == "active" and ban.expires_at is not None and ban.expires_at < now:
				ban.status = "expired"
				expired += 1
		return expired

	async def create_violation(self, violation: dict[str, Any]) -> models.ClubViolation:
		item = models.ClubViolation.model_validate({**violation, "id": uuid4(), "created_at": _now()})
		self.violations[item.id] = item
		if item.action == "suspension":
			await self.set_suspension(
				item.club_id,
				suspended=True,
				end_date=item.suspension_end_date,
				reason=item.description,
			)
		return item.model_copy(deep=True)

	async def list_violations(self, *, resolved: Optional[bool] = None, club_id: Optional[UUID] = None):
		return [
			v.model_copy(deep=True)
			for v in self.violations.values()
			if (resolved is None or v.resolved == resolved) and (club_id is None or v.club_id == club_id)
		]

	async def resolve_violation(self, violation_id: UUID, *, resolved_by: UUID, notes, now: datetime):
		item = self.violations.get(violation_id)
		if item is None:
			return None
		item.resolved = True
		item.resolved_at = now
		item.resolved_by = resolved_by
		item.resolution_notes = notes
		return item.model_copy(deep=True)

	async def count_unresolved_violations(self) -> int:
		return sum(1 for v in self.violations.values() if not v.resolved)


class FakeNotifications:
	def __init__(self) -> None:
		self.sent: list[dict[str, Any]] = []
		self.broadcasts: list[dict[str, Any]] = []

	async def notify(self, recipient_id, type, title, message, **kwargs):
		self.sent.append({"recipient_id": recipient_id, "type": type, "title": title, "message": message, **kwargs})

	async def broadcast(self, type, title, message, **kwargs):
		self.broadcasts.append({"type": type, "title": title, "message": message, **kwargs})
		return 0


class FakeUsersRepository:
	def __init__(self) -> None:
		self.users: dict[UUID, identity_models.User] = {}
		self.reset_tokens: dict[UUID, Optional[str]] = {}

	def seed(self, *, username: str, email: str, password_hash: str = "x", is_admin: bool = False) -> identity_models.User:
		now = _now()
		user = identity_models.User(
			id=uuid4(),
			username=username,
			email=email,
			password_hash=password_hash,
			is_admin=is_admin,
			created_at=now,
			updated_at=now,
		)
		self.users[user.id] = user
		return user

	async def create_user(self, *, username: str, email: str, password_hash: str) -> identity_models.User:
		return self.seed(username=username, email=email, password_hash=password_hash)

	async def get_user(self, user_id: UUID) -> identity_models.User | None:
		return self.users.get(user_id)

	async def get_user_by_email(self, email: str) -> identity_models.User | None:
		return next((user for user in self.users.values() if user.email == email), None)

	async def find_existing(self, *, email: str, username: str) -> identity_models.User | None:
		return next((u for u in self.users.values() if u.email == email or u.username == username), None)

	async def set_password(self, user_id: UUID, password_hash: str) -> None:
		self.users[user_id] = self.users[user_id].model_copy(update={"password_hash": password_hash})
		self.reset_tokens[user_id] = None

	async def set_reset_token(self, user_id: UUID, *, token_digest: Optional[str], ttl_minutes: int) -> None:
		self.reset_tokens[user_id] = token_digest

	async def get_user_by_reset_token(self, token_digest: str, *, now: datetime) -> identity_models.User | None:
		for user_id, digest in self.reset_tokens.items():
			if digest == token_digest:
				return self.users[user_id]
		return None

	async def get_users(self, user_ids) -> dict[UUID, identity_models.User]:
		return {user_id: self.users[user_id] for user_id in user_ids if user_id in self.users}

	async def list_users(self, *, search=None, is_admin=None, limit: int = 20, offset: int = 0):
		users = [
			u for u in self.users.values()
			if (is_admin is None or u.is_admin == is_admin) and (not search or search.lower() in u.username.lower())
		]
		return users[offset:offset + limit], len(users)

	async def set_admin(self, user_id: UUID, is_admin: bool) -> identity_models.User | None:
		user = self.users.get(user_id)
		if user is None:
			return None
		self.users[user_id] = user.model_copy(update={"is_admin": is_admin})
		return self.users[user_id]

	async def delete_user(self, user_id: UUID) -> bool:
		return self.users.pop(user_id, None) is not None

	async def counts(self, *, since: datetime) -> dict[str, int]:
		return {
			"total_users": len(self.users),
			"admin_users": sum(1 for u in self.users.values() if u.is_admin),
			"recent_users": sum(1 for u in self.users.values() if u.created_at >= since),
		}
