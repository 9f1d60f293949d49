"""Membership lifecycle scenarios exercised against the in-memory repository."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from fakes import FakeClubsRepository, FakeNotifications
from mindo.clubs.domain import models
from mindo.clubs.domain.applications_service import ApplicationsService
from mindo.clubs.domain.authorization import ClubAuthorizer
from mindo.clubs.domain.invitations_service import InvitationsService
from mindo.clubs.domain.members_service import MembersService
from mindo.clubs.domain.services import ClubsService
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ConflictError, ForbiddenError, ValidationError
from mindo.infra.auth import AuthenticatedUser

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class _Clock:
	def __init__(self, now: datetime) -> None:
		self.now = now

	def __call__(self) -> datetime:
		return self.now


def _user(repo: FakeClubsRepository, name: str) -> AuthenticatedUser:
	return AuthenticatedUser(id=str(repo.add_user(name)), username=name)


def _create_payload(*, is_open: bool = True) -> dto.ClubCreateRequest:
	return dto.ClubCreateRequest(
		name="Club A",
		description="A club for testing",
		category="Academic",
		tags=["study", "study", " math "],
		custom_roles=[dto.RoleRequest(name="Treasurer", permissions=["view_club"])],
		application_form=dto.ApplicationFormRequest(is_open=is_open),
	)


def _answers() -> dto.ApplicationSubmitRequest:
	return dto.ApplicationSubmitRequest(
		message="Hi",
		answers=[models.ApplicationAnswer(question="Why do you want to join this club?", answer="I like it")],
	)


@pytest.fixture()
def world():
	repo = FakeClubsRepository()
	notifications = FakeNotifications()
	clock = _Clock(T0)
	return {
		"repo": repo,
		"notifications": notifications,
		"clock": clock,
		"clubs": ClubsService(repo, notifications),
		"applications": ApplicationsService(repository=repo, notifications=notifications, clock=clock),
		"invitations": InvitationsService(repository=repo, notifications=notifications, clock=clock, ttl_days=7),
		"members": MembersService(repository=repo, notifications=notifications),
	}


@pytest.mark.asyncio
async def test_create_club_seeds_member_role_and_cleans_tags(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	club = await world["clubs"].create_club(u1, _create_payload())

	assert club.member_count == 0
	assert [role.name for role in club.custom_roles] == ["Member", "Treasurer"]
	assert club.tags == ["study", "math"]
	assert len(club.application_form.questions) == 2
	assert world["notifications"].broadcasts[0]["exclude"] == club.owner_id


@pytest.mark.asyncio
async def test_owner_cannot_create_a_second_club(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	await world["clubs"].create_club(u1, _create_payload())
	payload = _create_payload()
	payload.name = "Club B"
	with pytest.raises(ValidationError):
		await world["clubs"].create_club(u1, payload)


@pytest.mark.asyncio
async def test_apply_approve_leave_keeps_member_count_and_back_refs(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u2 = _user(repo, "u2")
	club = await world["clubs"].create_club(u1, _create_payload())

	application = await world["applications"].submit(u2, str(club.id), _answers())
	assert application.status == "pending"
	assert world["notifications"].sent[-1]["recipient_id"] == club.owner_id
	assert (await repo.get_club(club.id)).member_count == 0

	approved = await world["applications"].approve(u1, str(application.id))
	assert approved.status == "approved"
	member = await repo.get_member(club.id, approved.user_id)
	assert member is not None and member.role == "Member"
	assert (await repo.get_club(club.id)).member_count == 1
	assert repo.user_memberships[approved.user_id] == [member.id]

	await world["members"].leave(u2, str(club.id))
	assert (await repo.get_club(club.id)).member_count == 0
	assert repo.user_memberships[approved.user_id] == []
	assert await repo.get_member(club.id, approved.user_id) is None


@pytest.mark.asyncio
async def test_closed_form_rejects_applications(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u2 = _user(repo, "u2")
	club = await world["clubs"].create_club(u1, _create_payload(is_open=False))

	with pytest.raises(ValidationError) as excinfo:
		await world["applications"].submit(u2, str(club.id), _answers())
	assert excinfo.value.detail == "This club is not currently accepting applications"


@pytest.mark.asyncio
async def test_opening_the_form_later_allows_applications(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u2 = _user(repo, "u2")
	club = await world["clubs"].create_club(u1, _create_payload(is_open=False))
	ctx = await ClubAuthorizer(repository=repo).require_president(u1, club.id)

	form = await world["clubs"].update_application_form(ctx, dto.ApplicationFormRequest(is_open=True))
	assert form.is_open

	application = await world["applications"].submit(u2, str(club.id), _answers())
	assert application.club_id == club.id


@pytest.mark.asyncio
async def test_duplicate_and_incomplete_applications(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u2 = _user(repo, "u2")
	club = await world["clubs"].create_club(u1, _create_payload())

	with pytest.raises(ValidationError) as excinfo:
		await world["applications"].submit(u2, str(club.id), dto.ApplicationSubmitRequest(message="Hi"))
	assert excinfo.value.detail == "Please answer all required questions"

	await world["applications"].submit(u2, str(club.id), _answers())
	with pytest.raises(ConflictError):
		await world["applications"].submit(u2, str(club.id), _answers())


@pytest.mark.asyncio
async def test_president_cannot_apply_to_own_club(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	club = await world["clubs"].create_club(u1, _create_payload())
	with pytest.raises(ValidationError):
		await world["applications"].submit(u1, str(club.id), _answers())


@pytest.mark.asyncio
async def test_approval_requires_permission(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u2 = _user(repo, "u2")
	u3 = _user(repo, "u3")
	club = await world["clubs"].create_club(u1, _create_payload())
	application = await world["applications"].submit(u2, str(club.id), _answers())

	with pytest.raises(ForbiddenError):
		await world["applications"].approve(u3, str(application.id))


@pytest.mark.asyncio
async def test_invitation_accepted_after_expiry_is_rejected_and_marked(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u3 = _user(repo, "u3")
	club = await world["clubs"].create_club(u1, _create_payload())
	ctx = await ClubAuthorizer(repository=repo).require_permission(u1, club.id, "invite_members")

	invitation = await world["invitations"].invite(
		ctx,
		dto.InvitationCreateRequest(user_id=u3.id, role="Treasurer"),
	)
	assert invitation.expires_at == T0 + timedelta(days=7)
	assert world["notifications"].sent[-1]["type"] == "club_invitation"

	world["clock"].now = T0 + timedelta(days=8)
	with pytest.raises(ValidationError) as excinfo:
		await world["invitations"].accept(u3, str(invitation.id))
	assert excinfo.value.detail == "Invitation has expired"
	assert (await repo.get_invitation(invitation.id)).status == "expired"
	assert (await repo.get_club(club.id)).member_count == 0


@pytest.mark.asyncio
async def test_invitation_accepted_in_time_grants_role(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u3 = _user(repo, "u3")
	club = await world["clubs"].create_club(u1, _create_payload())
	ctx = await ClubAuthorizer(repository=repo).require_permission(u1, club.id, "invite_members")
	invitation = await world["invitations"].invite(ctx, dto.InvitationCreateRequest(user_id=u3.id, role="Treasurer"))

	world["clock"].now = T0 + timedelta(days=2)
	accepted, member = await world["invitations"].accept(u3, str(invitation.id))

	assert accepted.status == "accepted"
	assert member.role == "Treasurer"
	assert (await repo.get_club(club.id)).member_count == 1


@pytest.mark.asyncio
async def test_invitation_for_someone_else_is_forbidden(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u3 = _user(repo, "u3")
	club = await world["clubs"].create_club(u1, _create_payload())
	ctx = await ClubAuthorizer(repository=repo).require_president(u1, club.id)
	invitation = await world["invitations"].invite(ctx, dto.InvitationCreateRequest(user_id=u3.id))

	with pytest.raises(ForbiddenError):
		await world["invitations"].accept(AuthenticatedUser(id=str(uuid4())), str(invitation.id))


@pytest.mark.asyncio
async def test_invite_unknown_role_is_rejected(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	u3 = _user(repo, "u3")
	club = await world["clubs"].create_club(u1, _create_payload())
	ctx = await ClubAuthorizer(repository=repo).require_president(u1, club.id)
	with pytest.raises(ValidationError):
		await world["invitations"].invite(ctx, dto.InvitationCreateRequest(user_id=u3.id, role="Wizard"))


@pytest.mark.asyncio
async def test_suspending_a_member_decrements_count(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	club = await world["clubs"].create_club(u1, _create_payload())
	member_id = repo.add_user("m1")
	await repo.add_member(club.id, member_id)
	ctx = await ClubAuthorizer(repository=repo).require_president(u1, club.id)

	await world["members"].set_status(ctx, str(member_id), "suspended")
	assert (await repo.get_club(club.id)).member_count == 0
	await world["members"].set_status(ctx, str(member_id), "active")
	assert (await repo.get_club(club.id)).member_count == 1


@pytest.mark.asyncio
async def test_president_cannot_leave(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	club = await world["clubs"].create_club(u1, _create_payload())
	with pytest.raises(ValidationError):
		await world["members"].leave(u1, str(club.id))


@pytest.mark.asyncio
async def test_renaming_a_role_moves_its_holders(world):
	repo = world["repo"]
	u1 = _user(repo, "u1")
	club = await world["clubs"].create_club(u1, _create_payload())
	holder_id = repo.add_user("m1")
	other_id = repo.add_user("m2")
	await repo.add_member(club.id, holder_id, role="Treasurer")
	await repo.add_member(club.id, other_id)
	ctx = await ClubAuthorizer(repository=repo).require_president(u1, club.id)

	role = await world["clubs"].update_role(ctx, "Treasurer", dto.RoleUpdateRequest(name="Bursar"))
	assert role.name == "Bursar"
	assert (await repo.get_member(club.id, holder_id)).role == "Bursar"
	assert (await repo.get_member(club.id, other_id)).role == "Member"

	with pytest.raises(ValidationError):
		await world["clubs"].update_role(ctx, "Bursar", dto.RoleUpdateRequest(name="member"))
	assert (await repo.get_member(club.id, holder_id)).role == "Bursar"
