from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Iterator
from uuid import UUID

import asyncpg
import pytest
import pytest_asyncio

from mindo.clubs.domain import models
from mindo.clubs.domain import repo as repo_module
from mindo.clubs.domain.announcements_service import AnnouncementsService
from mindo.clubs.domain.authorization import ClubAuthorizer
from mindo.clubs.domain.bans_service import BansService
from mindo.clubs.domain.invitations_service import InvitationsService
from mindo.clubs.domain.services import ClubsService
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ValidationError
from mindo.infra import postgres
from mindo.infra.auth import AuthenticatedUser
from mindo.infra.migrations import apply_migrations

pytestmark = pytest.mark.asyncio

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="module")
def postgres_container() -> Iterator["PostgresContainer"]:
	testcontainers = pytest.importorskip(
		"testcontainers.postgres",
		reason="testcontainers.postgres is required for integration tests",
	)
	container = testcontainers.PostgresContainer("postgres:16-alpine")
	try:
		container.start()
	except Exception as exc:  # pragma: no cover - environment without docker
		pytest.skip(f"unable to start postgres container: {exc}")
	try:
		yield container
	finally:
		container.stop()


@pytest_asyncio.fixture(scope="function")
async def postgres_pool(postgres_container) -> AsyncIterator[asyncpg.Pool]:
	url = postgres_container.get_connection_url().replace("postgresql+psycopg2", "postgresql")
	pool = await asyncpg.create_pool(dsn=url, min_size=1, max_size=4, init=postgres._init_connection)
	async with pool.acquire() as conn:
		await conn.execute("DROP SCHEMA IF EXISTS public CASCADE")
		await conn.execute("CREATE SCHEMA public")
		await conn.execute("GRANT ALL ON SCHEMA public TO PUBLIC")
	await apply_migrations(pool)
	postgres.set_pool(pool)
	try:
		yield pool
	finally:
		postgres.set_pool(None)
		await pool.close()


async def _user(pool: asyncpg.Pool, name: str) -> AuthenticatedUser:
	user_id = await pool.fetchval(
		"INSERT INTO users (username, email, password_hash) VALUES ($1, $2, 'x') RETURNING id",
		name,
		f"{name}@example.com",
	)
	return AuthenticatedUser(id=str(user_id), username=name)


async def _club(pool: asyncpg.Pool, repo: repo_module.ClubsRepository) -> tuple[AuthenticatedUser, models.Club]:
	owner = await _user(pool, "president")
	club = await ClubsService(repo).create_club(
		owner,
		dto.ClubCreateRequest(
			name="Chess",
			description="Weekly games",
			category="Games",
			custom_roles=[dto.RoleRequest(name="Treasurer", permissions=["view_club"])],
		),
	)
	return owner, club


async def _memberships(pool: asyncpg.Pool, user: AuthenticatedUser) -> list:
	return list(await pool.fetchval("SELECT club_memberships FROM users WHERE id=$1", UUID(user.id)))


@pytest.mark.integration
async def test_join_status_and_leave_keep_counts_and_back_refs(postgres_pool):
	repo = repo_module.ClubsRepository()
	owner, club = await _club(postgres_pool, repo)
	joiner = await _user(postgres_pool, "joiner")

	application = await repo.create_application(club_id=club.id, user_id=UUID(joiner.id), message="Hi", answers=[])
	_, member = await repo.approve_application(application.id, reviewer_id=club.owner_id, now=T0)
	assert member.role == "Member"
	assert (await repo.get_club(club.id)).member_count == 1
	assert await _memberships(postgres_pool, joiner) == [member.id]

	await repo.set_member_status(club.id, member.user_id, "suspended")
	assert (await repo.get_club(club.id)).member_count == 0
	await repo.set_member_status(club.id, member.user_id, "active")
	assert (await repo.get_club(club.id)).member_count == 1

	with pytest.raises(ValidationError):
		await repo.approve_application(application.id, reviewer_id=club.owner_id, now=T0)

	assert await repo.remove_member(club.id, member.user_id)
	assert (await repo.get_club(club.id)).member_count == 0
	assert await _memberships(postgres_pool, joiner) == []
	assert not await repo.remove_member(club.id, member.user_id)


@pytest.mark.integration
async def test_concurrent_votes_are_all_counted(postgres_pool):
	repo = repo_module.ClubsRepository()
	owner, club = await _club(postgres_pool, repo)
	authorizer = ClubAuthorizer(repository=repo)
	voters = []
	for idx in range(8):
		user = await _user(postgres_pool, f"voter{idx}")
		await repo.add_member(club.id, UUID(user.id))
		voters.append(await authorizer.member_context(user, club.id))
	service = AnnouncementsService(repository=repo, clock=lambda: T0)
	poll = await service.create(
		await authorizer.require_president(owner, club.id),
		dto.AnnouncementCreateRequest(
			title="Meeting day",
			content="Pick one",
			type="poll",
			poll=dto.PollRequest(question="Which day?", options=["Monday", "Friday"]),
		),
	)
	monday, friday = [option.id for option in poll.poll.options]

	await asyncio.gather(
		*[service.vote(ctx, str(poll.id), [monday if idx % 2 else friday]) for idx, ctx in enumerate(voters)]
	)

	stored = await repo.get_announcement(poll.id)
	assert stored.poll.total_votes == 8
	assert [option.vote_count for option in stored.poll.options] == [4, 4]
	assert {vote.user_id for option in stored.poll.options for vote in option.votes} == {ctx.user_id for ctx in voters}


@pytest.mark.integration
async def test_accepting_an_expired_invitation_marks_it_expired(postgres_pool):
	repo = repo_module.ClubsRepository()
	owner, club = await _club(postgres_pool, repo)
	invitee = await _user(postgres_pool, "invitee")
	clock = {"now": T0}
	service = InvitationsService(repository=repo, clock=lambda: clock["now"], ttl_days=7)
	ctx = await ClubAuthorizer(repository=repo).require_president(owner, club.id)
	invitation = await service.invite(ctx, dto.InvitationCreateRequest(user_id=invitee.id, role="Treasurer"))

	clock["now"] = T0 + timedelta(days=8)
	with pytest.raises(ValidationError) as excinfo:
		await service.accept(invitee, str(invitation.id))
	assert excinfo.value.detail == "Invitation has expired"
	assert (await repo.get_invitation(invitation.id)).status == "expired"
	assert await repo.get_member(club.id, invitation.user_id) is None
	assert (await repo.get_club(club.id)).member_count == 0


@pytest.mark.integration
async def test_role_rename_moves_holders_in_one_commit(postgres_pool):
	repo = repo_module.ClubsRepository()
	owner, club = await _club(postgres_pool, repo)
	holder = await _user(postgres_pool, "holder")
	await repo.add_member(club.id, UUID(holder.id), role="Treasurer")
	ctx = await ClubAuthorizer(repository=repo).require_president(owner, club.id)
	service = ClubsService(repo)

	role = await service.update_role(ctx, "Treasurer", dto.RoleUpdateRequest(name="Bursar"))
	assert role.name == "Bursar"
	assert (await repo.get_member(club.id, UUID(holder.id))).role == "Bursar"

	with pytest.raises(ValidationError):
		await service.update_role(ctx, "Bursar", dto.RoleUpdateRequest(name="Member"))
	assert (await repo.get_member(club.id, UUID(holder.id))).role == "Bursar"
	assert [item.name for item in (await repo.get_club(club.id)).custom_roles] == ["Member", "Bursar"]


@pytest.mark.integration
async def test_accepted_appeal_reinstates_member_atomically(postgres_pool):
	repo = repo_module.ClubsRepository()
	owner, club = await _club(postgres_pool, repo)
	target = await _user(postgres_pool, "target")
	await repo.add_member(club.id, UUID(target.id))
	ctx = await ClubAuthorizer(repository=repo).require_president(owner, club.id)
	service = BansService(repository=repo, clock=lambda: T0)

	ban = await service.ban(ctx, dto.BanCreateRequest(user_id=target.id, reason="Spam"))
	assert (await repo.get_club(club.id)).member_count == 0
	await service.submit_appeal(target, str(ban.id), "Sorry")

	reviewed = await service.review_appeal(ctx, str(ban.id), dto.AppealReviewRequest(decision="accepted"))
	assert reviewed.status == "overturned"
	assert (await repo.get_member(club.id, ban.user_id)).status == "active"
	assert (await repo.get_club(club.id)).member_count == 1
