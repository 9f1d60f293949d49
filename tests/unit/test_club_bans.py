from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from fakes import FakeClubsRepository, FakeNotifications
from mindo.clubs.domain import models
from mindo.clubs.domain.applications_service import ApplicationsService
from mindo.clubs.domain.authorization import ClubAuthorizer
from mindo.clubs.domain.bans_service import BansService
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ConflictError, ForbiddenError, ValidationError
from mindo.infra.auth import AuthenticatedUser

NOW = datetime(2026, 2, 10, 10, 0, tzinfo=timezone.utc)


async def _club_with_member():
	repo = FakeClubsRepository()
	owner = AuthenticatedUser(id=str(uuid4()), username="president")
	club = models.Club(
		id=uuid4(),
		name="Robotics",
		description="Robots",
		category="Tech",
		owner_id=owner.id,
		custom_roles=[models.CustomRole(name="Member", permissions=["view_club"])],
		application_form=models.ApplicationForm(is_open=True),
		created_at=NOW,
		updated_at=NOW,
	)
	repo.clubs[club.id] = club
	member_id = repo.add_user("troublemaker")
	await repo.add_member(club.id, member_id)
	ctx = await ClubAuthorizer(repository=repo).require_president(owner, club.id)
	return repo, ctx, AuthenticatedUser(id=str(member_id), username="troublemaker")


@pytest.mark.asyncio
async def test_ban_marks_member_banned_and_blocks_reapplying():
	repo, ctx, member = await _club_with_member()
	notifications = FakeNotifications()
	service = BansService(repository=repo, notifications=notifications, clock=lambda: NOW)

	ban = await service.ban(ctx, dto.BanCreateRequest(user_id=member.id, reason="Spam", duration_days=30))

	assert ban.expires_at == NOW + timedelta(days=30)
	assert (await repo.get_member(ctx.club.id, ban.user_id)).status == "banned"
	assert (await repo.get_club(ctx.club.id)).member_count == 0
	assert notifications.sent[0]["recipient_id"] == ban.user_id

	with pytest.raises(ConflictError):
		await service.ban(ctx, dto.BanCreateRequest(user_id=member.id, reason="Again"))

	applications = ApplicationsService(repository=repo, notifications=notifications, clock=lambda: NOW)
	with pytest.raises(ForbiddenError):
		await applications.submit(member, str(ctx.club.id), dto.ApplicationSubmitRequest())


@pytest.mark.asyncio
async def test_president_cannot_be_banned():
	repo, ctx, _ = await _club_with_member()
	service = BansService(repository=repo, notifications=FakeNotifications(), clock=lambda: NOW)
	with pytest.raises(ValidationError):
		await service.ban(ctx, dto.BanCreateRequest(user_id=ctx.club.owner_id, reason="No"))


@pytest.mark.asyncio
async def test_appeal_accepted_reinstates_member():
	repo, ctx, member = await _club_with_member()
	service = BansService(repository=repo, notifications=FakeNotifications(), clock=lambda: NOW)
	ban = await service.ban(ctx, dto.BanCreateRequest(user_id=member.id, reason="Misunderstanding"))

	with pytest.raises(ForbiddenError):
		await service.submit_appeal(AuthenticatedUser(id=str(uuid4())), str(ban.id), "not me")

	appealed = await service.submit_appeal(member, str(ban.id), "Sorry")
	assert appealed.status == "appealed"
	with pytest.raises(ConflictError):
		await service.submit_appeal(member, str(ban.id), "Sorry again")

	reviewed = await service.review_appeal(ctx, str(ban.id), dto.AppealReviewRequest(decision="accepted"))
	assert reviewed.status == "overturned"
	assert (await repo.get_member(ctx.club.id, ban.user_id)).status == "active"
	assert (await repo.get_club(ctx.club.id)).member_count == 1


@pytest.mark.asyncio
async def test_rejected_appeal_keeps_member_banned():
	repo, ctx, member = await _club_with_member()
	service = BansService(repository=repo, notifications=FakeNotifications(), clock=lambda: NOW)
	ban = await service.ban(ctx, dto.BanCreateRequest(user_id=member.id, reason="Spam"))
	await service.submit_appeal(member, str(ban.id), "Sorry")

	reviewed = await service.review_appeal(ctx, str(ban.id), dto.AppealReviewRequest(decision="rejected"))
	assert reviewed.status == "active"
	assert (await repo.get_member(ctx.club.id, ban.user_id)).status == "banned"

	with pytest.raises(ValidationError):
		await service.review_appeal(ctx, str(ban.id), dto.AppealReviewRequest(decision="accepted"))
	assert (await repo.get_member(ctx.club.id, ban.user_id)).status == "banned"
	assert (await repo.get_club(ctx.club.id)).member_count == 0
