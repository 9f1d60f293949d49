from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from fakes import FakeClubsRepository
from mindo.clubs import jobs
from mindo.clubs.domain import models
from mindo.maintenance.retention import purge_notifications


def _club(repo: FakeClubsRepository, **fields) -> models.Club:
	now = datetime.now(timezone.utc)
	club = models.Club(
		id=uuid4(),
		name=f"club-{len(repo.clubs)}",
		description="d",
		category="c",
		owner_id=uuid4(),
		created_at=now,
		updated_at=now,
		**fields,
	)
	repo.clubs[club.id] = club
	return club


@pytest.mark.asyncio
async def test_invitation_expiry_job_only_touches_lapsed_pending():
	repo = FakeClubsRepository()
	club = _club(repo)
	now = datetime.now(timezone.utc)
	stale = await repo.create_invitation(
		club_id=club.id, user_id=uuid4(), invited_by=club.owner_id, message="", role="Member",
		expires_at=now - timedelta(days=1),
	)
	fresh = await repo.create_invitation(
		club_id=club.id, user_id=uuid4(), invited_by=club.owner_id, message="", role="Member",
		expires_at=now + timedelta(days=6),
	)

	assert await jobs.InvitationExpiryJob(repository=repo).run_once() == 1
	assert (await repo.get_invitation(stale.id)).status == "expired"
	assert (await repo.get_invitation(fresh.id)).status == "pending"
	assert await jobs.InvitationExpiryJob(repository=repo).run_once() == 0


@pytest.mark.asyncio
async def test_suspension_expiry_job_lifts_only_ended_suspensions():
	repo = FakeClubsRepository()
	now = datetime.now(timezone.utc)
	ended = _club(repo, is_suspended=True, suspension_end_date=now - timedelta(hours=1), suspension_reason="x")
	ongoing = _club(repo, is_suspended=True, suspension_end_date=now + timedelta(days=1), suspension_reason="y")

	assert await jobs.SuspensionExpiryJob(repository=repo).run_once() == 1
	assert not (await repo.get_club(ended.id)).is_suspended
	assert (await repo.get_club(ongoing.id)).is_suspended


@pytest.mark.asyncio
async def test_member_count_integrity_job_corrects_drift():
	repo = FakeClubsRepository()
	club = _club(repo)
	await repo.add_member(club.id, uuid4())
	repo.clubs[club.id].member_count = 7

	assert await jobs.MemberCountIntegrityJob(repository=repo).run_once() == 1
	assert (await repo.get_club(club.id)).member_count == 1


def test_build_jobs_shares_one_repository():
	repo = FakeClubsRepository()
	built = jobs.build_jobs(repo)
	assert [job.name for job in built] == [
		"clubs-invitation-expiry",
		"clubs-ban-expiry",
		"clubs-suspension-expiry",
		"clubs-member-count-integrity",
	]
	assert all(job.repo is repo for job in built)


@pytest.mark.asyncio
async def test_purge_notifications_uses_retention_window():
	calls = {}

	class _Repo:
		async def purge(self, *, created_before, now):
			calls["window"] = now - created_before
			return 5

	result = await purge_notifications(repository=_Repo(), retention_days=30)

	assert result == {"notifications": 5}
	assert calls["window"] == timedelta(days=30)
