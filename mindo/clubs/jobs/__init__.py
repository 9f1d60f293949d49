"""Periodic sweeps for the clubs domain."""

from __future__ import annotations

from mindo.clubs.domain import repo as repo_module
from mindo.clubs.jobs.ban_expiry import BanExpiryJob
from mindo.clubs.jobs.invitation_expiry import InvitationExpiryJob
from mindo.clubs.jobs.member_count_integrity import MemberCountIntegrityJob
from mindo.clubs.jobs.suspension_expiry import SuspensionExpiryJob


def build_jobs(repository: repo_module.ClubsRepository | None = None) -> list:
	repository = repository or repo_module.ClubsRepository()
	return [
		InvitationExpiryJob(repository=repository),
		BanExpiryJob(repository=repository),
		SuspensionExpiryJob(repository=repository),
		MemberCountIntegrityJob(repository=repository),
	]


__all__ = [
	"BanExpiryJob",
	"InvitationExpiryJob",
	"MemberCountIntegrityJob",
	"SuspensionExpiryJob",
	"build_jobs",
]
