"""Background sweep that expires stale club invitations."""

from __future__ import annotations

from datetime import datetime, timezone

from mindo.clubs.domain import repo as repo_module
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics

_JOB_NAME = "clubs-invitation-expiry"

logger = obs_logging.get_logger("mindo.clubs.jobs")


class InvitationExpiryJob:
	"""Moves pending invitations past ``expires_at`` to ``expired``."""

	name = _JOB_NAME

	def __init__(self, *, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	async def run_once(self) -> int:
		started = datetime.now(timezone.utc)
		try:
			expired = await self.repo.expire_invitations(started)
		except Exception:  # pragma: no cover - surfaced to the scheduler
			obs_metrics.record_background_run(_JOB_NAME, result="error")
			raise
		duration = (datetime.now(timezone.utc) - started).total_seconds()
		obs_metrics.record_background_run(_JOB_NAME, result="success", duration_seconds=duration)
		obs_metrics.inc_sweep("invitations", expired)
		if expired:
			logger.info("invitations_expired", extra={"count": expired})
		return expired
