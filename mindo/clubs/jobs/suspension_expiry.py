"""Background sweep that lifts club suspensions whose end date has passed."""

from __future__ import annotations

from datetime import datetime, timezone

from mindo.clubs.domain import repo as repo_module
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics

_JOB_NAME = "clubs-suspension-expiry"

logger = obs_logging.get_logger("mindo.clubs.jobs")


class SuspensionExpiryJob:
	name = _JOB_NAME

	def __init__(self, *, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	async def run_once(self) -> int:
		started = datetime.now(timezone.utc)
		try:
			lifted = await self.repo.lift_expired_suspensions(started)
		except Exception:  # pragma: no cover - surfaced to the scheduler
			obs_metrics.record_background_run(_JOB_NAME, result="error")
			raise
		obs_metrics.record_background_run(
			_JOB_NAME,
			result="success",
			duration_seconds=(datetime.now(timezone.utc) - started).total_seconds(),
		)
		obs_metrics.inc_sweep("suspensions", lifted)
		if lifted:
			logger.info("suspensions_lifted", extra={"count": lifted})
		return lifted
