"""Repair job that realigns ``member_count`` with active membership rows.

Membership mutations keep the counter in step transactionally; this job only
fixes drift left by historical data or manual edits.
"""

from __future__ import annotations

from datetime import datetime, timezone

from mindo.clubs.domain import repo as repo_module
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics

_JOB_NAME = "clubs-member-count-integrity"

logger = obs_logging.get_logger("mindo.clubs.jobs")


class MemberCountIntegrityJob:
	name = _JOB_NAME

	def __init__(self, *, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	async def run_once(self) -> int:
		started = datetime.now(timezone.utc)
		try:
			corrected = await self.repo.reconcile_member_counts()
		except Exception:  # pragma: no cover - surfaced to the scheduler
			obs_metrics.record_background_run(_JOB_NAME, result="error")
			raise
		duration = (datetime.now(timezone.utc) - started).total_seconds()
		obs_metrics.record_background_run(_JOB_NAME, result="success", duration_seconds=duration)
		obs_metrics.inc_sweep("member_counts", corrected)
		if corrected:
			logger.warning("member_count_drift_corrected", extra={"clubs": corrected})
		return corrected
