"""Notification retention purge."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict

from mindo.domain.notifications import repo as notifications_repo
from mindo.obs import metrics as obs_metrics
from mindo.settings import settings

_JOB_NAME = "notifications-retention"


async def purge_notifications(
	*,
	repository: notifications_repo.NotificationsRepository | None = None,
	retention_days: int | None = None,
) -> Dict[str, int]:
	repository = repository or notifications_repo.NotificationsRepository()
	days = retention_days if retention_days is not None else settings.notification_retention_days
	now = datetime.now(timezone.utc)
	try:
		deleted = await repository.purge(created_before=now - timedelta(days=days), now=now)
	except Exception:  # pragma: no cover - surfaced to the scheduler
		obs_metrics.record_background_run(_JOB_NAME, result="error")
		raise
	obs_metrics.record_background_run(
		_JOB_NAME,
		result="success",
		duration_seconds=(datetime.now(timezone.utc) - now).total_seconds(),
	)
	obs_metrics.inc_sweep("notifications", deleted)
	return {"notifications": deleted}
