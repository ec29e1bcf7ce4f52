from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import List
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .models import AuthSession, StudyRecord
from .settings import settings

logger = logging.getLogger(__name__)


def purge_stale_records(db: Session, *, days: int | None = None) -> List[str]:
	"""Delete rows idle past the retention window.

	Returns the usernames left without any live auth session.
	"""
	retention = settings.record_retention_days if days is None else days
	threshold = datetime.utcnow() - timedelta(days=retention)
	stale_users = set(db.scalars(select(AuthSession.username).where(AuthSession.last_activity_at < threshold)))
	removed = 0
	res = db.execute(delete(StudyRecord).where(StudyRecord.updated_at < threshold))
	removed += res.rowcount or 0
	res = db.execute(delete(AuthSession).where(AuthSession.last_activity_at < threshold))
	removed += res.rowcount or 0
	db.commit()
	if stale_users:
		still_live = set(db.scalars(select(AuthSession.username).where(AuthSession.username.in_(stale_users))))
		stale_users -= still_live
	if removed:
		logger.info("Purged %d stale rows older than %s", removed, threshold.date())
	return sorted(stale_users)
