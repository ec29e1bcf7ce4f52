from __future__ import annotations
import json
import logging
from sqlalchemy.orm import Session

from .models import StudyRecord
from .session import StudySession

logger = logging.getLogger(__name__)


def save_progress(db: Session, username: str, study: StudySession) -> StudyRecord:
	"""Upsert the learner's progress row after a finished exam."""
	row = db.get(StudyRecord, username)
	if row is None:
		row = StudyRecord(username=username)
		db.add(row)
	if study.profile is not None:
		row.subjects = " & ".join(study.profile.subjects)
		row.target_date = study.profile.target_date.isoformat()
	row.exams_finished = (row.exams_finished or 0) + 1
	row.questions_answered = len(study.answers)
	row.errors_total = len(study.errors)
	row.mastery_score = study.mastery_score
	row.completion_percentage = study.completion_percentage
	row.last_payload = json.dumps({
		"mastery_score": study.mastery_score,
		"completion_percentage": study.completion_percentage,
		"insights": study.insights().model_dump(mode="json"),
	})
	db.commit()
	return row


def load_progress(db: Session, username: str) -> StudyRecord | None:
	return db.get(StudyRecord, username)
