from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..records import load_progress
from .auth import User, get_current_user
from ..schemas import Insights, UserError
from ..session import StudySession
from ..sessions import get_study_session


router = APIRouter(tags=["progress"])


class ReviewItem(BaseModel):
    index: int
    error: UserError


class StoredProgress(BaseModel):
    subjects: Optional[str] = None
    target_date: Optional[str] = None
    exams_finished: int = 0
    questions_answered: int = 0
    errors_total: int = 0
    mastery_score: int = 0
    completion_percentage: int = 0


@router.get("/review", response_model=List[ReviewItem])
async def review(study: StudySession = Depends(get_study_session)):
    return [ReviewItem(index=i, error=e) for i, e in enumerate(study.errors)]


@router.get("/insights", response_model=Insights)
async def insights(study: StudySession = Depends(get_study_session)):
    return study.insights()


@router.get("/progress", response_model=Optional[StoredProgress])
async def stored_progress(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    row = load_progress(db, user.username)
    if row is None:
        return None
    return StoredProgress(
        subjects=row.subjects,
        target_date=row.target_date,
        exams_finished=row.exams_finished,
        questions_answered=row.questions_answered,
        errors_total=row.errors_total,
        mastery_score=row.mastery_score,
        completion_percentage=row.completion_percentage,
    )
