from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..errors import StudyPlanError
from ..schemas import DailyTask, UserError, UserProfile
from ..session import SessionSnapshot, StudySession, View
from ..sessions import get_study_session, raise_http


router = APIRouter(prefix="/session", tags=["session"])


class NavigateRequest(BaseModel):
    target: View


class PracticeRequest(BaseModel):
    topic: str
    subject: str


def _error_at(study: StudySession, index: int) -> UserError:
    if not 0 <= index < len(study.errors):
        raise HTTPException(status_code=404, detail="Error not found")
    return study.errors[index]


@router.get("", response_model=SessionSnapshot)
async def get_session(study: StudySession = Depends(get_study_session)):
    return study.snapshot()


@router.post("/onboarding", response_model=SessionSnapshot)
async def complete_onboarding(profile: UserProfile, study: StudySession = Depends(get_study_session)):
    try:
        await study.complete_onboarding(profile)
    except StudyPlanError as exc:
        raise_http(exc)
    return study.snapshot()


@router.post("/tasks/start", response_model=SessionSnapshot)
async def start_task(task: DailyTask, study: StudySession = Depends(get_study_session)):
    try:
        study.start_task(task)
    except StudyPlanError as exc:
        raise_http(exc)
    return study.snapshot()


@router.post("/navigate", response_model=SessionSnapshot)
async def navigate(req: NavigateRequest, study: StudySession = Depends(get_study_session)):
    try:
        study.navigate(req.target)
    except StudyPlanError as exc:
        raise_http(exc)
    return study.snapshot()


@router.post("/errors/{index}/analyze", response_model=SessionSnapshot)
async def analyze_error(index: int, study: StudySession = Depends(get_study_session)):
    error = _error_at(study, index)
    try:
        study.analyze_error(error)
    except StudyPlanError as exc:
        raise_http(exc)
    return study.snapshot()


@router.post("/errors/{index}/practice", response_model=SessionSnapshot)
async def practice_error(index: int, study: StudySession = Depends(get_study_session)):
    error = _error_at(study, index)
    try:
        study.practice_error(error)
    except StudyPlanError as exc:
        raise_http(exc)
    return study.snapshot()


@router.post("/practice", response_model=SessionSnapshot)
async def practice_topic(req: PracticeRequest, study: StudySession = Depends(get_study_session)):
    try:
        study.practice_topic(req.topic, req.subject)
    except StudyPlanError as exc:
        raise_http(exc)
    return study.snapshot()
