from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import StudyPlanError
from ..records import save_progress
from .auth import User, get_current_user
from ..schemas import DailyTask, Lesson, Question, QuestionType, ResultBundle, UserAnswer
from ..session import StudySession
from ..sessions import get_study_session, raise_http
from ..task_runner import ExamRunner, RunnerState


router = APIRouter(prefix="/task", tags=["task"])


class QuestionView(BaseModel):
    """A question as shown while the exam runs, without its answer key."""

    question_text: str
    type: QuestionType
    options: Optional[List[str]] = None
    topic_id: str

    @classmethod
    def of(cls, question: Question) -> "QuestionView":
        return cls(
            question_text=question.question_text,
            type=question.type,
            options=question.options,
            topic_id=question.topic_id,
        )


class TaskView(BaseModel):
    kind: Literal["lesson", "exam"]
    state: RunnerState
    task: Optional[DailyTask] = None
    error: Optional[str] = None
    lesson: Optional[Lesson] = None
    index: Optional[int] = None
    total: Optional[int] = None
    question: Optional[QuestionView] = None
    answer: Optional[str] = None
    is_last: Optional[bool] = None


class ExamResult(BaseModel):
    score: int
    total: int
    answers: List[UserAnswer]
    mastery_score: int
    completion_percentage: int


class AnswerRequest(BaseModel):
    index: int
    answer: str


def _task_view(study: StudySession) -> TaskView:
    runner = study.runner
    if runner is None:
        raise HTTPException(status_code=409, detail="No task is active")
    view = TaskView(kind=runner.kind, state=runner.state, task=runner.task, error=runner.error)
    if isinstance(runner, ExamRunner):
        question = runner.current_question()
        if question is not None:
            view.index, view.total = runner.progress()
            view.question = QuestionView.of(question)
            view.answer = runner.answers[runner.index]
            view.is_last = runner.is_last
    else:
        view.lesson = runner.lesson
    return view


def _exam(study: StudySession) -> ExamRunner:
    if not isinstance(study.runner, ExamRunner):
        raise HTTPException(status_code=409, detail="No exam is active")
    return study.runner


def _finish(study: StudySession, bundle: ResultBundle, db: Session, user: User) -> ExamResult:
    try:
        study.finish_exam(bundle)
    except StudyPlanError as exc:
        raise_http(exc)
    save_progress(db, user.username, study)
    return ExamResult(
        score=sum(1 for a in bundle.answers if a.is_correct),
        total=len(bundle.answers),
        answers=bundle.answers,
        mastery_score=study.mastery_score,
        completion_percentage=study.completion_percentage,
    )


@router.get("", response_model=TaskView)
async def get_task(study: StudySession = Depends(get_study_session)):
    return _task_view(study)


@router.post("/load", response_model=TaskView)
async def load_task(study: StudySession = Depends(get_study_session)):
    try:
        await study.load_task()
    except StudyPlanError as exc:
        raise_http(exc)
    return _task_view(study)


@router.post("/answer", response_model=TaskView)
async def record_answer(req: AnswerRequest, study: StudySession = Depends(get_study_session)):
    runner = _exam(study)
    try:
        runner.record_answer(req.index, req.answer)
    except StudyPlanError as exc:
        raise_http(exc)
    return _task_view(study)


@router.post("/advance", response_model=TaskView | ExamResult)
async def advance(
    study: StudySession = Depends(get_study_session),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    runner = _exam(study)
    try:
        bundle = runner.advance()
    except StudyPlanError as exc:
        raise_http(exc)
    if bundle is not None:
        return _finish(study, bundle, db, user)
    return _task_view(study)


@router.post("/submit", response_model=ExamResult)
async def submit(
    study: StudySession = Depends(get_study_session),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    runner = _exam(study)
    try:
        bundle = runner.submit()
    except StudyPlanError as exc:
        raise_http(exc)
    return _finish(study, bundle, db, user)
