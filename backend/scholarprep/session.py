"""The learner's study session state machine.

One ``StudySession`` owns the profile, roadmap, answer history and the single
active task runner. Every transition is a synchronous method, so on one event
loop no two transitions interleave; the only suspension points are content
fetches, whose results are checked against the session epoch before they are
applied.
"""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel

from .content_provider import ContentProvider
from .errors import GenerationError, InvalidTransitionError, StaleResponseError, ValidationError
from .schemas import DailyTask, Insights, ResultBundle, Roadmap, UserAnswer, UserError, UserProfile
from .scoring import build_insights, merge_completion, merge_mastery
from .settings import settings
from .task_runner import Clock, ExamRunner, LessonRunner, RunnerState


logger = logging.getLogger(__name__)


class View(str, Enum):
    ONBOARDING = "onboarding"
    DASHBOARD = "dashboard"
    LESSON = "lesson"
    EXAM = "exam"
    REVIEW = "review"
    INSIGHTS = "insights"


NAVIGABLE_VIEWS = frozenset({View.DASHBOARD, View.REVIEW, View.INSIGHTS})

Runner = Union[ExamRunner, LessonRunner]


class LessonTopic(BaseModel):
    id: str
    context: Optional[str] = None


class SessionSnapshot(BaseModel):
    view: View
    profile: Optional[UserProfile] = None
    roadmap: Optional[Roadmap] = None
    mastery_score: int
    completion_percentage: int
    answers_count: int
    errors_count: int
    active_task: Optional[DailyTask] = None
    lesson_topic: Optional[LessonTopic] = None
    runner_state: Optional[RunnerState] = None
    loading: bool = False
    last_error: Optional[str] = None


def error_context(error: UserError) -> str:
    return (
        f'My incorrect answer was "{error.user_answer}". '
        f'The correct answer is "{error.question.correct_answer}". '
        "Please explain the concept and why I was wrong."
    )


class StudySession:
    def __init__(
        self,
        provider: ContentProvider,
        *,
        initial_mastery: Optional[int] = None,
        initial_completion: Optional[int] = None,
        exam_difficulty: Optional[int] = None,
        exam_question_count: Optional[int] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.provider = provider
        self.view = View.ONBOARDING
        self.profile: Optional[UserProfile] = None
        self.roadmap: Optional[Roadmap] = None
        self.answers: List[UserAnswer] = []
        self.errors: List[UserError] = []
        self.mastery_score = settings.initial_mastery_score if initial_mastery is None else initial_mastery
        self.completion_percentage = (
            settings.initial_completion_percentage if initial_completion is None else initial_completion
        )
        self.exam_difficulty = exam_difficulty or settings.exam_difficulty
        self.exam_question_count = exam_question_count or settings.exam_question_count
        self.active_task: Optional[DailyTask] = None
        self.lesson_topic: Optional[LessonTopic] = None
        self.runner: Optional[Runner] = None
        self.last_error: Optional[str] = None
        self._clock = clock
        self._epoch = 0
        self._roadmap_pending = False

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def loading(self) -> bool:
        return self._roadmap_pending or bool(self.runner and self.runner.fetching)

    def _require_roadmap(self) -> None:
        if self.roadmap is None:
            raise InvalidTransitionError("complete onboarding first")

    def _reset_task(self) -> None:
        self.active_task = None
        self.lesson_topic = None
        self.runner = None
        self._epoch += 1

    def _ensure_current(self, runner: Runner) -> None:
        if self.runner is not runner or runner.epoch != self._epoch:
            logger.info("Discarding %s content for abandoned task (epoch %d)", runner.kind, runner.epoch)
            raise StaleResponseError(f"{runner.kind} was abandoned before its content arrived")

    async def complete_onboarding(self, profile: UserProfile) -> Roadmap:
        if self.view is not View.ONBOARDING:
            raise InvalidTransitionError("onboarding is already complete")
        if profile.subjects[0] == profile.subjects[1]:
            raise ValidationError("Please select two different subjects.")
        if self._roadmap_pending:
            raise InvalidTransitionError("a roadmap is already being generated")
        self._roadmap_pending = True
        self.last_error = None
        try:
            roadmap = await self.provider.generate_roadmap(profile.subjects, profile.target_date, profile.weaknesses)
        except GenerationError as exc:
            logger.warning("Failed to generate roadmap: %s", exc)
            self.last_error = str(exc)
            raise
        finally:
            self._roadmap_pending = False
        self.profile = profile
        self.roadmap = roadmap
        self.view = View.DASHBOARD
        return roadmap

    def start_task(self, task: DailyTask) -> Runner:
        self._require_roadmap()
        self._reset_task()
        self.active_task = task
        if task.task_type == "lesson":
            self.lesson_topic = LessonTopic(id=task.topic_id)
            self.runner = LessonRunner(task.topic_id, self._epoch, task=task)
            self.view = View.LESSON
        elif task.task_type == "practice":
            self.runner = ExamRunner(task, self._epoch, clock=self._clock)
            self.view = View.EXAM
        else:
            raise ValidationError(f"unknown task type {task.task_type!r}")
        return self.runner

    async def load_task(self) -> Runner:
        """Fetch content for the active runner and apply it if still current."""
        runner = self.runner
        if runner is None:
            raise InvalidTransitionError("no task is active")
        try:
            if isinstance(runner, ExamRunner):
                content = await runner.fetch(
                    self.provider, difficulty=self.exam_difficulty, count=self.exam_question_count
                )
            else:
                content = await runner.fetch(self.provider)
        except GenerationError as exc:
            self._ensure_current(runner)
            logger.warning("Failed to load %s: %s", runner.kind, exc)
            runner.fail(exc)
            raise
        self._ensure_current(runner)
        runner.start(content)
        return runner

    def finish_exam(self, bundle: ResultBundle) -> None:
        if self.view is not View.EXAM or not isinstance(self.runner, ExamRunner):
            raise InvalidTransitionError("no exam is in progress")
        if bundle.epoch != self._epoch:
            raise StaleResponseError("results belong to an abandoned exam")
        self.errors.extend(bundle.errors)
        self.answers.extend(bundle.answers)
        self.mastery_score = merge_mastery(self.mastery_score, len(bundle.errors))
        self.completion_percentage = merge_completion(self.completion_percentage)
        self._reset_task()
        self.view = View.DASHBOARD

    def analyze_error(self, error: UserError) -> LessonRunner:
        self._require_roadmap()
        self._reset_task()
        self.lesson_topic = LessonTopic(id=error.question.question_text, context=error_context(error))
        self.runner = LessonRunner(self.lesson_topic.id, self._epoch, context=self.lesson_topic.context)
        self.view = View.LESSON
        return self.runner

    def practice_topic(self, topic: str, subject: str) -> Runner:
        task = DailyTask(
            day="Review",
            topic_id=topic,
            task_type="practice",
            subject=subject,
            description=f"Targeted practice for: {topic}",
        )
        return self.start_task(task)

    def practice_error(self, error: UserError) -> Runner:
        return self.practice_topic(error.question.topic_id, error.subject)

    def navigate(self, target: View) -> None:
        try:
            target = View(target)
        except ValueError:
            raise ValidationError(f"unknown view {target!r}") from None
        if target not in NAVIGABLE_VIEWS:
            raise ValidationError(f"cannot navigate to {target.value}")
        self._require_roadmap()
        self._reset_task()
        self.view = target

    def insights(self) -> Insights:
        return build_insights(self.answers, self.errors)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            view=self.view,
            profile=self.profile,
            roadmap=self.roadmap,
            mastery_score=self.mastery_score,
            completion_percentage=self.completion_percentage,
            answers_count=len(self.answers),
            errors_count=len(self.errors),
            active_task=self.active_task,
            lesson_topic=self.lesson_topic,
            runner_state=self.runner.state if self.runner else None,
            loading=self.loading,
            last_error=self.last_error,
        )
