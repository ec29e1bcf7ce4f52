"""Runners for the single active task: one exam or one lesson.

A runner is created in the ``loading`` state, performs exactly one content
fetch, and is then driven by learner actions until it completes. Runners never
talk to the session; the session applies fetched content and collects results.
"""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .content_provider import ContentProvider
from .errors import GenerationError, InvalidTransitionError, ValidationError
from .schemas import DailyTask, Lesson, Question, ResultBundle, UserAnswer, UserError
from .scoring import is_correct


logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class RunnerState(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class _Runner:
    kind = ""

    def __init__(self, task: Optional[DailyTask], epoch: int) -> None:
        self.task = task
        self.epoch = epoch
        self.state = RunnerState.LOADING
        self.error: Optional[str] = None
        self._fetching = False

    def _begin_fetch(self) -> None:
        if self.state is not RunnerState.LOADING or self._fetching:
            raise InvalidTransitionError(f"{self.kind} content is already requested")
        self._fetching = True

    def _end_fetch(self) -> None:
        self._fetching = False

    @property
    def fetching(self) -> bool:
        return self._fetching

    def fail(self, error: GenerationError) -> None:
        self.state = RunnerState.FAILED
        self.error = str(error)

    def _require(self, state: RunnerState) -> None:
        if self.state is not state:
            raise InvalidTransitionError(f"{self.kind} is {self.state.value}, expected {state.value}")


class LessonRunner(_Runner):
    kind = "lesson"

    def __init__(self, topic_id: str, epoch: int, *, context: Optional[str] = None, task: Optional[DailyTask] = None) -> None:
        super().__init__(task, epoch)
        self.topic_id = topic_id
        self.context = context
        self.lesson: Optional[Lesson] = None

    async def fetch(self, provider: ContentProvider) -> str:
        self._begin_fetch()
        try:
            return await provider.generate_lesson(self.topic_id, self.context)
        finally:
            self._end_fetch()

    def start(self, content: str) -> Lesson:
        self._require(RunnerState.LOADING)
        self.lesson = Lesson(topic_id=self.topic_id, content=content)
        self.state = RunnerState.COMPLETED
        return self.lesson


class ExamRunner(_Runner):
    kind = "exam"

    def __init__(self, task: DailyTask, epoch: int, *, clock: Clock = time.monotonic) -> None:
        super().__init__(task, epoch)
        self._clock = clock
        self.questions: List[Question] = []
        self.answers: List[str] = []
        self.times: List[float] = []
        self.index = 0
        self.result: Optional[ResultBundle] = None
        self._question_start = 0.0

    async def fetch(self, provider: ContentProvider, *, difficulty: int, count: int) -> List[Question]:
        self._begin_fetch()
        try:
            questions = await provider.generate_questions(self.task.subject, self.task.topic_id, difficulty, count)
        finally:
            self._end_fetch()
        if not questions:
            raise GenerationError("No questions were generated for this topic.")
        return questions

    def start(self, questions: List[Question]) -> None:
        self._require(RunnerState.LOADING)
        if not questions:
            raise GenerationError("No questions were generated for this topic.")
        self.questions = list(questions)
        self.answers = [""] * len(self.questions)
        self.times = [0.0] * len(self.questions)
        self.index = 0
        self.state = RunnerState.IN_PROGRESS
        self._question_start = self._clock()

    def current_question(self) -> Optional[Question]:
        if self.state is not RunnerState.IN_PROGRESS:
            return None
        return self.questions[self.index]

    def progress(self) -> Tuple[int, int]:
        return self.index, len(self.questions)

    @property
    def is_last(self) -> bool:
        return self.index == len(self.questions) - 1

    def record_answer(self, index: int, text: str) -> None:
        self._require(RunnerState.IN_PROGRESS)
        if not 0 <= index < len(self.questions):
            raise ValidationError(f"question index {index} is out of range")
        self.answers[index] = text

    def _capture_time(self) -> None:
        # Read once, when leaving the current item
        elapsed = self._clock() - self._question_start
        self.times[self.index] = max(0.0, elapsed)

    def advance(self) -> Optional[ResultBundle]:
        """Move to the next question, or submit when leaving the last one."""
        self._require(RunnerState.IN_PROGRESS)
        if self.is_last:
            return self.submit()
        self._capture_time()
        self.index += 1
        self._question_start = self._clock()
        return None

    def submit(self) -> ResultBundle:
        self._require(RunnerState.IN_PROGRESS)
        self._capture_time()
        answers = [
            UserAnswer(
                question=question,
                user_answer=self.answers[i],
                is_correct=is_correct(self.answers[i], question.correct_answer),
                subject=self.task.subject,
                time_taken_seconds=self.times[i],
            )
            for i, question in enumerate(self.questions)
        ]
        errors = [UserError.from_answer(a) for a in answers if not a.is_correct]
        self.result = ResultBundle(answers=answers, errors=errors, epoch=self.epoch)
        self.state = RunnerState.COMPLETED
        logger.info(
            "Exam on %s submitted: %d/%d correct",
            self.task.topic_id,
            len(answers) - len(errors),
            len(answers),
        )
        return self.result

    def score(self) -> Optional[int]:
        if self.result is None:
            return None
        return sum(1 for a in self.result.answers if a.is_correct)
