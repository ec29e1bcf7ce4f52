import os
import tempfile
from datetime import date

_TMP_DIR = tempfile.mkdtemp(prefix="scholarprep-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.pop("OPENROUTER_API_KEY", None)

import pytest
import pytest_asyncio

from scholarprep.errors import GenerationError
from scholarprep.schemas import DailyTask, Question, Roadmap, UserProfile
from scholarprep.session import StudySession


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def tick(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider:
    """In-memory content provider recording every call it receives."""

    def __init__(self, roadmap, questions, lesson="# Lesson\n\nBody"):
        self.roadmap = roadmap
        self.questions = questions
        self.lesson = lesson
        self.fail = False
        self.calls = []
        # When set, fetches wait on this event before resolving
        self.gate = None

    async def _wait(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise GenerationError("provider unavailable")

    async def generate_roadmap(self, subjects, target_date, weaknesses=None):
        self.calls.append(("roadmap", subjects, target_date, weaknesses))
        await self._wait()
        return self.roadmap

    async def generate_lesson(self, topic_id, contextual_error=None):
        self.calls.append(("lesson", topic_id, contextual_error))
        await self._wait()
        return self.lesson

    async def generate_questions(self, subject, topic_id, difficulty, count):
        self.calls.append(("questions", subject, topic_id, difficulty, count))
        await self._wait()
        return [q.model_copy(update={"topic_id": topic_id}) for q in self.questions]


def make_question(text="Capital of France?", answer="Paris", topic="geo_capitals", category="Recall"):
    return Question(
        question_text=text,
        type="Short Answer",
        correct_answer=answer,
        correct_answer_explanation=f"{answer} is correct.",
        topic_id=topic,
        cognitive_category=category,
    )


@pytest.fixture
def practice_task():
    return DailyTask(
        day="Monday",
        topic_id="math_algebra_linear",
        task_type="practice",
        subject="Mathematics",
        description="Linear equations drill",
    )


@pytest.fixture
def lesson_task():
    return DailyTask(
        day="Tuesday",
        topic_id="english_grammar_tenses",
        task_type="lesson",
        subject="English",
        description="Review the perfect tenses",
    )


@pytest.fixture
def roadmap(practice_task, lesson_task):
    return Roadmap.model_validate({
        "startDate": "2025-04-01",
        "endDate": "2025-06-01",
        "schedule": [
            {"week": 1, "theme": "Foundations", "tasks": [lesson_task.model_dump(), practice_task.model_dump()]},
            {"week": 2, "theme": "Consolidation", "tasks": []},
        ],
    })


@pytest.fixture
def questions():
    return [
        make_question("2 + 2 = ?", "4", category="Application"),
        make_question("Solve x + 1 = 3", "2", category="Analysis"),
    ]


@pytest.fixture
def provider(roadmap, questions):
    return FakeProvider(roadmap, questions)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def profile():
    return UserProfile(subjects=("English", "Mathematics"), target_date=date(2025, 6, 1))


@pytest.fixture
def study(provider, clock):
    return StudySession(
        provider,
        initial_mastery=70,
        initial_completion=10,
        exam_difficulty=6,
        exam_question_count=5,
        clock=clock,
    )


@pytest_asyncio.fixture
async def onboarded(study, profile):
    await study.complete_onboarding(profile)
    return study
