"""Pydantic models for the study plan domain."""
from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


TaskType = Literal["lesson", "practice"]
QuestionType = Literal["MCQ", "Short Answer"]
UNCATEGORIZED = "Uncategorized"

AVAILABLE_SUBJECTS = (
	"English",
	"Portuguese",
	"Mathematics",
	"History",
	"Geography",
	"Physics",
	"Chemistry",
	"Biology",
	"Philosophy",
	"Sociology",
)
_SUBJECTS_BY_KEY = {s.lower(): s for s in AVAILABLE_SUBJECTS}


class _Frozen(BaseModel):
	model_config = ConfigDict(frozen=True)


class UserProfile(_Frozen):
	subjects: Tuple[str, str]
	target_date: date
	weaknesses: Optional[str] = None

	@field_validator("subjects", mode="before")
	@classmethod
	def _known_subjects(cls, value):
		if not isinstance(value, (list, tuple)):
			return value
		normalized = []
		for subject in value:
			key = subject.strip().lower() if isinstance(subject, str) else None
			if key not in _SUBJECTS_BY_KEY:
				raise ValueError(f"unknown subject: {subject!r}")
			normalized.append(_SUBJECTS_BY_KEY[key])
		return tuple(normalized)

	@field_validator("weaknesses")
	@classmethod
	def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
		if value is None or not value.strip():
			return None
		return value.strip()


class DailyTask(_Frozen):
	day: str
	topic_id: str
	task_type: TaskType
	subject: str
	description: str

	@field_validator("task_type", mode="before")
	@classmethod
	def _normalize_task_type(cls, value):
		if isinstance(value, str):
			return value.strip().lower()
		return value


class WeeklySchedule(_Frozen):
	week: int
	theme: str
	tasks: List[DailyTask] = Field(default_factory=list)


class Roadmap(_Frozen):
	start_date: str = Field(alias="startDate")
	end_date: str = Field(alias="endDate")
	schedule: List[WeeklySchedule] = Field(min_length=1)

	model_config = ConfigDict(frozen=True, populate_by_name=True)

	@model_validator(mode="after")
	def _unique_weeks(self) -> "Roadmap":
		weeks = [w.week for w in self.schedule]
		if len(weeks) != len(set(weeks)):
			raise ValueError("roadmap week numbers must be unique")
		return self


class Question(_Frozen):
	question_text: str
	type: QuestionType
	options: Optional[List[str]] = None
	correct_answer: str
	correct_answer_explanation: str = ""
	topic_id: str
	cognitive_category: Optional[str] = None

	@model_validator(mode="before")
	@classmethod
	def _drop_short_answer_options(cls, data):
		# Short answers never carry options
		if isinstance(data, dict) and data.get("type") != "MCQ":
			data = {**data, "options": None}
		return data

	@model_validator(mode="after")
	def _mcq_has_options(self) -> "Question":
		if self.type == "MCQ" and not self.options:
			raise ValueError("MCQ questions need options")
		return self


class UserAnswer(_Frozen):
	question: Question
	user_answer: str
	is_correct: bool
	subject: str
	time_taken_seconds: float = Field(ge=0)


class UserError(UserAnswer):
	is_correct: Literal[False] = False

	@classmethod
	def from_answer(cls, answer: UserAnswer) -> "UserError":
		return cls(
			question=answer.question,
			user_answer=answer.user_answer,
			subject=answer.subject,
			time_taken_seconds=answer.time_taken_seconds,
		)


class ResultBundle(_Frozen):
	answers: List[UserAnswer]
	errors: List[UserError]
	# Epoch of the runner that produced the bundle
	epoch: int


class Lesson(_Frozen):
	topic_id: str
	content: str


class CategoryStats(_Frozen):
	correct: int = 0
	total: int = 0

	@property
	def accuracy(self) -> float:
		if self.total == 0:
			return 0.0
		return self.correct / self.total * 100


class PacingStats(_Frozen):
	average: float = 0.0
	average_correct: float = 0.0
	average_incorrect: float = 0.0


class RecurringError(_Frozen):
	topic_id: str
	count: int


class CategoryReport(_Frozen):
	category: str
	correct: int
	total: int
	accuracy: float


class Insights(_Frozen):
	has_data: bool
	recurring_errors: List[RecurringError]
	pacing: PacingStats
	cognitive: List[CategoryReport]
