"""Grading, progress merges and insight aggregates.

Every function here is pure: aggregates are recomputed from the full history
on each call and nothing is cached between calls.
"""
from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from .schemas import (
	UNCATEGORIZED,
	CategoryReport,
	CategoryStats,
	Insights,
	PacingStats,
	RecurringError,
	UserAnswer,
	UserError,
)


TASK_REWARD = 5
COMPLETION_STEP = 5


def _clamp(value: float, low: int = 0, high: int = 100) -> float:
	return max(low, min(high, value))


def is_correct(submitted: str | None, expected: str) -> bool:
	return (submitted or "").strip().lower() == expected.strip().lower()


def merge_mastery(current: int, new_errors_count: int) -> int:
	return int(_clamp(current + TASK_REWARD - new_errors_count))


def merge_completion(current: int, step: int = COMPLETION_STEP) -> int:
	return int(_clamp(current + step))


def recurring_error_counts(errors: Sequence[UserError]) -> List[Tuple[str, int]]:
	counts: Dict[str, int] = {}
	for error in errors:
		topic = error.question.topic_id
		counts[topic] = counts.get(topic, 0) + 1
	# sorted() is stable and dicts keep first-seen order
	return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def cognitive_breakdown(answers: Sequence[UserAnswer]) -> Dict[str, CategoryStats]:
	tallies: Dict[str, List[int]] = {}
	for answer in answers:
		category = answer.question.cognitive_category or UNCATEGORIZED
		tally = tallies.setdefault(category, [0, 0])
		tally[1] += 1
		if answer.is_correct:
			tally[0] += 1
	return {category: CategoryStats(correct=c, total=t) for category, (c, t) in tallies.items()}


def _mean(values: List[float]) -> float:
	if not values:
		return 0.0
	return sum(values) / len(values)


def pacing_stats(answers: Sequence[UserAnswer]) -> PacingStats:
	return PacingStats(
		average=_mean([a.time_taken_seconds for a in answers]),
		average_correct=_mean([a.time_taken_seconds for a in answers if a.is_correct]),
		average_incorrect=_mean([a.time_taken_seconds for a in answers if not a.is_correct]),
	)


def build_insights(answers: Sequence[UserAnswer], errors: Sequence[UserError], *, top: int = 5) -> Insights:
	recurring = [RecurringError(topic_id=t, count=c) for t, c in recurring_error_counts(errors)[:top]]
	cognitive = [
		CategoryReport(category=name, correct=stats.correct, total=stats.total, accuracy=stats.accuracy)
		for name, stats in cognitive_breakdown(answers).items()
	]
	return Insights(
		has_data=bool(answers),
		recurring_errors=recurring,
		pacing=pacing_stats(answers),
		cognitive=cognitive,
	)
