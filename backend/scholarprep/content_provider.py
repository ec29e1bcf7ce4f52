"""Roadmap, lesson and question generation backed by Gemini.

The session core only depends on the ``ContentProvider`` protocol; the Gemini
implementation turns transport failures, malformed JSON and empty results into
``GenerationError``.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

import httpx
from pydantic import ValidationError as PydanticValidationError

from .errors import GenerationError
from .gemini_client import GeminiClient
from .past_exams import get_past_exam_analysis
from .schemas import Question, Roadmap
from .settings import settings


logger = logging.getLogger(__name__)


class ContentProvider(Protocol):
    async def generate_roadmap(
        self, subjects: Tuple[str, str], target_date: date, weaknesses: Optional[str] = None
    ) -> Roadmap: ...

    async def generate_lesson(self, topic_id: str, contextual_error: Optional[str] = None) -> str: ...

    async def generate_questions(
        self, subject: str, topic_id: str, difficulty: int, count: int
    ) -> List[Question]: ...


ROADMAP_INSTRUCTION = (
    "Act as a seasoned college counselor and data analyst. Based on the user's selected subjects and "
    "historical exam patterns, create a multi-week study roadmap that prioritizes topics based on frequency "
    "in past exams and user-reported/inferred weakness. The roadmap should be structured as a JSON object. "
    "Ensure the schedule dynamically interweaves both subjects. The roadmap should span {weeks} weeks."
)

LESSON_INSTRUCTION = (
    "Act as a subject matter expert. Generate concise, mobile-optimized lesson material, tutorials, or "
    "deep-dive explanations tailored to the specific knowledge gap identified. Keep the tone encouraging and "
    "academic. The output must be in Markdown format. Include an introductory summary, the core lesson, and "
    "example problems."
)

QUESTIONS_INSTRUCTION = (
    "Generate high-quality, simulated entrance exam questions (MCQs and open-ended) that match the style, "
    "difficulty, and format of standard college entrance exams. Structure the output as a JSON array. For MCQs, "
    "provide 4 options and make correct_answer exactly one of the options. Always include a correct answer and a "
    "detailed explanation for why it's correct. Label each question with the cognitive skill it tests "
    "(e.g. Recall, Comprehension, Application, Analysis)."
)

_TASK_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "day": {"type": "STRING"},
        "topic_id": {
            "type": "STRING",
            "description": "A concise, unique identifier for the topic, e.g., 'english_grammar_tenses'.",
        },
        "task_type": {"type": "STRING", "description": "'lesson' or 'practice'"},
        "subject": {"type": "STRING"},
        "description": {"type": "STRING"},
    },
    "required": ["day", "topic_id", "task_type", "subject", "description"],
}

ROADMAP_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "startDate": {"type": "STRING"},
        "endDate": {"type": "STRING"},
        "schedule": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "week": {"type": "INTEGER"},
                    "theme": {"type": "STRING"},
                    "tasks": {"type": "ARRAY", "items": _TASK_SCHEMA},
                },
                "required": ["week", "theme", "tasks"],
            },
        },
    },
    "required": ["startDate", "endDate", "schedule"],
}

QUESTIONS_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "question_text": {"type": "STRING"},
            "type": {"type": "STRING", "description": "'MCQ' or 'Short Answer'"},
            "options": {"type": "ARRAY", "items": {"type": "STRING"}},
            "correct_answer": {"type": "STRING"},
            "correct_answer_explanation": {"type": "STRING"},
            "cognitive_category": {"type": "STRING"},
        },
        "required": ["question_text", "type", "correct_answer", "correct_answer_explanation"],
    },
}


def extract_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        pass
    code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if code_block:
        try:
            return json.loads(code_block.group(1))
        except ValueError:
            pass
    for opener, closer in (("[", "]"), ("{", "}")):
        first = text.find(opener)
        last = text.rfind(closer)
        if first != -1 and last > first:
            try:
                return json.loads(text[first : last + 1])
            except ValueError:
                continue
    raise GenerationError("Model did not return valid JSON.")


ClientFactory = Callable[[], GeminiClient]
HistoryLookup = Callable[[Tuple[str, str]], Awaitable[Dict[str, Any]]]


class GeminiContentProvider:
    def __init__(
        self,
        client_factory: ClientFactory = GeminiClient,
        *,
        history_lookup: HistoryLookup = get_past_exam_analysis,
        roadmap_weeks: Optional[int] = None,
    ) -> None:
        self._client_factory = client_factory
        self._history_lookup = history_lookup
        self._roadmap_weeks = roadmap_weeks or settings.roadmap_weeks

    async def _call(self, what: str, fn: Callable[[GeminiClient], Awaitable[str]]) -> str:
        try:
            client = self._client_factory()
        except ValueError as exc:
            raise GenerationError(str(exc)) from exc
        try:
            return await fn(client)
        except (httpx.HTTPError, RuntimeError) as exc:
            logger.warning("%s generation failed: %s", what, exc)
            raise GenerationError(f"Could not generate {what}.") from exc
        finally:
            await client.aclose()

    async def generate_roadmap(
        self, subjects: Tuple[str, str], target_date: date, weaknesses: Optional[str] = None
    ) -> Roadmap:
        analysis = await self._history_lookup(subjects)
        lines = [
            f"Subjects: {' & '.join(subjects)}",
            f"Target Exam Date: {target_date.isoformat()}",
        ]
        if weaknesses:
            lines.append(f"User-reported weaknesses: {weaknesses}")
        lines.append(f"Historical Data: {json.dumps(analysis['historical_data'])}")
        lines.append("")
        lines.append(f"Generate a {self._roadmap_weeks}-week study roadmap.")
        instruction = ROADMAP_INSTRUCTION.format(weeks=self._roadmap_weeks)

        raw = await self._call(
            "roadmap",
            lambda c: c.generate_json("\n".join(lines), response_schema=ROADMAP_SCHEMA, system_instruction=instruction),
        )
        try:
            roadmap = Roadmap.model_validate(extract_json(raw))
        except PydanticValidationError as exc:
            logger.warning("Discarding malformed roadmap: %s", exc)
            raise GenerationError("The generated roadmap was malformed.") from exc
        logger.info("Generated %d-week roadmap for %s", len(roadmap.schedule), " & ".join(subjects))
        return roadmap

    async def generate_lesson(self, topic_id: str, contextual_error: Optional[str] = None) -> str:
        lines = [f"Topic: {topic_id}"]
        if contextual_error:
            lines.append(f"Specific mistake made by user: {contextual_error}")
        lines.append("")
        lines.append("Please generate the lesson content.")
        content = await self._call(
            "lesson",
            lambda c: c.generate("\n".join(lines), system_instruction=LESSON_INSTRUCTION),
        )
        if not content.strip():
            raise GenerationError("The generated lesson was empty.")
        return content

    async def generate_questions(self, subject: str, topic_id: str, difficulty: int, count: int) -> List[Question]:
        if not 1 <= difficulty <= 10:
            raise ValueError("difficulty must be between 1 and 10")
        prompt = "\n".join(
            [
                f"Subject: {subject}",
                f"Topic: {topic_id}",
                f"Difficulty Level (1-10): {difficulty}",
                f"Number of Questions to Generate: {count}",
            ]
        )
        raw = await self._call(
            "questions",
            lambda c: c.generate_json(prompt, response_schema=QUESTIONS_SCHEMA, system_instruction=QUESTIONS_INSTRUCTION),
        )
        data = extract_json(raw)
        if not isinstance(data, list):
            raise GenerationError("Expected a JSON array of questions.")
        try:
            questions = [Question.model_validate({**item, "topic_id": topic_id}) for item in data]
        except (PydanticValidationError, TypeError) as exc:
            logger.warning("Discarding malformed question batch: %s", exc)
            raise GenerationError("The generated questions were malformed.") from exc
        if not questions:
            raise GenerationError("No questions were generated for this topic.")
        return questions
