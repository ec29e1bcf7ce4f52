import pytest
from pydantic import ValidationError

from scholarprep.schemas import Question, Roadmap, UserAnswer, UserError, UserProfile

from conftest import make_question


def _roadmap(schedule):
    return {"startDate": "2025-04-01", "endDate": "2025-06-01", "schedule": schedule}


def test_roadmap_reads_camel_case_dates():
    roadmap = Roadmap.model_validate(_roadmap([{"week": 1, "theme": "Start", "tasks": []}]))
    assert roadmap.start_date == "2025-04-01"
    assert roadmap.model_dump(by_alias=True)["endDate"] == "2025-06-01"


def test_roadmap_needs_a_schedule():
    with pytest.raises(ValidationError):
        Roadmap.model_validate(_roadmap([]))


def test_roadmap_week_numbers_are_unique():
    week = {"week": 1, "theme": "Start", "tasks": []}
    with pytest.raises(ValidationError):
        Roadmap.model_validate(_roadmap([week, dict(week, theme="Again")]))


def test_task_type_is_restricted(practice_task):
    with pytest.raises(ValidationError):
        practice_task.model_validate({**practice_task.model_dump(), "task_type": "quiz"})


def test_mcq_requires_options():
    with pytest.raises(ValidationError):
        Question(
            question_text="Pick one",
            type="MCQ",
            correct_answer="A",
            topic_id="t",
        )


def test_short_answer_drops_options():
    question = Question(
        question_text="Name the capital",
        type="Short Answer",
        options=["Paris", "Rome"],
        correct_answer="Paris",
        topic_id="t",
    )
    assert question.options is None


def test_models_are_immutable():
    question = make_question()
    with pytest.raises(ValidationError):
        question.correct_answer = "Lyon"


def test_user_error_keeps_subject_and_is_never_correct():
    answer = UserAnswer(
        question=make_question(),
        user_answer="Lyon",
        is_correct=False,
        subject="Geography",
        time_taken_seconds=4.5,
    )
    error = UserError.from_answer(answer)
    assert error.subject == "Geography"
    assert error.is_correct is False
    with pytest.raises(ValidationError):
        UserError(question=make_question(), user_answer="Paris", is_correct=True, subject="Geography", time_taken_seconds=1)


def test_negative_elapsed_time_is_rejected():
    with pytest.raises(ValidationError):
        UserAnswer(question=make_question(), user_answer="", is_correct=False, subject="x", time_taken_seconds=-1)


def test_profile_blank_weaknesses_become_none():
    profile = UserProfile(subjects=["English", "Mathematics"], target_date="2025-06-01", weaknesses="   ")
    assert profile.weaknesses is None
    assert profile.subjects == ("English", "Mathematics")


@pytest.mark.parametrize("subjects", [["", "Mathematics"], ["English", "Astrology"], ["English", None]])
def test_profile_rejects_blank_and_unknown_subjects(subjects):
    with pytest.raises(ValidationError):
        UserProfile(subjects=subjects, target_date="2025-06-01")


def test_profile_subjects_use_catalog_spelling():
    profile = UserProfile(subjects=[" english", "MATHEMATICS "], target_date="2025-06-01")
    assert profile.subjects == ("English", "Mathematics")


def test_task_type_is_case_insensitive():
    roadmap = Roadmap.model_validate(
        _roadmap(
            [
                {
                    "week": 1,
                    "theme": "Foundations",
                    "tasks": [
                        {
                            "day": "Monday",
                            "topic_id": "math_algebra_linear",
                            "task_type": " Practice",
                            "subject": "Mathematics",
                            "description": "Linear equations",
                        }
                    ],
                }
            ]
        )
    )
    assert roadmap.schedule[0].tasks[0].task_type == "practice"
