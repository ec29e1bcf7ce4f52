"""Per-learner session registry and the HTTP error mapping for the core."""
from __future__ import annotations

import logging
from typing import Dict, NoReturn

from fastapi import Depends, HTTPException

from .content_provider import ContentProvider, GeminiContentProvider
from .errors import GenerationError, InvalidTransitionError, StaleResponseError, StudyPlanError, ValidationError
from .routers.auth import User, get_current_user
from .session import StudySession


logger = logging.getLogger(__name__)

_sessions: Dict[str, StudySession] = {}

_STATUS_BY_ERROR = (
    (ValidationError, 422),
    (InvalidTransitionError, 409),
    (StaleResponseError, 409),
    (GenerationError, 502),
)


def get_content_provider() -> ContentProvider:
    return GeminiContentProvider()


def get_study_session(
    user: User = Depends(get_current_user),
    provider: ContentProvider = Depends(get_content_provider),
) -> StudySession:
    study = _sessions.get(user.username)
    if study is None:
        study = StudySession(provider)
        _sessions[user.username] = study
        logger.info("Started study session for %s", user.username)
    return study


def forget(username: str) -> None:
    if _sessions.pop(username, None) is not None:
        logger.info("Dropped study session for %s", username)


def reset_sessions() -> None:
    _sessions.clear()


def raise_http(exc: StudyPlanError) -> NoReturn:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            raise HTTPException(status_code=status, detail=str(exc)) from exc
    raise HTTPException(status_code=500, detail=str(exc)) from exc
