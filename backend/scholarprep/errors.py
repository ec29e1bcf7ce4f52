from __future__ import annotations


class StudyPlanError(Exception):
	"""Base class for every failure raised by the study session core."""


class ValidationError(StudyPlanError):
	"""Learner input rejected before any content request was made."""


class GenerationError(StudyPlanError):
	"""The content provider was unreachable, malformed, or returned nothing."""


class StaleResponseError(StudyPlanError):
	"""A fetch resolved after the task or session that issued it was abandoned."""


class InvalidTransitionError(StudyPlanError):
	"""The requested operation is not legal in the current state."""
