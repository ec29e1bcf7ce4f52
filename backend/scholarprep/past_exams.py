from __future__ import annotations
from typing import Any, Dict, List, Tuple


# Topic frequency across past entrance exams and their mean difficulty (1-10)
_HISTORICAL_DATA: List[Dict[str, Any]] = [
	{"topic": "Tense structure", "frequency": 0.85, "avg_difficulty": 7.2},
	{"topic": "Literary Devices", "frequency": 0.78, "avg_difficulty": 6.5},
	{"topic": "Algebraic Equations", "frequency": 0.92, "avg_difficulty": 8.1},
	{"topic": "Verb Conjugation", "frequency": 0.88, "avg_difficulty": 7.5},
]


async def get_past_exam_analysis(subject_pair: Tuple[str, str]) -> Dict[str, Any]:
	"""Historical exam statistics for a subject pair, fed to roadmap generation."""
	return {
		"subjects": list(subject_pair),
		"historical_data": [dict(row) for row in _HISTORICAL_DATA],
	}
