# agemirror/views.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .loader import LoaderState
from .session import SessionStatus

MIN_REAL_AGE = 0
MAX_REAL_AGE = 120

MSG_LOOK_YOUNGER = "You look younger than you are! 🎉"
MSG_YOUNGER_IN_PERSON = "The camera must be tired... You look younger in person! 😊"
MSG_EXACT = "Exactly! Spot on! 🎯"


class Screen(Enum):
    LOADING = "loading"
    LOAD_ERROR = "load_error"
    CAPTURE = "capture"
    SCANNING = "scanning"
    NO_FACE = "no_face"
    RESULT = "result"
    COMPARISON = "comparison"


def comparison_message(detected: int, real: int) -> str:
    if real > detected:
        return MSG_LOOK_YOUNGER
    if real < detected:
        return MSG_YOUNGER_IN_PERSON
    return MSG_EXACT


@dataclass(frozen=True)
class ComparisonResult:
    detected: int
    real: int

    @property
    def message(self) -> str:
        return comparison_message(self.detected, self.real)


def parse_real_age(text) -> int:
    """Validate the real-age field: required, whole number, 0..120."""
    raw = str(text).strip() if text is not None else ""
    if not raw:
        raise ValueError("Please enter your real age.")
    try:
        age = int(raw)
    except ValueError:
        raise ValueError("Age must be a whole number.")
    if not MIN_REAL_AGE <= age <= MAX_REAL_AGE:
        raise ValueError(f"Age must be between {MIN_REAL_AGE} and {MAX_REAL_AGE}.")
    return age


def resolve_screen(loader: LoaderState, session: SessionStatus,
                   comparison: Optional[ComparisonResult] = None) -> Screen:
    if loader is LoaderState.LOADING:
        return Screen.LOADING
    if loader is LoaderState.FAILED:
        return Screen.LOAD_ERROR
    if session is SessionStatus.SCANNING:
        return Screen.SCANNING
    if session is SessionStatus.FAILED:
        return Screen.NO_FACE
    if session is SessionStatus.SUCCEEDED:
        return Screen.RESULT if comparison is None else Screen.COMPARISON
    return Screen.CAPTURE
