# agemirror/session.py
from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

SCAN_TICKS = 5


class SessionStatus(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    status: SessionStatus
    average: Optional[int] = None   # set only when SUCCEEDED
    samples: int = 0


def round_half_up(value: float) -> int:
    # round() rounds .5 to even; ages are reported the way a person would round
    return int(math.floor(value + 0.5))


def average_age(samples: Iterable[int]) -> int:
    values = list(samples)
    if not values:
        raise ValueError("average_age() needs at least one sample")
    return round_half_up(sum(values) / len(values))


class DetectionSession:
    """
    One countdown window of age sampling.

    Status moves IDLE -> SCANNING -> SUCCEEDED | FAILED. start() may be called
    from any state and always begins a fresh window. Every start() bumps
    `generation`; samples tagged with an older generation are rejected so a
    query that was in flight across a restart cannot leak into the new average.
    """

    def __init__(self, ticks: int = SCAN_TICKS):
        if ticks < 1:
            raise ValueError("ticks must be >= 1")
        self.ticks = ticks
        self.status = SessionStatus.IDLE
        self.remaining = ticks
        self.generation = 0
        self._samples: List[int] = []
        self._outcome: Optional[Outcome] = None

    @property
    def samples(self) -> List[int]:
        return list(self._samples)

    @property
    def scanning(self) -> bool:
        return self.status is SessionStatus.SCANNING

    @property
    def outcome(self) -> Optional[Outcome]:
        """None while pending (IDLE or SCANNING)."""
        return self._outcome

    def start(self) -> int:
        self._samples = []
        self.remaining = self.ticks
        self._outcome = None
        self.generation += 1
        self.status = SessionStatus.SCANNING
        return self.generation

    def record(self, age: float, generation: Optional[int] = None) -> bool:
        """Add one estimate. Returns False when the sample was discarded."""
        if not self.scanning:
            return False
        if generation is not None and generation != self.generation:
            return False
        self._samples.append(round_half_up(age))
        return True

    def tick(self) -> Optional[Outcome]:
        """Advance the countdown by one; returns the outcome on the resolving tick."""
        if not self.scanning:
            return None
        self.remaining = max(self.remaining - 1, 0)
        if self.remaining > 0:
            return None
        return self._resolve()

    def cancel(self) -> None:
        """Abandon a running window without producing an outcome."""
        if self.scanning:
            self.generation += 1
            self._samples = []
            self.remaining = self.ticks
            self.status = SessionStatus.IDLE

    def _resolve(self) -> Outcome:
        if self._samples:
            self.status = SessionStatus.SUCCEEDED
            outcome = Outcome(SessionStatus.SUCCEEDED,
                              average=average_age(self._samples),
                              samples=len(self._samples))
        else:
            self.status = SessionStatus.FAILED
            outcome = Outcome(SessionStatus.FAILED)
        self._outcome = outcome
        return outcome
