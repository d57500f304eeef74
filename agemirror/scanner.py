# agemirror/scanner.py
from __future__ import annotations
from typing import Callable, Optional

import numpy as np
from PySide6 import QtCore
from PySide6.QtCore import QThread, Signal

from .session import DetectionSession, Outcome, SessionStatus, SCAN_TICKS
from .utils.logger import app_logger


class DetectThread(QThread):
    """Runs one estimator query off the GUI thread."""
    detected = Signal(int, object)   # generation, age (float) or None

    def __init__(self, estimator, frame: np.ndarray, generation: int):
        super().__init__()
        self.estimator = estimator
        self.frame = frame
        self.generation = generation

    def run(self):
        age = None
        try:
            age = self.estimator.estimate(self.frame)
        except Exception as e:
            # transient: the tick is skipped, the session carries on
            app_logger.warning(f"Detection error: {e}")
        self.detected.emit(self.generation, age)


class ScanController(QtCore.QObject):
    """
    Drives a DetectionSession from a single QTimer.

    Each timeout runs the sampling action, then the countdown action. Stopping
    the timer cancels both at once.
    """
    statusChanged = Signal(object)     # SessionStatus
    countdown = Signal(int)            # seconds left
    sampleRecorded = Signal(int)       # rounded age
    resolved = Signal(object)          # Outcome

    def __init__(self, estimator, frame_source: Callable[[], Optional[np.ndarray]],
                 interval_ms: int = 1000, ticks: int = SCAN_TICKS, parent=None):
        super().__init__(parent)
        self.estimator = estimator
        self.frame_source = frame_source
        self.session = DetectionSession(ticks)
        self._worker: Optional[DetectThread] = None
        self._retired = []

        self._cadence = QtCore.QTimer(self)
        self._cadence.setInterval(interval_ms)
        self._cadence.timeout.connect(self._on_sample_tick)
        self._cadence.timeout.connect(self._on_countdown_tick)

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def active(self) -> bool:
        return self._cadence.isActive()

    def start(self) -> None:
        """Begin (or restart) a scan window; prior samples and outcome are dropped."""
        self._cadence.stop()
        gen = self.session.start()
        app_logger.log(f"Scan #{gen} started ({self.session.ticks}s window).")
        self.statusChanged.emit(self.session.status)
        self.countdown.emit(self.session.remaining)
        self._cadence.start()

    def stop(self) -> None:
        """Teardown: cancel both periodic actions and forget the running window."""
        self._cadence.stop()
        if self.session.scanning:
            self.session.cancel()
            app_logger.log("Scan cancelled.")
            self.statusChanged.emit(self.session.status)

    def shutdown(self) -> None:
        self.stop()
        for w in [self._worker, *self._retired]:
            if w is not None and w.isRunning():
                w.wait()
        self._worker = None
        self._retired.clear()

    # ---- periodic actions ----
    @QtCore.Slot()
    def _on_sample_tick(self):
        if not self.session.scanning:
            return
        if self._worker is not None and self._worker.isRunning():
            app_logger.log("Previous detection still running; tick dropped.", level="DEBUG")
            return
        frame = self.frame_source()
        if frame is None:
            app_logger.warning("No camera frame available; tick skipped.")
            return
        if self._worker is not None:
            self._retired.append(self._worker)
        self._worker = DetectThread(self.estimator, frame, self.session.generation)
        self._worker.detected.connect(self._on_detected)
        self._worker.finished.connect(self._reap_workers)
        self._worker.start()

    @QtCore.Slot()
    def _on_countdown_tick(self):
        outcome = self.session.tick()
        if outcome is None:
            if self.session.scanning:
                self.countdown.emit(self.session.remaining)
            return
        self._cadence.stop()
        self.countdown.emit(0)
        self._report(outcome)

    @QtCore.Slot(int, object)
    def _on_detected(self, generation: int, age):
        if age is None:
            return
        if self.session.record(age, generation):
            self.sampleRecorded.emit(self.session.samples[-1])

    @QtCore.Slot()
    def _reap_workers(self):
        self._retired = [w for w in self._retired if w.isRunning()]

    def _report(self, outcome: Outcome) -> None:
        if outcome.status is SessionStatus.SUCCEEDED:
            app_logger.log(
                f"Scan finished: average age {outcome.average} from {outcome.samples} samples.")
        else:
            app_logger.log("Scan finished: no face detected.")
        # listeners read the outcome before reacting to the status change
        self.resolved.emit(outcome)
        self.statusChanged.emit(outcome.status)
