"""
Pytest fixtures shared by the AgeMirror tests.

Qt runs headless; no camera or model download is touched.
"""

import gc
import os
import threading

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import numpy as np
import pytest
from PySide6.QtCore import QCoreApplication, QEvent
from PySide6.QtWidgets import QApplication, QWidget


class FakeEstimator:
    """Stands in for AgeEstimator; replays queued ages (None = no face)."""

    model_name = "fake"

    def __init__(self, ages=None, fail_load=False, error=None, gate=None):
        self.ages = list(ages or [])
        self.fail_load = fail_load
        self.error = error
        self.gate = gate
        self.calls = 0
        self.loaded = False

    def load(self):
        if self.fail_load:
            from agemirror.pipelines.face import ModelLoadError
            raise ModelLoadError("network unreachable")
        self.loaded = True

    def estimate(self, frame):
        self.calls += 1
        if self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        return self.ages.pop(0) if self.ages else None


class FakeCamera:
    def __init__(self, frame=None):
        self.frame = np.zeros((48, 64, 3), dtype=np.uint8) if frame is None else frame
        self.released = False

    def read(self):
        return self.frame

    def last_frame(self):
        return self.frame

    def release(self):
        self.released = True


def drain(thread=None):
    """Join a worker thread, then deliver its queued signals."""
    if thread is not None:
        thread.wait()
    for _ in range(3):
        QCoreApplication.processEvents()


def dispose(*objects):
    """Close and delete Qt objects now, while the QApplication is alive."""
    for obj in objects:
        if isinstance(obj, QWidget):
            obj.close()
        obj.deleteLater()
    QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete)
    QCoreApplication.processEvents()


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app
    gc.collect()
    QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete)


@pytest.fixture
def frame() -> np.ndarray:
    return np.zeros((48, 64, 3), dtype=np.uint8)


@pytest.fixture
def fake_camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def gate() -> threading.Event:
    ev = threading.Event()
    yield ev
    ev.set()
