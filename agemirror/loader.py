# agemirror/loader.py
from __future__ import annotations
from enum import Enum
from typing import Optional

from PySide6 import QtCore
from PySide6.QtCore import QThread, Signal

from .pipelines.face import ModelLoadError
from .utils.logger import app_logger


class LoaderState(Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class LoadThread(QThread):
    done = Signal(bool, str)   # ok, error message

    def __init__(self, estimator):
        super().__init__()
        self.estimator = estimator

    def run(self):
        try:
            self.estimator.load()
        except ModelLoadError as e:
            self.done.emit(False, str(e))
            return
        except Exception as e:
            self.done.emit(False, f"{type(e).__name__}: {e}")
            return
        self.done.emit(True, "")


class ModelLoader(QtCore.QObject):
    """
    One-shot model initialization.

    `state` starts at LOADING and moves exactly once to READY or FAILED.
    A failed loader is not reused; retrying means building a new one.
    """
    stateChanged = Signal(object)   # LoaderState

    def __init__(self, estimator, parent=None):
        super().__init__(parent)
        self.estimator = estimator
        self.state = LoaderState.LOADING
        self.error: Optional[str] = None
        self._thread: Optional[LoadThread] = None

    def initialize(self) -> None:
        if self._thread is not None or self.state is not LoaderState.LOADING:
            return
        app_logger.log(f"Loading face models ({self.estimator.model_name})…")
        self._thread = LoadThread(self.estimator)
        self._thread.done.connect(self._on_done)
        self._thread.start()

    def wait(self) -> None:
        if self._thread is not None:
            self._thread.wait()

    @QtCore.Slot(bool, str)
    def _on_done(self, ok: bool, message: str):
        if self.state is not LoaderState.LOADING:
            return
        if ok:
            self.state = LoaderState.READY
            app_logger.log("Face models ready.")
        else:
            self.state = LoaderState.FAILED
            self.error = message
            app_logger.error(f"Error loading face detection models: {message}")
        self.stateChanged.emit(self.state)
