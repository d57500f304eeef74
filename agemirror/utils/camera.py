# agemirror/utils/camera.py
from __future__ import annotations
import time
from typing import Callable, Optional

import cv2
import numpy as np

from .logger import app_logger

REOPEN_BACKOFF_S = 2.0


class Camera:
    """Lazily opened cv2.VideoCapture that remembers the last good frame.

    A failed read drops the remembered frame and closes the device, so
    consumers of last_frame() see None until the camera delivers again.
    Reopening a camera that failed to open is retried at most every
    REOPEN_BACKOFF_S seconds.
    """

    def __init__(self, index: int = 0, clock: Callable[[], float] = time.monotonic):
        self.index = index
        self._cap = None
        self._last: Optional[np.ndarray] = None
        self._warned = False
        self._clock = clock
        self._next_attempt = 0.0

    def open(self) -> bool:
        if self._cap is not None and self._cap.isOpened():
            return True
        now = self._clock()
        if now < self._next_attempt:
            return False
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            self._next_attempt = now + REOPEN_BACKOFF_S
            if not self._warned:
                app_logger.error(f"Could not open camera #{self.index}.")
                self._warned = True
            return False
        self._cap = cap
        self._next_attempt = 0.0
        app_logger.log(f"Camera #{self.index} opened.")
        return True

    def read(self) -> Optional[np.ndarray]:
        if not self.open():
            return None
        ok, frame = self._cap.read()
        if not ok or frame is None:
            self._last = None
            self.release()
            self._next_attempt = self._clock() + REOPEN_BACKOFF_S
            if not self._warned:
                app_logger.warning(f"Camera #{self.index} stopped delivering frames.")
                self._warned = True
            return None
        self._last = frame
        self._warned = False
        return frame

    def last_frame(self) -> Optional[np.ndarray]:
        """Most recent frame delivered by read(); None before the first one
        and after a failed read."""
        return None if self._last is None else self._last.copy()

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
