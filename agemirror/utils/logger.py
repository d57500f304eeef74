# agemirror/utils/logger.py
from collections import deque
from typing import List

from PySide6.QtCore import QObject, Signal, QDateTime

BACKLOG_SIZE = 500


class AppLogger(QObject):
    message = Signal(str)

    def __init__(self):
        super().__init__()
        # lines emitted before a view was connected can be replayed from here
        self._backlog = deque(maxlen=BACKLOG_SIZE)

    def log(self, text: str, level: str = "INFO") -> None:
        ts = QDateTime.currentDateTime().toString("yyyy-MM-dd HH:mm:ss")
        line = f"[{ts}] {level} {text}"
        self._backlog.append(line)
        self.message.emit(line)

    def warning(self, text: str) -> None:
        self.log(text, level="WARNING")

    def error(self, text: str) -> None:
        self.log(text, level="ERROR")

    def backlog(self) -> List[str]:
        return list(self._backlog)


# Singleton instance you can import anywhere
app_logger = AppLogger()
