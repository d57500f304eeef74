# ===== FILE: agemirror/ui_mainwindow.py =====
from __future__ import annotations
from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets

from .pipelines.face import AgeEstimator
from .state import AppState
from .utils.camera import Camera
from .utils.logger import app_logger
from .widgets.chat_panel import ChatPanel
from .widgets.detector_view import AgeDetectorView


class AgeMirrorWindow(QtWidgets.QMainWindow):
    """Main window: detector and chat pages in a stack, logs in a dock."""

    def __init__(self, state: Optional[AppState] = None, estimator=None, camera=None):
        super().__init__()
        self.setWindowTitle("AgeMirror")
        self.resize(760, 640)

        self.state = state or AppState()
        estimator = estimator or AgeEstimator.from_state(self.state)
        camera = camera or Camera(self.state.camera_index)

        self.pages = QtWidgets.QStackedWidget()
        self.setCentralWidget(self.pages)

        self.detector = AgeDetectorView(self.state, estimator, camera)
        self.chat = ChatPanel(reply_delay_ms=self.state.chat_reply_delay_ms)
        self.pages.addWidget(self.detector)
        self.pages.addWidget(self.chat)

        self.detector.chatRequested.connect(self.show_chat)
        self.chat.backRequested.connect(self.show_detector)

        self._build_logs_dock()

        self.logsAct = self.menuBar().addAction("Logs…")
        self.logsAct.setShortcut("Ctrl+L")
        self.logsAct.triggered.connect(self.toggle_logs)

    # ----------------- Navigation -----------------
    @QtCore.Slot()
    def show_chat(self):
        self.pages.setCurrentWidget(self.chat)
        self.chat.input.setFocus()

    @QtCore.Slot()
    def show_detector(self):
        self.pages.setCurrentWidget(self.detector)

    # ----------------- Logs -----------------
    def _build_logs_dock(self):
        self.logDock = QtWidgets.QDockWidget("Logs", self)
        w = QtWidgets.QWidget()
        v = QtWidgets.QVBoxLayout(w)

        self.log_view = QtWidgets.QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumBlockCount(5000)

        bar = QtWidgets.QHBoxLayout()
        btn_clear = QtWidgets.QPushButton("Clear")
        btn_copy = QtWidgets.QPushButton("Copy All")
        btn_clear.clicked.connect(self.log_view.clear)
        btn_copy.clicked.connect(lambda: self._copy_logs_to_clipboard())
        bar.addWidget(btn_clear)
        bar.addWidget(btn_copy)
        bar.addStretch(1)

        v.addLayout(bar)
        v.addWidget(self.log_view)
        self.logDock.setWidget(w)
        self.addDockWidget(QtCore.Qt.BottomDockWidgetArea, self.logDock)
        self.logDock.hide()  # start hidden

        for line in app_logger.backlog():
            self.log_view.appendPlainText(line)
        app_logger.message.connect(self._append_log)
        self._log_connected = True

    def toggle_logs(self):
        if self.logDock.isVisible():
            self.logDock.hide()
        else:
            self.logDock.show()
            self.logDock.raise_()

    def _append_log(self, line: str):
        self.log_view.appendPlainText(line)
        self.statusBar().showMessage(line, 5000)

    def _copy_logs_to_clipboard(self):
        self.log_view.selectAll()
        self.log_view.copy()
        cursor = self.log_view.textCursor()
        cursor.clearSelection()
        self.log_view.setTextCursor(cursor)

    def closeEvent(self, event: QtGui.QCloseEvent):
        # no timer or worker may outlive the window
        if self._log_connected:
            app_logger.message.disconnect(self._append_log)
            self._log_connected = False
        self.chat.reset()
        self.detector.shutdown()
        super().closeEvent(event)
