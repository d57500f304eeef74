# agemirror/widgets/detector_view.py
from __future__ import annotations
from typing import Dict, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from ..loader import LoaderState, ModelLoader
from ..scanner import ScanController
from ..session import Outcome, SessionStatus
from ..state import AppState
from ..utils.camera import Camera
from ..utils.images import bgr_to_qimage
from ..utils.logger import app_logger
from ..views import ComparisonResult, Screen, parse_real_age, resolve_screen


def _title(text: str, size: int = 20) -> QtWidgets.QLabel:
    lbl = QtWidgets.QLabel(text)
    lbl.setAlignment(QtCore.Qt.AlignCenter)
    lbl.setWordWrap(True)
    lbl.setStyleSheet(f"font-size:{size}px; font-weight:600;")
    return lbl


def _body(text: str = "") -> QtWidgets.QLabel:
    lbl = QtWidgets.QLabel(text)
    lbl.setAlignment(QtCore.Qt.AlignCenter)
    lbl.setWordWrap(True)
    return lbl


class AgeDetectorView(QtWidgets.QWidget):
    """Webcam capture, 5 s age scan, real-age comparison.

    Every Screen has one page in the stack and one `_enter_*` handler.
    """
    chatRequested = QtCore.Signal()

    def __init__(self, state: AppState, estimator, camera: Optional[Camera] = None,
                 parent=None):
        super().__init__(parent)
        self.state = state
        self.estimator = estimator
        self.camera = camera or Camera(state.camera_index)
        self.comparison: Optional[ComparisonResult] = None
        self.detected_age: Optional[int] = None

        self.loader: Optional[ModelLoader] = None
        self.scanner = ScanController(
            estimator, self.camera.last_frame,
            interval_ms=state.tick_interval_ms, ticks=state.scan_ticks, parent=self)
        self.scanner.statusChanged.connect(lambda _s: self.refresh())
        self.scanner.countdown.connect(self._on_countdown)
        self.scanner.sampleRecorded.connect(self._on_sample)
        self.scanner.resolved.connect(self._on_resolved)

        self._preview_timer = QtCore.QTimer(self)
        self._preview_timer.setInterval(state.preview_interval_ms)
        self._preview_timer.timeout.connect(self._update_preview)

        self.stack = QtWidgets.QStackedWidget()
        self.pages: Dict[Screen, QtWidgets.QWidget] = {}
        self._build_pages()
        self._handlers = {
            Screen.LOADING: self._enter_loading,
            Screen.LOAD_ERROR: self._enter_load_error,
            Screen.CAPTURE: self._enter_capture,
            Screen.SCANNING: self._enter_scanning,
            Screen.NO_FACE: self._enter_no_face,
            Screen.RESULT: self._enter_result,
            Screen.COMPARISON: self._enter_comparison,
        }

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.addWidget(self.stack)

        self.current_screen: Optional[Screen] = None
        self.load_models()

    # ----------------- Loader -----------------
    def load_models(self):
        self.loader = ModelLoader(self.estimator, parent=self)
        self.loader.stateChanged.connect(lambda _s: self.refresh())
        self.refresh()
        self.loader.initialize()

    @property
    def loader_state(self) -> LoaderState:
        return self.loader.state if self.loader else LoaderState.LOADING

    # ----------------- State -> screen -----------------
    def refresh(self):
        screen = resolve_screen(self.loader_state, self.scanner.status, self.comparison)
        self.current_screen = screen
        self.stack.setCurrentWidget(self.pages[screen])
        self._handlers[screen]()
        # preview only runs while the camera is on screen
        if screen in (Screen.CAPTURE, Screen.SCANNING):
            if not self._preview_timer.isActive():
                self._preview_timer.start()
        else:
            self._preview_timer.stop()

    # ----------------- Pages -----------------
    def _build_pages(self):
        # Loading
        w = QtWidgets.QWidget()
        v = QtWidgets.QVBoxLayout(w)
        busy = QtWidgets.QProgressBar()
        busy.setRange(0, 0)
        v.addStretch(1)
        v.addWidget(busy)
        v.addWidget(_body("Loading detection models…"))
        v.addStretch(1)
        self.pages[Screen.LOADING] = w

        # Load error
        w = QtWidgets.QWidget()
        v = QtWidgets.QVBoxLayout(w)
        self.load_error_detail = _body()
        self.load_error_detail.setStyleSheet("color:#888;")
        self.reload_btn = QtWidgets.QPushButton("Retry")
        self.reload_btn.clicked.connect(self.load_models)
        v.addStretch(1)
        v.addWidget(_title("Error loading the models"))
        v.addWidget(_body("The face detection models could not be loaded. "
                          "Please try again later."))
        v.addWidget(self.load_error_detail)
        v.addWidget(self.reload_btn, 0, QtCore.Qt.AlignCenter)
        v.addStretch(1)
        self.pages[Screen.LOAD_ERROR] = w

        # Capture + scanning share the camera preview
        self.preview = QtWidgets.QLabel()
        self.preview.setAlignment(QtCore.Qt.AlignCenter)
        self.preview.setMinimumSize(320, 200)
        self.preview.setStyleSheet("background:#111;")
        self.countdown_lbl = QtWidgets.QLabel("")
        self.countdown_lbl.setAlignment(QtCore.Qt.AlignCenter)
        self.countdown_lbl.setStyleSheet("font-size:22px; font-weight:600; color:#7c3aed;")
        self.samples_lbl = QtWidgets.QLabel("")
        self.samples_lbl.setAlignment(QtCore.Qt.AlignCenter)
        self.samples_lbl.setStyleSheet("color:#888;")
        self.start_btn = QtWidgets.QPushButton("Discover your age")
        self.start_btn.clicked.connect(self.start_scan)

        w = QtWidgets.QWidget()
        v = QtWidgets.QVBoxLayout(w)
        v.addWidget(self.preview, 1)
        v.addWidget(self.countdown_lbl)
        v.addWidget(self.samples_lbl)
        v.addWidget(_body("Want to know how old you look?"))
        v.addWidget(self.start_btn)
        # one physical page, two logical screens
        self.pages[Screen.CAPTURE] = w
        self.pages[Screen.SCANNING] = w
        self.stack.addWidget(self.pages[Screen.LOADING])
        self.stack.addWidget(self.pages[Screen.LOAD_ERROR])
        self.stack.addWidget(w)

        # No face
        w = QtWidgets.QWidget()
        v = QtWidgets.QVBoxLayout(w)
        self.retry_no_face_btn = QtWidgets.QPushButton("Try again")
        self.retry_no_face_btn.clicked.connect(self.start_scan)
        v.addStretch(1)
        v.addWidget(_title("We couldn't detect your face"))
        v.addWidget(_body("Make sure you are well lit and looking straight at the camera."))
        v.addWidget(self.retry_no_face_btn, 0, QtCore.Qt.AlignCenter)
        v.addStretch(1)
        self.pages[Screen.NO_FACE] = w
        self.stack.addWidget(w)

        # Result + real-age form
        w = QtWidgets.QWidget()
        v = QtWidgets.QVBoxLayout(w)
        self.result_lbl = _title("", size=24)
        self.real_age_edit = QtWidgets.QLineEdit()
        self.real_age_edit.setPlaceholderText("0 - 120")
        self.real_age_edit.setMaximumWidth(140)
        # validated in submit_real_age so Enter on a blank field reports the error
        self.real_age_edit.setMaxLength(3)
        self.real_age_edit.returnPressed.connect(self.submit_real_age)
        self.real_age_error = _body()
        self.real_age_error.setStyleSheet("color:#c0392b;")
        self.confirm_btn = QtWidgets.QPushButton("Confirm")
        self.confirm_btn.clicked.connect(self.submit_real_age)
        v.addStretch(1)
        v.addWidget(_title("Result!", size=26))
        v.addWidget(self.result_lbl)
        v.addWidget(_body("What is your real age?"))
        v.addWidget(self.real_age_edit, 0, QtCore.Qt.AlignCenter)
        v.addWidget(self.real_age_error)
        v.addWidget(self.confirm_btn, 0, QtCore.Qt.AlignCenter)
        v.addStretch(1)
        self.pages[Screen.RESULT] = w
        self.stack.addWidget(w)

        # Comparison
        w = QtWidgets.QWidget()
        v = QtWidgets.QVBoxLayout(w)
        self.cmp_detected_lbl = _body()
        self.cmp_real_lbl = _body()
        self.cmp_message_lbl = _title("", size=18)
        self.cmp_message_lbl.setStyleSheet("font-size:18px; color:#7c3aed;")
        self.retry_cmp_btn = QtWidgets.QPushButton("Try again")
        self.retry_cmp_btn.clicked.connect(self.start_scan)
        self.chat_btn = QtWidgets.QPushButton("Go to chat")
        self.chat_btn.clicked.connect(self.chatRequested)
        v.addStretch(1)
        v.addWidget(_title("Comparison", size=26))
        v.addWidget(self.cmp_detected_lbl)
        v.addWidget(self.cmp_real_lbl)
        v.addWidget(self.cmp_message_lbl)
        v.addWidget(self.retry_cmp_btn, 0, QtCore.Qt.AlignCenter)
        v.addWidget(self.chat_btn, 0, QtCore.Qt.AlignCenter)
        v.addStretch(1)
        self.pages[Screen.COMPARISON] = w
        self.stack.addWidget(w)

    # ----------------- Screen handlers -----------------
    def _enter_loading(self):
        pass

    def _enter_load_error(self):
        err = self.loader.error if self.loader else None
        self.load_error_detail.setText(err or "")

    def _enter_capture(self):
        self.countdown_lbl.setText("")
        self.samples_lbl.setText("")
        self.start_btn.setVisible(True)

    def _enter_scanning(self):
        self.start_btn.setVisible(False)
        self.countdown_lbl.setText(f"{self.scanner.session.remaining}s")
        self._show_sample_count()

    def _enter_no_face(self):
        pass

    def _enter_result(self):
        self.result_lbl.setText(f"You look about {self.detected_age} years old")
        self.real_age_edit.clear()
        self.real_age_error.setText("")
        self.real_age_edit.setFocus()

    def _enter_comparison(self):
        c = self.comparison
        self.cmp_detected_lbl.setText(f"Detected age: <b>{c.detected}</b>")
        self.cmp_real_lbl.setText(f"Your real age: <b>{c.real}</b>")
        self.cmp_message_lbl.setText(c.message)

    # ----------------- Actions -----------------
    def start_scan(self):
        if self.loader_state is not LoaderState.READY:
            return
        self.detected_age = None
        self.comparison = None
        self.scanner.start()

    def submit_real_age(self):
        if self.scanner.status is not SessionStatus.SUCCEEDED or self.detected_age is None:
            return
        try:
            real = parse_real_age(self.real_age_edit.text())
        except ValueError as e:
            self.real_age_error.setText(str(e))
            return
        self.comparison = ComparisonResult(detected=self.detected_age, real=real)
        app_logger.log(f"Comparison: detected {self.detected_age}, real {real}.")
        self.refresh()

    def shutdown(self):
        self._preview_timer.stop()
        self.scanner.shutdown()
        if self.loader is not None:
            self.loader.wait()
        self.camera.release()

    # ----------------- Slots -----------------
    @QtCore.Slot(int)
    def _on_countdown(self, remaining: int):
        if self.current_screen is Screen.SCANNING:
            self.countdown_lbl.setText(f"{remaining}s")

    @QtCore.Slot(int)
    def _on_sample(self, _age: int):
        if self.current_screen is Screen.SCANNING:
            self._show_sample_count()

    def _show_sample_count(self):
        self.samples_lbl.setText(f"samples: {len(self.scanner.session.samples)}")

    @QtCore.Slot(object)
    def _on_resolved(self, outcome: Outcome):
        # statusChanged follows and triggers the refresh
        self.detected_age = outcome.average

    def _update_preview(self):
        frame = self.camera.read()
        if frame is None:
            return
        pm = QtGui.QPixmap.fromImage(bgr_to_qimage(frame, mirrored=True))
        self.preview.setPixmap(pm.scaled(
            self.preview.size(), QtCore.Qt.KeepAspectRatio, QtCore.Qt.SmoothTransformation))
