# agemirror/widgets/chat_panel.py
from __future__ import annotations
from typing import List

from PySide6 import QtCore, QtWidgets

from ..chat import CANNED_REPLY, ChatMessage, ChatThread


class ChatPanel(QtWidgets.QWidget):
    """Mock chat: echoes a canned reply one second after each message."""
    backRequested = QtCore.Signal()

    def __init__(self, reply_delay_ms: int = 1000, parent=None):
        super().__init__(parent)
        self.reply_delay_ms = reply_delay_ms
        self.conversation = ChatThread()
        self._pending: List[QtCore.QTimer] = []

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        header = QtWidgets.QHBoxLayout()
        self.back_btn = QtWidgets.QPushButton("← Back")
        self.back_btn.clicked.connect(self._on_back)
        title = QtWidgets.QLabel("Chat")
        title.setStyleSheet("font-size:18px; font-weight:600;")
        header.addWidget(self.back_btn)
        header.addWidget(title)
        header.addStretch(1)
        layout.addLayout(header)

        self.messages_view = QtWidgets.QListWidget()
        self.messages_view.setWordWrap(True)
        layout.addWidget(self.messages_view, 1)

        row = QtWidgets.QHBoxLayout()
        self.input = QtWidgets.QLineEdit()
        self.input.setPlaceholderText("Type a message…")
        self.input.returnPressed.connect(self.submit)
        self.send_btn = QtWidgets.QPushButton("Send")
        self.send_btn.clicked.connect(self.submit)
        row.addWidget(self.input, 1)
        row.addWidget(self.send_btn)
        layout.addLayout(row)

    def submit(self):
        msg = self.conversation.send(self.input.text())
        if msg is None:
            return
        self.input.clear()
        self._append(msg)

        # TODO: replace the canned reply with a real support backend call
        timer = QtCore.QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(self.reply_delay_ms)
        timer.timeout.connect(lambda t=timer: self._deliver_reply(t))
        self._pending.append(timer)
        timer.start()

    def reset(self):
        """Drop the conversation and any reply still on its way."""
        for t in self._pending:
            t.stop()
            t.deleteLater()
        self._pending.clear()
        self.conversation = ChatThread()
        self.messages_view.clear()
        self.input.clear()

    @property
    def pending_replies(self) -> int:
        return len(self._pending)

    def _deliver_reply(self, timer: QtCore.QTimer):
        if timer not in self._pending:
            return
        self._pending.remove(timer)
        timer.deleteLater()
        self._append(self.conversation.reply(CANNED_REPLY))

    def _append(self, msg: ChatMessage):
        item = QtWidgets.QListWidgetItem(msg.text)
        item.setTextAlignment(
            QtCore.Qt.AlignRight if msg.sent_by_user else QtCore.Qt.AlignLeft)
        self.messages_view.addItem(item)
        self.messages_view.scrollToBottom()

    def _on_back(self):
        self.reset()
        self.backRequested.emit()
