# agemirror/chat.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

CANNED_REPLY = "Thanks for your message! We'll get back to you soon."


@dataclass(frozen=True)
class ChatMessage:
    text: str
    sent_by_user: bool


class ChatThread:
    """Append-only message log for the chat screen. No backend behind it."""

    def __init__(self):
        self._messages: List[ChatMessage] = []

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def send(self, text: str) -> Optional[ChatMessage]:
        """Append a user message. Blank input is ignored and returns None."""
        if not text or not text.strip():
            return None
        msg = ChatMessage(text=text, sent_by_user=True)
        self._messages.append(msg)
        return msg

    def reply(self, text: str = CANNED_REPLY) -> ChatMessage:
        msg = ChatMessage(text=text, sent_by_user=False)
        self._messages.append(msg)
        return msg
