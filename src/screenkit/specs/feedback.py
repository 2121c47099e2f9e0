"""
Toasts and alerts.

Screens push messages into a ``Feedback`` collector while handling a
request; the next render drains them into the page, so each message is
shown once.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class MessageKind(str, Enum):
    TOAST = "toast"  # Transient popup
    ALERT = "alert"  # Inline banner at the top of the screen


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: MessageKind
    level: MessageLevel = MessageLevel.INFO
    text: str
    title: str | None = None
    delay: int | None = None  # Toast display time in milliseconds
    auto_hide: bool = True
    template: str | None = None  # Alert rendered through a custom template
    data: dict[str, Any] = Field(default_factory=dict)


class Feedback:
    """Per-request message collector."""

    def __init__(self, toast_delay: int = 5000, toast_auto_hide: bool = True) -> None:
        self.toast_delay = toast_delay
        self.toast_auto_hide = toast_auto_hide
        self._messages: list[Message] = []

    def toast(
        self,
        text: str,
        level: MessageLevel | str = MessageLevel.INFO,
        title: str | None = None,
        delay: int | None = None,
        auto_hide: bool | None = None,
    ) -> Message:
        message = Message(
            kind=MessageKind.TOAST,
            level=MessageLevel(level),
            text=text,
            title=title,
            delay=self.toast_delay if delay is None else delay,
            auto_hide=self.toast_auto_hide if auto_hide is None else auto_hide,
        )
        self._messages.append(message)
        return message

    def alert(
        self,
        text: str,
        level: MessageLevel | str = MessageLevel.INFO,
        title: str | None = None,
        template: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> Message:
        message = Message(
            kind=MessageKind.ALERT,
            level=MessageLevel(level),
            text=text,
            title=title,
            auto_hide=False,
            template=template,
            data=data or {},
        )
        self._messages.append(message)
        return message

    def info(self, text: str, **kwargs: Any) -> Message:
        return self.toast(text, MessageLevel.INFO, **kwargs)

    def success(self, text: str, **kwargs: Any) -> Message:
        return self.toast(text, MessageLevel.SUCCESS, **kwargs)

    def warning(self, text: str, **kwargs: Any) -> Message:
        return self.toast(text, MessageLevel.WARNING, **kwargs)

    def error(self, text: str, **kwargs: Any) -> Message:
        return self.toast(text, MessageLevel.ERROR, **kwargs)

    def pending(self) -> list[Message]:
        return list(self._messages)

    def drain(self) -> list[Message]:
        """Return all collected messages and clear the collector."""
        messages, self._messages = self._messages, []
        return messages

    def __len__(self) -> int:
        return len(self._messages)
