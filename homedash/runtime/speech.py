"""Speech-to-text input feeding the assistant's pending message."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Protocol

from ..core.errors import SpeechUnsupportedError
from ..core.notifications import Notification, NotificationSink
from ..services.schemas import TranscriptEvent


logger = logging.getLogger("homedash.chat")

ResultCallback = Callable[[TranscriptEvent], None]
ErrorCallback = Callable[[Exception], None]
EndCallback = Callable[[], None]


class SpeechRecognizer(Protocol):
    """One-shot recognizer: no continuous mode, no interim results."""

    def bind(self, on_result: ResultCallback, on_error: ErrorCallback, on_end: EndCallback) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


class SpeechState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"


class SpeechInputController:
    """Idle/Listening state machine writing transcripts into a text sink.

    Recognizer events that arrive while Idle belong to a cancelled or
    finished recognition and are discarded.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer | None,
        on_transcript: Callable[[str], None],
        *,
        notifications: NotificationSink | None = None,
    ) -> None:
        self.recognizer = recognizer
        self.on_transcript = on_transcript
        self.notifications = notifications
        self.state = SpeechState.IDLE
        # end events still owed by recognitions cancelled through stop()
        self._stale_ends = 0
        if recognizer is not None:
            recognizer.bind(self._handle_result, self._handle_error, self._handle_end)

    @property
    def supported(self) -> bool:
        return self.recognizer is not None

    @property
    def listening(self) -> bool:
        return self.state is SpeechState.LISTENING

    def start(self) -> None:
        if self.recognizer is None:
            raise SpeechUnsupportedError()
        if self.listening:
            return
        self.state = SpeechState.LISTENING
        try:
            self.recognizer.start()
        except Exception as exc:
            self.state = SpeechState.IDLE
            self._notify_error(exc)

    def stop(self) -> None:
        if not self.listening:
            return
        self.state = SpeechState.IDLE
        if self.recognizer is not None:
            self._stale_ends += 1
            self.recognizer.stop()

    def toggle(self) -> None:
        if self.listening:
            self.stop()
        else:
            self.start()

    def _handle_result(self, event: TranscriptEvent) -> None:
        if not self.listening:
            return
        self.state = SpeechState.IDLE
        self.on_transcript(event.text)

    def _handle_error(self, exc: Exception) -> None:
        if not self.listening:
            return
        self.state = SpeechState.IDLE
        self._notify_error(exc)

    def _handle_end(self) -> None:
        if self._stale_ends:
            self._stale_ends -= 1
            return
        self.state = SpeechState.IDLE

    def _notify_error(self, exc: Exception) -> None:
        logger.warning("Speech recognition error: %s", exc)
        if self.notifications is not None:
            self.notifications.notify(
                Notification(
                    title="Speech Recognition Error",
                    message="Could not recognize speech. Please try again.",
                    level="error",
                )
            )


def unsupported_notification() -> Notification:
    return Notification(
        title="Not Supported",
        message=SpeechUnsupportedError.message,
        level="error",
    )

