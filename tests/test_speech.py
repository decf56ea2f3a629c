from __future__ import annotations

import pytest

from homedash.config.store import PersistentStore
from homedash.core.errors import SpeechUnsupportedError
from homedash.core.notifications import MemoryNotificationSink
from homedash.runtime.chat import ChatSession
from homedash.runtime.speech import SpeechInputController, SpeechState
from homedash.services.schemas import TranscriptEvent


class FakeRecognizer:
    def __init__(self) -> None:
        self.started = 0
        self.stopped = 0

    def bind(self, on_result, on_error, on_end) -> None:
        self.on_result = on_result
        self.on_error = on_error
        self.on_end = on_end

    def start(self) -> None:
        self.started += 1

    def stop(self) -> None:
        self.stopped += 1


class NoopCompleter:
    async def complete(self, credential: str, user_content: str):
        return None


def test_unsupported_platform_raises_and_stays_idle() -> None:
    controller = SpeechInputController(None, lambda text: None)
    with pytest.raises(SpeechUnsupportedError):
        controller.start()
    assert controller.state is SpeechState.IDLE
    assert controller.supported is False


def test_result_fills_pending_text_without_sending() -> None:
    recognizer = FakeRecognizer()
    session = ChatSession(NoopCompleter(), PersistentStore(), recognizer=recognizer)
    session.speech.start()
    assert session.speech.state is SpeechState.LISTENING
    recognizer.on_result(TranscriptEvent(text="what's the weather"))
    assert session.pending_text == "what's the weather"
    assert session.speech.state is SpeechState.IDLE
    assert session.messages == ()


def test_error_returns_to_idle_with_notification() -> None:
    recognizer = FakeRecognizer()
    sink = MemoryNotificationSink()
    controller = SpeechInputController(recognizer, lambda text: None, notifications=sink)
    controller.start()
    recognizer.on_error(RuntimeError("no-speech"))
    assert controller.state is SpeechState.IDLE
    assert sink.titles == ["Speech Recognition Error"]


def test_end_of_utterance_returns_to_idle() -> None:
    recognizer = FakeRecognizer()
    controller = SpeechInputController(recognizer, lambda text: None)
    controller.start()
    recognizer.on_end()
    assert controller.state is SpeechState.IDLE


def test_stop_discards_late_result() -> None:
    recognizer = FakeRecognizer()
    transcripts: list[str] = []
    controller = SpeechInputController(recognizer, transcripts.append)
    controller.start()
    controller.stop()
    assert recognizer.stopped == 1
    assert controller.state is SpeechState.IDLE
    recognizer.on_result(TranscriptEvent(text="too late"))
    assert transcripts == []


def test_start_twice_starts_recognizer_once() -> None:
    recognizer = FakeRecognizer()
    controller = SpeechInputController(recognizer, lambda text: None)
    controller.toggle()
    controller.start()
    assert recognizer.started == 1
    controller.toggle()
    assert controller.state is SpeechState.IDLE


def test_late_end_from_cancelled_recognition_is_ignored() -> None:
    recognizer = FakeRecognizer()
    transcripts: list[str] = []
    controller = SpeechInputController(recognizer, transcripts.append)
    controller.start()
    controller.stop()
    controller.start()
    recognizer.on_end()
    assert controller.state is SpeechState.LISTENING
    recognizer.on_result(TranscriptEvent(text="hello"))
    assert transcripts == ["hello"]
    recognizer.on_end()
    assert controller.state is SpeechState.IDLE


def test_unsupported_is_reported_once() -> None:
    sink = MemoryNotificationSink()
    session = ChatSession(NoopCompleter(), PersistentStore(), notifications=sink)
    session.toggle_voice()
    session.toggle_voice()
    assert sink.titles == ["Not Supported"]
