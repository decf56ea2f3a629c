"""Conversational turn manager for the dashboard assistant."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from ..config.store import PersistentStore
from ..core.errors import CredentialMissingError, SpeechUnsupportedError, TransportError
from ..core.notifications import Notification, NotificationSink
from ..services.schemas import ChatMessage
from .speech import SpeechInputController, SpeechRecognizer, unsupported_notification


logger = logging.getLogger("homedash.chat")

CREDENTIAL_KEY = "perplexity_api_key"
FALLBACK_REPLY = "Sorry, I could not generate a response."

SessionListener = Callable[["ChatSession"], None]


class ChatCompleter(Protocol):
    async def complete(self, credential: str, user_content: str) -> Optional[str]: ...


class ChatSession:
    """Message history, credential gate and one completion request per turn.

    ``loading`` acts as the mutex: while a request is in flight every further
    ``send_message`` is a no-op. After :meth:`dispose` a request that
    resolves late leaves the session untouched.
    """

    def __init__(
        self,
        client: ChatCompleter,
        store: PersistentStore,
        *,
        credential_key: str = CREDENTIAL_KEY,
        fallback_reply: str = FALLBACK_REPLY,
        recognizer: SpeechRecognizer | None = None,
        notifications: NotificationSink | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.credential_key = credential_key
        self.fallback_reply = fallback_reply
        self.notifications = notifications
        self.loading = False
        self.pending_text = ""
        self._messages: list[ChatMessage] = []
        self._listeners: list[SessionListener] = []
        self._disposed = False
        self._unsupported_reported = False
        self.credential: Optional[str] = self._load_credential()
        self.speech = SpeechInputController(recognizer, self._set_pending_text, notifications=notifications)

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #
    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def has_credential(self) -> bool:
        return bool(self.credential)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_credential(self, value: str) -> bool:
        """Trim and persist the credential; blank input is rejected."""
        value = (value or "").strip()
        if not value:
            return False
        self.store.set(self.credential_key, value)
        self.credential = value
        self._changed()
        return True

    def clear(self) -> None:
        """Drop the whole history in one assignment; the credential is kept."""
        self._messages = []
        self._changed()

    def dispose(self) -> None:
        """Detach the consuming view; late responses are then ignored."""
        self._disposed = True
        self.speech.stop()
        self._listeners.clear()

    # ------------------------------------------------------------------ #
    # Turns
    # ------------------------------------------------------------------ #
    async def send_message(self, text: str | None = None) -> Optional[ChatMessage]:
        """Run one turn; returns the assistant message, or None when nothing was sent.

        Raises :class:`CredentialMissingError` before any network activity
        when no credential is stored, and :class:`TransportError` when the
        request fails (the user message stays in history).
        """
        content = (self.pending_text if text is None else text).strip()
        if not content or self.loading or self._disposed:
            return None
        if not self.credential:
            raise CredentialMissingError()

        self._messages = [*self._messages, ChatMessage(role="user", content=content)]
        self.pending_text = ""
        self.loading = True
        self._changed()
        try:
            reply = await self.client.complete(self.credential, content)
        except TransportError:
            logger.warning("Assistant request failed")
            raise
        finally:
            self.loading = False
            if not self._disposed:
                self._changed()

        if self._disposed:
            return None
        assistant = ChatMessage(role="assistant", content=reply or self.fallback_reply)
        self._messages = [*self._messages, assistant]
        self._changed()
        return assistant

    async def submit(self, text: str | None = None) -> Optional[ChatMessage]:
        """``send_message`` with failures turned into notifications."""
        try:
            return await self.send_message(text)
        except CredentialMissingError as exc:
            self._notify("API Key Required", exc.message)
        except TransportError:
            self._notify(
                "Error",
                "Failed to get response from AI assistant. Please check your API key and try again.",
            )
        return None

    def toggle_voice(self) -> None:
        """Mic button: start or cancel listening, reporting unsupported platforms."""
        try:
            self.speech.toggle()
        except SpeechUnsupportedError:
            if self.notifications is not None and not self._unsupported_reported:
                self._unsupported_reported = True
                self.notifications.notify(unsupported_notification())

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _load_credential(self) -> Optional[str]:
        value = self.store.get(self.credential_key, "", schema=str, seed=False)
        value = value.strip() if isinstance(value, str) else ""
        return value or None

    def _set_pending_text(self, text: str) -> None:
        if self._disposed:
            return
        self.pending_text = text
        self._changed()

    def _notify(self, title: str, message: str) -> None:
        if self.notifications is not None:
            self.notifications.notify(Notification(title=title, message=message, level="error"))

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Chat session listener failed")
