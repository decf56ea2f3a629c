from __future__ import annotations

from typing import Any, Dict


class DashboardError(Exception):
    """Erreur de base du tableau de bord, jamais fatale pour l'application."""

    code = "dashboard_error"
    message = "Une erreur est survenue."

    def __init__(self, message: str | None = None, *, details: Any | None = None) -> None:
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        return error_response(self.code, self.message, details=self.details)


class StorageParseError(DashboardError):
    code = "storage_parse_error"
    message = "Stored value is not valid JSON for the expected shape."


class CredentialMissingError(DashboardError):
    code = "credential_missing"
    message = "Please enter your API key to use the AI assistant."


class TransportError(DashboardError):
    code = "transport_error"
    message = "Failed to get a response from the remote service."

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, details=details)


class SpeechUnsupportedError(DashboardError):
    code = "speech_unsupported"
    message = "Speech recognition is not supported on this platform."


class CacheMissError(DashboardError):
    code = "cache_miss"
    message = "No cached value for today."


def error_response(code: str, message: str, *, details: Any | None = None, trace_id: str | None = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    if details is not None:
        payload["error"]["details"] = details
    if trace_id is not None:
        payload["error"]["trace_id"] = trace_id
    return payload
