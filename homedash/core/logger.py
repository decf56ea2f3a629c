import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Final

from homedash.core.config import Settings

CATEGORIES: Final[tuple[str, ...]] = ("store", "state", "chat", "commands", "timer", "background", "notifications")

# Attributs standard d'un LogRecord, exclus des champs "extra" sérialisés.
_RESERVED: Final[frozenset[str]] = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys() | {"message", "asctime"}
)

_config: dict[str, object] = {
    "log_dir": None,
    "level": logging.INFO,
    "rotate_mb": 5,
    "retention_days": 7,
}


class JsonFormatter(logging.Formatter):
    """Formateur qui sérialise les entrées en JSON."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "category": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED or key.startswith("_"):
                continue
            log_record[key] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False, default=str)


class SizeAndTimeRotatingFileHandler(TimedRotatingFileHandler):
    """Rotation basée sur la taille et le temps."""

    def __init__(
        self,
        filename: str | Path,
        max_bytes: int = 0,
        backup_count: int = 0,
        when: str = "midnight",
        interval: int = 1,
        encoding: str | None = "utf-8",
        delay: bool = False,
        utc: bool = False,
    ) -> None:
        self.maxBytes = max_bytes
        super().__init__(
            str(filename),
            when=when,
            interval=interval,
            backupCount=backup_count,
            encoding=encoding,
            delay=delay,
            utc=utc,
        )

    def shouldRollover(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if self.maxBytes > 0:
            if self.stream is None:  # pragma: no cover - sécurité
                self.stream = self._open()
            msg = f"{self.format(record)}\n"
            enc = self.encoding
            if not isinstance(enc, str) or enc.lower() == "locale":
                enc = "utf-8"
            if (self.stream.tell() + len(msg.encode(enc))) >= self.maxBytes:
                return True
        return super().shouldRollover(record)


def _build_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"homedash.{name}")
    if logger.handlers:  # éviter doublons
        return logger

    logger.setLevel(_config["level"])  # type: ignore[arg-type]
    log_dir = _config["log_dir"]
    if isinstance(log_dir, Path):
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = SizeAndTimeRotatingFileHandler(
            log_dir / f"{name}.jsonl",
            max_bytes=int(_config["rotate_mb"]) * 1024 * 1024,  # type: ignore[arg-type]
            backup_count=int(_config["retention_days"]),  # type: ignore[arg-type]
            delay=True,
        )
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    return logger


_LOGGERS: dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Retourne un logger existant ou le crée si nécessaire."""
    if name not in _LOGGERS:
        _LOGGERS[name] = _build_logger(name)
    return _LOGGERS[name]


def configure_logging(settings: Settings) -> None:
    """Active l'écriture JSON sur disque pour toutes les catégories."""
    _config["log_dir"] = settings.resolved_log_dir
    _config["level"] = logging.getLevelName(settings.log_level.upper())
    _config["rotate_mb"] = settings.log_rotate_mb
    _config["retention_days"] = settings.log_retention_days
    for name in list(_LOGGERS):
        logger = _LOGGERS.pop(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
    for name in CATEGORIES:
        get_logger(name)


def mask_secret(value: str | None) -> str:
    """Réduit un secret à ses quatre derniers caractères."""
    if not value:
        return "<none>"
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"
