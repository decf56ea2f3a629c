from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from homedash.config.paths import key_filename
from homedash.core.config import Settings, get_settings
from homedash.core.logger import JsonFormatter, configure_logging, get_logger, mask_secret


def test_settings_read_env_and_json_file(tmp_path: Path, monkeypatch):
    (tmp_path / "homedash.json").write_text(json.dumps({"timer_work_seconds": 600}), encoding="utf-8")
    monkeypatch.setenv("HOMEDASH_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("HOMEDASH_CHAT_MODEL", "sonar-pro")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.data_dir == tmp_path
        assert settings.chat_model == "sonar-pro"
        assert settings.timer_work_seconds == 600
        assert settings.store_dir == tmp_path / "store"
        assert settings.resolved_log_dir == tmp_path / "logs"
    finally:
        get_settings.cache_clear()


def test_key_filename_rejects_unsafe_keys():
    assert key_filename("enabledWidgets") == "enabledWidgets.json"
    for key in ("  ", "../secret", "a/b", ".hidden", "a b"):
        with pytest.raises(ValueError):
            key_filename(key)


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("homedash.chat", logging.INFO, __file__, 1, "answered", None, None)
    record.status = 200
    payload = json.loads(JsonFormatter().format(record))
    assert payload["category"] == "homedash.chat"
    assert payload["message"] == "answered"
    assert payload["status"] == 200


def test_configure_logging_writes_jsonl(tmp_path: Path):
    settings = Settings(data_dir=tmp_path)
    configure_logging(settings)
    logger = get_logger("store")
    logger.warning("Malformed value (key=%s)", "todos")
    for handler in logger.handlers:
        handler.flush()
    lines = (tmp_path / "logs" / "store.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["message"] == "Malformed value (key=todos)"


@pytest.mark.parametrize(
    "value, expected",
    [(None, "<none>"), ("", "<none>"), ("abc", "****"), ("pplx-123456", "****3456")],
)
def test_mask_secret(value, expected):
    assert mask_secret(value) == expected
