import json
import logging

from fsdocstore.config.settings import LoggingSettings, StoreSettings
from fsdocstore.services.logger.formatters import JsonFormatter, SafeFormatter
from fsdocstore.services.logger.std import LogContext, LoggingConfig, StdLoggerService, setup_logging


def _record(**extra):
    rec = logging.LogRecord("fsdocstore.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for k, v in extra.items():
        setattr(rec, k, v)
    return rec


def test_safe_formatter_fills_missing_context():
    fmt = SafeFormatter("%(collection)s|%(doc_id)s|%(message)s")
    assert fmt.format(_record()) == "-|-|hello world"
    assert fmt.format(_record(collection="items", doc_id="a")) == "items|a|hello world"


def test_json_formatter_includes_context_only_when_set():
    payload = json.loads(JsonFormatter().format(_record(collection="items")))
    assert payload["message"] == "hello world"
    assert payload["collection"] == "items"
    assert "doc_id" not in payload


def test_build_installs_console_and_file_sinks(tmp_path):
    svc = StdLoggerService.build(LoggingConfig(level="DEBUG", log_dir=str(tmp_path), use_json=True))
    base = svc.base()

    assert base.name == "fsdocstore"
    assert base.propagate is False
    assert len(base.handlers) == 2

    svc.for_collection("items").info("stored", extra={"doc_id": "x"})
    for h in base.handlers:
        h.flush()

    line = (tmp_path / "fsdocstore.log").read_text(encoding="utf-8").strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["logger"] == "fsdocstore.collection"
    assert payload["collection"] == "items"
    assert payload["doc_id"] == "x"


def test_rebuild_replaces_handlers():
    StdLoggerService.build(LoggingConfig())
    svc = StdLoggerService.build(LoggingConfig(level="WARNING"))
    assert len(svc.base().handlers) == 1
    assert svc.base().level == logging.WARNING


def test_setup_from_settings():
    cfg = StoreSettings(logging=LoggingSettings(level="ERROR", json_logs=True))
    svc = setup_logging(cfg)
    assert svc.base().level == logging.ERROR


def test_log_context_drops_unset_fields():
    assert LogContext(collection="c").as_extra() == {"collection": "c"}


def test_from_env(monkeypatch):
    monkeypatch.setenv("FSDOCSTORE_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("FSDOCSTORE_LOG_JSON", "1")
    cfg = LoggingConfig.from_env()
    assert (cfg.level, cfg.use_json, cfg.log_dir) == ("DEBUG", True, None)
