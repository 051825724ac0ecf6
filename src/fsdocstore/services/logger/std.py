from __future__ import annotations

from dataclasses import dataclass, field
import logging
import logging.handlers
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from fsdocstore.config.settings import StoreSettings

from .formatters import JsonFormatter, SafeFormatter


@dataclass(frozen=True)
class LogContext:
    collection: Optional[str] = None
    doc_id: Optional[str] = None

    def as_extra(self) -> Mapping[str, Any]:
        # Only include non-None fields; logging.Formatter will lookup keys by name.
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass(frozen=True)
class LoggingConfig:
    """
    Configure sinks & formats.

    Attributes:
      root_ns: base logger name (`fsdocstore`).
      level: level for the root logger and its handlers.
      log_dir: directory for rotated file logs; None => console only.
      use_json: True => JSON lines for the file sink; console stays text.
      per_namespace_levels: optional map (e.g. {"fsdocstore.storage": "DEBUG"}).
      max_bytes / backup_count: rotation for the file handler.
    """

    root_ns: str = "fsdocstore"
    level: str = "INFO"
    log_dir: Optional[str] = None
    use_json: bool = False
    per_namespace_levels: Mapping[str, str] = field(default_factory=dict)
    console_pattern: str = "%(asctime)s %(levelname)s \t%(name)s    coll=%(collection)s    doc=%(doc_id)s - %(message)s"
    file_pattern: str = "%(asctime)s %(levelname)s %(name)s %(collection)s %(doc_id)s %(message)s"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    @staticmethod
    def from_env() -> "LoggingConfig":
        return LoggingConfig(
            root_ns=os.getenv("FSDOCSTORE_LOG_ROOT", "fsdocstore"),
            level=os.getenv("FSDOCSTORE_LOG_LEVEL", "INFO"),
            log_dir=os.getenv("FSDOCSTORE_LOG_DIR") or None,
            use_json=os.getenv("FSDOCSTORE_LOG_JSON", "0") == "1",
        )

    @staticmethod
    def from_settings(cfg: StoreSettings, log_dir: Optional[str] = None) -> "LoggingConfig":
        return LoggingConfig(
            level=cfg.logging.level,
            log_dir=log_dir or cfg.logging.log_dir,
            use_json=cfg.logging.json_logs,
        )


class _ContextAdapter(logging.LoggerAdapter):
    """
    Injects contextual fields into LogRecord via `extra`.
    Preserves original logger API (info, debug, etc.).
    """

    def process(self, msg, kwargs):
        extra = kwargs.get("extra") or {}
        merged = {**self.extra, **extra}
        kwargs["extra"] = merged
        return msg, kwargs


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


class StdLoggerService:
    """
      • text/JSON formatters
      • per-namespace levels
      • optional rotating file sink
      • context helpers (with_context / for_collection)
    """

    def __init__(self, base: logging.Logger, *, cfg: LoggingConfig):
        self._base = base
        self._cfg = cfg

    def base(self) -> logging.Logger:
        return self._base

    def for_namespace(self, ns: str) -> logging.Logger:
        return self._base.getChild(ns)

    def with_context(self, logger: logging.Logger, ctx: LogContext) -> logging.LoggerAdapter:
        return _ContextAdapter(logger, ctx.as_extra())

    def for_collection(self, name: str) -> logging.LoggerAdapter:
        return self.with_context(self.for_namespace("collection"), LogContext(collection=name))

    # --- builder ---

    @staticmethod
    def build(cfg: Optional[LoggingConfig] = None) -> "StdLoggerService":
        cfg = cfg or LoggingConfig.from_env()

        root = logging.getLogger(cfg.root_ns)
        # Reset handlers if rebuilding
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        root.setLevel(_level(cfg.level))
        root.propagate = False

        for ns, lvl in (cfg.per_namespace_levels or {}).items():
            logging.getLogger(ns).setLevel(_level(lvl))

        console = logging.StreamHandler()
        console.setLevel(_level(cfg.level))
        console.setFormatter(SafeFormatter(cfg.console_pattern))
        root.addHandler(console)

        if cfg.log_dir:
            log_dir = Path(cfg.log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            fh = logging.handlers.RotatingFileHandler(
                log_dir / "fsdocstore.log",
                maxBytes=cfg.max_bytes,
                backupCount=cfg.backup_count,
                encoding="utf-8",
            )
            fh.setFormatter(JsonFormatter() if cfg.use_json else SafeFormatter(cfg.file_pattern))
            fh.setLevel(_level(cfg.level))
            root.addHandler(fh)

        return StdLoggerService(root, cfg=cfg)


def setup_logging(cfg: StoreSettings | LoggingConfig | None = None) -> StdLoggerService:
    if isinstance(cfg, StoreSettings):
        cfg = LoggingConfig.from_settings(cfg)
    return StdLoggerService.build(cfg)
