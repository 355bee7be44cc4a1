"""Structured logging bootstrap.

Records emitted by the repository carry Cosmos addressing fields
(``database``, ``collection``, ``document_id``, ``error_type``) through
``extra=``. The formatters render those in a fixed order so that lines for
the same document line up; any other ``extra`` fields follow.
"""

from __future__ import annotations

import json
import logging
import os
import random
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from cosmos_repository.config.models import AppSettings

REPOSITORY_FIELDS: tuple[str, ...] = ("database", "collection", "document_id", "error_type")

_RESERVED_KEYS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", None, None).__dict__
) | {"asctime", "message", "taskName", "service", "env"}


class SamplingFilter(logging.Filter):
    """Keeps every WARNING and above, and a ``sampling`` share of the rest."""

    def __init__(self, sampling: float) -> None:
        super().__init__()
        self._sampling = sampling

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.WARNING or random.random() < self._sampling


def split_record_fields(record: logging.LogRecord) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return ``(repository_fields, other_extras)`` set on ``record`` via ``extra=``."""
    custom = {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_KEYS and not key.startswith("_")
    }
    located = {key: custom.pop(key) for key in REPOSITORY_FIELDS if key in custom}
    return located, custom


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Repository fields are grouped under ``"cosmos"`` and other extras under
    ``"extra"``; both keys are omitted when empty.
    """

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__()
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        located, extras = split_record_fields(record)
        payload: dict[str, Any] = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "env": self._env,
        }
        if located:
            payload["cosmos"] = located
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


class TextFormatter(logging.Formatter):
    """``<time> <level> <logger> <message> service=.. env=.. [database=.. ...]``"""

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        located, extras = split_record_fields(record)
        pairs = [("service", self._service), ("env", self._env)]
        pairs.extend(located.items())
        pairs.extend(sorted(extras.items()))
        rendered = " ".join(f"{key}={value}" for key, value in pairs)
        return f"{super().format(record)} {rendered}"


def bootstrap_logging(
    *,
    service: str,
    env: str | None = None,
    level: str = "INFO",
    log_format: str = "json",
    sampling: float | None = None,
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Attach a single stream handler with the chosen formatter.

    Defaults to the root logger. ``env`` falls back to ``COSMOS_REPOSITORY_ENV``.
    A non-root logger stops propagating so records are not written twice.
    """
    resolved_env = env if env is not None else os.getenv("COSMOS_REPOSITORY_ENV", "development")
    target = logger or logging.getLogger()

    if force:
        for existing in list(target.handlers):
            target.removeHandler(existing)

    formatter_cls = TextFormatter if log_format == "text" else JsonFormatter
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter_cls(service=service, env=resolved_env))
    if sampling is not None and sampling < 1.0:
        handler.addFilter(SamplingFilter(sampling))

    target.addHandler(handler)
    target.setLevel(level.upper())
    if target is not logging.getLogger():
        target.propagate = False
    return target


def bootstrap_logging_from_app_settings(
    app_settings: AppSettings,
    *,
    env: str | None = None,
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Bootstrap logging using values from typed appsettings."""
    section = app_settings.logging
    return bootstrap_logging(
        service=app_settings.service.name,
        env=env,
        level=section.level,
        log_format=section.format,
        sampling=section.sampling,
        logger=logger,
        stream=stream,
        force=force,
    )


def _utc_timestamp(created: float) -> str:
    moment = datetime.fromtimestamp(created, tz=UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
