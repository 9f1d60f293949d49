"""JSON logging with per-request context.

Handlers log through ``get_logger(...)`` and pass structured fields via
``extra=``. The HTTP middleware binds the request id, route, caller and club
for the duration of a request so every line emitted while serving it carries
them.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from mindo.settings import settings

_ROOT = "mindo"

_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("mindo_log_context", default={})

# Keys whose values never reach the log stream.
_REDACT = ("password", "token", "secret", "authorization", "cookie", "reset")

_MAX_TEXT = 256
_MAX_ITEMS = 10

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def bind_context(**fields: Optional[str]) -> Token:
	"""Merge ``fields`` into the current log context; ``None`` values are dropped."""
	merged = dict(_CONTEXT.get())
	merged.update({key: str(value) for key, value in fields.items() if value is not None})
	return _CONTEXT.set(merged)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def scrub(key: str, value: Any) -> Any:
	if any(marker in key.lower() for marker in _REDACT):
		return "[redacted]"
	if isinstance(value, str) and len(value) > _MAX_TEXT:
		return value[:_MAX_TEXT] + "..."
	if isinstance(value, Mapping):
		items = list(value.items())[:_MAX_ITEMS]
		return {str(k): scrub(str(k), v) for k, v in items}
	if isinstance(value, (list, tuple, set)):
		return [scrub(key, item) for item in list(value)[:_MAX_ITEMS]]
	return value


class JSONLogFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		payload: dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update(_CONTEXT.get())
		for key, value in vars(record).items():
			if key not in _STANDARD_ATTRS and key not in payload:
				payload[key] = scrub(key, value)
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Drop a share of INFO records; other levels always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = settings.obs_log_sampling_rate_info
		return rate >= 1.0 or random.random() < max(rate, 0.0)


def configure_logging() -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers[:] = [handler]
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_ROOT)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _ROOT)
