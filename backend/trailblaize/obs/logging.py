"""JSON logging with per-request context.

Every record carries the request id, route, viewer and client address bound
by the observability middleware. Structured ``extra`` fields pass through a
scrubber: credentials are dropped and alumni contact details are masked, so a
log line never carries a full email address or phone number.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from trailblaize.settings import settings

_LOGGER_NAME = "trailblaize"

_CONTEXT_VARS: Dict[str, ContextVar[Optional[str]]] = {
	"request_id": ContextVar("obs_request_id", default=None),
	"route": ContextVar("obs_route", default=None),
	"viewer_id": ContextVar("obs_viewer_id", default=None),
	"client_ip": ContextVar("obs_client_ip", default=None),
}

SECRET_KEYS = ("token", "secret", "authorization", "cookie", "password")
CONTACT_KEYS = ("email", "phone")
BULK_KEYS = ("payload", "body", "fields", "changes")

MAX_TEXT = 256
MAX_ITEMS = 10

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def bind_context(
	*,
	request_id: Optional[str] = None,
	route: Optional[str] = None,
	viewer_id: Optional[str] = None,
	client_ip: Optional[str] = None,
) -> Dict[str, Token]:
	"""Bind request fields and return the tokens needed to unbind them."""
	values = {"request_id": request_id, "route": route, "viewer_id": viewer_id, "client_ip": client_ip}
	return {key: _CONTEXT_VARS[key].set(value) for key, value in values.items() if value is not None}


def reset_context(tokens: Dict[str, Token]) -> None:
	for key, token in tokens.items():
		_CONTEXT_VARS[key].reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT_VARS["request_id"].get()


def mask_email(value: str) -> str:
	local, at, domain = value.partition("@")
	if not at:
		return "***"
	return f"{local[:1]}***@{domain}"


def mask_phone(value: str) -> str:
	digits = [ch for ch in value if ch.isdigit()]
	return f"***{''.join(digits[-2:])}" if digits else "***"


def scrub(key: str, value: Any) -> Any:
	lowered = key.lower()
	if any(word in lowered for word in SECRET_KEYS):
		return "[redacted]"
	if any(word in lowered for word in BULK_KEYS):
		# Form payloads are summarised by their keys
		return sorted(value) if isinstance(value, dict) else "[omitted]"
	if isinstance(value, str):
		if "email" in lowered:
			return mask_email(value)
		if "phone" in lowered:
			return mask_phone(value)
		return value if len(value) <= MAX_TEXT else value[:MAX_TEXT] + "..."
	if isinstance(value, dict):
		return {str(k): scrub(str(k), v) for k, v in list(value.items())[:MAX_ITEMS]}
	if isinstance(value, (list, tuple, set)):
		return [scrub(key, item) for item in list(value)[:MAX_ITEMS]]
	return value


class JSONLogFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update({key: var.get() for key, var in _CONTEXT_VARS.items() if var.get()})
		for key, value in vars(record).items():
			if key not in _RECORD_ATTRS and key not in payload:
				payload[key] = scrub(key, value)
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Keep a fraction of info records; warnings and errors always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = min(1.0, max(0.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
