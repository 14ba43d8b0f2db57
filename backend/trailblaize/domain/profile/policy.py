"""Validation and normalisation rules for profile edits."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional, Union

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
LINKEDIN_REGEX = re.compile(r"^https?://(www\.)?linkedin\.com/in/[a-zA-Z0-9-]+/?$")
GPA_MIN = 0.0
GPA_MAX = 4.0
NAME_MAX_LEN = 80
BIO_MAX_LEN = 2000
NOT_SPECIFIED = "Not Specified"
UNKNOWN_CHAPTER = "Unknown"


class ProfilePolicyError(Exception):
	reason: str = "profile_error"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class ProfileValidationError(ProfilePolicyError):
	reason = "validation_failed"

	def __init__(self, fields: Mapping[str, str]) -> None:
		super().__init__()
		self.fields = dict(fields)


class ProfileNotFound(ProfilePolicyError):
	reason = "profile_not_found"


def digits_only(value: str) -> str:
	return re.sub(r"\D", "", value or "")


def format_phone(raw: Optional[str]) -> str:
	"""Format a US phone number progressively from whatever digits are present."""

	digits = digits_only(raw or "")[:10]
	if len(digits) <= 3:
		return digits
	if len(digits) <= 6:
		return f"({digits[:3]}) {digits[3:]}"
	return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def parse_tags(raw: Union[str, Iterable[str], None]) -> list[str]:
	if raw is None:
		return []
	items = raw.split(",") if isinstance(raw, str) else list(raw)
	return [str(item).strip() for item in items if str(item).strip()]


def parse_gpa(raw: Any) -> Optional[float]:
	if raw is None or (isinstance(raw, str) and not raw.strip()):
		return None
	try:
		value = float(raw)
	except (TypeError, ValueError):
		raise ValueError("GPA must be a number") from None
	if not GPA_MIN <= value <= GPA_MAX:
		raise ValueError("GPA must be between 0.0 and 4.0")
	return value


def _blank_to_none(value: Any) -> Any:
	if isinstance(value, str):
		text = value.strip()
		return text or None
	return value


def validate_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
	"""Validate a partial profile update and return the normalised values.

	All field errors are collected before raising so a client can mark every
	bad input at once.
	"""

	errors: dict[str, str] = {}
	cleaned: dict[str, Any] = {}
	for key, value in changes.items():
		if key in {"first_name", "last_name"}:
			text = (value or "").strip()
			if not text:
				errors[key] = "required"
			elif len(text) > NAME_MAX_LEN:
				errors[key] = "too_long"
			else:
				cleaned[key] = text
		elif key == "email":
			text = (value or "").strip()
			if text and not EMAIL_REGEX.match(text):
				errors[key] = "Please enter a valid email address"
			else:
				cleaned[key] = text or None
		elif key == "gpa":
			try:
				cleaned[key] = parse_gpa(value)
			except ValueError as exc:
				errors[key] = str(exc)
		elif key == "linkedin_url":
			text = (value or "").strip()
			if text and not LINKEDIN_REGEX.match(text):
				errors[key] = "Please enter a valid LinkedIn profile URL"
			else:
				cleaned[key] = text or None
		elif key == "phone":
			cleaned[key] = format_phone(value) or None
		elif key == "bio":
			text = _blank_to_none(value)
			if text and len(text) > BIO_MAX_LEN:
				errors[key] = "too_long"
			else:
				cleaned[key] = text
		elif key == "tags":
			cleaned[key] = parse_tags(value)
		else:
			cleaned[key] = _blank_to_none(value)
	if errors:
		raise ProfileValidationError(errors)
	return cleaned
