"""Completeness scoring and ordering for alumni listings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from trailblaize.domain.alumni.models import AlumniProjection

PLACEHOLDERS = frozenset({"n/a", "tbd", "unknown", "null", "undefined", "not specified"})

HIGH_PRIORITY_PCT = 80
MEDIUM_PRIORITY_PCT = 60


def is_valid_field(value: Any) -> bool:
	"""True when a value carries real information rather than a placeholder."""

	if value is None:
		return False
	if isinstance(value, bool):
		return value
	if isinstance(value, (int, float)):
		return value > 0
	if isinstance(value, str):
		text = value.strip()
		return bool(text) and text.lower() not in PLACEHOLDERS
	if isinstance(value, (list, tuple, set)):
		return len(value) > 0
	return True


@dataclass(slots=True, frozen=True)
class _Criterion:
	group: str
	label: str
	weight: int
	check: Callable[[AlumniProjection], bool]


CRITERIA: tuple[_Criterion, ...] = (
	_Criterion("basic", "Full name", 10, lambda p: is_valid_field(p.full_name)),
	_Criterion("basic", "Chapter", 8, lambda p: is_valid_field(p.chapter)),
	_Criterion("basic", "Graduation year", 7, lambda p: is_valid_field(p.graduation_year)),
	_Criterion("basic", "Profile photo", 5, lambda p: is_valid_field(p.avatar)),
	_Criterion("professional", "Job title", 12, lambda p: is_valid_field(p.job_title)),
	_Criterion("professional", "Company", 10, lambda p: is_valid_field(p.company)),
	_Criterion("professional", "Industry", 8, lambda p: is_valid_field(p.industry)),
	_Criterion("contact", "Email", 10, lambda p: is_valid_field(p.email)),
	_Criterion("contact", "Phone", 6, lambda p: is_valid_field(p.phone)),
	_Criterion("contact", "Location", 4, lambda p: is_valid_field(p.location)),
	_Criterion(
		"social",
		"Description",
		8,
		lambda p: not p.description_is_default and is_valid_field(p.description),
	),
	_Criterion("social", "Mutual connections", 4, lambda p: p.mutual_connections_count > 0),
	_Criterion("social", "Tags", 3, lambda p: any(is_valid_field(tag) for tag in p.tags)),
	_Criterion("verification", "Verified", 3, lambda p: p.verified),
	_Criterion("verification", "Linked profile", 2, lambda p: p.has_profile),
)

MAX_SCORE = sum(criterion.weight for criterion in CRITERIA)


@dataclass(slots=True)
class CompletenessScore:
	total: int
	max_score: int = MAX_SCORE
	breakdown: dict[str, int] = field(default_factory=dict)
	missing_fields: list[str] = field(default_factory=list)

	@property
	def percentage(self) -> int:
		if self.max_score <= 0:
			return 0
		return round(self.total * 100 / self.max_score)

	@property
	def priority(self) -> str:
		pct = self.percentage
		if pct >= HIGH_PRIORITY_PCT:
			return "high"
		if pct >= MEDIUM_PRIORITY_PCT:
			return "medium"
		return "low"


def completeness(projection: AlumniProjection) -> CompletenessScore:
	score = CompletenessScore(total=0, breakdown={criterion.group: 0 for criterion in CRITERIA})
	for criterion in CRITERIA:
		if criterion.check(projection):
			score.total += criterion.weight
			score.breakdown[criterion.group] += criterion.weight
		else:
			score.missing_fields.append(criterion.label)
	return score


def has_professional_info(projection: AlumniProjection) -> bool:
	return is_valid_field(projection.job_title) or is_valid_field(projection.company)


def sort_key(projection: AlumniProjection) -> tuple:
	"""Total-order key: score desc, avatar, professional info, mutuals, then name."""

	score = projection.completeness_score
	if score is None:
		score = completeness(projection).total
	return (
		-score,
		0 if is_valid_field(projection.avatar) else 1,
		0 if has_professional_info(projection) else 1,
		0 if projection.mutual_connections_count > 0 else 1,
		(projection.full_name or "").casefold(),
		projection.alumni_id,
	)


def rank(projections: Iterable[AlumniProjection]) -> list[AlumniProjection]:
	"""Score each projection in place and return them in listing order."""

	items = list(projections)
	for item in items:
		item.completeness_score = completeness(item).total
	items.sort(key=sort_key)
	return items
