"""Filter construction and in-memory predicate evaluation for alumni queries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from trailblaize.domain.alumni.models import ActivityStatus, AlumniRecord, ResolvedChapter
from trailblaize.settings import settings

US_STATES: dict[str, str] = {
	"AL": "Alabama",
	"AK": "Alaska",
	"AZ": "Arizona",
	"AR": "Arkansas",
	"CA": "California",
	"CO": "Colorado",
	"CT": "Connecticut",
	"DE": "Delaware",
	"DC": "District of Columbia",
	"FL": "Florida",
	"GA": "Georgia",
	"HI": "Hawaii",
	"ID": "Idaho",
	"IL": "Illinois",
	"IN": "Indiana",
	"IA": "Iowa",
	"KS": "Kansas",
	"KY": "Kentucky",
	"LA": "Louisiana",
	"ME": "Maine",
	"MD": "Maryland",
	"MA": "Massachusetts",
	"MI": "Michigan",
	"MN": "Minnesota",
	"MS": "Mississippi",
	"MO": "Missouri",
	"MT": "Montana",
	"NE": "Nebraska",
	"NV": "Nevada",
	"NH": "New Hampshire",
	"NJ": "New Jersey",
	"NM": "New Mexico",
	"NY": "New York",
	"NC": "North Carolina",
	"ND": "North Dakota",
	"OH": "Ohio",
	"OK": "Oklahoma",
	"OR": "Oregon",
	"PA": "Pennsylvania",
	"RI": "Rhode Island",
	"SC": "South Carolina",
	"SD": "South Dakota",
	"TN": "Tennessee",
	"TX": "Texas",
	"UT": "Utah",
	"VT": "Vermont",
	"VA": "Virginia",
	"WA": "Washington",
	"WV": "West Virginia",
	"WI": "Wisconsin",
	"WY": "Wyoming",
	"PR": "Puerto Rico",
	"GU": "Guam",
	"VI": "U.S. Virgin Islands",
	"AS": "American Samoa",
	"MP": "Northern Mariana Islands",
}

ALL_YEARS = "all years"
OLDER = "older"
HOT_WINDOW = timedelta(hours=1)
ACTIVE_WINDOW = timedelta(hours=24)

SEARCH_FIELDS = ("full_name", "company", "job_title", "industry", "chapter")


class FilterValueError(ValueError):
	"""Raised when a query parameter cannot be turned into a filter."""

	def __init__(self, field: str, message: str) -> None:
		super().__init__(message)
		self.field = field
		self.message = message


@dataclass(slots=True, frozen=True)
class YearFilter:
	year: int
	at_most: bool = False

	def matches(self, value: Optional[int]) -> bool:
		if value is None:
			return False
		return value <= self.year if self.at_most else value == self.year


@dataclass(slots=True, frozen=True)
class StateFilter:
	code: str
	name: Optional[str]

	@property
	def word_pattern(self) -> re.Pattern[str]:
		return re.compile(rf"\b{re.escape(self.code)}\b", re.IGNORECASE)

	@property
	def sql_word_pattern(self) -> str:
		"""Postgres ARE equivalent of ``word_pattern``."""
		return rf"\m{re.escape(self.code)}\M"

	def matches(self, location: Optional[str]) -> bool:
		if not location:
			return False
		if self.word_pattern.search(location):
			return True
		return bool(self.name) and self.name.lower() in location.lower()


@dataclass(slots=True)
class AlumniFilter:
	"""Store-level predicate set; activity filters are applied after projection."""

	search_terms: tuple[str, ...] = ()
	industry: Optional[str] = None
	location: Optional[str] = None
	state: Optional[StateFilter] = None
	graduation_year: Optional[YearFilter] = None
	actively_hiring: bool = False
	chapter: Optional[ResolvedChapter] = None
	activity_status: Optional[ActivityStatus] = None
	active_only: bool = False

	def matches(self, record: AlumniRecord) -> bool:
		if self.search_terms and not _matches_search(record, self.search_terms):
			return False
		if self.industry and record.industry != self.industry:
			return False
		if self.location and record.location != self.location:
			return False
		if self.state and not self.state.matches(record.location):
			return False
		if self.graduation_year and not self.graduation_year.matches(record.graduation_year):
			return False
		if self.actively_hiring and not record.is_actively_hiring:
			return False
		if self.chapter and not self.chapter.matches(record.chapter, record.chapter_id):
			return False
		return True


def _matches_search(record: AlumniRecord, terms: tuple[str, ...]) -> bool:
	haystacks = [str(getattr(record, name) or "").lower() for name in SEARCH_FIELDS]
	return any(term in haystack for term in terms for haystack in haystacks)


def parse_search(raw: Optional[str]) -> tuple[str, ...]:
	return tuple(term for term in (raw or "").lower().split() if term)


def parse_state(raw: Optional[str]) -> Optional[StateFilter]:
	code = (raw or "").strip().upper()
	if not code:
		return None
	return StateFilter(code=code, name=US_STATES.get(code))


def parse_graduation_year(raw: Optional[str]) -> Optional[YearFilter]:
	value = (raw or "").strip()
	if not value or value.lower() == ALL_YEARS:
		return None
	if value.lower() == OLDER:
		return YearFilter(year=settings.alumni_older_cutoff_year, at_most=True)
	try:
		return YearFilter(year=int(value))
	except ValueError:
		raise FilterValueError("graduationYear", "must be an integer year, 'older' or 'All Years'") from None


def parse_activity_status(raw: Optional[str]) -> Optional[ActivityStatus]:
	value = (raw or "").strip().lower()
	if not value:
		return None
	try:
		return ActivityStatus(value)
	except ValueError:
		raise FilterValueError("activityStatus", "must be one of hot, warm, cold") from None


def _as_utc(value: datetime) -> datetime:
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value


def activity_status_of(last_active_at: Optional[datetime], *, now: datetime) -> ActivityStatus:
	if last_active_at is None:
		return ActivityStatus.COLD
	age = now - _as_utc(last_active_at)
	if age < HOT_WINDOW:
		return ActivityStatus.HOT
	if age < ACTIVE_WINDOW:
		return ActivityStatus.WARM
	return ActivityStatus.COLD


def is_recently_active(last_active_at: Optional[datetime], *, now: datetime) -> bool:
	if last_active_at is None:
		return False
	return now - _as_utc(last_active_at) < ACTIVE_WINDOW
