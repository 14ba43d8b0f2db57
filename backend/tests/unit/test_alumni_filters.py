from datetime import datetime, timedelta, timezone

import pytest

from trailblaize.domain.alumni import filters
from trailblaize.domain.alumni.models import ActivityStatus, AlumniRecord, ResolvedChapter

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_state_matches_code_as_word_or_full_name():
	state = filters.parse_state("ms")
	assert state.code == "MS"
	assert state.name == "Mississippi"
	assert state.matches("Jackson, MS")
	assert state.matches("oxford, mississippi")
	assert state.matches("MS")
	assert not state.matches("Williams, AZ")
	assert not state.matches("Memphis, TN")
	assert not state.matches(None)


def test_unknown_state_code_matches_on_code_only():
	state = filters.parse_state("zz")
	assert state.name is None
	assert state.matches("Somewhere, ZZ")
	assert not state.matches("Nowhere")


def test_state_code_metacharacters_match_literally():
	state = filters.parse_state("M.")
	assert not state.matches("Jackson, MX")
	assert not filters.parse_state("(").matches("Jackson, MS")


def test_graduation_year_parsing():
	assert filters.parse_graduation_year(None) is None
	assert filters.parse_graduation_year("") is None
	assert filters.parse_graduation_year("All Years") is None
	older = filters.parse_graduation_year("older")
	assert older.at_most and older.year == 2019
	assert older.matches(2019) and older.matches(1990) and not older.matches(2020)
	exact = filters.parse_graduation_year(" 2021 ")
	assert exact.matches(2021) and not exact.matches(2020)
	assert not exact.matches(None)


def test_graduation_year_rejects_non_integer():
	with pytest.raises(filters.FilterValueError) as excinfo:
		filters.parse_graduation_year("twenty")
	assert excinfo.value.field == "graduationYear"


def test_activity_status_parsing():
	assert filters.parse_activity_status("HOT") is ActivityStatus.HOT
	assert filters.parse_activity_status(None) is None
	with pytest.raises(filters.FilterValueError):
		filters.parse_activity_status("lukewarm")


@pytest.mark.parametrize(
	"age, expected",
	[
		(timedelta(minutes=30), ActivityStatus.HOT),
		(timedelta(minutes=59), ActivityStatus.HOT),
		(timedelta(hours=1), ActivityStatus.WARM),
		(timedelta(hours=23, minutes=59), ActivityStatus.WARM),
		(timedelta(hours=24), ActivityStatus.COLD),
		(timedelta(days=30), ActivityStatus.COLD),
	],
)
def test_activity_buckets(age, expected):
	assert filters.activity_status_of(NOW - age, now=NOW) is expected


def test_missing_activity_is_cold_and_not_recent():
	assert filters.activity_status_of(None, now=NOW) is ActivityStatus.COLD
	assert filters.is_recently_active(None, now=NOW) is False


def test_naive_timestamps_are_treated_as_utc():
	naive = (NOW - timedelta(minutes=10)).replace(tzinfo=None)
	assert filters.activity_status_of(naive, now=NOW) is ActivityStatus.HOT


def test_search_terms_match_any_field():
	flt = filters.AlumniFilter(search_terms=filters.parse_search("  Acme  nurse "))
	assert flt.search_terms == ("acme", "nurse")
	assert flt.matches(AlumniRecord(id="1", company="ACME Corp"))
	assert flt.matches(AlumniRecord(id="2", job_title="Head Nurse"))
	assert not flt.matches(AlumniRecord(id="3", full_name="Nobody", chapter="Kappa"))


def test_combined_filter_predicates():
	flt = filters.AlumniFilter(
		industry="Finance",
		state=filters.parse_state("TX"),
		graduation_year=filters.parse_graduation_year("older"),
		actively_hiring=True,
		chapter=ResolvedChapter(names=("Sigma Chi",), id="c-1"),
	)
	match = AlumniRecord(
		id="1",
		industry="Finance",
		location="Austin, Texas",
		graduation_year=2010,
		is_actively_hiring=True,
		chapter_id="c-1",
	)
	assert flt.matches(match)
	match.is_actively_hiring = False
	assert not flt.matches(match)


def test_resolved_chapter_matches_name_or_id():
	chapter = ResolvedChapter(names=("Sigma Chi",), id="c-1")
	assert chapter.matches("Sigma Chi", None)
	assert chapter.matches("Other", "c-1")
	assert not chapter.matches("Other", "c-2")
	assert not ResolvedChapter(names=("Sigma Chi",)).matches(None, "c-1")
