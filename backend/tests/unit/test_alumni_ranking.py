from datetime import datetime, timezone

import pytest

from trailblaize.domain.alumni import privacy, ranking
from trailblaize.domain.alumni.models import AlumniRecord, MutualConnection
from trailblaize.infra.auth import Viewer

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
ADMIN = Viewer(user_id="admin-1", role="admin")


def _full_record(**overrides) -> AlumniRecord:
	data = dict(
		id="a-1",
		user_id="u-1",
		full_name="Jordan Lee",
		first_name="Jordan",
		last_name="Lee",
		chapter="Sigma Chi",
		graduation_year=2015,
		company="Acme",
		job_title="Engineer",
		industry="Technology",
		email="jordan@example.com",
		phone="(555) 123-4567",
		location="Jackson, MS",
		description="Builds things.",
		tags=["mentor"],
		avatar_url="https://cdn.example.com/a.png",
		verified=True,
	)
	data.update(overrides)
	return AlumniRecord(**data)


def _project(record: AlumniRecord, *, mutuals: int = 0):
	item = privacy.project(record, ADMIN, now=NOW)
	item.mutual_connections = [MutualConnection(id=f"m-{i}", name=f"M{i}") for i in range(mutuals)]
	return item


@pytest.mark.parametrize(
	"value",
	[None, "", "   ", "N/A", "tbd", "Unknown", "null", "undefined", "Not Specified", "not specified", 0, -3],
)
def test_placeholders_are_not_valid(value):
	assert ranking.is_valid_field(value) is False


@pytest.mark.parametrize("value", ["Acme", 2019, 3.5, ["x"]])
def test_real_values_are_valid(value):
	assert ranking.is_valid_field(value) is True


def test_fully_populated_record_scores_maximum():
	score = ranking.completeness(_project(_full_record(), mutuals=1))
	assert score.total == 100
	assert score.max_score == 100
	assert score.missing_fields == []
	assert score.percentage == 100
	assert score.priority == "high"
	assert score.breakdown == {"basic": 30, "professional": 30, "contact": 20, "social": 15, "verification": 5}


def test_default_description_does_not_count():
	with_custom = ranking.completeness(_project(_full_record())).total
	with_default = ranking.completeness(_project(_full_record(description=None))).total
	assert with_custom - with_default == 8


def test_completeness_is_monotonic_in_populated_fields():
	bare = AlumniRecord(id="a-2", full_name="Sam Doe")
	steps = [
		{"chapter": "Kappa"},
		{"graduation_year": 2012},
		{"job_title": "Analyst"},
		{"company": "Initech"},
		{"industry": "Finance"},
		{"email": "sam@example.com"},
		{"location": "Austin, TX"},
		{"verified": True},
	]
	previous = ranking.completeness(_project(bare)).total
	fields: dict = {}
	for step in steps:
		fields.update(step)
		current = ranking.completeness(_project(AlumniRecord(id="a-2", full_name="Sam Doe", **fields))).total
		assert current > previous
		previous = current


def test_priority_buckets():
	assert ranking.CompletenessScore(total=80).priority == "high"
	assert ranking.CompletenessScore(total=79).priority == "medium"
	assert ranking.CompletenessScore(total=60).priority == "medium"
	assert ranking.CompletenessScore(total=59).priority == "low"


def test_rank_orders_by_score_then_tiebreakers():
	high = _project(_full_record(id="a-high", full_name="Zed"))
	# Both score 22; only avatar vs professional info differs
	with_avatar = _project(
		AlumniRecord(id="a-av", full_name="Yan", avatar_url="x.png", location="Denver, CO", verified=True)
	)
	with_job = _project(AlumniRecord(id="a-job", full_name="Abe", job_title="CEO"))
	ranked = ranking.rank([with_job, with_avatar, high])
	assert [item.alumni_id for item in ranked] == ["a-high", "a-av", "a-job"]
	assert [item.completeness_score for item in ranked] == [96, 22, 22]


def test_ties_on_all_flags_sort_by_name_case_insensitively():
	items = [
		_project(AlumniRecord(id="a-3", full_name="charlie")),
		_project(AlumniRecord(id="a-1", full_name="Alice")),
		_project(AlumniRecord(id="a-2", full_name="bob")),
	]
	ranked = ranking.rank(items)
	assert [item.full_name for item in ranked] == ["Alice", "bob", "charlie"]


def test_mutual_connections_break_ties():
	lonely = _project(AlumniRecord(id="a-1", full_name="Amy", job_title="Dev", location="Austin, TX"))
	connected = _project(AlumniRecord(id="a-2", full_name="Zoe", job_title="Dev"), mutuals=1)
	assert ranking.completeness(lonely).total == ranking.completeness(connected).total == 26
	ranked = ranking.rank([lonely, connected])
	assert [item.alumni_id for item in ranked] == ["a-2", "a-1"]


def test_sort_key_is_total_order_for_identical_fields():
	first = _project(AlumniRecord(id="a-1", full_name="Same"))
	second = _project(AlumniRecord(id="a-2", full_name="Same"))
	assert ranking.rank([second, first])[0].alumni_id == "a-1"
	assert ranking.sort_key(first) != ranking.sort_key(second)
