"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"trailblaize_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"trailblaize_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

ALUMNI_QUERIES = Counter(
	"trailblaize_alumni_queries_total",
	"Alumni directory queries by outcome",
	["result"],
)

ALUMNI_QUERY_LATENCY = Histogram(
	"trailblaize_alumni_query_duration_seconds",
	"Alumni directory query latency in seconds",
	buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

ALUMNI_RESULT_SIZE = Histogram(
	"trailblaize_alumni_materialised_rows",
	"Rows materialised before in-memory ranking",
	buckets=(0, 10, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)

VIEWER_RESOLUTION = Counter(
	"trailblaize_viewer_resolution_total",
	"Viewer resolution outcomes",
	["outcome"],
)

MUTUAL_FANOUT_FAILURES = Counter(
	"trailblaize_mutual_fanout_failures_total",
	"Connection fan-out branches that failed and were treated as empty",
	["branch"],
)

RATE_LIMIT_UNAVAILABLE = Counter(
	"trailblaize_rate_limit_unavailable_total",
	"Requests served without a rate-limit check because Redis failed",
	["kind"],
)

PROFILE_UPDATES = Counter(
	"trailblaize_profile_updates_total",
	"Profile update attempts by outcome",
	["result"],
)

PROFILE_DRAFTS = Counter(
	"trailblaize_profile_drafts_total",
	"Profile draft operations",
	["action"],
)

REDIS_UP = Gauge("trailblaize_redis_up", "Redis reachability (1 = up)")
POSTGRES_UP = Gauge("trailblaize_postgres_up", "Postgres reachability (1 = up)")
DEPENDENCY_LATENCY = Histogram(
	"trailblaize_dependency_ping_seconds",
	"Dependency ping latency",
	["dependency"],
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_alumni_query(result: str) -> None:
	ALUMNI_QUERIES.labels(result=result).inc()


def observe_alumni_latency(latency_seconds: float) -> None:
	ALUMNI_QUERY_LATENCY.observe(latency_seconds)


def observe_alumni_rows(count: int) -> None:
	ALUMNI_RESULT_SIZE.observe(count)


def inc_viewer_resolution(outcome: str) -> None:
	VIEWER_RESOLUTION.labels(outcome=outcome).inc()


def inc_mutual_fanout_failure(branch: str) -> None:
	MUTUAL_FANOUT_FAILURES.labels(branch=branch).inc()


def inc_rate_limit_unavailable(kind: str) -> None:
	RATE_LIMIT_UNAVAILABLE.labels(kind=kind).inc()


def inc_profile_update(result: str) -> None:
	PROFILE_UPDATES.labels(result=result).inc()


def inc_profile_draft(action: str) -> None:
	PROFILE_DRAFTS.labels(action=action).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if ok and latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="redis").observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if ok and latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="postgres").observe(latency_seconds)
