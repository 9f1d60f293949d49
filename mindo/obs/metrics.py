"""Central registry for Prometheus metrics used across the API."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


REQUEST_COUNTER = Counter(
	"mindo_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"mindo_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

BACKGROUND_RUNS = Counter(
	"mindo_background_runs_total",
	"Background job executions",
	["name", "result"],
)

BACKGROUND_DURATION = Histogram(
	"mindo_background_duration_seconds",
	"Background job duration in seconds",
	["name"],
)

CLUBS_CREATED = Counter(
	"mindo_clubs_created_total",
	"Clubs created",
)

MEMBERSHIP_CHANGES = Counter(
	"mindo_club_membership_changes_total",
	"Club membership transitions",
	["action"],
)

APPLICATIONS_REVIEWED = Counter(
	"mindo_club_applications_reviewed_total",
	"Club applications reviewed",
	["decision"],
)

INVITATIONS = Counter(
	"mindo_club_invitations_total",
	"Club invitation lifecycle events",
	["event"],
)

POLL_VOTES = Counter(
	"mindo_poll_votes_total",
	"Poll votes recorded",
	["action"],
)

FORM_RESPONSES = Counter(
	"mindo_form_responses_total",
	"Form responses recorded",
	["action"],
)

SWEEP_TRANSITIONS = Counter(
	"mindo_sweep_transitions_total",
	"Rows transitioned by expiry sweeps",
	["sweep"],
)

AUTH_EVENTS = Counter(
	"mindo_auth_events_total",
	"Authentication events",
	["event", "result"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def record_background_run(name: str, *, result: str, duration_seconds: float | None = None) -> None:
	BACKGROUND_RUNS.labels(name=name, result=result).inc()
	if duration_seconds is not None:
		BACKGROUND_DURATION.labels(name=name).observe(duration_seconds)


def inc_club_created() -> None:
	CLUBS_CREATED.inc()


def inc_membership(action: str) -> None:
	MEMBERSHIP_CHANGES.labels(action=action).inc()


def inc_application_reviewed(decision: str) -> None:
	APPLICATIONS_REVIEWED.labels(decision=decision).inc()


def inc_invitation(event: str) -> None:
	INVITATIONS.labels(event=event).inc()


def inc_poll_vote(action: str) -> None:
	POLL_VOTES.labels(action=action).inc()


def inc_form_response(action: str) -> None:
	FORM_RESPONSES.labels(action=action).inc()


def inc_sweep(sweep: str, count: int) -> None:
	if count > 0:
		SWEEP_TRANSITIONS.labels(sweep=sweep).inc(count)


def inc_auth(event: str, result: str) -> None:
	AUTH_EVENTS.labels(event=event, result=result).inc()
