"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"pitchpro_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"pitchpro_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"pitchpro_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"pitchpro_socketio_events_total",
	"Socket.IO events emitted per namespace",
	["namespace", "event"],
)

CHAT_SEND = Counter(
	"pitchpro_chat_messages_sent_total",
	"Chat messages written",
)

CHAT_SUMMARY_FAILURES = Counter(
	"pitchpro_chat_summary_update_failures_total",
	"Chat summary updates that failed after the message write succeeded",
)

CHAT_CREATED = Counter(
	"pitchpro_chat_created_total",
	"Chat create-or-get requests by outcome",
	["result"],
)

CHAT_READ = Counter(
	"pitchpro_chat_mark_read_total",
	"Chats marked as read",
)

CHAT_MESSAGES_FLIPPED = Counter(
	"pitchpro_chat_messages_marked_read_total",
	"Individual messages flipped to read",
)

CHAT_UNREAD_UPGRADES = Counter(
	"pitchpro_chat_unread_upgrades_total",
	"Legacy shared unread counters migrated to the per-user shape",
)

CHAT_LIST_ANOMALIES = Counter(
	"pitchpro_chat_list_anomalies_total",
	"Chats dropped from a published chat list",
	["reason"],
)

SUBSCRIPTION_ERRORS = Counter(
	"pitchpro_subscription_errors_total",
	"Change-stream subscriptions that stopped on an error",
	["view"],
)

ACTIVE_SUBSCRIPTIONS = Gauge(
	"pitchpro_active_subscriptions",
	"Open change-stream subscriptions",
	["view"],
)

PROFILE_REPAIRS = Counter(
	"pitchpro_profile_repairs_total",
	"Stored user records repaired on load",
	["field"],
)

PROFILE_UPDATES = Counter(
	"pitchpro_profile_updates_total",
	"Profile merge-writes",
	["kind"],
)

UPLOADS = Counter(
	"pitchpro_uploads_total",
	"Blob uploads by kind and result",
	["kind", "result"],
)

RECORD_WRITES = Counter(
	"pitchpro_record_writes_total",
	"Job, application, meeting and favorite writes",
	["collection", "action"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def inc_chat_send() -> None:
	CHAT_SEND.inc()


def inc_chat_summary_failure() -> None:
	CHAT_SUMMARY_FAILURES.inc()


def inc_chat_created(result: str) -> None:
	CHAT_CREATED.labels(result=result).inc()


def inc_chat_read(flipped: int = 0) -> None:
	CHAT_READ.inc()
	if flipped:
		CHAT_MESSAGES_FLIPPED.inc(flipped)


def inc_chat_unread_upgrade() -> None:
	CHAT_UNREAD_UPGRADES.inc()


def inc_chat_list_anomaly(reason: str) -> None:
	CHAT_LIST_ANOMALIES.labels(reason=reason).inc()


def subscription_opened(view: str) -> None:
	ACTIVE_SUBSCRIPTIONS.labels(view=view).inc()


def subscription_closed(view: str) -> None:
	ACTIVE_SUBSCRIPTIONS.labels(view=view).dec()


def inc_subscription_error(view: str) -> None:
	SUBSCRIPTION_ERRORS.labels(view=view).inc()


def inc_profile_repair(field: str) -> None:
	PROFILE_REPAIRS.labels(field=field).inc()


def inc_profile_update(kind: str) -> None:
	PROFILE_UPDATES.labels(kind=kind).inc()


def inc_upload(kind: str, result: str) -> None:
	UPLOADS.labels(kind=kind, result=result).inc()


def inc_record_write(collection: str, action: str) -> None:
	RECORD_WRITES.labels(collection=collection, action=action).inc()
