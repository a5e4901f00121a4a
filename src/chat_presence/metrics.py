"""Prometheus metrics for the chat room."""

from prometheus_client import CollectorRegistry, Counter, Gauge

# Registry for isolated metric collection
CUSTOM_REGISTRY = CollectorRegistry()

REQUESTS = Counter(
    "requests_total", "Total requests by endpoint",
    ["method", "path"], registry=CUSTOM_REGISTRY,
)
ERRORS = Counter(
    "errors_total", "Total error outcomes by code",
    ["code"], registry=CUSTOM_REGISTRY,
)
PARTICIPANTS_JOINED = Counter(
    "participants_joined_total", "Participants that joined the room",
    registry=CUSTOM_REGISTRY,
)
PARTICIPANTS_EVICTED = Counter(
    "participants_evicted_total", "Participants removed by the presence sweep",
    registry=CUSTOM_REGISTRY,
)
MESSAGES_SENT = Counter(
    "messages_sent_total", "Messages appended to the log by kind",
    ["kind"], registry=CUSTOM_REGISTRY,
)
ACTIVE_PARTICIPANTS = Gauge(
    "active_participants", "Participants in the room served by this app, set on scrape",
    registry=CUSTOM_REGISTRY,
)
SWEEP_FAILURES = Counter(
    "sweep_failures_total", "Presence sweep ticks abandoned on error",
    registry=CUSTOM_REGISTRY,
)
