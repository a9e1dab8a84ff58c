"""Prometheus metrics for catalog retries, chat, moderation and e-mail."""

from prometheus_client import Counter, Histogram

retry_attempts_total = Counter(
    "retry_attempts_total",
    "Catalog query attempts made through the retry wrapper",
    ["operation", "outcome"],
)

chat_requests_total = Counter(
    "chat_requests_total",
    "Chat requests by outcome",
    ["outcome"],
)

completion_latency_ms = Histogram(
    "completion_latency_ms",
    "Completion API latency in milliseconds",
    ["outcome"],
    buckets=[100, 250, 500, 1000, 2000, 4000, 8000, 16000, 32000],
)

chat_documents_matched = Histogram(
    "chat_documents_matched",
    "Documents returned per chat reply after filtering",
    buckets=[0, 1, 2, 3, 5, 8, 13],
)

moderation_transitions_total = Counter(
    "moderation_transitions_total",
    "Moderation transitions by action and outcome",
    ["action", "outcome"],
)

emails_sent_total = Counter(
    "emails_sent_total",
    "Document e-mails by outcome",
    ["outcome"],
)
