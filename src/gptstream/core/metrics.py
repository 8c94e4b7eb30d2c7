"""Prometheus metrics for streaming sessions."""

from prometheus_client import Counter, Gauge, Histogram

gptstream_sessions_total = Counter(
    "gptstream_sessions_total",
    "Total number of session attempts by outcome",
    ["outcome"],
)

gptstream_tokens_total = Counter(
    "gptstream_tokens_total", "Content tokens delivered to consumers"
)

gptstream_active_streams = Gauge(
    "gptstream_active_streams", "Number of token streams currently pumping"
)

gptstream_header_latency_seconds = Histogram(
    "gptstream_header_latency_seconds",
    "Time until response headers arrived",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)


class StreamMetrics:
    def record_session(self, outcome: str) -> None:
        gptstream_sessions_total.labels(outcome=outcome).inc()

    def record_header_latency(self, duration: float) -> None:
        gptstream_header_latency_seconds.observe(duration)

    def record_token(self) -> None:
        gptstream_tokens_total.inc()

    def increment_active_streams(self) -> None:
        gptstream_active_streams.inc()

    def decrement_active_streams(self) -> None:
        gptstream_active_streams.dec()


metrics = StreamMetrics()
