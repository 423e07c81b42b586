from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)
from fastapi import Response


relay_requests = Counter(
    "relay_requests_total",
    "Chat requests handled by the relay, by outcome",
    ["outcome"],
)

upstream_request_seconds = Histogram(
    "upstream_request_seconds",
    "Latency of the chat-completion call to the upstream API",
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)


def metrics_response() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
