"""Prometheus metrics, the rolling request window and its periodic summary log."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import AsyncIterator

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("mockgpt.metrics")


def _safe_counter(name: str, desc: str, registry: CollectorRegistry, labelnames: tuple[str, ...] = ()) -> Counter:
    try:
        return Counter(name, desc, labelnames=labelnames, registry=registry)
    except ValueError:
        return registry._names_to_collectors.get(name + "_total") or registry._names_to_collectors[name]


def _safe_histogram(name: str, desc: str, registry: CollectorRegistry, labelnames: tuple[str, ...] = ()) -> Histogram:
    try:
        return Histogram(name, desc, labelnames=labelnames, registry=registry)
    except ValueError:
        return registry._names_to_collectors[name]


def _safe_gauge(name: str, desc: str, registry: CollectorRegistry) -> Gauge:
    try:
        return Gauge(name, desc, registry=registry)
    except ValueError:
        return registry._names_to_collectors[name]


class Metrics:
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or REGISTRY
        reg = self.registry
        self.requests_total = _safe_counter("mockgpt_requests_total", "Total requests", reg)
        self.request_errors_total = _safe_counter("mockgpt_request_errors_total", "Total error responses", reg)
        self.request_latency = _safe_histogram("mockgpt_request_latency_seconds", "Request latency", reg)
        self.requests_in_flight = _safe_gauge("mockgpt_requests_in_flight", "Requests currently being served", reg)
        self.chat_completions = _safe_counter(
            "mockgpt_chat_completions_total", "Chat completions served", reg, labelnames=("mode", "finish_reason")
        )
        self.stream_chunks = _safe_counter("mockgpt_stream_chunks_total", "Stream chunks emitted", reg)
        self.embeddings = _safe_counter("mockgpt_embeddings_total", "Embedding vectors generated", reg)
        self.images = _safe_counter("mockgpt_images_total", "Images generated", reg, labelnames=("model",))
        self.speech_seconds = _safe_counter("mockgpt_speech_seconds_total", "Seconds of speech audio synthesized", reg)


@dataclass(frozen=True)
class WindowSummary:
    in_flight: int
    started: int
    completed: int
    errors: int
    avg_ms: float
    p95_ms: float
    max_ms: float

    def format(self) -> str:
        return (
            f"summary in_flight={self.in_flight} started={self.started} completed={self.completed} "
            f"errors={self.errors} avg_ms={self.avg_ms:.1f} p95_ms={self.p95_ms:.1f} max_ms={self.max_ms:.1f}"
        )


class RequestWindow:
    """Request counters for one reporting interval.

    ``in_flight`` tracks live requests and is never reset; everything else
    starts from zero after each ``snapshot_and_reset``.
    """

    def __init__(self) -> None:
        self.in_flight = 0
        self._reset()

    def _reset(self) -> None:
        self.started = 0
        self.completed = 0
        self.errors = 0
        self.latencies_ms: list[float] = []

    def request_started(self) -> None:
        self.in_flight += 1
        self.started += 1

    def request_finished(self, duration_ms: float, status_code: int) -> None:
        self.in_flight -= 1
        self.completed += 1
        self.latencies_ms.append(duration_ms)
        if status_code >= 500:
            self.errors += 1

    def snapshot_and_reset(self) -> WindowSummary:
        samples = sorted(self.latencies_ms)
        count = len(samples)
        summary = WindowSummary(
            in_flight=self.in_flight,
            started=self.started,
            completed=self.completed,
            errors=self.errors,
            avg_ms=sum(samples) / count if count else 0.0,
            p95_ms=samples[math.floor(0.95 * (count - 1))] if count else 0.0,
            max_ms=samples[-1] if count else 0.0,
        )
        self._reset()
        return summary


class SummaryReporter:
    """Background task logging the request window every ``interval_ms``."""

    def __init__(self, window: RequestWindow, interval_ms: int) -> None:
        self.window = window
        self.interval_ms = interval_ms
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self.interval_ms > 0 and self._task is None:
            self._task = asyncio.create_task(self._run())

    async def close(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_ms / 1000)
            logger.info(self.window.snapshot_and_reset().format())


class MetricsMiddleware(BaseHTTPMiddleware):
    """Feeds the prometheus metrics and the request window.

    A request counts as finished once its body has been fully sent, so a
    streamed response stays in flight until its last frame.
    """

    def __init__(self, app: object, metrics: Metrics, window: RequestWindow) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self.metrics = metrics
        self.window = window

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        self.window.request_started()
        self.metrics.requests_total.inc()
        self.metrics.requests_in_flight.inc()
        try:
            response = await call_next(request)
        except Exception:
            self._finish(start, 500)
            raise

        body = response.body_iterator  # type: ignore[attr-defined]
        status_code = response.status_code

        async def finish_after_body() -> AsyncIterator[bytes]:
            try:
                async for chunk in body:
                    yield chunk
            finally:
                self._finish(start, status_code)

        response.body_iterator = finish_after_body()  # type: ignore[attr-defined]
        return response

    def _finish(self, start: float, status_code: int) -> None:
        elapsed = time.monotonic() - start
        self.window.request_finished(elapsed * 1000, status_code)
        self.metrics.requests_in_flight.dec()
        self.metrics.request_latency.observe(elapsed)
        if status_code >= 400:
            self.metrics.request_errors_total.inc()
