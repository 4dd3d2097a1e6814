"""
Timing helpers for stage and store logging.

- Context manager: ``with log_step("matrix.build"):``
- Store writes: ``with log_db_operation("insert", "matrix_cells", rows=2025):``
- Manual: ``with timed_block() as timer: ...; timer.duration_ms``

Start events log at DEBUG, end events at INFO (store writes at DEBUG) with
``duration_ms``. Each step opens a span; nested steps record it as their
parent. Durations only ever go to logs and the run report, never to stage
artifacts.
"""

import time
import traceback
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from trustdebt.framework.logging.context import get_context, get_logger, push_context


def _generate_span_id() -> str:
    """Generate a short span ID (8 hex chars)."""
    return uuid.uuid4().hex[:8]


@dataclass
class TimingResult:
    """Result of a timed operation with tracing support."""

    step: str
    span_id: str = field(default_factory=_generate_span_id)
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    status: str = "ok"
    error_info: dict[str, Any] | None = None

    def stop(self) -> "TimingResult":
        if self.ended_at is None:
            self.ended_at = time.perf_counter()
        return self

    @property
    def duration_seconds(self) -> float:
        if self.ended_at is None:
            return time.perf_counter() - self.started_at
        return self.ended_at - self.started_at

    @property
    def duration_ms(self) -> float:
        return self.duration_seconds * 1000

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        """Add a metric to include in the end-of-step log line."""
        self.metrics[key] = value
        return self

    def set_error(self, e: Exception) -> "TimingResult":
        self.status = "error"
        self.error_info = {
            "error_type": type(e).__name__,
            "error_message": str(e),
            "error_stack": traceback.format_exc(),
        }
        return self

    def to_log_dict(self) -> dict[str, Any]:
        result = {
            "duration_ms": round(self.duration_ms, 2),
            "span_id": self.span_id,
        }
        if self.parent_span_id:
            result["parent_span_id"] = self.parent_span_id
        result.update(self.metrics)
        return result

    def to_error_dict(self) -> dict[str, Any]:
        result = self.to_log_dict()
        result["status"] = "error"
        if self.error_info:
            result.update(self.error_info)
        return result


@contextmanager
def timed_block(step: str = "unnamed") -> Iterator[TimingResult]:
    """
    Low-level timing context manager. Does not log.

    Usage:
        with timed_block("stage") as timer:
            run()
        elapsed = timer.duration_ms
    """
    timer = TimingResult(step=step, parent_span_id=get_context().span_id)
    try:
        yield timer
    finally:
        timer.stop()


@contextmanager
def log_step(event: str, log_start: bool = True, level: str = "info", **extra_metrics) -> Iterator[TimingResult]:
    """
    Log step start/end with timing and tracing.

    Usage:
        with log_step("indexer.scan", documents=120) as timer:
            mappings = index(...)
            timer.add_metric("mappings", len(mappings))
        # DEBUG indexer.scan.start span_id=a1b2c3d4 documents=120
        # INFO  indexer.scan.end   span_id=a1b2c3d4 duration_ms=42.1 mappings=310

    Args:
        event: Event name (e.g. "indexer.scan")
        log_start: Whether to log at start (DEBUG)
        level: Log level for the end message ("info" or "debug")
        **extra_metrics: Additional fields for both log lines
    """
    log = get_logger("trustdebt.timing")

    parent_span = get_context().span_id
    timer = TimingResult(step=event, parent_span_id=parent_span, metrics=dict(extra_metrics))
    context_token = push_context(span_id=timer.span_id, parent_span_id=parent_span)

    try:
        if log_start:
            start_fields = {"span_id": timer.span_id}
            if parent_span:
                start_fields["parent_span_id"] = parent_span
            start_fields.update(extra_metrics)
            log.debug(f"{event}.start", **start_fields)

        yield timer

    except Exception as e:
        timer.stop()
        timer.set_error(e)
        log.error(f"{event}.error", **timer.to_error_dict())
        raise

    finally:
        timer.stop()
        context_token.restore()

    getattr(log, level)(f"{event}.end", **timer.to_log_dict())


@contextmanager
def log_db_operation(operation: str, table: str, **extra) -> Iterator[TimingResult]:
    """
    Log a store operation with table context, at DEBUG.

    Usage:
        with log_db_operation("insert", "keyword_mappings", rows=312):
            conn.executemany(sql, rows)
    """
    with log_step(f"db.{operation}.{table}", level="debug", **extra) as timer:
        yield timer
