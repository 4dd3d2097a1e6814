"""
Tests for the logging module.

Tests verify:
- Run and stage context attach to log entries
- push_context restores the previous context
- log_step emits start/end events with duration
"""

import pytest
from structlog.testing import capture_logs

from trustdebt.framework.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_context,
    is_configured,
    log_step,
    push_context,
    set_context,
    timed_block,
)
from trustdebt.framework.logging.context import add_context_processor


class TestLogContext:
    """Test LogContext dataclass."""

    def test_to_dict_excludes_none(self):
        ctx = LogContext(run_id="run-abc", stage=None)
        d = ctx.to_dict()
        assert d == {"run_id": "run-abc"}

    def test_merge_creates_new_context(self):
        ctx1 = LogContext(run_id="run-abc")
        ctx2 = ctx1.merge(stage="matrix", stage_index=3)

        assert ctx1.stage is None
        assert ctx2.run_id == "run-abc"
        assert ctx2.stage_index == 3

    def test_merge_ignores_unknown_keys(self):
        assert LogContext().merge(tenant="x").to_dict() == {}


class TestContextManagement:
    """Test context set/get/clear operations."""

    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_set_context_replaces(self):
        set_context(run_id="run-1", stage="taxonomy")
        set_context(run_id="run-2")
        assert get_context().stage is None
        assert get_context().run_id == "run-2"

    def test_bind_context_merges(self):
        set_context(run_id="run-1")
        bind_context(stage="grading")
        ctx = get_context()

        assert ctx.run_id == "run-1"
        assert ctx.stage == "grading"

    def test_push_context_restores(self):
        set_context(run_id="run-1")
        token = push_context(stage="alignment", stage_index=6)
        assert get_context().stage == "alignment"
        token.restore()
        assert get_context().stage is None
        assert get_context().run_id == "run-1"

    def test_processor_adds_context_without_overriding(self):
        set_context(run_id="run-1", stage="matrix")
        event = add_context_processor(None, "info", {"event": "x", "stage": "explicit"})
        assert event["run_id"] == "run-1"
        assert event["stage"] == "explicit"


class TestLogStep:
    """Test log_step context manager."""

    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_log_step_sets_span(self):
        with log_step("matrix.build") as timer:
            assert get_context().span_id == timer.span_id

        assert get_context().span_id is None

    def test_nested_steps_record_parent(self):
        with log_step("outer") as outer:
            with log_step("inner") as inner:
                pass

        assert inner.parent_span_id == outer.span_id

    def test_log_step_emits_start_and_end(self):
        with capture_logs() as logs:
            with log_step("indexer.scan", documents=3) as timer:
                timer.add_metric("mappings", 8)

        events = [entry["event"] for entry in logs]
        assert events == ["indexer.scan.start", "indexer.scan.end"]
        end = logs[-1]
        assert end["mappings"] == 8
        assert end["documents"] == 3
        assert "duration_ms" in end

    def test_log_step_logs_error_and_reraises(self):
        with capture_logs() as logs:
            with pytest.raises(RuntimeError):
                with log_step("grading.compute"):
                    raise RuntimeError("boom")

        assert logs[-1]["event"] == "grading.compute.error"
        assert logs[-1]["error_type"] == "RuntimeError"

    def test_timed_block_does_not_log(self):
        with capture_logs() as logs:
            with timed_block("quiet") as timer:
                pass

        assert logs == []
        assert timer.ended_at is not None
        assert timer.duration_ms >= 0


class TestConfigureLogging:
    def test_configured_for_session(self):
        assert is_configured()

    def test_force_reconfigure(self):
        configure_logging(level="ERROR", format="json", force=True)
        try:
            assert is_configured()
        finally:
            configure_logging(level="WARNING", force=True)
