"""Tests for the per-run analytics tracker."""

from __future__ import annotations

import pytest
import structlog

from quorum_ai.hooks.run_tracker import end_run, get_current_run, start_run, track_stage


class TestRunTracker:
    def test_run_lifecycle(self) -> None:
        analytics = start_run(case_id="SUB-001", run_id="run-1")
        assert get_current_run() is analytics
        assert structlog.contextvars.get_contextvars()["case_id"] == "SUB-001"

        with track_stage("dispatch") as stage:
            stage.success_count = 6

        finished = end_run()
        assert finished is analytics
        assert finished.status == "completed"
        assert finished.stage("dispatch").success_count == 6
        assert finished.total_duration_ms >= 0
        assert get_current_run() is None
        assert "run_id" not in structlog.contextvars.get_contextvars()

    def test_failed_stage_recorded(self) -> None:
        start_run(case_id="SUB-002")
        with pytest.raises(RuntimeError):
            with track_stage("synthesis"):
                raise RuntimeError("boom")
        analytics = end_run("failed")
        assert analytics.status == "failed"
        assert analytics.stage("synthesis").failure_count == 1

    def test_no_active_run(self) -> None:
        assert end_run() is None
        with track_stage("orphan") as stage:
            stage.success_count = 1
        assert get_current_run() is None
