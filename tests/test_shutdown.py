"""
Unit tests for the shutdown signal, task tracking and session logs.
Run with: pytest tests/test_shutdown.py -v
"""
import asyncio
import logging

import pytest

from echoprobe.session_log import SessionLog, connection_log_path, scan_log_path
from echoprobe.shutdown import ShutdownSignal, TaskTracker


class TestShutdownSignal:
    """Test the one-way broadcast"""

    @pytest.mark.asyncio
    async def test_starts_open(self):
        """A fresh signal is open"""
        assert ShutdownSignal().closed is False

    @pytest.mark.asyncio
    async def test_close_wakes_all_waiters(self):
        """Every waiter resumes once closed"""
        shutdown = ShutdownSignal()
        waiters = [asyncio.create_task(shutdown.wait()) for _ in range(3)]
        await asyncio.sleep(0)
        assert not any(w.done() for w in waiters)
        shutdown.close()
        await asyncio.wait_for(asyncio.gather(*waiters), timeout=1)

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        """Closing twice keeps it closed"""
        shutdown = ShutdownSignal()
        shutdown.close()
        shutdown.close()
        assert shutdown.closed
        await asyncio.wait_for(shutdown.wait(), timeout=1)


class TestTaskTracker:
    """Test spawned task bookkeeping"""

    @pytest.mark.asyncio
    async def test_finished_tasks_are_forgotten(self):
        """Completed tasks leave the set"""
        tasks = TaskTracker()
        tasks.spawn(asyncio.sleep(0))
        assert len(tasks) == 1
        assert await tasks.drain(1) == 0
        await asyncio.sleep(0)
        assert len(tasks) == 0

    @pytest.mark.asyncio
    async def test_drain_reports_pending_without_cancelling(self):
        """Tasks outliving the grace period keep running"""
        tasks = TaskTracker()
        gate = asyncio.Event()
        task = tasks.spawn(gate.wait())
        assert await tasks.drain(0.05) == 1
        assert not task.cancelled()
        gate.set()
        assert await tasks.drain(1) == 0

    @pytest.mark.asyncio
    async def test_drain_empty(self):
        """Nothing to wait for"""
        assert await TaskTracker().drain(0) == 0

    @pytest.mark.asyncio
    async def test_failures_are_logged(self, caplog):
        """An exception escaping a task is logged, not lost"""
        async def boom():
            raise RuntimeError("kaboom")

        tasks = TaskTracker()
        with caplog.at_level(logging.ERROR):
            tasks.spawn(boom(), name="boom-task")
            await tasks.drain(1)
            await asyncio.sleep(0)
        assert "boom-task" in caplog.text


class TestSessionLog:
    """Test per-session log files"""

    def test_paths(self, tmp_path):
        """Peer and scan logs are named by IP"""
        assert connection_log_path(tmp_path, "1.2.3.4") == tmp_path / "1.2.3.4.log"
        assert scan_log_path(tmp_path, "1.2.3.4") == tmp_path / "1.2.3.4-scan.log"

    def test_connection_log_appends(self, tmp_path):
        """Connection logs accumulate across sessions"""
        for event in ("first", "second"):
            with SessionLog.for_connection(tmp_path / "logs", "1.2.3.4") as log:
                log.write(event)
        lines = connection_log_path(tmp_path / "logs", "1.2.3.4").read_text().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("[") and lines[0].endswith("] first")

    def test_scan_log_truncates(self, tmp_path):
        """Scan logs start fresh each time"""
        for event in ("old", "new"):
            with SessionLog.for_scan(tmp_path, "1.2.3.4") as log:
                log.write(event)
        assert scan_log_path(tmp_path, "1.2.3.4").read_text().strip().endswith("new")
        assert "old" not in scan_log_path(tmp_path, "1.2.3.4").read_text()
