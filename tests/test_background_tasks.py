"""Tests for background task tracking."""

from __future__ import annotations

import asyncio

import pytest

from simroom.background_tasks import BackgroundTasks


class TestBackgroundTasks:
    """Test creating, waiting for and cancelling background tasks."""

    @pytest.mark.asyncio
    async def test_tasks_are_tracked_until_done(self) -> None:
        tasks = BackgroundTasks()
        results: list[int] = []

        async def work() -> None:
            await asyncio.sleep(0)
            results.append(1)

        tasks.create_background_task(work(), name="work")
        assert tasks.pending == 1

        await tasks.wait_for_background_tasks(timeout=1)

        assert results == [1]
        assert tasks.pending == 0

    @pytest.mark.asyncio
    async def test_wait_includes_tasks_created_while_waiting(self) -> None:
        """Chained tasks are awaited too."""
        tasks = BackgroundTasks()
        results: list[str] = []

        async def second() -> None:
            await asyncio.sleep(0.01)
            results.append("second")

        async def first() -> None:
            results.append("first")
            tasks.create_background_task(second())

        tasks.create_background_task(first())
        await tasks.wait_for_background_tasks(timeout=1)

        assert results == ["first", "second"]

    @pytest.mark.asyncio
    async def test_failing_task_is_contained(self) -> None:
        """A failing task is logged and doesn't break waiting."""
        tasks = BackgroundTasks()

        async def boom() -> None:
            msg = "boom"
            raise RuntimeError(msg)

        tasks.create_background_task(boom(), name="boom")
        await tasks.wait_for_background_tasks(timeout=1)

        assert tasks.pending == 0

    @pytest.mark.asyncio
    async def test_wait_timeout(self) -> None:
        tasks = BackgroundTasks()
        tasks.create_background_task(asyncio.sleep(10))

        with pytest.raises(TimeoutError):
            await tasks.wait_for_background_tasks(timeout=0.01)

        await tasks.cancel_all()

    @pytest.mark.asyncio
    async def test_cancel_all(self) -> None:
        tasks = BackgroundTasks()
        task = tasks.create_background_task(asyncio.sleep(10))

        await tasks.cancel_all()

        assert task.cancelled()
        assert tasks.pending == 0

    @pytest.mark.asyncio
    async def test_cancel_all_without_tasks(self) -> None:
        tasks = BackgroundTasks()
        await tasks.cancel_all()
        assert tasks.pending == 0
