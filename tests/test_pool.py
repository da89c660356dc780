"""Tests for the processing concurrency pool."""

from __future__ import annotations

import asyncio
import threading
from unittest.mock import patch

import pytest

from anonymizex.config import Settings
from anonymizex.imaging.pool import ProcessingPool


def _make_settings(**overrides: object) -> Settings:
    defaults: dict[str, object] = {"max_concurrent": 1}
    defaults.update(overrides)
    return Settings(**defaults)  # type: ignore[arg-type]


class TestProcessingPool:
    async def test_run_returns_result(self) -> None:
        pool = ProcessingPool(_make_settings())
        try:
            assert await pool.run(sum, [1, 2, 3]) == 6
            assert pool.active_count == 0
            assert pool.queue_depth == 0
        finally:
            pool.shutdown()

    async def test_exceptions_propagate(self) -> None:
        pool = ProcessingPool(_make_settings())

        def fail() -> None:
            raise ValueError("bad input")

        try:
            with pytest.raises(ValueError, match="bad input"):
                await pool.run(fail)
            assert pool.active_count == 0
        finally:
            pool.shutdown()

    async def test_times_out_when_saturated(self) -> None:
        pool = ProcessingPool(_make_settings(max_concurrent=1))
        release = threading.Event()
        busy = asyncio.create_task(pool.run(release.wait, 5))
        await asyncio.sleep(0.05)
        try:
            assert pool.active_count == 1
            with (
                patch("anonymizex.imaging.pool.SEMAPHORE_TIMEOUT_SECONDS", 0.05),
                pytest.raises(TimeoutError),
            ):
                await pool.run(lambda: None)
            assert pool.queue_depth == 0
        finally:
            release.set()
            await busy
            pool.shutdown()
