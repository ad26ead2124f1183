"""Periodically refreshed, partitioned in-memory datasets.

A ``RefreshableDataset`` owns one immutable snapshot covering every
partition. A background task rebuilds the whole snapshot on a fixed interval
and swaps it in only when every partition loaded; a failed cycle keeps the
previous snapshot and records the error. Readers never wait on the network
once the first population has succeeded.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Generic, TypeVar

import structlog

from wowdev.errors import ErrorCode, WowDevError

log = structlog.get_logger()

P = TypeVar("P", bound=str)
T = TypeVar("T")


@dataclass(frozen=True)
class DatasetState(Generic[P, T]):
    """Point-in-time view of a dataset. Replaced, never mutated."""

    snapshot: Mapping[P, T] | None = None
    generation: int = 0
    refreshed_at: datetime | None = None
    last_error: str | None = None


class RefreshableDataset(Generic[P, T]):
    """Partitioned dataset kept fresh by a background asyncio task."""

    def __init__(
        self,
        name: str,
        partitions: Iterable[P],
        loader: Callable[[P], Awaitable[T]],
        *,
        interval_seconds: float,
        retry_interval_seconds: float,
    ) -> None:
        self.name = name
        self._partitions: tuple[P, ...] = tuple(partitions)
        self._loader = loader
        self._interval = interval_seconds
        self._retry_interval = retry_interval_seconds
        self._state: DatasetState[P, T] = DatasetState()
        self._lock = asyncio.Lock()
        self._completed_attempts = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def partitions(self) -> tuple[P, ...]:
        return self._partitions

    @property
    def state(self) -> DatasetState[P, T]:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state.snapshot is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the refresh loop. The first cycle runs immediately."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name=f"refresh:{self.name}")

    async def aclose(self) -> None:
        """Stop the refresh loop. An interrupted cycle commits nothing."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self._interval if self.ready else self._retry_interval)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Run one refresh cycle. Returns False if it failed or was skipped."""
        if self._lock.locked():
            log.info("dataset_refresh_skipped", dataset=self.name, reason="in_progress")
            return False
        async with self._lock:
            return await self._populate()

    async def _populate(self) -> bool:
        # Caller holds self._lock.
        started = time.monotonic()
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = {p: tg.create_task(self._loader(p)) for p in self._partitions}
        except ExceptionGroup as group:
            error = group.exceptions[0]
            self._state = replace(self._state, last_error=str(error))
            log.warning(
                "dataset_refresh_failed",
                dataset=self.name,
                error=str(error),
                stale=self.ready,
                exc_info=error,
            )
            return False
        finally:
            self._completed_attempts += 1

        snapshot = MappingProxyType({p: task.result() for p, task in tasks.items()})
        self._state = DatasetState(
            snapshot=snapshot,
            generation=self._state.generation + 1,
            refreshed_at=datetime.now(UTC),
            last_error=None,
        )
        log.info(
            "dataset_refresh_complete",
            dataset=self.name,
            generation=self._state.generation,
            duration_ms=round((time.monotonic() - started) * 1000),
        )
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def check_partition(self, partition: str) -> P:
        if partition not in self._partitions:
            raise WowDevError(
                ErrorCode.INVALID_KEY,
                f"Unknown partition {partition!r} for {self.name}; "
                f"expected one of {list(self._partitions)}",
                recoverable=False,
            )
        return partition  # type: ignore[return-value]

    async def snapshot(self) -> Mapping[P, T]:
        """Current snapshot, waiting for the first population if needed."""
        snapshot = self._state.snapshot
        if snapshot is not None:
            return snapshot

        seen_attempts = self._completed_attempts
        async with self._lock:
            # Only populate here if no attempt finished while we waited.
            if self._state.snapshot is None and self._completed_attempts == seen_attempts:
                await self._populate()

        snapshot = self._state.snapshot
        if snapshot is None:
            raise WowDevError(
                ErrorCode.NOT_INITIALIZED,
                f"{self.name} is not yet available: {self._state.last_error}",
                recoverable=True,
            )
        return snapshot

    async def get(self, partition: str) -> T:
        """Data for one partition from the current snapshot."""
        key = self.check_partition(partition)
        snapshot = await self.snapshot()
        return snapshot[key]
