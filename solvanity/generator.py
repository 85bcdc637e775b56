"""
Search coordinator: manages worker processes, aggregates progress and
resolves on the first match.
"""

import asyncio
import logging
import math
import multiprocessing
import os
import queue
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from solvanity.core import Candidate, generate_candidate, secret_to_base58
from solvanity.errors import (
    ConfigurationError,
    ExhaustionError,
    SearchTimeoutError,
    WorkerFault,
)
from solvanity.export import DEFAULT_SINK
from solvanity.matcher import MatchPattern, validate_base58_pattern
from solvanity.worker import (
    BATCH_SIZE,
    ProgressMessage,
    ResultMessage,
    WorkerErrorMessage,
    worker_main,
)

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 1.0    # seconds between progress reports
POLL_INTERVAL = 0.05       # seconds between coordination ticks
SHUTDOWN_GRACE = 2.0       # seconds workers get to stop before being terminated
MAX_MESSAGES_PER_TICK = 10_000


def default_worker_count() -> int:
    """Logical CPU count minus two, never below one."""
    return max(1, (os.cpu_count() or 1) - 2)


@dataclass(frozen=True)
class SearchConfig:
    """Parameters of one search. Immutable once the search starts."""
    prefix: str = ""
    suffix: str = ""
    timeout_seconds: Optional[float] = None
    worker_count: Optional[int] = None
    require_all: bool = True

    def validate(self) -> "SearchConfig":
        """Raise ConfigurationError if the search could never run or never match."""
        validate_base58_pattern(self.prefix, "Prefix")
        validate_base58_pattern(self.suffix, "Suffix")
        if not self.prefix and not self.suffix:
            raise ConfigurationError("At least one of prefix or suffix must be non-empty.")

        count = self.worker_count
        if count is not None and (
            isinstance(count, bool) or not isinstance(count, int) or count < 1
        ):
            raise ConfigurationError(f"Worker count must be an integer >= 1, got {count!r}.")

        timeout = self.timeout_seconds
        if timeout is not None and (
            isinstance(timeout, bool)
            or not isinstance(timeout, (int, float))
            or not timeout > 0
        ):
            raise ConfigurationError(f"Timeout must be a positive number of seconds, got {timeout!r}.")
        return self

    @property
    def pattern(self) -> MatchPattern:
        return MatchPattern(self.prefix, self.suffix, self.require_all)

    @property
    def workers(self) -> int:
        return self.worker_count if self.worker_count is not None else default_worker_count()


@dataclass
class FoundKey:
    """A matching keypair and the search statistics at the moment it was accepted."""
    public_identifier: str
    secret_material: bytes
    worker_id: int
    total_attempts: int
    elapsed: float
    rate: float
    keyfile: Optional[str] = None

    @property
    def secret_material_as_integer_array(self) -> list[int]:
        return list(self.secret_material)

    @property
    def secret_base58(self) -> str:
        return secret_to_base58(self.secret_material)


@dataclass
class SearchStats:
    """Live stats during a search."""
    total_attempts: int = 0
    elapsed: float = 0.0
    rate: float = 0.0
    active_workers: int = 0


class SearchState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"
    ALL_WORKERS_EXITED = "all_workers_exited"


class Coordinator:
    """Runs one search across a pool of worker processes.

    All message handling happens on the caller's thread, one message at a
    time, so accepting the first result needs no locking.

    Usage:
        coordinator = Coordinator(SearchConfig(suffix="pump"))
        coordinator.on_progress = lambda stats: print(f"{stats.rate:.0f} keys/sec")
        found = asyncio.run(coordinator.run())
    """

    def __init__(
        self,
        config: SearchConfig,
        *,
        sink=DEFAULT_SINK,
        on_progress: Optional[Callable[[SearchStats], None]] = None,
        batch_size: int = BATCH_SIZE,
        progress_interval: float = PROGRESS_INTERVAL,
        poll_interval: float = POLL_INTERVAL,
        shutdown_grace: float = SHUTDOWN_GRACE,
        generate: Callable[[], Candidate] = generate_candidate,
        mp_context=None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
            raise ConfigurationError(f"Batch size must be an integer >= 1, got {batch_size!r}.")

        self.config = config
        self.sink = sink
        self.on_progress = on_progress
        self.batch_size = batch_size
        self.progress_interval = progress_interval
        self.poll_interval = poll_interval
        self.shutdown_grace = shutdown_grace
        self.generate = generate
        self._mp_context = mp_context
        self._clock = clock

        self.state = SearchState.IDLE
        self.total_attempts = 0
        self.result: Optional[ResultMessage] = None
        self.discarded_results = 0
        self.late_results: list[ResultMessage] = []
        self.terminated_workers = 0
        self.faults: list[WorkerFault] = []

        self._workers: dict = {}
        self._messages = None
        self._stop_event = None
        self._start_time = 0.0
        self._resolved_at = 0.0
        self._last_report = 0.0
        self._deadline: Optional[float] = None

    @property
    def active_workers(self) -> int:
        return len(self._workers)

    def start(self) -> None:
        """Validate the config and spawn worker processes (non-blocking)."""
        if self.state is not SearchState.IDLE:
            raise RuntimeError("Coordinator has already been started")
        self.config.validate()

        ctx = self._mp_context or multiprocessing.get_context()
        pattern = self.config.pattern
        count = self.config.workers

        self._messages = ctx.Queue()
        self._stop_event = ctx.Event()
        self._start_time = self._last_report = self._clock()
        timeout = self.config.timeout_seconds
        if timeout is None or math.isinf(timeout):
            self._deadline = None
        else:
            self._deadline = self._start_time + timeout
        self.state = SearchState.RUNNING

        logger.info("Starting search for %s using %d workers", pattern.describe(), count)
        for i in range(count):
            p = ctx.Process(
                target=worker_main,
                args=(
                    i,
                    pattern,
                    self._messages,
                    self._stop_event,
                    self.sink,
                    self.batch_size,
                    self.generate,
                ),
                daemon=True,
                name=f"solvanity-worker-{i}",
            )
            p.start()
            self._workers[i] = p

    def handle(self, message) -> None:
        """Apply one worker message to the search state.

        Only the first result is accepted; every progress or result message
        arriving after the search has left RUNNING is ignored.
        """
        if isinstance(message, ProgressMessage):
            if self.state is SearchState.RUNNING:
                self.total_attempts += message.attempts
        elif isinstance(message, ResultMessage):
            if self.state is SearchState.RUNNING:
                self.result = message
                self._resolved_at = self._clock()
                self.state = SearchState.RESOLVED
                logger.info(
                    "Worker %d found %s; terminating workers",
                    message.worker_id, message.public_identifier,
                )
            else:
                self.discarded_results += 1
                self.late_results.append(message)
                logger.debug(
                    "Ignoring result %s from worker %d (search %s)",
                    message.public_identifier, message.worker_id, self.state.value,
                )
        elif isinstance(message, WorkerErrorMessage):
            fault = WorkerFault(message.worker_id, message.error)
            self.faults.append(fault)
            logger.warning("%s; continuing with remaining workers", fault)
        else:
            logger.warning("Ignoring unexpected worker message %r", message)

    def poll(self) -> Optional[FoundKey]:
        """Run one coordination tick.

        Returns the FoundKey once resolved, None while still searching.
        Raises SearchTimeoutError or ExhaustionError on the failure outcomes.
        """
        if self.state is SearchState.RESOLVED:
            return self._found_key()
        if self.state is not SearchState.RUNNING:
            raise RuntimeError(f"Coordinator is not running (state: {self.state.value})")

        now = self._clock()
        if self._deadline is not None and now >= self._deadline:
            self.state = SearchState.TIMED_OUT
            logger.warning(
                "Search timed out after %gs; terminating workers",
                self.config.timeout_seconds,
            )
            raise SearchTimeoutError(self.config.timeout_seconds)

        # Snapshot before draining: anything a dead worker sent is already queued.
        exited = [wid for wid, p in self._workers.items() if not p.is_alive()]
        emptied = self._drain(MAX_MESSAGES_PER_TICK)
        if self.state is SearchState.RESOLVED:
            return self._found_key()
        if not emptied:
            # Exited workers may still have a result behind the backlog.
            exited = []

        for wid in exited:
            p = self._workers.pop(wid)
            if p.exitcode:
                logger.warning("Worker %d exited with code %s", wid, p.exitcode)
            else:
                logger.debug("Worker %d exited", wid)

        if not self._workers:
            self.state = SearchState.ALL_WORKERS_EXITED
            logger.error("All workers have exited without finding a result")
            raise ExhaustionError()

        if now - self._last_report >= self.progress_interval:
            self._last_report = now
            self._report(now)
        return None

    def stats(self, now: Optional[float] = None) -> SearchStats:
        now = self._clock() if now is None else now
        elapsed = now - self._start_time
        return SearchStats(
            total_attempts=self.total_attempts,
            elapsed=elapsed,
            rate=self.total_attempts / elapsed if elapsed > 0 else 0.0,
            active_workers=len(self._workers),
        )

    def shutdown(self) -> None:
        """Stop all workers and release the message queue. Blocking."""
        if self._stop_event is not None:
            self._stop_event.set()
        self._drain()

        deadline = time.monotonic() + self.shutdown_grace
        for wid, p in list(self._workers.items()):
            p.join(timeout=max(0.0, deadline - time.monotonic()))
            if p.is_alive():
                logger.debug("Worker %d did not stop in time; terminating", wid)
                p.terminate()
                p.join()
                self.terminated_workers += 1
        self._workers.clear()

        if self._messages is not None:
            self._drain()
            self._messages.close()
            self._messages = None

    async def run(self) -> FoundKey:
        """Run the search to completion on the current event loop."""
        try:
            self.start()
            while True:
                found = self.poll()
                if found is not None:
                    break
                await asyncio.sleep(self.poll_interval)
        finally:
            if self.state is not SearchState.IDLE:
                await asyncio.to_thread(self.shutdown)
                self._reconcile_keyfile()
        return found

    def _drain(self, limit: Optional[int] = None) -> bool:
        """Handle queued messages. Returns False if stopped with messages left."""
        if self._messages is None:
            return True
        handled = 0
        while limit is None or handled < limit:
            try:
                message = self._messages.get_nowait()
            except queue.Empty:
                return True
            self.handle(message)
            handled += 1
            if limit is not None and self.state is SearchState.RESOLVED:
                return False
        return False

    def _report(self, now: float) -> None:
        stats = self.stats(now)
        logger.debug(
            "Progress: %d attempts, %.0f/s, %d workers",
            stats.total_attempts, stats.rate, stats.active_workers,
        )
        if self.on_progress:
            self.on_progress(stats)

    def _found_key(self) -> FoundKey:
        elapsed = self._resolved_at - self._start_time
        path = getattr(self.sink, "path", None)
        return FoundKey(
            public_identifier=self.result.public_identifier,
            secret_material=self.result.secret_material,
            worker_id=self.result.worker_id,
            total_attempts=self.total_attempts,
            elapsed=elapsed,
            rate=self.total_attempts / elapsed if elapsed > 0 else 0.0,
            keyfile=os.path.abspath(path) if path else None,
        )

    def _reconcile_keyfile(self) -> None:
        """Make the keyfile agree with the outcome once all workers are stopped.

        On success, rewrite it with the accepted secret if another worker may
        have overwritten it. On failure, discard any keyfile a late match wrote.
        """
        if self.sink is None:
            return
        if self.result is not None:
            if self.discarded_results or self.terminated_workers:
                logger.info(
                    "Rewriting keyfile with accepted result (%d late results, %d terminated workers)",
                    self.discarded_results, self.terminated_workers,
                )
                self.sink.save(self.result.secret_material)
            return
        if self.late_results:
            path = getattr(self.sink, "path", None)
            logger.warning(
                "Discarding keyfile %s written by late match %s after search %s",
                os.path.abspath(path) if path else "<sink>",
                ", ".join(m.public_identifier for m in self.late_results),
                self.state.value,
            )
            discard = getattr(self.sink, "discard", None)
            if discard is not None:
                discard()


async def search(config: SearchConfig, **kwargs) -> FoundKey:
    """Search for a keypair matching config.

    Keyword arguments are passed to Coordinator. Raises ConfigurationError,
    SearchTimeoutError or ExhaustionError.
    """
    return await Coordinator(config, **kwargs).run()


def run_search(config: SearchConfig, **kwargs) -> FoundKey:
    """Blocking wrapper around search(). For CLI use."""
    return asyncio.run(search(config, **kwargs))
