"""
Multiprocessing worker for vanity keypair search.

IMPORTANT: This module must contain only top-level importable functions.
On macOS/Windows, multiprocessing uses 'spawn' which requires worker
targets to be importable by name from a module.
"""

import signal
import time
from dataclasses import dataclass
from typing import Callable, Optional

from solvanity.core import Candidate, generate_candidate
from solvanity.matcher import MatchPattern

BATCH_SIZE = 10_000


@dataclass(frozen=True)
class ProgressMessage:
    """Attempts made by one worker since its previous report."""
    worker_id: int
    attempts: int


@dataclass(frozen=True)
class ResultMessage:
    worker_id: int
    public_identifier: str
    secret_material: bytes


@dataclass(frozen=True)
class WorkerErrorMessage:
    worker_id: int
    error: str


def worker_main(*args) -> None:
    """Process entry point. Ctrl-C is left to the coordinator, which stops workers."""
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    search_worker(*args)


def search_worker(
    worker_id: int,
    pattern: MatchPattern,
    messages,
    stop_event,
    sink=None,
    batch_size: int = BATCH_SIZE,
    generate: Callable[[], Candidate] = generate_candidate,
) -> Optional[ResultMessage]:
    """Worker process: generate keys in batches and check for matches.

    Runs until a match is found or stop_event is set. stop_event is only
    checked between batches.

    Args:
        worker_id: Index of this worker, echoed in every message.
        pattern: MatchPattern to test identifiers against.
        messages: multiprocessing.Queue for Progress/Result/WorkerError messages.
        stop_event: multiprocessing.Event, set by the coordinator to stop workers.
        sink: Object with save(secret) called before a result is posted, or None.
        batch_size: Attempts between progress reports.
        generate: Candidate factory.

    Returns the posted ResultMessage, or None if stopped. Attempts made in
    the matching batch are not reported as progress.
    """
    match = pattern.matches
    attempts = 0

    try:
        while not stop_event.is_set():
            for _ in range(batch_size):
                candidate = generate()
                attempts += 1

                if match(candidate.public_identifier):
                    if sink is not None:
                        sink.save(candidate.secret_material)
                    result = ResultMessage(
                        worker_id,
                        candidate.public_identifier,
                        bytes(candidate.secret_material),
                    )
                    messages.put(result)
                    return result

            messages.put(ProgressMessage(worker_id, attempts))
            attempts = 0
            time.sleep(0)
    except Exception as e:
        messages.put(WorkerErrorMessage(worker_id, f"{type(e).__name__}: {e}"))
        raise
    return None
