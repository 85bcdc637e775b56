import queue
import threading

import pytest

from solvanity.matcher import MatchPattern
from solvanity.worker import (
    ProgressMessage,
    ResultMessage,
    WorkerErrorMessage,
    search_worker,
)


def drain(q):
    items = []
    while True:
        try:
            items.append(q.get_nowait())
        except queue.Empty:
            return items


def test_resolves_on_first_prefix_match(sequence, recording_sink):
    generate = sequence(["xA", "Ab", "zz"])
    messages = queue.Queue()

    result = search_worker(
        0, MatchPattern(prefix="A"), messages, threading.Event(),
        sink=recording_sink, batch_size=10, generate=generate,
    )

    assert result.public_identifier == "Ab"
    assert generate.calls == 2
    assert drain(messages) == [result]
    assert recording_sink.saved == [result.secret_material]


def test_reports_full_batches_only(sequence):
    generate = sequence(["zz"] * 15 + ["Ab"])
    messages = queue.Queue()

    search_worker(3, MatchPattern(prefix="A"), messages, threading.Event(),
                  batch_size=5, generate=generate)

    sent = drain(messages)
    assert sent[:3] == [ProgressMessage(3, 5)] * 3
    assert isinstance(sent[3], ResultMessage)
    assert len(sent) == 4


def test_partial_batch_before_match_is_not_reported(sequence):
    generate = sequence(["zz"] * 7 + ["Ab"])
    messages = queue.Queue()

    search_worker(0, MatchPattern(prefix="A"), messages, threading.Event(),
                  batch_size=5, generate=generate)

    sent = drain(messages)
    assert [m for m in sent if isinstance(m, ProgressMessage)] == [ProgressMessage(0, 5)]
    assert sum(m.attempts for m in sent if isinstance(m, ProgressMessage)) == 5


def test_stops_between_batches(sequence):
    stop = threading.Event()
    generate = sequence(["zz"])

    class StopAfterFirstReport(queue.Queue):
        def put(self, item, block=True, timeout=None):
            super().put(item, block, timeout)
            stop.set()

    messages = StopAfterFirstReport()
    assert search_worker(0, MatchPattern(prefix="A"), messages, stop,
                         batch_size=4, generate=generate) is None
    assert generate.calls == 4
    assert drain(messages) == [ProgressMessage(0, 4)]


def test_does_nothing_when_already_stopped(sequence):
    stop = threading.Event()
    stop.set()
    generate = sequence(["Ab"])
    messages = queue.Queue()

    assert search_worker(0, MatchPattern(prefix="A"), messages, stop, generate=generate) is None
    assert generate.calls == 0
    assert drain(messages) == []


def test_generator_failure_is_reported_and_raised():
    def broken():
        raise RuntimeError("entropy unavailable")

    messages = queue.Queue()
    with pytest.raises(RuntimeError):
        search_worker(2, MatchPattern(prefix="A"), messages, threading.Event(), generate=broken)

    assert drain(messages) == [WorkerErrorMessage(2, "RuntimeError: entropy unavailable")]


def test_sink_failure_is_reported_and_no_result_sent(sequence):
    class FullDisk:
        def save(self, secret):
            raise OSError(28, "No space left on device")

    messages = queue.Queue()
    with pytest.raises(OSError):
        search_worker(1, MatchPattern(prefix="A"), messages, threading.Event(),
                      sink=FullDisk(), generate=sequence(["Ab"]))

    sent = drain(messages)
    assert len(sent) == 1
    assert isinstance(sent[0], WorkerErrorMessage)
    assert "No space left" in sent[0].error


def test_worker_main_ignores_interrupts(monkeypatch, sequence):
    import signal
    from solvanity import worker

    installed = []
    monkeypatch.setattr(worker.signal, "signal", lambda sig, handler: installed.append((sig, handler)))
    messages = queue.Queue()

    worker.worker_main(0, MatchPattern(prefix="A"), messages, threading.Event(),
                       None, 10, sequence(["Ab"]))

    assert installed == [(signal.SIGINT, signal.SIG_IGN)]
    assert drain(messages)[0].public_identifier == "Ab"
