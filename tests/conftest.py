import itertools
import multiprocessing
import queue
import threading

import pytest

from solvanity.core import Candidate


class SequenceGenerator:
    """Candidate factory cycling through fixed identifiers."""

    def __init__(self, identifiers):
        self._it = itertools.cycle(identifiers)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        identifier = next(self._it)
        return Candidate(identifier, identifier.encode().ljust(64, b"\0"))


class FakeProcess:
    def __init__(self, target=None, args=(), daemon=None, name=None):
        self.target = target
        self.args = args
        self.daemon = daemon
        self.name = name
        self.alive = False
        self.exitcode = None
        self.terminated = False

    def start(self):
        self.alive = True

    def is_alive(self):
        return self.alive

    def join(self, timeout=None):
        pass

    def terminate(self):
        self.alive = False
        self.terminated = True
        self.exitcode = -15

    def exit(self, code=0):
        self.alive = False
        self.exitcode = code


class FakeQueue(queue.Queue):
    closed = False

    def close(self):
        self.closed = True


class FakeContext:
    """Stands in for a multiprocessing context without starting anything."""

    def __init__(self, preload=()):
        self.preload = list(preload)
        self.processes = []
        self.queue = None

    def Queue(self):
        self.queue = FakeQueue()
        for message in self.preload:
            self.queue.put(message)
        return self.queue

    def Event(self):
        return threading.Event()

    def Process(self, **kwargs):
        p = FakeProcess(**kwargs)
        self.processes.append(p)
        return p


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingSink:
    def __init__(self):
        self.saved = []

    def save(self, secret):
        self.saved.append(bytes(secret))
        return "<memory>"


@pytest.fixture
def sequence():
    return SequenceGenerator


@pytest.fixture
def fake_ctx():
    return FakeContext()


@pytest.fixture
def fake_ctx_factory():
    return FakeContext


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def fork_ctx():
    if "fork" not in multiprocessing.get_all_start_methods():
        pytest.skip("fork start method not available")
    return multiprocessing.get_context("fork")
