"""Error types raised by the search coordinator."""


class VanityError(Exception):
    """Base class for all solvanity errors."""


class ConfigurationError(VanityError, ValueError):
    """The search configuration is unusable. Raised before any worker spawns."""


class SearchTimeoutError(VanityError, TimeoutError):
    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Keypair search timed out after {timeout_seconds:g} seconds")


class ExhaustionError(VanityError, RuntimeError):
    """Every worker exited without producing a result."""

    def __init__(self, message: str = "All workers exited without finding a result"):
        super().__init__(message)


class WorkerFault(VanityError):
    """A failure contained inside one worker process.

    Built and logged by the coordinator; never raised to callers.
    """

    def __init__(self, worker_id: int, detail: str):
        self.worker_id = worker_id
        self.detail = detail
        super().__init__(f"worker {worker_id} failed: {detail}")
