"""solvanity: parallel base-58 vanity keypair search."""

__version__ = "0.1.0"

from solvanity.errors import (  # noqa: E402
    ConfigurationError,
    ExhaustionError,
    SearchTimeoutError,
    VanityError,
    WorkerFault,
)
from solvanity.generator import FoundKey, SearchConfig, run_search, search  # noqa: E402

__all__ = [
    "ConfigurationError",
    "ExhaustionError",
    "FoundKey",
    "SearchConfig",
    "SearchTimeoutError",
    "VanityError",
    "WorkerFault",
    "run_search",
    "search",
]
