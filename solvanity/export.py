"""
Persist found secrets as a JSON keyfile.

The keyfile is a JSON array of the secret's raw bytes as integers, the
format Solana CLI tooling reads with ``solana-keygen`` and friends.
Writes go through a temporary file and ``os.replace``, so concurrent
writers resolve as last-write-wins and never leave a torn file behind.
"""

import json
import os
import tempfile
from dataclasses import dataclass

DEFAULT_KEYFILE = os.path.join("token", "token.json")


def save_keyfile(secret: bytes, path: str = DEFAULT_KEYFILE) -> str:
    """Write secret material as a JSON integer array.

    Returns the absolute path of the saved file.
    """
    abs_path = os.path.abspath(path)
    directory = os.path.dirname(abs_path) or "."
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".keyfile-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(list(secret), f)
        try:
            os.chmod(tmp_path, 0o600)
        except OSError:
            pass  # Windows: chmod not fully supported
        os.replace(tmp_path, abs_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    return abs_path


def load_keyfile(path: str = DEFAULT_KEYFILE) -> bytes:
    """Read a keyfile written by save_keyfile.

    Raises ValueError if the file does not hold a JSON array of byte values.
    """
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, list) or not all(
        isinstance(b, int) and 0 <= b <= 255 for b in data
    ):
        raise ValueError(f"{path} is not a JSON array of byte values.")
    return bytes(data)


@dataclass(frozen=True)
class JsonKeyfileSink:
    """Picklable persistence target handed to each worker."""
    path: str = DEFAULT_KEYFILE

    def save(self, secret: bytes) -> str:
        return save_keyfile(secret, self.path)

    def discard(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


DEFAULT_SINK = JsonKeyfileSink()
