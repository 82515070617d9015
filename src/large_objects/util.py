import hashlib
from threading import Lock

import psutil

_PRINT_LOCK = Lock()


def locked_print(*args, **kwargs):
    with _PRINT_LOCK:
        print(*args, **kwargs)


def default_thread_count() -> int:
    """Number of logical processing units on the host, at least one."""
    count = psutil.cpu_count(logical=True)
    if not count:
        return 1
    return count


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def read_range(path: str, offset: int, length: int) -> bytes:
    """Read exactly `length` bytes at `offset` through a private file handle.

    Each caller gets its own handle so concurrent readers never share a seek
    position.
    """
    with open(path, "rb") as f:
        f.seek(offset)
        data = f.read(length)
    if len(data) != length:
        raise OSError(
            f"Short read from {path}: wanted {length} bytes at offset {offset}, got {len(data)}"
        )
    return data
