import re
from enum import Enum
from functools import total_ordering


class SegmentStatus(Enum):
    PENDING = "pending"
    SKIPPED_EXISTING = "skipped-existing"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    FAILED = "failed"

    def is_present(self) -> bool:
        """True when the segment is confirmed to exist on the backend."""
        return self in (SegmentStatus.UPLOADED, SegmentStatus.SKIPPED_EXISTING)


class JobState(Enum):
    PLANNING = "planning"
    PROBING = "probing"
    DISPATCHING = "dispatching"
    AWAITING = "awaiting"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED)


_UNITS = "BKMGTP"
_PATTERN_PLAIN_INT = re.compile(r"^-?\d+$")
_PATTERN_SIZE_SUFFIX = re.compile(r"^(\d+(?:\.\d+)?)\s*([A-Za-z]+)$")


def _from_size_suffix(value: str) -> int:
    value = value.strip()
    if _PATTERN_PLAIN_INT.match(value):
        return int(value)
    match = _PATTERN_SIZE_SUFFIX.match(value)
    if match is None:
        raise ValueError(f"Invalid size: {value}")
    num, suffix = match.groups()
    # Only the first letter counts, "M", "MB" and "MiB" are all mebibytes.
    power = _UNITS.find(suffix[0].upper())
    if power < 0:
        raise ValueError(f"Invalid size suffix: {suffix}")
    return int(float(num) * 1024**power)


def _to_size_suffix(size: int) -> str:
    power = 0
    while power < len(_UNITS) - 1 and size >= 1024 ** (power + 1):
        power += 1
    val = round(size / 1024**power, 1)
    if val >= 1024 and power < len(_UNITS) - 1:
        power += 1
        val = round(size / 1024**power, 1)
    if val == int(val):
        return f"{int(val)}{_UNITS[power]}"
    return f"{val:.1f}{_UNITS[power]}"


@total_ordering
class SizeSuffix:
    """A byte count written as "16MB", "1.5G" or plain "1048576"."""

    def __init__(self, size: "int | float | str | SizeSuffix"):
        if isinstance(size, SizeSuffix):
            self._size = size._size
        elif isinstance(size, str):
            self._size = _from_size_suffix(size)
        elif isinstance(size, (int, float)):
            self._size = int(size)
        else:
            raise ValueError(f"Invalid type for size: {type(size)}")

    def as_int(self) -> int:
        return self._size

    def as_str(self) -> str:
        if self._size < 0:
            return "-" + _to_size_suffix(-self._size)
        return _to_size_suffix(self._size)

    def __repr__(self) -> str:
        return f"SizeSuffix({self.as_str()!r})"

    def __str__(self) -> str:
        return self.as_str()

    def __int__(self) -> int:
        return self._size

    def __hash__(self) -> int:
        return hash(self._size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (SizeSuffix, int)):
            return NotImplemented
        return self._size == int(other)

    def __lt__(self, other: "int | SizeSuffix") -> bool:
        return self._size < int(other)

    def __add__(self, other: "int | SizeSuffix") -> "SizeSuffix":
        return SizeSuffix(self._size + int(other))

    __radd__ = __add__

    def __sub__(self, other: "int | SizeSuffix") -> "SizeSuffix":
        return SizeSuffix(self._size - int(other))

    def __mul__(self, other: int) -> "SizeSuffix":
        return SizeSuffix(self._size * int(other))

    __rmul__ = __mul__

    def __floordiv__(self, other: "int | SizeSuffix") -> "SizeSuffix":
        return SizeSuffix(self._size // int(other))
