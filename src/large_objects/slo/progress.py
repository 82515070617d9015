import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Protocol

_MB = 1000 * 1000


@dataclass(frozen=True)
class ProgressSnapshot:
    stage: str
    bytes_transferred: int
    total_bytes: int
    elapsed: float

    @property
    def percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return min(100.0, 100.0 * self.bytes_transferred / self.total_bytes)

    @property
    def rate_bps(self) -> float:
        if self.elapsed <= 0:
            return 0.0
        return self.bytes_transferred / self.elapsed

    @property
    def rate_mbps(self) -> float:
        return self.rate_bps / _MB


class UploadStatus:
    """Aggregate progress shared by every upload worker.

    Workers only ever add bytes; readers only ever get a snapshot.
    """

    def __init__(
        self, total_bytes: int, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._lock = Lock()
        self._clock = clock
        self._total_bytes = total_bytes
        self._bytes = 0
        self._start = clock()
        self._stage = "Getting started"

    def add_bytes(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"Progress can not go backwards: {n}")
        with self._lock:
            self._bytes += n

    def set_stage(self, stage: str) -> None:
        with self._lock:
            self._stage = stage

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                stage=self._stage,
                bytes_transferred=self._bytes,
                total_bytes=self._total_bytes,
                elapsed=self._clock() - self._start,
            )

    def percent_complete(self) -> float:
        return self.snapshot().percent

    def rate_mbps(self) -> float:
        return self.snapshot().rate_mbps


class ProgressReporter(Protocol):
    """Receives stage changes and a status handle it may poll at will."""

    def set_stage(self, stage: str) -> None: ...

    def set_status(self, status: UploadStatus) -> None: ...
