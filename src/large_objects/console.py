import sys
from threading import Event, Lock, Thread
from typing import TextIO

from large_objects.slo.progress import ProgressSnapshot, UploadStatus
from large_objects.util import locked_print

_SPEED = 0.2  # seconds between redraws
_CLEAR_LINE = "\033[2K"
_LOADING = [" *    ", "  *   ", "   *  ", "    * ", "   *  ", "  *   "]


def progress_bar(percent: float, width: int = 10) -> str:
    filled = int(percent / (100 / width))
    if filled >= width:
        return "=" * width
    return "=" * filled + ">" + " " * (width - filled - 1)


def format_progress(snapshot: ProgressSnapshot) -> str:
    percent = snapshot.percent
    out = f"Speed {snapshot.rate_mbps:.2f} MB/s |{progress_bar(percent)}| {percent:.0f}%"
    if snapshot.stage == "Uploading manifest":
        out += " Uploading manifest"
    return out


class ConsoleReporter:
    """Redraws the current stage and upload progress from a daemon thread.

    Without a terminal only stage changes are printed, one per line.
    """

    def __init__(self, stream: TextIO | None = None, speed: float = _SPEED) -> None:
        self.stream = stream or sys.stdout
        self.speed = speed
        self.ansi = self.stream.isatty()
        self._lock = Lock()
        self._stage = "Getting started"
        self._status: UploadStatus | None = None
        self._quit = Event()
        self._thread: Thread | None = None

    def set_stage(self, stage: str) -> None:
        with self._lock:
            changed = stage != self._stage
            self._stage = stage
        if changed and not self.ansi:
            locked_print(stage, file=self.stream)

    def set_status(self, status: UploadStatus) -> None:
        with self._lock:
            self._status = status

    def start(self) -> "ConsoleReporter":
        if self.ansi:
            self._thread = Thread(target=self._run, daemon=True)
            self._thread.start()
        return self

    def stop(self) -> None:
        self._quit.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
            locked_print(f"\r{_CLEAR_LINE}", end="", file=self.stream)

    def __enter__(self) -> "ConsoleReporter":
        return self.start()

    def __exit__(self, *args) -> None:
        self.stop()

    def _line(self, count: int) -> str:
        with self._lock:
            stage = self._stage
            status = self._status
        out = f"\r{_CLEAR_LINE}{_LOADING[count]}{stage}"
        if status is not None:
            out += "  " + format_progress(status.snapshot())
        return out

    def _run(self) -> None:
        count = 0
        while not self._quit.wait(self.speed):
            locked_print(self._line(count), end="", file=self.stream, flush=True)
            count = (count + 1) % len(_LOADING)
