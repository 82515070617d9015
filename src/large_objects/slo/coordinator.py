import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock, Semaphore

from large_objects.exceptions import (
    InterruptedUpload,
    LargeObjectError,
    PlanningError,
    ProbeError,
    SegmentUploadError,
)
from large_objects.log import job_log_sink
from large_objects.slo.manifest import Manifest, commit_manifest
from large_objects.slo.probe import probe
from large_objects.slo.progress import ProgressReporter, UploadStatus
from large_objects.slo.segment import Segment, plan, segment_prefix
from large_objects.slo.uploader import upload_segment
from large_objects.storage.base import ObjectStore
from large_objects.types import JobState, SegmentStatus
from large_objects.util import default_thread_count

logger = logging.getLogger(__name__)  # noqa

_STAGES: dict[JobState, str] = {
    JobState.PLANNING: "Preparing SLO",
    JobState.PROBING: "Checking for uploaded segments",
    JobState.DISPATCHING: "Uploading SLO",
    JobState.AWAITING: "Uploading SLO",
    JobState.COMMITTING: "Uploading manifest",
    JobState.DONE: "Done",
    JobState.FAILED: "Failed",
}


@dataclass
class UploadJob:
    """One invocation of the SLO upload.

    `chunk_size <= 0` derives ceil(size / 1000), but never less than 1 MiB
    (or the store's `min_segment_size`, whichever is larger), so files under
    about 1 GB get fewer than 1000 segments. `threads <= 0` uses the host's
    processing unit count.
    """

    source: Path
    container: str
    object_name: str
    chunk_size: int = -1
    threads: int = field(default_factory=default_thread_count)
    only_missing: bool = False
    log_file: Path | None = None
    verify_etag: bool = False
    cleanup_on_failure: bool = False
    segment_container: str | None = None

    def __post_init__(self):
        self.source = Path(self.source)
        if self.log_file is not None:
            self.log_file = Path(self.log_file)
        if self.threads <= 0:
            self.threads = default_thread_count()

    def segments_container(self) -> str:
        return self.segment_container or self.container


class SloUploader:
    """Runs an UploadJob through plan, probe, parallel upload and commit.

    The manifest is committed at most once and only after every segment is
    confirmed present. The first segment failure stops further dispatch,
    lets in-flight uploads finish and fails the job.
    """

    def __init__(
        self,
        store: ObjectStore,
        job: UploadJob,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self.store = store
        self.job = job
        self.reporter = reporter
        self.state = JobState.PLANNING
        self.history: list[JobState] = [JobState.PLANNING]
        self.segments: list[Segment] = []
        self.status: UploadStatus | None = None
        self.manifest: Manifest | None = None
        self.dispatched: list[int] = []
        self._started = False
        self._error: Exception | None = None
        self._error_lock = Lock()

    @property
    def error(self) -> Exception | None:
        with self._error_lock:
            return self._error

    def _record_error(self, err: Exception) -> bool:
        """Store `err` if it is the first one. Returns True when it was."""
        with self._error_lock:
            if self._error is not None:
                return False
            self._error = err
            return True

    def _set_stage(self, state: JobState) -> None:
        stage = _STAGES[state]
        if self.status is not None:
            self.status.set_stage(stage)
        if self.reporter is not None:
            self.reporter.set_stage(stage)

    def _transition(self, state: JobState) -> None:
        assert not self.state.is_terminal(), f"Job is already {self.state.value}"
        logger.info(
            f"{self.job.container}/{self.job.object_name}: {self.state.value} -> {state.value}"
        )
        self.state = state
        self.history.append(state)
        self._set_stage(state)

    def _fail(self, err: Exception) -> Exception:
        self._record_error(err)
        first = self.error
        assert first is not None
        logger.error(f"Upload of {self.job.container}/{self.job.object_name} failed: {first}")
        if self.job.cleanup_on_failure:
            self._cleanup()
        self._transition(JobState.FAILED)
        return first

    def run(self) -> Exception | None:
        if self._started:
            return RuntimeError("SloUploader.run() can only be called once")
        self._started = True
        with job_log_sink(self.job.log_file):
            return self._run()

    def _run(self) -> Exception | None:
        job = self.job
        self._set_stage(JobState.PLANNING)

        # PLANNING
        try:
            file_size = job.source.stat().st_size
            with open(job.source, "rb"):
                pass
        except OSError as e:
            return self._fail(PlanningError(f"cannot read source file {job.source}", e))
        try:
            self.segments = plan(
                file_size,
                job.chunk_size,
                job.object_name,
                min_segment_size=self.store.min_segment_size,
            )
        except PlanningError as e:
            return self._fail(e)
        self.status = UploadStatus(total_bytes=file_size)
        if self.reporter is not None:
            self.reporter.set_status(self.status)

        # PROBING
        self._transition(JobState.PROBING)
        err = self._probe()
        if err is not None:
            return self._fail(err)

        # DISPATCHING / AWAITING
        self._transition(JobState.DISPATCHING)
        pending = [s for s in self.segments if s.status is SegmentStatus.PENDING]
        try:
            self._dispatch(pending)
        except KeyboardInterrupt:
            self._record_error(InterruptedUpload("upload interrupted"))
            self._transition(JobState.FAILED)
            raise
        err = self.error
        if err is not None:
            return self._fail(err)
        for segment in self.segments:
            if not segment.status.is_present():
                return self._fail(SegmentUploadError(segment.index, segment.name))

        # COMMITTING
        self._transition(JobState.COMMITTING)
        try:
            self.manifest = Manifest.from_segments(
                job.segments_container(), self.segments
            )
        except ValueError as e:
            return self._fail(LargeObjectError("manifest is incomplete", e))
        err = commit_manifest(self.store, job.container, job.object_name, self.manifest)
        if err is not None:
            return self._fail(err)
        self._transition(JobState.DONE)
        return None

    def _probe(self) -> Exception | None:
        job = self.job
        assert self.status is not None
        if not job.only_missing:
            probe([], self.segments, only_missing=False)
            return None
        container = job.segments_container()
        try:
            existing = self.store.list_objects(
                container, prefix=segment_prefix(job.object_name)
            )
        except Exception as e:
            return ProbeError(f"cannot list existing segments in {container}", e)

        def hasher(segment: Segment) -> str:
            return segment.compute_etag(job.source)

        try:
            probe(
                existing,
                self.segments,
                only_missing=True,
                hasher=hasher if job.verify_etag else None,
            )
        except OSError as e:
            return ProbeError("cannot hash local segment", e)
        skipped_bytes = sum(
            s.length for s in self.segments if s.status is SegmentStatus.SKIPPED_EXISTING
        )
        # Already present bytes count as done so percent complete is honest.
        self.status.add_bytes(skipped_bytes)
        return None

    def _upload_task(self, segment: Segment) -> None:
        assert self.status is not None
        if self.error is not None:
            return
        try:
            err = upload_segment(
                self.store,
                self.job.segments_container(),
                self.job.source,
                segment,
                self.status,
            )
        except KeyboardInterrupt:
            segment.status = SegmentStatus.FAILED
            self._record_error(
                InterruptedUpload(f"interrupted while uploading segment {segment.index}")
            )
            raise
        if err is not None and self._record_error(err):
            logger.error(f"First failure: {err}, no new segments will be started")

    def _dispatch(self, pending: list[Segment]) -> None:
        if not pending:
            logger.info("Every segment is already uploaded")
            self._transition(JobState.AWAITING)
            return
        threads = max(1, min(self.job.threads, len(pending)))
        semaphore = Semaphore(threads)
        futures: list[Future[None]] = []
        logger.info(f"Uploading {len(pending)} segments with {threads} threads")
        with ThreadPoolExecutor(
            max_workers=threads, thread_name_prefix="slo-upload"
        ) as executor:
            try:
                for segment in pending:
                    semaphore.acquire()
                    if self.error is not None:
                        semaphore.release()
                        break
                    fut = executor.submit(self._upload_task, segment)
                    fut.add_done_callback(lambda _: semaphore.release())
                    futures.append(fut)
                    self.dispatched.append(segment.index)
                self._transition(JobState.AWAITING)
                for fut in futures:
                    fut.result()
            except KeyboardInterrupt:
                executor.shutdown(wait=False, cancel_futures=True)
                raise

    def _cleanup(self) -> None:
        container = self.job.segments_container()
        uploaded = [s for s in self.segments if s.status is SegmentStatus.UPLOADED]
        if not uploaded:
            return
        logger.info(f"Removing {len(uploaded)} segments uploaded by the failed job")
        for segment in uploaded:
            try:
                self.store.delete_object(container, segment.name)
            except Exception as e:
                logger.warning(f"Could not remove segment {segment.name}: {e}")


def upload_slo(
    store: ObjectStore, job: UploadJob, reporter: ProgressReporter | None = None
) -> Exception | None:
    """Upload `job.source` as a static large object, returning the error if any."""
    return SloUploader(store, job, reporter=reporter).run()
