class LargeObjectError(Exception):
    """Base error for a large object job, tagged with the phase that failed."""

    phase: str = "unknown"

    def __init__(self, msg: str, cause: BaseException | None = None) -> None:
        super().__init__(msg)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        msg = super().__str__()
        if self.cause is not None:
            return f"{self.phase}: {msg}: {self.cause}"
        return f"{self.phase}: {msg}"


class PlanningError(LargeObjectError):
    phase = "planning"


class ProbeError(LargeObjectError):
    phase = "probing"


class SegmentUploadError(LargeObjectError):
    phase = "uploading"

    def __init__(
        self, index: int, name: str, cause: BaseException | None = None
    ) -> None:
        super().__init__(f"segment {index} ({name}) failed", cause)
        self.index = index
        self.name = name


class InterruptedUpload(LargeObjectError):
    phase = "uploading"


class ManifestCommitError(LargeObjectError):
    phase = "committing"


class StorageError(Exception):
    """Raised by storage backends when a request fails or is rejected."""

    def __init__(self, msg: str, status_code: int | None = None) -> None:
        super().__init__(msg)
        self.status_code = status_code


class ConfigError(Exception):
    pass
