"""Error taxonomy for the assembly pipeline.

Per-request errors derive from :class:`RequestError` and are turned into a
skip by the pipeline. Run-level errors abort the run.
"""


class ClipStitchError(Exception):
    pass


class TimecodeError(ValueError):
    """Raised when a timecode string has an unsupported shape."""


class TaskListError(ClipStitchError, ValueError):
    """The task list as a whole is malformed; nothing is processed."""


class ConfigError(ClipStitchError, ValueError):
    """Run configuration is unsafe or inconsistent; nothing is processed."""


class RequestError(ClipStitchError):
    """Failure confined to a single segment request."""

    stage = "request"

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class InvalidReference(RequestError):
    """No source identifier could be extracted from the reference URL."""

    stage = "resolve"


class InvalidRange(RequestError):
    """Start/end times are malformed or the range is empty."""

    stage = "validate"


class DownloadError(RequestError):
    """External retrieval failed. Retryable by re-running later."""

    stage = "fetch"


class CutError(RequestError):
    """Both stream-copy and re-encode extraction failed."""

    stage = "cut"


class MergeError(ClipStitchError):
    """Concatenation of the produced clips failed."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
