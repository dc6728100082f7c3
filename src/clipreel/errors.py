"""Exception taxonomy for the compilation pipeline.

Per-item errors (FetchError, TranscodeError, MergeError) are caught by the
orchestrator, which drops the item and carries on. NoInputError and
WorkspaceError end the run.
"""


class ClipreelError(Exception):
    """Base class for every error raised by clipreel."""


class FetchError(ClipreelError):
    """A single source clip could not be materialized locally."""


class TranscodeError(ClipreelError):
    """Normalizing a single clip failed."""


class MergeError(ClipreelError):
    """A concat step failed."""


class InvalidArgument(MergeError, ValueError):
    """A stage was called with unusable input (empty or conflicting clips)."""


class NoInputError(ClipreelError):
    """No chunk survived to final assembly."""


class WorkspaceError(ClipreelError):
    """The run workspace or its inputs are unusable."""


class LedgerError(WorkspaceError):
    """The publish ledger is missing required fields or is not valid JSON."""


class FFmpegError(ClipreelError):
    """The ffmpeg subprocess exited non-zero, timed out, or could not start.

    Stages translate this into their own error type (TranscodeError,
    MergeError) so callers only deal with the pipeline taxonomy.
    """

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr

    def __str__(self):
        if self.stderr:
            return f"{self.args[0]}: {self.stderr}"
        return self.args[0]
