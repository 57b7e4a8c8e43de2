"""Error taxonomy for the mirroring pipeline.

Each class maps to one failure scope: an ``ArgumentError`` aborts the process before
anything is touched, a ``ResolutionError`` aborts a single sync cycle, an
``ExtractionError`` skips one commit, and a ``LogWriteError`` or ``CommitError``
skips one record.
"""


class MirrorError(Exception):
    """Base class for all errors raised by Commit Mirror."""


class ArgumentError(MirrorError):
    """Invalid or missing command-line input. Fatal, exit code 1."""


class ResolutionError(MirrorError):
    """The local or remote-tracking reference could not be resolved."""


class ExtractionError(MirrorError):
    """Metadata for a commit could not be read from the source repository."""

    def __init__(self, commit_id: str, reason: str):
        super().__init__(f"{commit_id[:12]}: {reason}")
        self.commit_id = commit_id


class LogWriteError(MirrorError):
    """A log file in the target directory could not be read or written."""

    def __init__(self, file_name: str, reason: str):
        super().__init__(f"{file_name}: {reason}")
        self.file_name = file_name


class CommitError(MirrorError):
    """Staging or committing a log file in the target repository failed."""

    def __init__(self, file_name: str, reason: str):
        super().__init__(f"{file_name}: {reason}")
        self.file_name = file_name
