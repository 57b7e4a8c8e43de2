"""Value types passed between the mirroring stages."""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .constants import HASH_PREFIX, RECORD_TEMPLATE


@dataclass(frozen=True)
class Commit:
    """One source commit as read from the backend.

    Attributes:
        hash (str): The full commit id.
        message (str): The full commit message.
        author (str): The author name.
        date (str): The author date, in git's default format.
        changed_paths (tuple[str, ...]): Repository-relative paths touched by the commit.
    """

    hash: str
    message: str
    author: str
    date: str
    changed_paths: tuple[str, ...] = ()

    def to_record(self) -> str:
        """Renders the fixed-format text block stored in a log file."""
        return RECORD_TEMPLATE.format(
            hash=self.hash,
            message=self.message,
            author=self.author,
            date=self.date,
        )

    @property
    def hash_line(self) -> str:
        """The line that identifies this commit's block inside a log file."""
        return f"{HASH_PREFIX}{self.hash}"


def derive_names(paths: tuple[str, ...] | list[str], key: str = "basename") -> list[str]:
    """Maps changed paths to distinct log-file names, preserving first-seen order.

    With ``key="basename"`` several paths sharing a basename collapse into one
    name. With ``key="path"`` the full relative path is kept. Names that would
    land inside the target's ``.git`` directory are dropped.

    Args:
        paths: Repository-relative paths, as reported by git.
        key (str): The naming policy, 'basename' or 'path'.

    Returns:
        list[str]: Distinct derived names.
    """
    names: list[str] = []
    for raw in paths:
        pure = PurePosixPath(raw)
        if key == "path":
            parts = [p for p in pure.parts if p not in ("", ".")]
        else:
            parts = [pure.name] if pure.name else []
        if not parts or ".git" in parts or ".." in parts:
            continue
        name = "/".join(parts)
        if name not in names:
            names.append(name)
    return names


@dataclass
class AppendResult:
    """Outcome of one dedup-append, with enough detail to undo it.

    Attributes:
        written (bool): Whether a block was written.
        path (Path): The log file that was checked.
        created (bool): Whether the file did not exist before the write.
        previous_size (int): File size in bytes before the write.
    """

    written: bool
    path: Path
    created: bool = False
    previous_size: int = 0


@dataclass(frozen=True)
class MirroredRecord:
    """A record that was written and committed during a sync cycle."""

    file_name: str
    message: str
    commit_hash: str


@dataclass
class SyncSummary:
    """Counters accumulated over one resolution cycle.

    Attributes:
        committed (int): Records written and committed to the target repository.
        skipped (int): Records already present, plus commits that could not be
                       extracted or had no derivable file names.
        failed (int): Records whose target commit failed (log write rolled back).
        records (list[MirroredRecord]): The committed records, in processing order.
    """

    committed: int = 0
    skipped: int = 0
    failed: int = 0
    records: list[MirroredRecord] = field(default_factory=list)
