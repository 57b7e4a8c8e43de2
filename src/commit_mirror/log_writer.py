import logging
import os
from pathlib import Path

from .constants import APP_NAME, HASH_PREFIX
from .errors import LogWriteError
from .models import AppendResult, Commit

logger = logging.getLogger(APP_NAME)


class LogWriter:
    """Maintains the append-only, per-file commit logs in the target directory.

    The log contents are the only record of what has been mirrored, so presence is
    always decided by scanning the file rather than by any in-memory state.

    Attributes:
        target_dir (Path): The directory holding the log files.
    """

    def __init__(self, target_dir: Path):
        self.target_dir = target_dir

    def path_for(self, name: str) -> Path:
        return self.target_dir / name

    def contains(self, name: str, commit_hash: str) -> bool:
        """Checks whether a log already holds a block for the given hash.

        Args:
            name (str): The derived log-file name.
            commit_hash (str): The commit hash to look for.

        Returns:
            bool: True if a `Commit Hash:` line with this exact hash exists.

        Raises:
            LogWriteError: If the log exists but cannot be read.
        """
        path = self.path_for(name)
        if not path.exists():
            return False
        hash_line = f"{HASH_PREFIX}{commit_hash}"
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                return any(line.rstrip("\r\n") == hash_line for line in f)
        except OSError as e:
            raise LogWriteError(name, f"read failed: {e}") from e

    def append_if_absent(self, name: str, commit: Commit) -> AppendResult:
        """Writes the commit's block to its log unless the hash is already there.

        Args:
            name (str): The derived log-file name.
            commit (Commit): The commit to record.

        Returns:
            AppendResult: Whether a block was written, and how to undo it.

        Raises:
            LogWriteError: If the log cannot be read or written. A partial write
                           is undone before raising.
        """
        path = self.path_for(name)

        if self.contains(name, commit.hash):
            logger.debug(f"DUPLICATE {name}: {commit.hash[:12]} already recorded.")
            return AppendResult(written=False, path=path)

        created = not path.exists()
        try:
            previous_size = 0 if created else path.stat().st_size
        except OSError as e:
            raise LogWriteError(name, f"stat failed: {e}") from e

        result = AppendResult(
            written=True, path=path, created=created, previous_size=previous_size
        )
        try:
            if created:
                path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8", newline="\n") as f:
                f.write(commit.to_record())
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            if path.is_file():
                self.rollback(result)
            raise LogWriteError(name, f"write failed: {e}") from e

        return result

    def rollback(self, result: AppendResult) -> None:
        """Undoes a write made by `append_if_absent`.

        A created file is removed; an appended file is truncated back to its
        previous size.

        Args:
            result (AppendResult): The result of the write to undo.
        """
        if not result.written:
            return
        try:
            if result.created:
                result.path.unlink(missing_ok=True)
            else:
                with open(result.path, "r+b") as f:
                    f.truncate(result.previous_size)
            logger.info(f"ROLLED BACK {result.path.name}.")
        except OSError as e:
            logger.error(f"ROLLBACK ERROR {result.path.name}: {e}")
