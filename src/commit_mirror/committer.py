import logging
from pathlib import Path

from .constants import APP_NAME, HASH_PREFIX
from .errors import CommitError
from .git_wrapper import GitError, GitRepo

logger = logging.getLogger(APP_NAME)


class TargetCommitter:
    """Stages and commits log files in the target repository.

    Attributes:
        target_dir (Path): The target repository root.
    """

    def __init__(self, target_dir: Path):
        self.target_dir = target_dir
        self._repo: GitRepo | None = None

    def ensure_initialized(self) -> GitRepo:
        """Creates the target directory and runs `git init` if needed.

        Safe to call repeatedly; an existing repository is left untouched.

        Returns:
            GitRepo: The target repository.

        Raises:
            CommitError: If the directory cannot be created or initialized.
        """
        if self._repo is not None:
            return self._repo

        try:
            self.target_dir.mkdir(parents=True, exist_ok=True)
            if (self.target_dir / ".git").exists():
                self._repo = GitRepo(self.target_dir)
            else:
                self._repo = GitRepo.init(self.target_dir)
                logger.info(f"INITIALIZED {self.target_dir}: new git repository.")
        except (GitError, OSError) as e:
            raise CommitError(str(self.target_dir), f"init failed: {e}") from e

        return self._repo

    def has_uncommitted(self, name: str, commit_hash: str) -> bool:
        """Checks whether a record is on disk but missing from the committed log.

        Args:
            name (str): Path of the log file relative to the target root.
            commit_hash (str): The source commit the record belongs to.

        Returns:
            bool: True if the file has local changes and HEAD's version of it
                  does not hold the record.

        Raises:
            CommitError: If the repository status cannot be read.
        """
        repo = self.ensure_initialized()
        if not (self.target_dir / name).exists():
            return False
        try:
            if not repo.is_dirty(name):
                return False
        except GitError as e:
            raise CommitError(name, str(e)) from e

        committed = repo.read_file("HEAD", name)
        if committed is None:
            return True
        return f"{HASH_PREFIX}{commit_hash}" not in committed.splitlines()

    def commit_file(self, name: str, message: str) -> None:
        """Stages exactly one file and commits it.

        Args:
            name (str): Path of the file relative to the target root.
            message (str): The commit message.

        Raises:
            CommitError: If staging or committing fails (including when the
                         file has no changes to commit).
        """
        repo = self.ensure_initialized()
        if not (self.target_dir / name).exists():
            raise CommitError(name, "file does not exist")

        try:
            repo.add(name)
            repo.commit_paths(message, [name])
        except GitError as e:
            raise CommitError(name, str(e)) from e
