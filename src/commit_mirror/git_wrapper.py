import logging
import subprocess
from pathlib import Path

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)


class GitError(RuntimeError):
    """Raised when a git command exits with a non-zero status."""


class GitRepo:
    """A wrapper around the Git command-line interface for a specific repository.

    Every command runs with ``cwd`` set to the repository root, so callers address
    the source and target repositories explicitly instead of relying on the
    process-wide working directory.

    Attributes:
        path (Path): The file system path to the repository root.
    """

    def __init__(self, path: Path):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The path to the repository root directory.

        Raises:
            ValueError: If the specified path does not contain a .git directory.
        """
        self.path = path
        if not (self.path / ".git").exists():
            raise ValueError(f"Not a git repository: {self.path}")

    @classmethod
    def init(cls, path: Path) -> "GitRepo":
        """Runs `git init` in a directory and returns a wrapper for it.

        Args:
            path (Path): The directory to initialize. Must already exist.

        Returns:
            GitRepo: The wrapper for the freshly initialized repository.

        Raises:
            GitError: If `git init` fails.
        """
        try:
            subprocess.run(
                ["git", "init"],
                cwd=path,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise GitError(f"Git error: {e.stderr or e}") from e
        return cls(path)

    def _run(self, args: list[str], capture: bool = True) -> str:
        """Executes a Git command within the repository context.

        Args:
            args (list[str]): A list of arguments to pass to the git command.
            capture (bool, optional):   Whether to return stdout.
                                        Defaults to True.

        Returns:
            str:    The stripped stdout of the command if capture is True,
                    otherwise an empty string.

        Raises:
            GitError: If the git command returns a non-zero exit code.
        """
        try:
            res = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
            return res.stdout.strip() if capture else ""
        except subprocess.CalledProcessError as e:
            raise GitError(f"Git error: {(e.stderr or '').strip() or e}") from e

    def rev_parse(self, rev: str) -> str | None:
        """Resolves a revision (tag, branch, relative ref) to a full SHA-1 hash.

        Args:
            rev (str): The revision to parse (e.g., 'main', 'origin/main').

        Returns:
            Optional[str]:  The full SHA-1 hash,
                            or None if the revision could not be resolved.
        """
        try:
            return self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
        except GitError as e:
            logger.debug(f"rev-parse failed for '{rev}': {e}")
            return None

    def rev_list(self, exclude: str, include: str, reverse: bool = False) -> list[str]:
        """Lists commits reachable from `include` but not from `exclude`.

        Args:
            exclude (str): The commit whose ancestors are excluded.
            include (str): The commit whose ancestors are listed.
            reverse (bool, optional):   Return oldest first instead of git's
                                        default newest-first order.
                                        Defaults to False.

        Returns:
            list[str]: Commit hashes in the requested order.
        """
        cmd = ["rev-list"]
        if reverse:
            cmd.append("--reverse")
        cmd.append(f"{exclude}..{include}")
        output = self._run(cmd)
        return [line for line in output.splitlines() if line]

    def log_field(self, fmt: str, rev: str) -> str:
        """Reads a single formatted field from one commit.

        Args:
            fmt (str): A `git log` format placeholder (e.g., '%an').
            rev (str): The commit to read.

        Returns:
            str: The formatted value, stripped of surrounding whitespace.
        """
        return self._run(["log", "-1", f"--format={fmt}", rev, "--"])

    def changed_paths(self, rev: str) -> list[str]:
        """Lists the repository-relative paths touched by one commit.

        Merge commits report no paths, matching `git log --name-only`. Paths are
        read NUL-terminated so names with quotes, tabs or newlines come back
        verbatim instead of C-quoted.

        Args:
            rev (str): The commit to inspect.

        Returns:
            list[str]: The changed paths in the order git reports them.
        """
        output = self._run(["log", "-1", "--format=", "--name-only", "-z", rev, "--"])
        return [entry for entry in output.split("\0") if entry.strip()]

    def is_dirty(self, path: str) -> bool:
        """Checks whether a path differs from HEAD (modified, staged or untracked).

        Args:
            path (str): The path to check, relative to the repository root.

        Returns:
            bool: True if `git status` reports any change for the path.
        """
        return bool(self._run(["status", "--porcelain", "--", path]))

    def read_file(self, rev: str, path: str) -> str | None:
        """Returns a file's contents at a revision, or None if it is not there."""
        try:
            return self._run(["show", f"{rev}:{path}"])
        except GitError as e:
            logger.debug(f"show failed for '{rev}:{path}': {e}")
            return None

    def add(self, path: str) -> None:
        """Stages a single path.

        Args:
            path (str): The path to stage, relative to the repository root.
        """
        self._run(["add", "--", path], capture=False)

    def commit_paths(self, message: str, paths: list[str]) -> None:
        """Creates a commit containing only the given paths.

        Anything else already staged in the index is left out of the commit.

        Args:
            message (str): The commit message. May be empty.
            paths (list[str]): The paths to include in the commit.
        """
        cmd = ["commit", "--allow-empty-message", "-m", message, "--", *paths]
        self._run(cmd, capture=False)

    def head(self) -> str | None:
        """Returns the commit HEAD points at, or None for an unborn branch."""
        return self.rev_parse("HEAD")
