from .errors import ExtractionError
from .git_wrapper import GitError, GitRepo
from .models import Commit


def extract(repo: GitRepo, commit_id: str) -> Commit:
    """Reads message, author, date and changed paths for one commit.

    Each field is a separate backend query; any failure aborts the whole
    extraction so no partially populated commit ever reaches the log writer.

    Args:
        repo (GitRepo): The source repository.
        commit_id (str): The commit to read.

    Returns:
        Commit: The commit metadata.

    Raises:
        ExtractionError: If any of the queries fails.
    """
    try:
        message = repo.log_field("%B", commit_id)
        author = repo.log_field("%an", commit_id)
        date = repo.log_field("%ad", commit_id)
        paths = repo.changed_paths(commit_id)
    except GitError as e:
        raise ExtractionError(commit_id, str(e)) from e

    return Commit(
        hash=commit_id,
        message=message,
        author=author,
        date=date,
        changed_paths=tuple(paths),
    )
