import logging

from .constants import APP_NAME, DEFAULT_BRANCH, DEFAULT_REMOTE
from .errors import ResolutionError
from .git_wrapper import GitError, GitRepo

logger = logging.getLogger(APP_NAME)


def resolve_new(
    repo: GitRepo,
    branch: str = DEFAULT_BRANCH,
    remote: str = DEFAULT_REMOTE,
    order: str = "chronological",
) -> list[str]:
    """Lists the commits on the local branch that its remote counterpart lacks.

    Args:
        repo (GitRepo): The source repository.
        branch (str): The local branch name.
        remote (str): The remote whose tracking branch is the last synced point.
        order (str):    'chronological' for oldest first, 'backend' to keep
                        git's newest-first order.

    Returns:
        list[str]: Commit hashes in processing order.

    Raises:
        ResolutionError: If either reference cannot be resolved.
    """
    remote_ref = f"{remote}/{branch}"

    pushed = repo.rev_parse(remote_ref)
    if pushed is None:
        raise ResolutionError(f"Cannot resolve '{remote_ref}' in {repo.path}")

    current = repo.rev_parse(branch)
    if current is None:
        raise ResolutionError(f"Cannot resolve '{branch}' in {repo.path}")

    try:
        commits = repo.rev_list(pushed, current, reverse=order == "chronological")
    except GitError as e:
        raise ResolutionError(f"Cannot list {remote_ref}..{branch}: {e}") from e

    logger.info(f"RESOLVED {repo.path.name}: {len(commits)} new commit(s).")
    return commits
