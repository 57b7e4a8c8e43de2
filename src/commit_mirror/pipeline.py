import logging
from pathlib import Path

from . import extractor, resolver
from .committer import TargetCommitter
from .config import Config
from .constants import APP_NAME
from .errors import CommitError, ExtractionError, LogWriteError, ResolutionError
from .git_wrapper import GitRepo
from .log_writer import LogWriter
from .models import Commit, MirroredRecord, SyncSummary, derive_names

logger = logging.getLogger(APP_NAME)


def _first_line(message: str) -> str:
    return message.splitlines()[0] if message else ""


class SyncPipeline:
    """Runs one resolution cycle: resolve, then extract, write and commit per commit.

    Commits are handled strictly one after another, so the target directory and
    the target repository's HEAD agree at every step boundary.

    Attributes:
        config (Config): Branch, remote, ordering and naming policy.
    """

    def __init__(self, config: Config | None = None):
        self.config = config or Config()

    def run(self, source_dir: Path, target_dir: Path) -> SyncSummary:
        """Mirrors every commit that is new since the last push.

        Args:
            source_dir (Path): The source repository root.
            target_dir (Path): The target directory (initialized as a repo if needed).

        Returns:
            SyncSummary: Counts of committed, skipped and failed records.

        Raises:
            ResolutionError: If the new commit range cannot be determined.
            CommitError: If the target repository cannot be initialized.
        """
        try:
            source = GitRepo(source_dir)
        except ValueError as e:
            raise ResolutionError(str(e)) from e

        commit_ids = resolver.resolve_new(
            source,
            branch=self.config.source.branch,
            remote=self.config.source.remote,
            order=self.config.mirror.order,
        )

        committer = TargetCommitter(target_dir)
        committer.ensure_initialized()
        writer = LogWriter(target_dir)

        summary = SyncSummary()
        for commit_id in commit_ids:
            try:
                commit = extractor.extract(source, commit_id)
            except ExtractionError as e:
                logger.warning(f"SKIPPED {commit_id[:12]}: {e}")
                summary.skipped += 1
                continue

            self._mirror_commit(commit, writer, committer, summary)

        logger.info(
            f"SYNC COMPLETE {source_dir.name}: {summary.committed} committed, "
            f"{summary.skipped} skipped, {summary.failed} failed."
        )
        return summary

    def _mirror_commit(
        self,
        commit: Commit,
        writer: LogWriter,
        committer: TargetCommitter,
        summary: SyncSummary,
    ) -> None:
        """Writes and commits one record per derived name of a single commit."""
        names = derive_names(commit.changed_paths, key=self.config.mirror.key)
        if not names:
            logger.info(f"SKIPPED {commit.hash[:12]}: No changed files to mirror.")
            summary.skipped += 1
            return

        for name in names:
            try:
                result = writer.append_if_absent(name, commit)
            except LogWriteError as e:
                logger.error(f"WRITE ERROR {commit.hash[:12]}: {e}")
                summary.failed += 1
                continue

            try:
                if not result.written:
                    # A block left behind by an interrupted run is committed now.
                    if not committer.has_uncommitted(name, commit.hash):
                        summary.skipped += 1
                        continue
                    logger.warning(
                        f"RECOVERED {name}: {commit.hash[:12]} was never committed."
                    )
                committer.commit_file(name, commit.message)
            except CommitError as e:
                logger.error(f"COMMIT ERROR {commit.hash[:12]}: {e}")
                writer.rollback(result)
                summary.failed += 1
                continue
            except BaseException:
                writer.rollback(result)
                raise

            logger.info(
                f"MIRRORED {commit.date} | {name} - {_first_line(commit.message)}"
            )
            summary.committed += 1
            summary.records.append(
                MirroredRecord(
                    file_name=name, message=commit.message, commit_hash=commit.hash
                )
            )
