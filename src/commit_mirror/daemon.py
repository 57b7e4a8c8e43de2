import logging
import signal
import sys
import threading
from collections.abc import Callable
from logging.handlers import RotatingFileHandler
from pathlib import Path
from types import FrameType
from typing import Any

from rich.console import Console
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .config import Config
from .constants import APP_NAME, DEFAULT_DEBOUNCE_SECONDS, LOG_FILE, STATE_DIR
from .errors import MirrorError, ResolutionError
from .pipeline import SyncPipeline

logger = logging.getLogger(APP_NAME)
logger.setLevel(logging.INFO)

console = Console()

IDLE = "idle"
PENDING = "pending"
RUNNING = "running"

# Read-only access (including our own git queries) must not re-trigger a sync.
IGNORED_EVENT_TYPES = frozenset({"opened", "closed_no_write"})


class WatchScheduler:
    """Debounces change notifications into non-overlapping pipeline runs.

    Every `notify()` (re)arms a single timer; when it expires without further
    notifications the callback runs. A run never starts while another is in
    flight: a timer that expires during a run only records that another run is
    due, and the timer is re-armed once the current run finishes.

    Attributes:
        callback (Callable[[], Any]): The work to run after the quiet window.
        debounce (float): The quiet window in seconds.
        runs (int): Number of callback invocations so far.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.callback = callback
        self.debounce = debounce
        self.runs = 0
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._timer: Any = None
        self._generation = 0
        self._running = False
        self._rerun_requested = False
        self._stopped = False

    @property
    def state(self) -> str:
        """The current state: 'idle', 'pending' or 'running'."""
        with self._lock:
            if self._running:
                return RUNNING
            return PENDING if self._timer is not None else IDLE

    def notify(self) -> None:
        """Records a change notification and restarts the quiet window."""
        with self._lock:
            if self._stopped:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self.debounce, self._fire, args=(generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._stopped:
                return  # Superseded by a later notification.
            self._timer = None
            if self._running:
                self._rerun_requested = True
                return
            self._running = True

        try:
            self.runs += 1
            self.callback()
        except Exception:
            logger.exception("WATCH ERROR: Sync run failed")
        finally:
            with self._lock:
                self._running = False
                rerun = self._rerun_requested
                self._rerun_requested = False
                self._idle.notify_all()
            if rerun:
                self.notify()

    def stop(self, timeout: float | None = None) -> bool:
        """Cancels any pending run and waits for a run already in flight.

        Args:
            timeout (float | None): Maximum seconds to wait for the active run.
                                    Waits indefinitely when None.

        Returns:
            bool: True if no run is active when this returns.
        """
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            return self._idle.wait_for(lambda: not self._running, timeout=timeout)


class GitDirEventHandler(FileSystemEventHandler):
    """Forwards filesystem events from a `.git` directory to a scheduler."""

    def __init__(self, scheduler: WatchScheduler):
        super().__init__()
        self.scheduler = scheduler

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        logger.debug(f"Change detected: {event.event_type} {event.src_path}")
        self.scheduler.notify()


def setup_logging(
    watch: bool, verbose: bool = False, config: Config | None = None
) -> None:
    """Configures the logging subsystem.

    Args:
        watch (bool):   If True, logs to stderr and to a rotating file.
                        If False, logs to stdout only.
        verbose (bool): Whether to emit debug messages.
        config (Config | None): Supplies the log rotation size.
    """
    config = config or Config()
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    stream_handler = logging.StreamHandler(sys.stderr if watch else sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if watch:
        try:
            STATE_DIR.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_FILE,
                maxBytes=config.limits.max_log_size,
                backupCount=5,
            )
        except OSError as e:
            logger.warning(f"Could not open log file {LOG_FILE}: {e}")
            return
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def _sync_cycle(pipeline: SyncPipeline, source_dir: Path, target_dir: Path) -> None:
    """Runs one pipeline cycle, reporting cycle-level failures without raising."""
    try:
        pipeline.run(source_dir, target_dir)
    except ResolutionError as e:
        logger.error(f"RESOLVE ERROR {source_dir.name}: {e}")
    except MirrorError as e:
        logger.error(f"SYNC ERROR {source_dir.name}: {e}")


def run_watch(
    source_dir: Path,
    target_dir: Path,
    config: Config,
    pipeline: SyncPipeline | None = None,
) -> None:
    """The continuous watch loop.

    Observes `<source_dir>/.git` and re-runs the pipeline after each debounced
    burst of changes, until interrupted.

    Args:
        source_dir (Path): The source repository root.
        target_dir (Path): The target directory.
        config (Config): Loaded configuration.
        pipeline (SyncPipeline | None): The pipeline to drive. Defaults to one
                                        built from `config`.
    """
    pipeline = pipeline or SyncPipeline(config)
    git_dir = source_dir / ".git"

    scheduler = WatchScheduler(
        lambda: _sync_cycle(pipeline, source_dir, target_dir),
        debounce=config.watch.debounce,
    )

    observer = Observer()
    observer.schedule(GitDirEventHandler(scheduler), str(git_dir), recursive=True)

    def terminate_handler(_signum: int, _frame: FrameType | None) -> None:
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, terminate_handler)

    observer.start()
    console.print(
        f"\nWatching for changes in [cyan]{git_dir}[/cyan]. Press Ctrl+C to stop.\n"
    )
    if config.watch.run_on_start:
        scheduler.notify()

    try:
        while observer.is_alive():
            observer.join(1)
    except KeyboardInterrupt:
        logger.info("Watch stopped.")
    finally:
        scheduler.stop()
        observer.stop()
        observer.join()
