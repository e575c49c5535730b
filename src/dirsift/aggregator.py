"""Batch aggregation of sampled entries into a DirectoryInfo."""

import asyncio
import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from dirsift.config import ScanConfig
from dirsift.models import DirectoryInfo, FileRecord, format_size
from dirsift.sampler import FileSystemSampler, SampledEntry, sum_directory
from dirsift.state import AnalysisState

log = logging.getLogger(__name__)

SamplerFactory = Callable[..., FileSystemSampler]


class StopSignal:
    """Set when the session is cancelled or this one run is abandoned."""

    def __init__(self, session: Optional[threading.Event] = None) -> None:
        self._session = session
        self._local = threading.Event()

    def set(self) -> None:
        self._local.set()

    def is_set(self) -> bool:
        if self._local.is_set():
            return True
        return self._session is not None and self._session.is_set()


@dataclass
class BatchOutcome:
    size: int = 0
    file_count: int = 0
    files: list[FileRecord] = field(default_factory=list)
    nested_truncated: bool = False
    abandoned: bool = False


class DirectoryAggregator:
    """Sums a root's files batch by batch, reporting progress to the state."""

    def __init__(
        self,
        state: AnalysisState,
        config: Optional[ScanConfig] = None,
        sampler_factory: SamplerFactory = FileSystemSampler,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.state = state
        self.config = config or ScanConfig()
        self.sampler_factory = sampler_factory
        self.cancel_event = cancel_event or threading.Event()
        self.last_files: list[FileRecord] = []
        self.last_signal: Optional[StopSignal] = None

    async def aggregate(
        self,
        root: str,
        max_depth: int,
        max_entries: int,
        record_files: bool = False,
    ) -> DirectoryInfo:
        """
        Aggregate everything beneath root within the given limits.

        Args:
            root: Path to aggregate
            max_depth: Levels the walk descends before summing directories whole
            max_entries: Entry ceiling for the walk
            record_files: Keep a FileRecord per file in ``last_files``

        Returns:
            DirectoryInfo with truncated=True when any limit or a cancellation
            cut the walk short
        """
        root_path = Path(root)
        if root_path.is_file():
            return _single_file_info(root_path)

        signal = StopSignal(self.cancel_event)
        self.last_signal = signal
        sampler = self.sampler_factory(
            root, max_depth=max_depth, max_entries=max_entries, cancel_event=signal
        )
        batches = sampler.batches(self.config.batch_size)

        total_size = 0
        file_count = 0
        files: list[FileRecord] = []
        nested_truncated = False
        abandoned = False
        batch_number = 0

        try:
            while True:
                outcome = await asyncio.to_thread(self._process_next, batches, signal, record_files)
                if outcome is None:
                    break
                if outcome.abandoned:
                    abandoned = True
                    break

                total_size += outcome.size
                file_count += outcome.file_count
                files.extend(outcome.files)
                nested_truncated = nested_truncated or outcome.nested_truncated
                self.state.add_analyzed(outcome.size)

                batch_number += 1
                if batch_number % 20 == 0:
                    log.debug(
                        "Processed %d files in %s (%s)", file_count, root, format_size(total_size)
                    )

                if signal.is_set():
                    abandoned = True
                    break

                await asyncio.sleep(0)
                if self.config.batch_delay:
                    await asyncio.sleep(self.config.batch_delay)
        except asyncio.CancelledError:
            # The worker thread sees this at its next entry and stops
            signal.set()
            raise

        if sampler.truncated:
            self.state.add_log(
                f"Entry limit reached for {root} ({max_entries} entries); "
                f"size {format_size(total_size)} is a lower bound",
                logging.WARNING,
            )
        if nested_truncated:
            self.state.add_log(
                f"Nested entry limit reached under {root}; size is a lower bound",
                logging.WARNING,
            )
        if abandoned or sampler.cancelled:
            self.state.add_log(f"Scan of {root} interrupted; keeping partial result", logging.WARNING)
        if sampler.skipped:
            log.debug("Skipped %d unreadable entries under %s", sampler.skipped, root)

        self.last_files = files
        return DirectoryInfo(
            path=str(root),
            size=total_size,
            file_count=file_count,
            truncated=sampler.truncated or nested_truncated or abandoned or sampler.cancelled,
        )

    def _process_next(
        self,
        batches: Iterator[list[SampledEntry]],
        signal: StopSignal,
        record_files: bool,
    ) -> Optional[BatchOutcome]:
        """Pull and sum one batch. Runs in a worker thread."""
        batch = next(batches, None)
        if batch is None:
            return None

        outcome = BatchOutcome()
        for entry in batch:
            if signal.is_set():
                return BatchOutcome(abandoned=True)

            if entry.is_dir:
                # Descended directories arrive through the walk itself
                if entry.descended:
                    continue
                size, count, truncated = sum_directory(
                    entry.path, self.config.nested_max_entries, signal
                )
                outcome.size += size
                outcome.file_count += count
                outcome.nested_truncated = outcome.nested_truncated or truncated
            else:
                outcome.size += entry.size
                outcome.file_count += 1
                if record_files:
                    outcome.files.append(
                        FileRecord(
                            path=entry.path,
                            size=entry.size,
                            last_modified=_to_datetime(entry.mtime),
                        )
                    )

        if signal.is_set():
            return BatchOutcome(abandoned=True)
        return outcome


def expand_directory(
    path: str,
    max_entries: int = 10_000,
    cancel_event: Optional[threading.Event] = None,
) -> DirectoryInfo:
    """
    Build a DirectoryInfo for path with one level of children populated.

    Each child directory is summed with its own entry ceiling; files directly
    inside path count toward the total but are not listed as children.

    Args:
        path: Directory to expand
        max_entries: Entry ceiling per child
        cancel_event: Checked between entries

    Returns:
        DirectoryInfo whose subdirectories are sorted by size, largest first
    """
    children: list[DirectoryInfo] = []
    loose_size = 0
    loose_files = 0
    truncated = False

    try:
        with os.scandir(path) as it:
            entries = [e for e in it if not e.name.startswith(".")]
    except OSError as e:
        return DirectoryInfo(path=str(path), error=str(e), last_modified=_mtime_of(path))

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                size, count, child_truncated = sum_directory(entry.path, max_entries, cancel_event)
                truncated = truncated or child_truncated
                children.append(
                    DirectoryInfo(
                        path=entry.path,
                        size=size,
                        file_count=count,
                        last_modified=_to_datetime(entry.stat(follow_symlinks=False).st_mtime),
                        truncated=child_truncated,
                    )
                )
            elif entry.is_file(follow_symlinks=False):
                loose_size += entry.stat(follow_symlinks=False).st_size
                loose_files += 1
        except OSError:
            continue

    children.sort(key=lambda c: c.size, reverse=True)
    return DirectoryInfo(
        path=str(path),
        size=loose_size + sum(c.size for c in children),
        file_count=loose_files + sum(c.file_count for c in children),
        subdirectories=children,
        last_modified=_mtime_of(path),
        truncated=truncated,
    )


def _mtime_of(path: str | Path) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(os.stat(path).st_mtime)
    except OSError:
        return None


def _to_datetime(mtime: Optional[float]) -> Optional[datetime]:
    return datetime.fromtimestamp(mtime) if mtime is not None else None


def _single_file_info(path: Path) -> DirectoryInfo:
    try:
        stat = os.stat(path, follow_symlinks=False)
    except OSError as e:
        return DirectoryInfo(path=str(path), error=str(e))
    return DirectoryInfo(
        path=str(path),
        size=stat.st_size,
        file_count=1,
        last_modified=datetime.fromtimestamp(stat.st_mtime),
    )
