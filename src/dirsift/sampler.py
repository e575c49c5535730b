"""Bounded filesystem enumeration.

Walks a root with os.scandir, skipping hidden entries and treating
bundle-like directories (Foo.app, Bar.framework) as opaque leaves. The walk
never raises for filesystem errors; it counts what it could not read and
stops cleanly when the entry ceiling is hit or the cancel event is set.
"""

import os
import threading
from pathlib import Path
from typing import Iterator, NamedTuple, Optional

# Directories macOS presents as single documents; never walked into
PACKAGE_SUFFIXES = frozenset(
    {
        ".app",
        ".appex",
        ".bundle",
        ".framework",
        ".kext",
        ".plugin",
        ".prefpane",
        ".pkg",
        ".mpkg",
        ".photoslibrary",
        ".musiclibrary",
        ".tvlibrary",
        ".xcarchive",
        ".xcodeproj",
        ".xcworkspace",
        ".playground",
        ".logarchive",
        ".rtfd",
        ".sparsebundle",
    }
)


class SampledEntry(NamedTuple):
    """One filesystem entry produced by the walk."""

    path: str
    is_dir: bool
    size: int
    mtime: Optional[float]
    depth: int
    descended: bool  # True when the walk also yields this directory's contents


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def is_package(name: str) -> bool:
    """Check if a directory name looks like a bundle."""
    return os.path.splitext(name)[1].lower() in PACKAGE_SUFFIXES


class FileSystemSampler:
    """Lazy, bounded, interruptible walk beneath one root."""

    def __init__(
        self,
        root: str | Path,
        max_depth: int = 4,
        max_entries: int = 100_000,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.root = Path(root)
        self.max_depth = max_depth
        self.max_entries = max_entries
        self.cancel_event = cancel_event
        self.visited = 0
        self.skipped = 0
        self.truncated = False
        self.cancelled = False

    @property
    def stopped(self) -> bool:
        return self.truncated or self.cancelled

    def entries(self) -> Iterator[SampledEntry]:
        """Yield entries beneath the root, depth-first."""
        yield from self._walk(self.root, 1)

    def batches(self, size: int) -> Iterator[list[SampledEntry]]:
        """Group entries into lists of at most ``size`` items."""
        batch: list[SampledEntry] = []
        for entry in self.entries():
            batch.append(entry)
            if len(batch) >= size:
                yield batch
                batch = []
        if batch:
            yield batch

    def _walk(self, directory: Path | str, depth: int) -> Iterator[SampledEntry]:
        try:
            with os.scandir(directory) as it:
                for entry in it:
                    if self.cancel_event is not None and self.cancel_event.is_set():
                        self.cancelled = True
                        return
                    if is_hidden(entry.name):
                        continue
                    if self.visited >= self.max_entries:
                        self.truncated = True
                        return

                    try:
                        is_dir = entry.is_dir(follow_symlinks=False)
                        if not is_dir and not entry.is_file(follow_symlinks=False):
                            # Symlinks, sockets, devices
                            continue
                        stat = entry.stat(follow_symlinks=False)
                    except OSError:
                        self.skipped += 1
                        continue

                    descend = is_dir and depth < self.max_depth and not is_package(entry.name)
                    self.visited += 1
                    yield SampledEntry(
                        path=entry.path,
                        is_dir=is_dir,
                        size=0 if is_dir else stat.st_size,
                        mtime=stat.st_mtime,
                        depth=depth,
                        descended=descend,
                    )

                    if descend:
                        yield from self._walk(entry.path, depth + 1)
                        if self.stopped:
                            return
        except OSError:
            self.skipped += 1


def sum_directory(
    path: str | Path,
    max_entries: int = 10_000,
    cancel_event: Optional[threading.Event] = None,
) -> tuple[int, int, bool]:
    """
    Sum every file beneath a directory the main walk does not descend.

    Args:
        path: Directory to sum
        max_entries: Ceiling on entries visited
        cancel_event: Checked between entries

    Returns:
        Tuple of (total_bytes, file_count, truncated)
    """
    total_size = 0
    file_count = 0
    visited = 0
    stack = [str(path)]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    if cancel_event is not None and cancel_event.is_set():
                        return total_size, file_count, True
                    if is_hidden(entry.name):
                        continue
                    if visited >= max_entries:
                        return total_size, file_count, True
                    visited += 1
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total_size += entry.stat(follow_symlinks=False).st_size
                            file_count += 1
                        elif entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                    except OSError:
                        continue
        except OSError:
            continue

    return total_size, file_count, False
