"""Scan session orchestration for dirsift."""

import asyncio
import logging
import os
import shutil
import subprocess
import threading
import time
from typing import Callable, Optional

from dirsift.aggregator import DirectoryAggregator, expand_directory
from dirsift.config import ScanConfig
from dirsift.models import (
    AnalysisSnapshot,
    DirectoryInfo,
    DiskUsage,
    ScanStatus,
    VolumeInfo,
    format_size,
)
from dirsift.state import AnalysisState

log = logging.getLogger(__name__)


def get_disk_usage(mount_point: str = "/") -> DiskUsage:
    """
    Get overall disk usage for a mount point.

    Uses APFS container size to match macOS System Settings.

    Args:
        mount_point: Mount point to check (default: /)

    Returns:
        DiskUsage with total, used, and free bytes

    Raises:
        OSError: If the capacity cannot be read at all
    """
    # Try to get APFS container size (matches macOS System Settings)
    try:
        result = subprocess.run(
            ["diskutil", "info", mount_point],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode == 0:
            total_bytes = None
            free_bytes = None

            for line in result.stdout.split("\n"):
                # "Container Total Space:     245.1 GB (245107195904 Bytes)"
                if "Container Total Space:" in line:
                    total_bytes = _parse_diskutil_bytes(line)
                elif "Container Free Space:" in line:
                    free_bytes = _parse_diskutil_bytes(line)

            if total_bytes and free_bytes:
                return DiskUsage(
                    total_bytes=total_bytes,
                    used_bytes=total_bytes - free_bytes,
                    free_bytes=free_bytes,
                    mount_point=mount_point,
                )
    except (OSError, subprocess.SubprocessError):
        pass

    # Fallback to shutil (works on non-APFS systems)
    usage = shutil.disk_usage(mount_point)
    return DiskUsage(
        total_bytes=usage.total,
        used_bytes=usage.used,
        free_bytes=usage.free,
        mount_point=mount_point,
    )


def _parse_diskutil_bytes(line: str) -> Optional[int]:
    parts = line.split("(")
    if len(parts) < 2:
        return None
    try:
        return int(parts[1].split()[0])
    except (IndexError, ValueError):
        return None


class ScanOrchestrator:
    """Runs a scan session across roots, one root at a time.

    Each root is aggregated under its own timeout; a timed-out or failing root
    is recorded as an empty result and the session moves on. ``cancel_analysis``
    stops the session before the next root (and the current walk within one
    batch) while keeping everything gathered so far.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        state: Optional[AnalysisState] = None,
        aggregator: Optional[DirectoryAggregator] = None,
        disk_usage_fn: Optional[Callable[[], DiskUsage]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.config = config or ScanConfig()
        self.state = state or AnalysisState(max_logs=self.config.max_logs)
        self.cancel_event = cancel_event or threading.Event()
        self.aggregator = aggregator or DirectoryAggregator(
            self.state, self.config, cancel_event=self.cancel_event
        )
        self.disk_usage_fn = disk_usage_fn or get_disk_usage

    @property
    def status(self) -> ScanStatus:
        return self.state.status

    def cancel_analysis(self) -> None:
        """Request cancellation; safe to call from any thread or a signal handler.

        Only the shared event is touched here. The session logs the
        cancellation from its own loop once it observes the event.
        """
        self.cancel_event.set()

    def run(self, roots: Optional[list[str]] = None) -> AnalysisSnapshot:
        """Run a full session synchronously."""
        return asyncio.run(self.start_analysis(roots))

    async def start_analysis(self, roots: Optional[list[str]] = None) -> AnalysisSnapshot:
        """
        Scan every root in order and return the final state.

        The session always ends in COMPLETED, CANCELLED or FAILED, even when
        the task running it is cancelled or an unexpected error escapes.

        Args:
            roots: Roots to scan, defaults to the configured/default list

        Returns:
            Snapshot of the state when the session ended
        """
        if self.state.is_analyzing:
            raise RuntimeError("An analysis is already running")

        self.cancel_event.clear()
        self.state.begin()
        try:
            return await self._run_session(roots)
        except asyncio.CancelledError:
            self.cancel_event.set()
            if self.state.is_analyzing:
                self.state.add_log("Analysis interrupted", logging.WARNING)
                self.state.finish(ScanStatus.CANCELLED)
            raise
        except Exception as e:
            if self.state.is_analyzing:
                log.exception("Analysis session failed")
                self.state.add_log(f"Analysis failed: {e}", logging.ERROR)
                self.state.finish(ScanStatus.FAILED, error=str(e))
            raise

    async def _run_session(self, roots: Optional[list[str]]) -> AnalysisSnapshot:
        self.state.add_log("Starting disk analysis")

        try:
            usage = await asyncio.to_thread(self.disk_usage_fn)
        except (OSError, ValueError) as e:
            self.state.add_log(f"Cannot read disk capacity: {e}", logging.ERROR)
            self.state.finish(ScanStatus.FAILED, error=str(e))
            return self.state.snapshot()

        self.state.set_capacity(usage)
        self.state.add_log(f"Disk size: {format_size(usage.total_bytes)}")
        self.state.add_log(f"Used: {format_size(usage.used_bytes)} ({usage.used_percent:.1f}%)")
        self.state.add_log(f"Free: {format_size(usage.free_bytes)}")

        roots = roots if roots is not None else self.config.resolved_roots()
        for index, root in enumerate(roots):
            if self.cancel_event.is_set():
                break
            if index and self.config.root_delay:
                await asyncio.sleep(self.config.root_delay)
                if self.cancel_event.is_set():
                    break
            await self._scan_root(root)

        if self.cancel_event.is_set():
            self.state.add_log("Analysis cancelled by user")
            self.state.finish(ScanStatus.CANCELLED)
        else:
            self.state.add_log("Analysis complete")
            self.state.finish(ScanStatus.COMPLETED)
        return self.state.snapshot()

    async def analyze_volume(self, volume: VolumeInfo) -> VolumeInfo:
        """Scan a volume's mount path with the same per-root policy."""
        info = await self._scan_root(volume.path)
        return volume.model_copy(update={"directories": [info] if info else []})

    async def expand_root(self, path: str) -> DirectoryInfo:
        """One-level breakdown of path with populated subdirectories."""
        return await asyncio.to_thread(
            expand_directory, path, self.config.nested_max_entries, self.cancel_event
        )

    async def _scan_root(self, root: str) -> Optional[DirectoryInfo]:
        if not os.path.exists(root):
            self.state.add_log(f"Directory does not exist: {root}", logging.WARNING)
            return None

        deep = self.config.is_deep_root(root)
        depth = self.config.depth_for(root)
        limit = self.config.entry_limit_for(root)
        timeout = self.config.timeout_for(root)

        self.state.set_current(root)
        self.state.add_log(f"Analyzing {root} ({'deep' if deep else 'shallow'}, depth {depth})")
        started = time.monotonic()
        counted_before = self.state.analyzed_size

        try:
            info = await asyncio.wait_for(
                self.aggregator.aggregate(root, max_depth=depth, max_entries=limit),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            elapsed = time.monotonic() - started
            self.state.add_log(
                f"Timed out after {elapsed:.1f}s: {root} skipped (limit {timeout:g}s)",
                logging.WARNING,
            )
            info = DirectoryInfo(path=root, truncated=True, error="timed out")
        except Exception as e:
            log.exception("Scan of %s failed", root)
            self.state.add_log(f"Error analyzing {root}: {e}", logging.WARNING)
            info = DirectoryInfo(path=root, truncated=True, error=str(e))
        else:
            elapsed = time.monotonic() - started
            self.state.add_log(
                f"{root}: {info.size_human} ({info.file_count} files) in {elapsed:.1f}s"
            )

        # Progress keeps the batches a failed root reported; its record stays empty
        unattributed = self.state.analyzed_size - counted_before - info.size
        if info.error and unattributed > 0:
            self.state.add_log(
                f"{format_size(unattributed)} counted in progress from {root} "
                "is not attributed to any directory",
                logging.WARNING,
            )

        self.state.record_directory(root, info)
        return info
