"""Progress state for a scan session."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional

from dirsift.models import AnalysisSnapshot, DirectoryInfo, DiskUsage, ScanStatus, format_size

log = logging.getLogger(__name__)

Subscriber = Callable[[AnalysisSnapshot], None]


@dataclass
class AnalysisState:
    """Mutable progress state, written only by the orchestrator.

    Observers either poll ``snapshot()`` or ``subscribe()`` to receive an
    immutable ``AnalysisSnapshot`` after every change.
    """

    max_logs: int = 300
    status: ScanStatus = ScanStatus.IDLE
    total_size: int = 0
    used_size: int = 0
    free_size: int = 0
    analyzed_size: int = 0
    analyzed_percent: float = 0.0
    current_directory: str = ""
    directories: dict[str, DirectoryInfo] = field(default_factory=dict)
    error: Optional[str] = None
    logs: deque = field(init=False, repr=False)
    _subscribers: list[Subscriber] = field(default_factory=list, repr=False)
    _overage_reported: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        self.logs = deque(maxlen=self.max_logs)

    @property
    def is_analyzing(self) -> bool:
        return self.status == ScanStatus.RUNNING

    def begin(self) -> None:
        """Reset accumulators and enter the running state."""
        self.analyzed_size = 0
        self.analyzed_percent = 0.0
        self.current_directory = ""
        self.directories = {}
        self.error = None
        self.logs.clear()
        self._overage_reported = False
        self.status = ScanStatus.RUNNING
        self._notify()

    def finish(self, status: ScanStatus, error: Optional[str] = None) -> None:
        self.status = status
        if error:
            self.error = error
        self.current_directory = ""
        self._notify()

    def set_capacity(self, usage: DiskUsage) -> None:
        self.total_size = usage.total_bytes
        self.used_size = usage.used_bytes
        self.free_size = usage.free_bytes
        self._notify()

    def set_current(self, path: str) -> None:
        self.current_directory = path
        self._notify()

    def add_analyzed(self, size: int) -> None:
        """Add a finished batch to the running total."""
        if size <= 0:
            return
        self.analyzed_size += size
        self._update_percent()
        self._notify()

    def record_directory(self, path: str, info: DirectoryInfo) -> None:
        self.directories[path] = info
        self._notify()

    def add_log(self, message: str, level: int = logging.INFO) -> None:
        """Append to the bounded log channel (oldest lines are evicted)."""
        self.logs.append(message)
        log.log(level, message)
        self._notify()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> AnalysisSnapshot:
        return AnalysisSnapshot(
            status=self.status,
            total_size=self.total_size,
            used_size=self.used_size,
            free_size=self.free_size,
            analyzed_size=self.analyzed_size,
            analyzed_percent=self.analyzed_percent,
            is_analyzing=self.is_analyzing,
            current_directory=self.current_directory,
            directories=dict(self.directories),
            logs=list(self.logs),
            error=self.error,
        )

    def _update_percent(self) -> None:
        if self.used_size <= 0:
            return
        percent = self.analyzed_size / self.used_size * 100
        if percent > 100:
            if not self._overage_reported:
                self._overage_reported = True
                self.add_log(
                    f"Analyzed {format_size(self.analyzed_size)} exceeds used space "
                    f"{format_size(self.used_size)}; progress capped at 100%",
                    logging.WARNING,
                )
            percent = 100.0
        self.analyzed_percent = percent

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            callback(snapshot)
