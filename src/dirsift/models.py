"""Data models for dirsift."""

from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units like macOS)."""
    if size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"


def local_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


class RiskLevel(str, Enum):
    """Caution label for a recommendation, ordered from safe to critical."""

    SAFE = "safe"  # Regenerated automatically
    LOW = "low"  # Regenerated, but with a cost (re-download, re-index)
    MEDIUM = "medium"  # User judgment needed
    HIGH = "high"  # Likely data loss
    CRITICAL = "critical"  # Never delete

    @property
    def rank(self) -> int:
        """Position in the caution ordering (0 = safe)."""
        return _RISK_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_ORDER = [
    RiskLevel.SAFE,
    RiskLevel.LOW,
    RiskLevel.MEDIUM,
    RiskLevel.HIGH,
    RiskLevel.CRITICAL,
]


class CleanupCategory(str, Enum):
    """What kind of data a recommendation is about."""

    CACHE = "cache"
    LOGS = "logs"
    DOWNLOADS = "downloads"
    DUPLICATES = "duplicates"
    TEMPORARY = "temporary"
    OLD_FILES = "old_files"
    APPLICATIONS = "applications"
    ORPHANED = "orphaned"  # Data left behind by an uninstalled application
    OTHER = "other"


class ScanStatus(str, Enum):
    """Lifecycle of one scan session."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class DirectoryInfo(BaseModel):
    """Aggregated size information for one scanned path."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Absolute filesystem path")
    size: int = Field(0, ge=0, description="Total bytes found within the scan limits")
    file_count: int = Field(0, ge=0, description="Number of files counted toward size")
    subdirectories: list["DirectoryInfo"] = Field(
        default_factory=list,
        description="Immediate children, only populated when explicitly expanded",
    )
    last_modified: Optional[datetime] = Field(
        None, description="Modification time, None when not computed"
    )
    truncated: bool = Field(
        False, description="True when a limit cut the walk short (size is a lower bound)"
    )
    error: Optional[str] = Field(None, description="Error message if the scan failed")

    @property
    def name(self) -> str:
        """Last path component."""
        return PurePosixPath(self.path).name or self.path

    @property
    def size_human(self) -> str:
        """Human-readable size string (decimal units like macOS)."""
        return format_size(self.size)


class FileRecord(BaseModel):
    """Lightweight descriptor of a file seen during aggregation."""

    path: str
    size: int
    last_modified: Optional[datetime] = None


class CleanupRecommendation(BaseModel):
    """Verdict on whether a directory can be cleaned up."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path the recommendation is about")
    size: int = Field(..., description="Size in bytes, copied from the DirectoryInfo")
    is_deletable: bool = Field(..., description="Whether deletion is recommended")
    reason: str = Field(..., description="Human-readable justification")
    category: CleanupCategory
    risk: RiskLevel

    @property
    def size_human(self) -> str:
        return format_size(self.size)


class DetailedRecommendation(BaseModel):
    """Per-item recommendation produced by a system folder analysis."""

    title: str
    path: Optional[str] = None
    size: int = 0
    is_deletable: bool = False
    risk: RiskLevel
    category: CleanupCategory = CleanupCategory.OTHER
    description: str = ""
    age_days: Optional[int] = Field(None, description="Days since last modification")
    deletable_fraction: float = Field(
        0.0, ge=0.0, le=1.0, description="Share of size counted as reclaimable"
    )

    @property
    def deletable_size(self) -> int:
        return int(self.size * self.deletable_fraction)

    @property
    def size_human(self) -> str:
        return format_size(self.size)


class SystemFolderAnalysis(BaseModel):
    """Breakdown of a well-known system folder."""

    path: str
    total_size: int = 0
    deletable_size: int = 0
    breakdown: dict[str, int] = Field(
        default_factory=dict, description="Sub-category label -> bytes"
    )
    recommendations: list[DetailedRecommendation] = Field(default_factory=list)
    summary: str = ""
    installed_apps_checked: int = 0
    available: bool = Field(True, description="False when no child data could be gathered")

    @property
    def deletable_percent(self) -> float:
        """Share of total size that is estimated reclaimable."""
        if self.total_size <= 0:
            return 0.0
        return self.deletable_size / self.total_size * 100


class DiskUsage(BaseModel):
    """Overall disk usage information."""

    total_bytes: int = Field(..., description="Total disk size in bytes")
    used_bytes: int = Field(..., description="Used space in bytes")
    free_bytes: int = Field(..., description="Free space in bytes")
    mount_point: str = Field("/", description="Mount point")

    @property
    def total_gb(self) -> float:
        """Total size in GB (decimal, like macOS)."""
        return self.total_bytes / (1000**3)

    @property
    def used_gb(self) -> float:
        """Used space in GB (decimal, like macOS)."""
        return self.used_bytes / (1000**3)

    @property
    def free_gb(self) -> float:
        """Free space in GB (decimal, like macOS)."""
        return self.free_bytes / (1000**3)

    @property
    def used_percent(self) -> float:
        """Percentage of disk used."""
        return (self.used_bytes / self.total_bytes) * 100 if self.total_bytes > 0 else 0


class VolumeInfo(BaseModel):
    """A mounted volume and, once analyzed, its directory results."""

    path: str
    name: str
    total_bytes: int = 0
    free_bytes: int = 0
    is_removable: bool = False
    directories: list[DirectoryInfo] = Field(default_factory=list)

    @property
    def used_bytes(self) -> int:
        return max(self.total_bytes - self.free_bytes, 0)


class AnalysisSnapshot(BaseModel):
    """Immutable copy of the analysis state handed to observers."""

    model_config = ConfigDict(frozen=True)

    status: ScanStatus = ScanStatus.IDLE
    total_size: int = 0
    used_size: int = 0
    free_size: int = 0
    analyzed_size: int = 0
    analyzed_percent: float = 0.0
    is_analyzing: bool = False
    current_directory: str = ""
    directories: dict[str, DirectoryInfo] = Field(default_factory=dict)
    logs: list[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def truncated_roots(self) -> list[str]:
        """Roots whose totals are lower bounds."""
        return [path for path, info in self.directories.items() if info.truncated]


class DeleteErrorKind(str, Enum):
    """Why a delete request failed."""

    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    IN_USE = "in_use"
    BLOCKED = "blocked"
    OTHER = "other"


class DeleteResult(BaseModel):
    """Result of a delete request."""

    path: str = Field(..., description="Path that was deleted")
    success: bool = Field(True, description="Whether the delete succeeded")
    bytes_freed: int = Field(0, description="Bytes freed (or moved to trash)")
    trashed: bool = Field(False, description="Moved to the trash instead of removed")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_kind: Optional[DeleteErrorKind] = None

    @property
    def needs_elevation(self) -> bool:
        return self.error_kind == DeleteErrorKind.PERMISSION_DENIED
