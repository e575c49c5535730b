"""Detailed breakdowns of well-known macOS system folders."""

import logging
import os
import plistlib
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional
from xml.parsers.expat import ExpatError

from dirsift.aggregator import expand_directory
from dirsift.config import expand_path
from dirsift.models import (
    CleanupCategory,
    DetailedRecommendation,
    DirectoryInfo,
    RiskLevel,
    SystemFolderAnalysis,
    format_size,
    local_naive,
)
from dirsift.sampler import sum_directory

log = logging.getLogger(__name__)

APP_DIRECTORIES = ["/Applications", "~/Applications", "/System/Applications"]

# Bundle-id fragments that say nothing about which app owns a folder
GENERIC_TOKENS = frozenset(
    {"com", "org", "net", "io", "co", "de", "uk", "app", "apps", "mac", "macos", "osx",
     "inc", "ltd", "helper", "plugin", "data", "support"}
)
MIN_TOKEN_LENGTH = 3

OLD_LOG_DAYS = 7
VERY_OLD_LOG_DAYS = 30
STALE_APP_DATA_DAYS = 365
TOP_APP_SUPPORT_ITEMS = 50


def read_bundle_identifier(app_path: Path) -> Optional[str]:
    """Read CFBundleIdentifier from an app bundle's Info.plist."""
    info_plist = app_path / "Contents" / "Info.plist"
    try:
        with open(info_plist, "rb") as f:
            plist = plistlib.load(f)
    except (OSError, ValueError, ExpatError, plistlib.InvalidFileException):
        return None
    bundle_id = plist.get("CFBundleIdentifier") if isinstance(plist, dict) else None
    return bundle_id if isinstance(bundle_id, str) else None


def find_app_bundles(root: Path, max_depth: int = 3) -> Iterator[Path]:
    """Find *.app bundles beneath root without walking into them."""
    if max_depth <= 0:
        return
    try:
        with os.scandir(root) as entries:
            for entry in entries:
                try:
                    if not entry.is_dir(follow_symlinks=False) or entry.name.startswith("."):
                        continue
                except OSError:
                    continue
                if entry.name.endswith(".app"):
                    yield Path(entry.path)
                else:
                    yield from find_app_bundles(Path(entry.path), max_depth - 1)
    except OSError:
        return


class InstalledAppCatalog:
    """Lower-cased names and bundle identifiers of installed applications.

    Built once on first use and kept until ``invalidate()``. Pass ``names``
    to use a fixed snapshot instead of scanning the disk.
    """

    def __init__(
        self,
        search_dirs: Optional[list[str]] = None,
        names: Optional[list[str]] = None,
    ) -> None:
        self.search_dirs = [expand_path(d) for d in (search_dirs or APP_DIRECTORIES)]
        self._fixed = names is not None
        self._apps: Optional[frozenset[str]] = (
            frozenset(n.lower() for n in names) if names is not None else None
        )
        self._lock = threading.Lock()

    def apps(self) -> frozenset[str]:
        apps = self._apps
        if apps is not None:
            return apps
        with self._lock:
            if self._apps is None:
                self._apps = self._scan()
            return self._apps

    def invalidate(self) -> None:
        """Drop the snapshot so the next lookup rescans."""
        if self._fixed:
            return
        with self._lock:
            self._apps = None

    def is_orphaned(self, directory_name: str) -> bool:
        """
        Check if a folder name matches no installed application.

        Matches the full name first, then every dot-separated token of it
        against each app name or bundle id, substring either way.
        """
        name = directory_name.lower()
        if name.startswith("com.apple.") or name.startswith("apple"):
            return False

        apps = self.apps()
        if name in apps:
            return False

        tokens = [
            t for t in name.split(".") if len(t) >= MIN_TOKEN_LENGTH and t not in GENERIC_TOKENS
        ]
        for token in tokens:
            for app in apps:
                if token in app or (len(app) >= MIN_TOKEN_LENGTH and app in token):
                    return False
        return True

    def _scan(self) -> frozenset[str]:
        found: set[str] = set()
        for base in self.search_dirs:
            if not base.is_dir():
                continue
            for bundle in find_app_bundles(base):
                found.add(bundle.stem.lower())
                bundle_id = read_bundle_identifier(bundle)
                if bundle_id:
                    found.add(bundle_id.lower())
        log.info("Found %d installed application names and bundle ids", len(found))
        return frozenset(found)


def format_age(days: int) -> str:
    """Format an age in days as days, months or years."""
    if days < 30:
        return f"{days} days"
    elif days < 365:
        return f"{days // 30} months"
    years = days // 365
    months = (days % 365) // 30
    if months:
        return f"{years} years {months} months"
    return f"{years} years"


@dataclass(frozen=True)
class FolderRule:
    """How one well-known child of a system folder is treated."""

    names: tuple[str, ...]
    label: str
    fraction: float
    is_deletable: bool
    risk: RiskLevel
    category: CleanupCategory
    description: str
    title: Optional[str] = None


ROOT_LIBRARY_RULES = [
    FolderRule(("caches",), "Cache files", 0.95, True, RiskLevel.SAFE, CleanupCategory.CACHE,
               "System caches. Safe to delete; the system recreates them.", "Caches"),
    FolderRule(("logs",), "System logs", 0.8, True, RiskLevel.LOW, CleanupCategory.LOGS,
               "System logs. Old logs can be deleted.", "Logs"),
    FolderRule(("application support",), "Application data", 0.2, False, RiskLevel.MEDIUM,
               CleanupCategory.OTHER,
               "Data of system-wide applications, settings and plug-ins. Delete caches only.",
               "Application Support"),
    FolderRule(("containers",), "Application containers", 0.3, False, RiskLevel.MEDIUM,
               CleanupCategory.OTHER,
               "Sandbox containers. Only containers of removed apps can go.", "Containers"),
    FolderRule(("frameworks",), "Frameworks", 0.0, False, RiskLevel.CRITICAL, CleanupCategory.OTHER,
               "System frameworks and libraries. Do not delete.", "Frameworks"),
    FolderRule(("extensions",), "System extensions", 0.0, False, RiskLevel.HIGH,
               CleanupCategory.OTHER,
               "Kernel and system extensions. Removing them can break the system.", "Extensions"),
    FolderRule(("launchdaemons", "launchagents"), "Launch services", 0.0, False,
               RiskLevel.CRITICAL, CleanupCategory.OTHER,
               "Background services started at boot or login. Do not delete."),
    FolderRule(("preferences",), "System preferences", 0.0, False, RiskLevel.HIGH,
               CleanupCategory.OTHER, "System-wide settings. Deleting resets them.", "Preferences"),
    FolderRule(("printers",), "Printer drivers", 0.5, False, RiskLevel.MEDIUM,
               CleanupCategory.APPLICATIONS,
               "Printer drivers. Drivers for printers you no longer use can go.", "Printers"),
    FolderRule(("sounds",), "System sounds", 0.0, False, RiskLevel.LOW, CleanupCategory.OTHER,
               "Alert and notification sounds.", "Sounds"),
    FolderRule(("fonts",), "Fonts", 0.0, False, RiskLevel.MEDIUM, CleanupCategory.OTHER,
               "Shared fonts. Removing them can break text rendering.", "Fonts"),
    FolderRule(("keychains",), "Keychains", 0.0, False, RiskLevel.CRITICAL, CleanupCategory.OTHER,
               "System keychains holding passwords and certificates. Do not delete.", "Keychains"),
    FolderRule(("colorpickers", "colorsync"), "Color profiles", 0.0, False, RiskLevel.MEDIUM,
               CleanupCategory.OTHER, "Color pickers and profiles. Affects color rendering."),
    FolderRule(("internet plug-ins", "internet plugins"), "Internet plug-ins", 0.6, False,
               RiskLevel.MEDIUM, CleanupCategory.APPLICATIONS,
               "Browser plug-ins. Outdated ones (Java, Flash) can be removed.", "Internet Plug-Ins"),
    FolderRule(("quicklook",), "Quick Look", 0.0, False, RiskLevel.LOW,
               CleanupCategory.APPLICATIONS, "Quick Look preview plug-ins.", "QuickLook"),
    FolderRule(("spotlight",), "Spotlight indexes", 0.7, True, RiskLevel.LOW,
               CleanupCategory.CACHE,
               "Spotlight importers and indexes. Rebuilt automatically; search is slower meanwhile.",
               "Spotlight"),
    FolderRule(("services",), "System services", 0.0, False, RiskLevel.HIGH, CleanupCategory.OTHER,
               "System services. Removing them can break functionality.", "Services"),
    FolderRule(("widgets",), "Dashboard widgets", 0.8, True, RiskLevel.LOW,
               CleanupCategory.APPLICATIONS,
               "Dashboard widgets, unused on current macOS.", "Widgets"),
    FolderRule(("screen savers",), "Screen savers", 0.0, False, RiskLevel.LOW,
               CleanupCategory.OTHER, "System screen savers.", "Screen Savers"),
    FolderRule(("desktop pictures",), "Desktop pictures", 0.0, False, RiskLevel.LOW,
               CleanupCategory.OTHER, "System wallpapers.", "Desktop Pictures"),
]
ROOT_LIBRARY_FALLBACK = FolderRule(
    (), "Other system files", 0.0, False, RiskLevel.MEDIUM, CleanupCategory.OTHER,
    "System directory. Needs expert review before deleting.",
)

PRIVATE_VAR_RULES = [
    FolderRule(("log",), "System logs", 0.7, True, RiskLevel.LOW, CleanupCategory.LOGS,
               "System logs. Old logs can be deleted (requires administrator rights).",
               "System logs /var/log"),
    FolderRule(("tmp",), "Temporary files", 1.0, True, RiskLevel.SAFE, CleanupCategory.TEMPORARY,
               "Temporary files. Safe to delete.", "Temporary files /var/tmp"),
    FolderRule(("folders",), "System folders", 0.0, False, RiskLevel.CRITICAL,
               CleanupCategory.OTHER, "Per-user system temporary data. Do not delete by hand.",
               "/var/folders"),
]
PRIVATE_VAR_FALLBACK = FolderRule(
    (), "Other system data", 0.0, False, RiskLevel.HIGH, CleanupCategory.OTHER,
    "System directory. Needs expert review.",
)

CACHE_GROUPS = [
    FolderRule(("chrome", "safari", "firefox"), "Browser caches", 1.0, True, RiskLevel.LOW,
               CleanupCategory.CACHE,
               "Browser temporary files. Safe to delete; the browser recreates them.",
               "Browser cache"),
    FolderRule(("xcode", "deriveddata"), "Xcode caches", 1.0, True, RiskLevel.LOW,
               CleanupCategory.CACHE, "DerivedData and Xcode caches. Xcode rebuilds projects.",
               "Xcode"),
    FolderRule(("spotify", "apple music"), "Streaming caches", 0.8, True, RiskLevel.MEDIUM,
               CleanupCategory.CACHE,
               "Cached media. Deleting frees space but tracks must download again.",
               "Streaming cache"),
]
CACHE_FALLBACK = FolderRule(
    (), "Other caches", 0.9, True, RiskLevel.LOW, CleanupCategory.CACHE,
    "Application cache. Usually safe to delete.",
)


class _Breakdown:
    """Accumulates per-child recommendations and category totals."""

    def __init__(self) -> None:
        self.sizes: dict[str, int] = {}
        self.recommendations: list[DetailedRecommendation] = []

    def add(
        self,
        label: str,
        child: DirectoryInfo,
        *,
        title: str,
        risk: RiskLevel,
        category: CleanupCategory,
        is_deletable: bool,
        fraction: float,
        description: str,
        age_days: Optional[int] = None,
    ) -> None:
        self.sizes[label] = self.sizes.get(label, 0) + child.size
        self.recommendations.append(
            DetailedRecommendation(
                title=title,
                path=child.path,
                size=child.size,
                is_deletable=is_deletable,
                risk=risk,
                category=category,
                description=description,
                age_days=age_days,
                deletable_fraction=fraction,
            )
        )

    def add_rule(self, rule: FolderRule, child: DirectoryInfo, title: Optional[str] = None) -> None:
        self.add(
            rule.label,
            child,
            title=title or rule.title or child.name,
            risk=rule.risk,
            category=rule.category,
            is_deletable=rule.is_deletable,
            fraction=rule.fraction,
            description=rule.description,
        )

    @property
    def deletable_size(self) -> int:
        return sum(r.deletable_size for r in self.recommendations)


def _match(rules: list[FolderRule], name: str, fallback: FolderRule, exact: bool) -> FolderRule:
    for rule in rules:
        if exact and name in rule.names:
            return rule
        if not exact and any(token in name for token in rule.names):
            return rule
    return fallback


class SystemFolderAnalyzer:
    """Breaks a well-known system folder down into per-item recommendations."""

    def __init__(
        self,
        catalog: Optional[InstalledAppCatalog] = None,
        now: Optional[datetime] = None,
        max_entries: int = 10_000,
    ) -> None:
        self.catalog = catalog or InstalledAppCatalog()
        self.now = now
        self.max_entries = max_entries

    def analyze(self, path: str, info: Optional[DirectoryInfo] = None) -> SystemFolderAnalysis:
        """
        Analyze a system folder.

        Args:
            path: Folder path; its family picks the rules applied
            info: Scan result for path; children are scanned when it has none

        Returns:
            SystemFolderAnalysis, with available=False when no children
            could be gathered for a family that needs them
        """
        lowered = path.lower().rstrip("/")
        info = info or DirectoryInfo(path=path)

        if "/library/caches" in lowered:
            handler = self._analyze_caches
        elif "/library/logs" in lowered:
            handler = self._analyze_logs
        elif "/library/application support" in lowered:
            handler = self._analyze_application_support
        elif "/library/containers" in lowered:
            handler = self._analyze_containers
        elif lowered == "/library":
            handler = self._analyze_root_library
        elif lowered == "/private/var" or lowered.startswith("/private/var/"):
            handler = self._analyze_private_var
        elif lowered == "/usr" or lowered.startswith("/usr/"):
            return self._analyze_usr(path, info)
        else:
            return SystemFolderAnalysis(
                path=path,
                total_size=info.size,
                summary="General directory information. No specific rules apply.",
            )

        children = self._children(path, info)
        total = info.size or sum(c.size for c in children)
        if not children:
            return SystemFolderAnalysis(
                path=path,
                total_size=total,
                available=False,
                summary=f"No data available for {path}: no readable subdirectories.",
            )

        breakdown, summary, apps_checked = handler(children)
        return SystemFolderAnalysis(
            path=path,
            total_size=total,
            deletable_size=breakdown.deletable_size,
            breakdown=breakdown.sizes,
            recommendations=breakdown.recommendations,
            summary=summary,
            installed_apps_checked=apps_checked,
        )

    def find_old_items(
        self,
        path: str,
        threshold_days: int = STALE_APP_DATA_DAYS,
        max_results: int = 50,
        min_size: int = 1_000_000,
    ) -> list[DetailedRecommendation]:
        """
        List the largest items beneath path not modified for threshold_days.

        Only the first ``max_results * 2`` entries are inspected.
        """
        found: list[DetailedRecommendation] = []
        inspected = 0
        stack = [path]
        while stack and inspected < max_results * 2:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = [e for e in it if not e.name.startswith(".")]
            except OSError:
                continue
            for entry in entries:
                if inspected >= max_results * 2:
                    break
                inspected += 1
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                    stat = entry.stat(follow_symlinks=False)
                except OSError:
                    continue
                age = self._days_since(datetime.fromtimestamp(stat.st_mtime))
                if age < threshold_days:
                    if is_dir:
                        stack.append(entry.path)
                    continue
                if is_dir:
                    size, _, _ = sum_directory(entry.path, self.max_entries)
                else:
                    size = stat.st_size
                if size > min_size:
                    found.append(
                        DetailedRecommendation(
                            title=entry.name,
                            path=entry.path,
                            size=size,
                            is_deletable=False,
                            risk=RiskLevel.MEDIUM,
                            category=CleanupCategory.OLD_FILES,
                            description=f"Not modified for {format_age(age)}. Review before deleting.",
                            age_days=age,
                        )
                    )
        found.sort(key=lambda r: r.size, reverse=True)
        return found[:max_results]

    # -- families -----------------------------------------------------------

    def _analyze_caches(self, children: list[DirectoryInfo]) -> tuple[_Breakdown, str, int]:
        breakdown = _Breakdown()
        for child in children:
            rule = _match(CACHE_GROUPS, child.name.lower(), CACHE_FALLBACK, exact=False)
            title = f"{rule.title}: {child.name}" if rule.title else child.name
            breakdown.add_rule(rule, child, title=title)

        summary = (
            "Cache files speed up applications and are recreated on demand.\n"
            "Deleting them is safe but apps may be slower for a while.\n"
            "Caches older than 30 days can go without a second thought."
        )
        return breakdown, summary, 0

    def _analyze_logs(self, children: list[DirectoryInfo]) -> tuple[_Breakdown, str, int]:
        breakdown = _Breakdown()
        old_size = 0
        very_old_size = 0

        for child in children:
            name = child.name.lower()
            age = self._age_of(child)
            very_old = age is not None and age >= VERY_OLD_LOG_DAYS
            old = age is not None and age >= OLD_LOG_DAYS
            if very_old:
                very_old_size += child.size
            elif old:
                old_size += child.size

            marker = ""
            if very_old:
                marker = f" (older than {VERY_OLD_LOG_DAYS} days)"
            elif old:
                marker = f" (older than {OLD_LOG_DAYS} days)"
            age_note = f" Age: {format_age(age)}." if age is not None else ""

            if "diagnostic" in name or "crash" in name:
                breakdown.add(
                    "Crash reports",
                    child,
                    title=f"Crash reports: {child.name}{marker}",
                    risk=RiskLevel.SAFE,
                    category=CleanupCategory.LOGS,
                    is_deletable=True,
                    fraction=0.9,
                    description=f"Application crash reports.{age_note} Delete if nothing is misbehaving.",
                    age_days=age,
                )
            else:
                breakdown.add(
                    "System logs",
                    child,
                    title=f"{child.name}{marker}",
                    risk=RiskLevel.LOW,
                    category=CleanupCategory.LOGS,
                    is_deletable=True,
                    fraction=0.8,
                    description=f"System or application logs.{age_note} Old logs are safe to delete.",
                    age_days=age,
                )

        # Oldest first so stale logs are what the reader sees
        breakdown.recommendations.sort(key=lambda r: (-(r.age_days or 0), -r.size))

        lines = [
            "Logs record what the system and applications did.",
            "They only matter while you are debugging a problem.",
        ]
        if old_size:
            lines.append(f"Logs older than {OLD_LOG_DAYS} days: {format_size(old_size)}")
        if very_old_size:
            lines.append(f"Logs older than {VERY_OLD_LOG_DAYS} days: {format_size(very_old_size)}")
        return breakdown, "\n".join(lines), 0

    def _analyze_application_support(
        self, children: list[DirectoryInfo]
    ) -> tuple[_Breakdown, str, int]:
        breakdown = _Breakdown()
        apps_checked = len(self.catalog.apps())
        orphaned_size = 0
        stale_size = 0

        largest = sorted(children, key=lambda c: c.size, reverse=True)[:TOP_APP_SUPPORT_ITEMS]
        for child in largest:
            name = child.name.lower()
            age = self._age_of(child)
            stale = age is not None and age >= STALE_APP_DATA_DAYS
            age_note = f" Not modified for {format_age(age)}." if age is not None else ""

            if "cache" in name:
                breakdown.add(
                    "Application caches",
                    child,
                    title=child.name,
                    risk=RiskLevel.SAFE,
                    category=CleanupCategory.CACHE,
                    is_deletable=True,
                    fraction=1.0,
                    description=f"Application cache. Safe to delete.{age_note}",
                    age_days=age,
                )
            elif "backup" in name or "archive" in name:
                breakdown.add(
                    "Backups",
                    child,
                    title=child.name,
                    risk=RiskLevel.HIGH,
                    category=CleanupCategory.OTHER,
                    is_deletable=False,
                    fraction=0.0,
                    description=f"Backup data.{age_note} Check the contents before deleting.",
                    age_days=age,
                )
            elif self.catalog.is_orphaned(child.name):
                orphaned_size += child.size
                if stale:
                    stale_size += child.size
                breakdown.add(
                    "Removed application data",
                    child,
                    title=child.name,
                    risk=RiskLevel.LOW,
                    category=CleanupCategory.ORPHANED,
                    is_deletable=True,
                    fraction=1.0,
                    description=(
                        f"No installed application owns this folder.{age_note} "
                        "Safe to delete."
                    ),
                    age_days=age,
                )
            elif stale:
                stale_size += child.size
                breakdown.add(
                    "Stale application data",
                    child,
                    title=child.name,
                    risk=RiskLevel.MEDIUM,
                    category=CleanupCategory.OLD_FILES,
                    is_deletable=False,
                    fraction=0.0,
                    description=(
                        f"Data of an installed application.{age_note} "
                        "The app may be unused; review before deleting."
                    ),
                    age_days=age,
                )
            else:
                breakdown.add(
                    "Installed application data",
                    child,
                    title=child.name,
                    risk=RiskLevel.MEDIUM,
                    category=CleanupCategory.OTHER,
                    is_deletable=False,
                    fraction=0.0,
                    description="Data of an installed application. Deleting may lose settings.",
                    age_days=age,
                )

        lines = [
            "Application data, settings and plug-ins.",
            f"Installed applications checked: {apps_checked}",
        ]
        if orphaned_size:
            lines.append(f"Data of removed applications: {format_size(orphaned_size)}")
        if stale_size:
            lines.append(f"Not modified for over a year: {format_size(stale_size)}")
        lines.append("Only caches and data of removed applications are safe to delete.")
        return breakdown, "\n".join(lines), apps_checked

    def _analyze_containers(self, children: list[DirectoryInfo]) -> tuple[_Breakdown, str, int]:
        breakdown = _Breakdown()
        apps_checked = len(self.catalog.apps())
        orphaned_size = 0

        for child in children:
            if child.name.lower().startswith("com.apple"):
                breakdown.add(
                    "Apple system containers",
                    child,
                    title=child.name,
                    risk=RiskLevel.CRITICAL,
                    category=CleanupCategory.OTHER,
                    is_deletable=False,
                    fraction=0.0,
                    description="Apple system container. Do not delete.",
                )
            elif self.catalog.is_orphaned(child.name):
                orphaned_size += child.size
                breakdown.add(
                    "Removed application containers",
                    child,
                    title=child.name,
                    risk=RiskLevel.LOW,
                    category=CleanupCategory.ORPHANED,
                    is_deletable=True,
                    fraction=1.0,
                    description="Container of an application that is no longer installed.",
                )
            else:
                breakdown.add(
                    "Active containers",
                    child,
                    title=child.name,
                    risk=RiskLevel.MEDIUM,
                    category=CleanupCategory.OTHER,
                    is_deletable=False,
                    fraction=0.0,
                    description="Container of an installed application. Holds its data.",
                )

        lines = [
            "Containers hold sandboxed application data, one per app.",
            f"Installed applications checked: {apps_checked}",
        ]
        if orphaned_size:
            lines.append(f"Containers of removed applications: {format_size(orphaned_size)}")
        lines.append("Never delete com.apple.* containers.")
        return breakdown, "\n".join(lines), apps_checked

    def _analyze_private_var(self, children: list[DirectoryInfo]) -> tuple[_Breakdown, str, int]:
        breakdown = _Breakdown()
        for child in children:
            rule = _match(PRIVATE_VAR_RULES, child.name.lower(), PRIVATE_VAR_FALLBACK, exact=True)
            breakdown.add_rule(rule, child)
        summary = (
            "System directory with temporary files and logs.\n"
            "Changes need administrator rights and can break the system."
        )
        return breakdown, summary, 0

    def _analyze_root_library(self, children: list[DirectoryInfo]) -> tuple[_Breakdown, str, int]:
        breakdown = _Breakdown()
        for child in children:
            rule = _match(ROOT_LIBRARY_RULES, child.name.lower(), ROOT_LIBRARY_FALLBACK, exact=True)
            breakdown.add_rule(rule, child)
        summary = (
            "The system-wide Library.\n"
            "Safe to delete: Caches, old Logs, Spotlight indexes, Widgets.\n"
            "Careful: Application Support, Containers, Printers.\n"
            "Do not delete: Frameworks, Extensions, LaunchDaemons, Keychains."
        )
        return breakdown, summary, 0

    def _analyze_usr(self, path: str, info: DirectoryInfo) -> SystemFolderAnalysis:
        return SystemFolderAnalysis(
            path=path,
            total_size=info.size,
            deletable_size=0,
            breakdown={"System files": info.size},
            recommendations=[
                DetailedRecommendation(
                    title=f"{path} (system directory)",
                    path=path,
                    size=info.size,
                    is_deletable=False,
                    risk=RiskLevel.CRITICAL,
                    category=CleanupCategory.OTHER,
                    description="Executables and libraries the system depends on. Do not delete.",
                )
            ],
            summary="System executables, libraries and utilities. Changes can leave the system unusable.",
        )

    # -- helpers ------------------------------------------------------------

    def _children(self, path: str, info: DirectoryInfo) -> list[DirectoryInfo]:
        if info.subdirectories:
            return list(info.subdirectories)
        if not os.path.isdir(path):
            return []
        return expand_directory(path, self.max_entries).subdirectories

    def _days_since(self, moment: datetime) -> int:
        now = local_naive(self.now) if self.now else datetime.now()
        return max((now - local_naive(moment)).days, 0)

    def _age_of(self, child: DirectoryInfo) -> Optional[int]:
        """Days since modification, read from the filesystem when not recorded."""
        moment = child.last_modified
        if moment is None:
            try:
                moment = datetime.fromtimestamp(os.stat(child.path).st_mtime)
            except OSError:
                return None
        return self._days_since(moment)
