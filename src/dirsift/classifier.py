"""Rule-based cleanup classification for scanned directories.

Rules are evaluated in order against the lower-cased absolute path and the
first match wins. Overlapping rules are resolved purely by their position in
``RULES``.
"""

import heapq
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from dirsift.models import (
    CleanupCategory,
    CleanupRecommendation,
    DirectoryInfo,
    RiskLevel,
    local_naive,
)

LARGE_FILE_BYTES = 1_000_000_000
STALE_DOWNLOAD_DAYS = 30
TEMPORARY_SEGMENTS = frozenset({"tmp", "temp", "temporaryitems", ".trash", ".trashes"})

Predicate = Callable[[str, DirectoryInfo], bool]
Builder = Callable[[DirectoryInfo, datetime], CleanupRecommendation]


@dataclass(frozen=True)
class Rule:
    """One classification rule: a predicate and the recommendation it yields."""

    name: str
    matches: Predicate
    build: Builder


def is_older_than(info: DirectoryInfo, days: int, now: Optional[datetime] = None) -> bool:
    """Check if info was last modified at least ``days`` ago (unknown = recent)."""
    if info.last_modified is None:
        return False
    now = local_naive(now) if now else datetime.now()
    return local_naive(info.last_modified) <= now - timedelta(days=days)


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def _has_segment(path: str, segments: frozenset[str]) -> bool:
    return any(part in segments for part in path.split("/"))


def _fixed(
    is_deletable: bool, reason: str, category: CleanupCategory, risk: RiskLevel
) -> Builder:
    def build(info: DirectoryInfo, now: datetime) -> CleanupRecommendation:
        return CleanupRecommendation(
            path=info.path,
            size=info.size,
            is_deletable=is_deletable,
            reason=reason,
            category=category,
            risk=risk,
        )

    return build


def _downloads(info: DirectoryInfo, now: datetime) -> CleanupRecommendation:
    stale = is_older_than(info, STALE_DOWNLOAD_DAYS, now)
    return CleanupRecommendation(
        path=info.path,
        size=info.size,
        is_deletable=stale,
        reason=(
            f"Downloads untouched for over {STALE_DOWNLOAD_DAYS} days. Check before deleting."
            if stale
            else "Recent downloads. Review manually."
        ),
        category=CleanupCategory.DOWNLOADS,
        risk=RiskLevel.LOW if stale else RiskLevel.MEDIUM,
    )


def _application_support(info: DirectoryInfo, now: datetime) -> CleanupRecommendation:
    lowered = info.path.lower()
    is_cache = "/cache" in lowered or "/logs" in lowered
    return CleanupRecommendation(
        path=info.path,
        size=info.size,
        is_deletable=is_cache,
        reason=(
            "Application cache. Safe to delete."
            if is_cache
            else "Application data. Deleting it may lose settings."
        ),
        category=CleanupCategory.CACHE if is_cache else CleanupCategory.OTHER,
        risk=RiskLevel.SAFE if is_cache else RiskLevel.HIGH,
    )


_SYSTEM_FILES = _fixed(
    False, "System files. Do not delete.", CleanupCategory.OTHER, RiskLevel.CRITICAL
)

RULES: list[Rule] = [
    Rule(
        "os_system",
        lambda p, i: _under(p, "/system") or _under(p, "/usr"),
        _SYSTEM_FILES,
    ),
    Rule(
        "cache",
        lambda p, i: "/caches" in p or "/cache" in p,
        _fixed(
            True,
            "Cache files are safe to delete. Applications recreate them when needed.",
            CleanupCategory.CACHE,
            RiskLevel.SAFE,
        ),
    ),
    Rule(
        "logs",
        lambda p, i: "/logs" in p or p.endswith(".log"),
        _fixed(True, "Old logs can be deleted to free space.", CleanupCategory.LOGS, RiskLevel.SAFE),
    ),
    Rule("downloads", lambda p, i: "/downloads" in p, _downloads),
    Rule(
        "temporary",
        lambda p, i: _has_segment(p, TEMPORARY_SEGMENTS),
        _fixed(
            True,
            "Temporary files and trash can be deleted.",
            CleanupCategory.TEMPORARY,
            RiskLevel.SAFE,
        ),
    ),
    Rule(
        "derived_data",
        lambda p, i: "/deriveddata" in p,
        _fixed(
            True,
            "Xcode DerivedData is safe to delete. Xcode rebuilds it when needed.",
            CleanupCategory.CACHE,
            RiskLevel.SAFE,
        ),
    ),
    Rule(
        "node_modules",
        lambda p, i: "/node_modules" in p,
        _fixed(
            True,
            "node_modules can be deleted and restored with 'npm install'.",
            CleanupCategory.CACHE,
            RiskLevel.LOW,
        ),
    ),
    Rule(
        "cocoapods",
        lambda p, i: "/pods" in p and "podcast" not in p,
        _fixed(
            True,
            "CocoaPods can be deleted and restored with 'pod install'.",
            CleanupCategory.CACHE,
            RiskLevel.LOW,
        ),
    ),
    Rule(
        "simulators",
        lambda p, i: "/devices" in p and "/coresimulator" in p,
        _fixed(
            True,
            "iOS simulator data. Can be removed through Xcode.",
            CleanupCategory.CACHE,
            RiskLevel.SAFE,
        ),
    ),
    Rule(
        "browser",
        lambda p, i: "/safari" in p and ("/cache" in p or "/history" in p),
        _fixed(
            True,
            "Safari history and cache can be cleared.",
            CleanupCategory.CACHE,
            RiskLevel.LOW,
        ),
    ),
    Rule(
        "mail_attachments",
        lambda p, i: "/mail" in p and "/attachments" in p,
        _fixed(
            False,
            "Mail attachments. Review manually before deleting.",
            CleanupCategory.OTHER,
            RiskLevel.HIGH,
        ),
    ),
    Rule("application_support", lambda p, i: "/application support" in p, _application_support),
    Rule("library", lambda p, i: _under(p, "/library"), _SYSTEM_FILES),
    Rule(
        "personal",
        lambda p, i: "/desktop" in p or "/documents" in p or "/pictures" in p,
        _fixed(
            False,
            "Personal files. Manage them manually.",
            CleanupCategory.OTHER,
            RiskLevel.CRITICAL,
        ),
    ),
    Rule(
        "large_file",
        lambda p, i: i.file_count == 1 and i.size > LARGE_FILE_BYTES,
        _fixed(
            False,
            "Large file (>1 GB). Check whether you still need it.",
            CleanupCategory.OLD_FILES,
            RiskLevel.MEDIUM,
        ),
    ),
]

FALLBACK = Rule(
    "review",
    lambda p, i: True,
    _fixed(False, "Review the contents manually.", CleanupCategory.OTHER, RiskLevel.MEDIUM),
)


def match_rule(info: DirectoryInfo) -> Rule:
    """Return the first rule matching info."""
    lowered = info.path.lower()
    for rule in RULES:
        if rule.matches(lowered, info):
            return rule
    return FALLBACK


def classify(info: DirectoryInfo, now: Optional[datetime] = None) -> list[CleanupRecommendation]:
    """
    Classify a directory into cleanup recommendations.

    Args:
        info: Directory to classify
        now: Reference time for age checks (default: current time)

    Returns:
        Non-empty list of recommendations
    """
    if now is None:
        now = datetime.now()
    return [match_rule(info).build(info, now)]


def top_directories(directories: dict[str, DirectoryInfo], count: int = 10) -> list[DirectoryInfo]:
    """
    Get the largest directories, largest first.

    Ties keep their insertion order.
    """
    return heapq.nlargest(count, directories.values(), key=lambda d: d.size)


def recommend_all(
    directories: dict[str, DirectoryInfo],
    count: int = 10,
    now: Optional[datetime] = None,
) -> list[CleanupRecommendation]:
    """Classify each of the ``count`` largest directories."""
    recommendations: list[CleanupRecommendation] = []
    for info in top_directories(directories, count):
        recommendations.extend(classify(info, now))
    return recommendations
