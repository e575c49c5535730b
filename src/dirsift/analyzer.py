"""High-level analysis entry points for dirsift."""

from datetime import datetime
from typing import Callable, Optional

from dirsift.classifier import recommend_all, top_directories
from dirsift.config import ScanConfig, load_config
from dirsift.models import (
    AnalysisSnapshot,
    CleanupRecommendation,
    DirectoryInfo,
    RiskLevel,
    format_size,
)
from dirsift.orchestrator import ScanOrchestrator

__all__ = [
    "analyze_disk",
    "estimate_cleanup_savings",
    "format_size",
    "get_largest_directories",
    "get_recommendations",
    "group_by_risk",
]


def analyze_disk(
    config: Optional[ScanConfig] = None,
    roots: Optional[list[str]] = None,
    on_update: Optional[Callable[[AnalysisSnapshot], None]] = None,
    orchestrator: Optional[ScanOrchestrator] = None,
) -> AnalysisSnapshot:
    """
    Perform a full scan session and wait for it to finish.

    Args:
        config: Scan settings (default: loaded from the config file)
        roots: Roots to scan instead of the configured ones
        on_update: Called with a snapshot after every state change
        orchestrator: Orchestrator to run (default: one built from config)

    Returns:
        Final AnalysisSnapshot
    """
    orchestrator = orchestrator or ScanOrchestrator(config or load_config())
    unsubscribe = orchestrator.state.subscribe(on_update) if on_update else None
    try:
        return orchestrator.run(roots)
    finally:
        if unsubscribe:
            unsubscribe()


def get_largest_directories(snapshot: AnalysisSnapshot, top_n: int = 10) -> list[DirectoryInfo]:
    """
    Get top N scanned roots by size.

    Args:
        snapshot: Finished analysis
        top_n: Number of roots to return

    Returns:
        List of the N largest DirectoryInfos
    """
    return top_directories(snapshot.directories, top_n)


def get_recommendations(
    snapshot: AnalysisSnapshot,
    top_n: int = 10,
    now: Optional[datetime] = None,
) -> list[CleanupRecommendation]:
    """Classify the top N roots of a finished analysis."""
    return recommend_all(snapshot.directories, top_n, now)


def group_by_risk(
    recommendations: list[CleanupRecommendation],
) -> dict[RiskLevel, list[CleanupRecommendation]]:
    groups: dict[RiskLevel, list[CleanupRecommendation]] = {risk: [] for risk in RiskLevel}
    for rec in recommendations:
        groups[rec.risk].append(rec)
    return groups


def estimate_cleanup_savings(
    recommendations: list[CleanupRecommendation],
    max_risk: RiskLevel = RiskLevel.LOW,
) -> int:
    """
    Estimate total bytes that can be freed.

    Args:
        recommendations: Classified directories
        max_risk: Highest risk level counted

    Returns:
        Bytes of deletable recommendations at or below max_risk
    """
    return sum(
        r.size for r in recommendations if r.is_deletable and r.risk.rank <= max_risk.rank
    )
