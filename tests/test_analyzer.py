"""Tests for high-level analysis entry points."""

from datetime import datetime

from dirsift.analyzer import (
    analyze_disk,
    estimate_cleanup_savings,
    format_size,
    get_largest_directories,
    get_recommendations,
    group_by_risk,
)
from dirsift.config import ScanConfig
from dirsift.models import (
    AnalysisSnapshot,
    CleanupCategory,
    CleanupRecommendation,
    DirectoryInfo,
    DiskUsage,
    RiskLevel,
    ScanStatus,
)
from dirsift.orchestrator import ScanOrchestrator


def fixed_usage() -> DiskUsage:
    return DiskUsage(total_bytes=10_000, used_bytes=1_000, free_bytes=9_000)


def rec(risk: RiskLevel, size: int, deletable: bool = True) -> CleanupRecommendation:
    return CleanupRecommendation(
        path=f"/{risk.value}/{size}",
        size=size,
        is_deletable=deletable,
        reason="test",
        category=CleanupCategory.OTHER,
        risk=risk,
    )


def snapshot_with(*infos: DirectoryInfo) -> AnalysisSnapshot:
    return AnalysisSnapshot(
        status=ScanStatus.COMPLETED, directories={i.path: i for i in infos}
    )


class TestAnalyzeDisk:
    def test_runs_session_and_notifies(self, tmp_path):
        root = tmp_path / "Documents"
        root.mkdir()
        (root / "f.txt").write_bytes(b"x" * 250)

        config = ScanConfig(home=str(tmp_path), root_delay=0, batch_delay=0)
        orchestrator = ScanOrchestrator(config, disk_usage_fn=fixed_usage)
        updates = []

        snapshot = analyze_disk(
            roots=[str(root)], on_update=updates.append, orchestrator=orchestrator
        )
        assert snapshot.status == ScanStatus.COMPLETED
        assert snapshot.analyzed_size == 250
        assert snapshot.analyzed_percent == 25.0
        assert updates
        assert updates[-1].status == ScanStatus.COMPLETED

    def test_unsubscribes_after_run(self, tmp_path):
        config = ScanConfig(root_delay=0, batch_delay=0)
        orchestrator = ScanOrchestrator(config, disk_usage_fn=fixed_usage)
        updates = []
        analyze_disk(roots=[], on_update=updates.append, orchestrator=orchestrator)
        count = len(updates)
        orchestrator.state.add_log("after")
        assert len(updates) == count


class TestRecommendations:
    def test_largest_directories(self):
        snapshot = snapshot_with(
            DirectoryInfo(path="/a", size=1),
            DirectoryInfo(path="/b", size=3),
            DirectoryInfo(path="/c", size=2),
        )
        assert [d.path for d in get_largest_directories(snapshot, 2)] == ["/b", "/c"]

    def test_get_recommendations(self):
        snapshot = snapshot_with(
            DirectoryInfo(path="/Users/alice/Library/Caches", size=10),
            DirectoryInfo(path="/Users/alice/Documents", size=20),
        )
        recs = get_recommendations(snapshot, 10, now=datetime(2024, 1, 1))
        assert [r.category for r in recs] == [CleanupCategory.OTHER, CleanupCategory.CACHE]

    def test_group_by_risk(self):
        groups = group_by_risk([rec(RiskLevel.SAFE, 1), rec(RiskLevel.HIGH, 2)])
        assert len(groups[RiskLevel.SAFE]) == 1
        assert len(groups[RiskLevel.HIGH]) == 1
        assert groups[RiskLevel.MEDIUM] == []


class TestEstimateCleanupSavings:
    def test_default_counts_safe_and_low(self):
        recs = [
            rec(RiskLevel.SAFE, 100),
            rec(RiskLevel.LOW, 50),
            rec(RiskLevel.MEDIUM, 1000),
            rec(RiskLevel.SAFE, 7, deletable=False),
        ]
        assert estimate_cleanup_savings(recs) == 150

    def test_max_risk(self):
        recs = [rec(RiskLevel.SAFE, 100), rec(RiskLevel.MEDIUM, 1000)]
        assert estimate_cleanup_savings(recs, RiskLevel.MEDIUM) == 1100
        assert estimate_cleanup_savings(recs, RiskLevel.SAFE) == 100

    def test_empty(self):
        assert estimate_cleanup_savings([]) == 0


def test_format_size_reexported():
    assert format_size(1500) == "1.5 KB"
