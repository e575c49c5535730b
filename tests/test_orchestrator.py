"""Tests for scan session orchestration."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from dirsift.config import ScanConfig
from dirsift.models import DirectoryInfo, DiskUsage, ScanStatus, VolumeInfo
from dirsift.orchestrator import ScanOrchestrator, get_disk_usage
from dirsift.state import AnalysisState

GB = 1_000_000_000


def fixed_usage() -> DiskUsage:
    return DiskUsage(total_bytes=500 * GB, used_bytes=200 * GB, free_bytes=300 * GB)


def write(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


class StubAggregator:
    """Reports preset sizes instead of walking the filesystem."""

    def __init__(self, state, sizes=None, delays=None, errors=None, on_root=None):
        self.state = state
        self.sizes = sizes or {}
        self.delays = delays or {}
        self.errors = errors or {}
        self.on_root = on_root
        self.calls = []

    async def aggregate(self, root, max_depth, max_entries, record_files=False):
        self.calls.append((root, max_depth, max_entries))
        if self.on_root:
            self.on_root(root)
        if root in self.errors:
            raise self.errors[root]
        if root in self.delays:
            await asyncio.sleep(self.delays[root])
        size = self.sizes.get(root, 0)
        self.state.add_analyzed(size)
        return DirectoryInfo(path=root, size=size, file_count=1)


def make_orchestrator(tmp_path, **stub_kwargs):
    config = ScanConfig(home=str(tmp_path), root_delay=0, batch_delay=0)
    state = AnalysisState()
    aggregator = StubAggregator(state, **stub_kwargs)
    orchestrator = ScanOrchestrator(
        config, state=state, aggregator=aggregator, disk_usage_fn=fixed_usage
    )
    return orchestrator, aggregator


def make_roots(tmp_path, *names):
    roots = []
    for name in names:
        path = tmp_path / name
        path.mkdir()
        roots.append(str(path))
    return roots


class TestStartAnalysis:
    def test_progress_percent_of_used_space(self, tmp_path):
        docs, pics = make_roots(tmp_path, "Documents", "Pictures")
        orchestrator, _ = make_orchestrator(tmp_path, sizes={docs: 50 * GB, pics: 30 * GB})
        snapshot = orchestrator.run([docs, pics])

        assert snapshot.status == ScanStatus.COMPLETED
        assert snapshot.analyzed_size == 80 * GB
        assert snapshot.analyzed_percent == pytest.approx(40.0)
        assert snapshot.directories[docs].size == 50 * GB
        assert snapshot.used_size == 200 * GB
        assert not snapshot.is_analyzing
        assert "Analysis complete" in snapshot.logs

    def test_roots_scanned_in_order(self, tmp_path):
        roots = make_roots(tmp_path, "b", "a", "c")
        orchestrator, aggregator = make_orchestrator(tmp_path)
        orchestrator.run(roots)
        assert [call[0] for call in aggregator.calls] == roots

    def test_deep_and_shallow_policy(self, tmp_path):
        home, shared = make_roots(tmp_path, "home", "shared")
        deep = str(Path(home) / "Documents")
        Path(deep).mkdir()
        orchestrator, aggregator = make_orchestrator(Path(home))
        orchestrator.run([deep, shared])
        assert aggregator.calls[0] == (deep, 4, 100_000)
        assert aggregator.calls[1] == (shared, 1, 10_000)

    def test_missing_root_skipped(self, tmp_path):
        (present,) = make_roots(tmp_path, "present")
        missing = str(tmp_path / "missing")
        orchestrator, _ = make_orchestrator(tmp_path)
        snapshot = orchestrator.run([missing, present])
        assert missing not in snapshot.directories
        assert present in snapshot.directories
        assert any("does not exist" in line for line in snapshot.logs)

    def test_timeout_moves_on(self, tmp_path):
        slow, fast = make_roots(tmp_path, "slow", "fast")
        orchestrator, _ = make_orchestrator(tmp_path, delays={slow: 10}, sizes={fast: 5})
        orchestrator.config.deep_timeout = 0.05
        snapshot = orchestrator.run([slow, fast])

        assert snapshot.status == ScanStatus.COMPLETED
        assert snapshot.directories[slow].error == "timed out"
        assert snapshot.directories[slow].truncated
        assert snapshot.directories[fast].size == 5
        assert any("Timed out" in line for line in snapshot.logs)

    def test_failing_root_recorded(self, tmp_path):
        bad, good = make_roots(tmp_path, "bad", "good")
        orchestrator, _ = make_orchestrator(
            tmp_path, errors={bad: RuntimeError("disk vanished")}, sizes={good: 7}
        )
        snapshot = orchestrator.run([bad, good])
        assert snapshot.directories[bad].error == "disk vanished"
        assert snapshot.directories[good].size == 7
        assert snapshot.status == ScanStatus.COMPLETED

    def test_cancel_keeps_partial_results(self, tmp_path):
        first, second = make_roots(tmp_path, "first", "second")
        orchestrator, aggregator = make_orchestrator(tmp_path, sizes={first: 10, second: 20})
        aggregator.on_root = lambda root: orchestrator.cancel_analysis()

        snapshot = orchestrator.run([first, second])
        assert snapshot.status == ScanStatus.CANCELLED
        assert first in snapshot.directories
        assert second not in snapshot.directories
        assert "Analysis cancelled by user" in snapshot.logs

    def test_capacity_failure(self, tmp_path):
        def broken():
            raise OSError("no disk")

        orchestrator = ScanOrchestrator(
            ScanConfig(root_delay=0), aggregator=MagicMock(), disk_usage_fn=broken
        )
        snapshot = orchestrator.run([str(tmp_path)])
        assert snapshot.status == ScanStatus.FAILED
        assert snapshot.error == "no disk"

    def test_rejects_concurrent_session(self, tmp_path):
        orchestrator, _ = make_orchestrator(tmp_path)
        orchestrator.state.status = ScanStatus.RUNNING
        with pytest.raises(RuntimeError):
            orchestrator.run([str(tmp_path)])

    def test_configured_roots_used_by_default(self, tmp_path):
        (root,) = make_roots(tmp_path, "only")
        orchestrator, aggregator = make_orchestrator(tmp_path)
        orchestrator.config.roots = [root]
        orchestrator.run()
        assert [call[0] for call in aggregator.calls] == [root]

    def test_second_session_resets(self, tmp_path):
        (root,) = make_roots(tmp_path, "root")
        orchestrator, _ = make_orchestrator(tmp_path, sizes={root: 10})
        orchestrator.run([root])
        snapshot = orchestrator.run([root])
        assert snapshot.analyzed_size == 10

    def test_timeout_reports_unattributed_progress(self, tmp_path):
        (slow,) = make_roots(tmp_path, "slow")
        orchestrator, aggregator = make_orchestrator(tmp_path, delays={slow: 10})
        aggregator.on_root = lambda root: orchestrator.state.add_analyzed(120)
        orchestrator.config.deep_timeout = 0.05

        snapshot = orchestrator.run([slow])
        assert snapshot.analyzed_size == 120
        assert snapshot.directories[slow].size == 0
        assert any("limit 0.05s" in line for line in snapshot.logs)
        assert any(
            "120 B counted in progress" in line and "not attributed" in line
            for line in snapshot.logs
        )

    def test_completed_root_has_no_unattributed_warning(self, tmp_path):
        (root,) = make_roots(tmp_path, "root")
        orchestrator, _ = make_orchestrator(tmp_path, sizes={root: 10})
        snapshot = orchestrator.run([root])
        assert not any("not attributed" in line for line in snapshot.logs)


class TestSessionEndStates:
    def test_cancelled_task_ends_session(self, tmp_path):
        slow, fast = make_roots(tmp_path, "slow", "fast")
        orchestrator, _ = make_orchestrator(tmp_path, delays={slow: 10}, sizes={fast: 5})

        async def cancel_midway():
            task = asyncio.create_task(orchestrator.start_analysis([slow, fast]))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(cancel_midway())
        assert orchestrator.status == ScanStatus.CANCELLED
        assert not orchestrator.state.is_analyzing
        assert orchestrator.cancel_event.is_set()

        snapshot = orchestrator.run([fast])
        assert snapshot.status == ScanStatus.COMPLETED
        assert snapshot.directories[fast].size == 5

    def test_unexpected_error_fails_session(self, tmp_path):
        def broken():
            raise RuntimeError("diskutil exploded")

        orchestrator = ScanOrchestrator(
            ScanConfig(root_delay=0), aggregator=MagicMock(), disk_usage_fn=broken
        )
        with pytest.raises(RuntimeError, match="exploded"):
            orchestrator.run([str(tmp_path)])
        assert orchestrator.status == ScanStatus.FAILED
        assert orchestrator.state.error == "diskutil exploded"
        assert not orchestrator.state.is_analyzing

    def test_cancel_only_sets_event(self, tmp_path):
        orchestrator, _ = make_orchestrator(tmp_path)
        updates = []
        orchestrator.state.subscribe(updates.append)

        orchestrator.cancel_analysis()
        assert orchestrator.cancel_event.is_set()
        assert updates == []
        assert list(orchestrator.state.logs) == []


class TestRealAggregation:
    def test_scans_real_tree(self, tmp_path):
        write(tmp_path / "Documents" / "a.txt", 100)
        write(tmp_path / "Documents" / "nested" / "b.txt", 200)
        config = ScanConfig(home=str(tmp_path), root_delay=0, batch_delay=0)
        orchestrator = ScanOrchestrator(config, disk_usage_fn=fixed_usage)

        snapshot = orchestrator.run([str(tmp_path / "Documents")])
        info = snapshot.directories[str(tmp_path / "Documents")]
        assert info.size == 300
        assert info.file_count == 2
        assert snapshot.analyzed_size == 300


class TestVolumesAndExpansion:
    def test_analyze_volume(self, tmp_path):
        write(tmp_path / "vol" / "f.bin", 50)
        config = ScanConfig(root_delay=0, batch_delay=0)
        orchestrator = ScanOrchestrator(config, disk_usage_fn=fixed_usage)
        volume = VolumeInfo(path=str(tmp_path / "vol"), name="vol")

        result = asyncio.run(orchestrator.analyze_volume(volume))
        assert result.directories[0].size == 50
        assert volume.directories == []

    def test_expand_root(self, tmp_path):
        write(tmp_path / "a" / "f", 10)
        write(tmp_path / "b" / "f", 20)
        orchestrator = ScanOrchestrator(ScanConfig(), disk_usage_fn=fixed_usage)
        info = asyncio.run(orchestrator.expand_root(str(tmp_path)))
        assert [c.name for c in info.subdirectories] == ["b", "a"]


class TestGetDiskUsage:
    def test_parses_diskutil(self):
        output = (
            "   Container Total Space:     245.1 GB (245107195904 Bytes) (exactly)\n"
            "   Container Free Space:      100.0 GB (100000000000 Bytes) (exactly)\n"
        )
        with patch("dirsift.orchestrator.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=output)
            usage = get_disk_usage("/")
        assert usage.total_bytes == 245107195904
        assert usage.free_bytes == 100000000000
        assert usage.used_bytes == 145107195904

    def test_falls_back_to_shutil(self, tmp_path):
        with patch("dirsift.orchestrator.subprocess.run", side_effect=FileNotFoundError):
            usage = get_disk_usage(str(tmp_path))
        assert usage.total_bytes > 0
        assert usage.mount_point == str(tmp_path)
