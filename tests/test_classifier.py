"""Tests for rule-based cleanup classification."""

from datetime import datetime, timedelta, timezone

import pytest

from dirsift.classifier import (
    FALLBACK,
    RULES,
    classify,
    is_older_than,
    match_rule,
    recommend_all,
    top_directories,
)
from dirsift.models import CleanupCategory, DirectoryInfo, RiskLevel

NOW = datetime(2024, 6, 1, 12, 0)


def info(path: str, size: int = 1000, file_count: int = 10, age_days=None) -> DirectoryInfo:
    modified = NOW - timedelta(days=age_days) if age_days is not None else None
    return DirectoryInfo(path=path, size=size, file_count=file_count, last_modified=modified)


def verdict(path: str, **kwargs):
    recs = classify(info(path, **kwargs), now=NOW)
    assert len(recs) == 1
    return recs[0]


class TestCacheAndLogs:
    def test_user_cache(self):
        rec = verdict("/Users/alice/Library/Caches/com.example.App")
        assert rec.category == CleanupCategory.CACHE
        assert rec.risk == RiskLevel.SAFE
        assert rec.is_deletable

    def test_case_insensitive(self):
        assert verdict("/Users/alice/SOME/CACHE/x").category == CleanupCategory.CACHE

    def test_system_library_cache_is_cache(self):
        assert verdict("/Library/Caches/com.apple.foo").category == CleanupCategory.CACHE

    def test_logs_directory(self):
        rec = verdict("/Users/alice/Library/Logs/DiagnosticReports")
        assert rec.category == CleanupCategory.LOGS
        assert rec.is_deletable

    def test_log_file(self):
        assert verdict("/Users/alice/server.log").category == CleanupCategory.LOGS


class TestDownloads:
    def test_stale_download_is_deletable(self):
        rec = verdict("/Users/alice/Downloads/report.pdf", age_days=45)
        assert rec.category == CleanupCategory.DOWNLOADS
        assert rec.is_deletable
        assert rec.risk == RiskLevel.LOW

    def test_recent_download_needs_review(self):
        rec = verdict("/Users/alice/Downloads/report.pdf", age_days=5)
        assert not rec.is_deletable
        assert rec.risk == RiskLevel.MEDIUM

    def test_unknown_age_counts_as_recent(self):
        rec = verdict("/Users/alice/Downloads")
        assert not rec.is_deletable
        assert rec.risk == RiskLevel.MEDIUM


class TestDeveloperArtifacts:
    def test_derived_data(self):
        rec = verdict("/Users/alice/Library/Developer/Xcode/DerivedData")
        assert rec.category == CleanupCategory.CACHE
        assert rec.risk == RiskLevel.SAFE

    def test_node_modules(self):
        rec = verdict("/Users/alice/code/app/node_modules")
        assert rec.risk == RiskLevel.LOW
        assert "npm install" in rec.reason

    def test_cocoapods(self):
        assert "pod install" in verdict("/Users/alice/code/app/Pods").reason

    def test_podcasts_not_cocoapods(self):
        rec = verdict("/Users/alice/Music/Podcasts")
        assert "pod install" not in rec.reason

    def test_simulator_devices(self):
        rec = verdict("/Users/alice/Library/Developer/CoreSimulator/Devices")
        assert rec.is_deletable
        assert rec.risk == RiskLevel.SAFE


class TestOtherRules:
    def test_temporary(self):
        assert verdict("/private/tmp/build").category == CleanupCategory.TEMPORARY

    def test_trash(self):
        assert verdict("/Users/alice/.Trash").category == CleanupCategory.TEMPORARY

    def test_temporary_items(self):
        rec = verdict("/private/var/folders/ab/T/TemporaryItems")
        assert rec.category == CleanupCategory.TEMPORARY

    def test_templates_are_personal_files(self):
        rec = verdict("/Users/alice/Documents/Templates")
        assert rec.category == CleanupCategory.OTHER
        assert rec.risk == RiskLevel.CRITICAL
        assert not rec.is_deletable

    def test_tmp_prefix_is_not_temporary(self):
        rec = verdict("/Users/alice/Documents/tmp-notes")
        assert rec.category != CleanupCategory.TEMPORARY

    def test_safari_history(self):
        rec = verdict("/Users/alice/Library/Safari/History.db")
        assert rec.is_deletable
        assert rec.risk == RiskLevel.LOW

    def test_mail_attachments(self):
        rec = verdict("/Users/alice/Library/Mail/V10/Attachments")
        assert not rec.is_deletable
        assert rec.risk == RiskLevel.HIGH

    def test_application_support_data(self):
        rec = verdict("/Users/alice/Library/Application Support/Slack")
        assert not rec.is_deletable
        assert rec.risk == RiskLevel.HIGH

    def test_application_support_logs(self):
        rec = verdict("/Users/alice/Library/Application Support/Slack/logs")
        assert rec.category == CleanupCategory.LOGS

    def test_system_library(self):
        rec = verdict("/Library/Frameworks")
        assert rec.risk == RiskLevel.CRITICAL
        assert not rec.is_deletable

    def test_os_system_beats_cache(self):
        rec = verdict("/System/Library/Caches")
        assert rec.risk == RiskLevel.CRITICAL
        assert not rec.is_deletable

    def test_usr(self):
        assert verdict("/usr/local/Cellar").risk == RiskLevel.CRITICAL

    def test_personal_files(self):
        rec = verdict("/Users/alice/Documents")
        assert rec.risk == RiskLevel.CRITICAL
        assert not rec.is_deletable

    def test_large_single_file(self):
        rec = verdict("/Users/alice/big.iso", size=2_000_000_000, file_count=1)
        assert rec.category == CleanupCategory.OLD_FILES
        assert rec.risk == RiskLevel.MEDIUM

    def test_fallback(self):
        rec = verdict("/opt/homebrew")
        assert rec.category == CleanupCategory.OTHER
        assert rec.risk == RiskLevel.MEDIUM
        assert not rec.is_deletable
        assert match_rule(info("/opt/homebrew")) is FALLBACK


class TestRuleTable:
    def test_first_match_wins(self):
        # Both the cache and the downloads rule match
        rec = verdict("/Users/alice/Downloads/cache")
        assert rec.category == CleanupCategory.CACHE

    def test_rule_names_unique(self):
        names = [rule.name for rule in RULES]
        assert len(names) == len(set(names))

    def test_size_copied(self):
        assert verdict("/Users/alice/Library/Caches/x", size=4242).size == 4242


class TestIsOlderThan:
    def test_unknown_is_recent(self):
        assert not is_older_than(info("/x"), 30, NOW)

    def test_boundary(self):
        assert is_older_than(info("/x", age_days=30), 30, NOW)
        assert not is_older_than(info("/x", age_days=29), 30, NOW)

    def test_aware_reference_time(self):
        aware_now = NOW.astimezone(timezone.utc)
        assert is_older_than(info("/x", age_days=31), 30, aware_now)
        assert not is_older_than(info("/x", age_days=1), 30, aware_now)

    def test_aware_modification_time(self):
        modified = (NOW - timedelta(days=60)).astimezone(timezone.utc)
        downloads = DirectoryInfo(path="/Users/alice/Downloads/old", last_modified=modified)
        rec = classify(downloads, now=NOW)[0]
        assert rec.is_deletable
        assert rec.category == CleanupCategory.DOWNLOADS


class TestTopDirectories:
    def test_largest_first(self):
        dirs = {p: info(p, size=s) for p, s in [("/a", 10), ("/b", 30), ("/c", 20)]}
        assert [d.path for d in top_directories(dirs, 2)] == ["/b", "/c"]

    def test_ties_keep_order(self):
        dirs = {p: info(p, size=5) for p in ["/x", "/y", "/z"]}
        assert [d.path for d in top_directories(dirs, 3)] == ["/x", "/y", "/z"]

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_count(self, count):
        dirs = {f"/{i}": info(f"/{i}", size=i) for i in range(3)}
        assert len(top_directories(dirs, count)) == min(count, 3)

    def test_recommend_all(self):
        dirs = {
            "/Users/alice/Library/Caches": info("/Users/alice/Library/Caches", size=100),
            "/Users/alice/Documents": info("/Users/alice/Documents", size=200),
        }
        recs = recommend_all(dirs, 10, NOW)
        assert [r.path for r in recs] == ["/Users/alice/Documents", "/Users/alice/Library/Caches"]
