"""Tests for file discovery, aggregate summaries and the CI gate."""

from __future__ import annotations

from pathlib import Path

import pytest

from baseline_engine.config import BaselineConfig
from baseline_engine.scanner import ComplianceGate, ProjectSummary, discover_files, normalize_extensions, scan_paths


@pytest.fixture
def project(tmp_path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "app.js").write_text("const c = new BroadcastChannel('x');\n")
    (src / "styles.css").write_text(".a { display: grid; }\n")
    (src / "plain.js").write_text("console.log('hello');\n")
    (src / "README.md").write_text("# not analyzed\n")
    vendored = tmp_path / "node_modules" / "lib"
    vendored.mkdir(parents=True)
    (vendored / "index.js").write_text("new ResizeObserver(cb);\n")
    return tmp_path


def test_discover_skips_excluded_dirs_and_other_extensions(project):
    files = discover_files([str(project)])
    assert [f.name for f in files] == ["app.js", "plain.js", "styles.css"]


def test_discover_covers_every_analyzable_extension(tmp_path):
    for name in ("theme.sass", "theme.less", "page.htm", "worker.mts", "legacy.cts"):
        (tmp_path / name).write_text("\n")
    files = discover_files([str(tmp_path)])
    assert [f.name for f in files] == ["legacy.cts", "page.htm", "theme.less", "theme.sass", "worker.mts"]


def test_scan_picks_up_less_and_htm(tmp_path, empty_resolver):
    (tmp_path / "theme.less").write_text(".a { display: grid; }\n")
    (tmp_path / "page.htm").write_text("<script>const v = a ?? b;</script>\n")
    summary = scan_paths([str(tmp_path)], base_dir=str(tmp_path), resolver=empty_resolver)
    assert summary.total_files == 2
    assert sorted(r.file for r in summary.reports) == ["page.htm", "theme.less"]


def test_discover_accepts_explicit_files(project):
    files = discover_files([str(project / "src" / "app.js")])
    assert [f.name for f in files] == ["app.js"]


def test_scan_aggregates_reports(project, empty_resolver):
    summary = scan_paths([str(project)], base_dir=str(project), resolver=empty_resolver)
    assert summary.total_files == 3
    assert summary.total_features == 2
    assert summary.safe_features == 0
    assert summary.risky_features == 2
    assert summary.safety_score == 0
    # files without detections are left out of the per-file list
    assert [r.file for r in summary.reports] == [str(Path("src/app.js")), str(Path("src/styles.css"))]


def test_scan_applies_config(project, empty_resolver):
    config = BaselineConfig(ignore=["css-display"])
    summary = scan_paths([str(project)], config, base_dir=str(project), resolver=empty_resolver)
    assert summary.total_features == 1
    assert [r.report.risky[0].id for r in summary.reports] == ["broadcastchannel"]


def test_summary_serialization(project, resolver):
    summary = scan_paths([str(project)], base_dir=str(project), resolver=resolver)
    data = summary.to_dict()
    assert set(data) == {"totalFiles", "totalFeatures", "safeFeatures", "riskyFeatures", "safetyScore", "reports"}
    assert data["reports"][0]["report"]["risky"][0]["id"] == "broadcastchannel"


def test_empty_summary_is_fully_safe(tmp_path):
    summary = scan_paths([str(tmp_path)])
    assert summary.total_files == 0
    assert summary.safety_score == 100


def test_gate_passes_clean_summary():
    passed, message = ComplianceGate(min_safety_score=80).check(ProjectSummary(safety_score=100))
    assert passed
    assert "PASSED" in message


def test_gate_fails_on_risky(project, empty_resolver):
    summary = scan_paths([str(project)], base_dir=str(project), resolver=empty_resolver)
    passed, message = ComplianceGate().check(summary)
    assert not passed
    assert "broadcastchannel" in message
    assert "css-display" in message

    passed, _ = ComplianceGate(fail_on_risky=False).check(summary)
    assert passed


def test_gate_fails_below_threshold():
    summary = ProjectSummary(total_features=4, safe_features=2, safety_score=50)
    passed, message = ComplianceGate(min_safety_score=80, fail_on_risky=False).check(summary)
    assert not passed
    assert "below threshold" in message


def test_normalize_extensions():
    assert normalize_extensions(["js", ".CSS", "*.tsx", " "]) == (".js", ".css", ".tsx")


def test_scan_honours_include_and_exclude(project, empty_resolver):
    summary = scan_paths([str(project)], extensions=(".css",), base_dir=str(project), resolver=empty_resolver)
    assert summary.total_files == 1
    assert summary.reports[0].report.risky[0].id == "css-display"

    summary = scan_paths([str(project)], exclude_dirs=("src",), base_dir=str(project), resolver=empty_resolver)
    assert summary.total_files == 1
    assert summary.reports[0].report.risky[0].id == "resizeobserver"
