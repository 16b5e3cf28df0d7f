"""
Baseline Engine REST API and command-line entry point

"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import __version__
from .analyzer import analyze_file
from .config import ConfigError, load_config
from .dataset import WebFeaturesDataStore
from .models import AnalysisContext
from .resolver import SupportResolver, set_default_resolver
from .scanner import DEFAULT_EXCLUDE_DIRS, DEFAULT_EXTENSIONS, ComplianceGate, normalize_extensions, scan_paths
from .upgrade import CONFIDENCE_LEVELS, DEFAULT_CONFIDENCE, UPGRADE_EXTENSIONS, scan_for_upgrades


# Pydantic models for API
class AnalyzeRequest(BaseModel):
    content: str
    type: Literal["css", "js", "html"] = "js"
    file_path: Optional[str] = None
    config: Optional[Dict[str, Any]] = None


class ScanRequest(BaseModel):
    paths: List[str]
    config_path: Optional[str] = None
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None


class CICheckRequest(ScanRequest):
    min_safety_score: float = 0.0
    fail_on_risky: bool = True


class UpgradeRequest(BaseModel):
    paths: List[str]
    confidence: Literal["high", "medium", "low"] = DEFAULT_CONFIDENCE
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None


# ============================================================================
# FASTAPI REST API
# ============================================================================

app = FastAPI(
    title="Baseline Engine API",
    description="Detect web platform features in source code and classify their Baseline status",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global instances
baseline_store = WebFeaturesDataStore()
resolver = SupportResolver.from_store(baseline_store)
set_default_resolver(resolver)


def get_resolver() -> SupportResolver:
    return resolver


def _load_scan_config(config_path: Optional[str], paths: List[str]):
    try:
        return load_config(config_path, start_dir=paths[0] if paths and Path(paths[0]).is_dir() else None)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _check_paths(paths: List[str]):
    if not paths:
        raise HTTPException(status_code=400, detail="No paths given")
    missing = [p for p in paths if not Path(p).exists()]
    if missing:
        raise HTTPException(status_code=400, detail=f"Path does not exist: {', '.join(missing)}")


def _scan_filters(request, default_extensions=DEFAULT_EXTENSIONS):
    extensions = normalize_extensions(request.include) if request.include else default_extensions
    exclude_dirs = request.exclude if request.exclude is not None else DEFAULT_EXCLUDE_DIRS
    return extensions, exclude_dirs


@app.on_event("startup")
async def startup_event():
    """Fetch the dataset when no cached copy is available"""
    print("🚀 Starting Baseline Engine API...")
    if not len(baseline_store):
        await baseline_store.fetch_baseline_data()
    print("✓ Ready to accept requests")


@app.get("/")
async def root():
    return {
        "message": "Baseline Engine API",
        "version": __version__,
        "endpoints": {
            "analyze": "/analyze",
            "scan": "/scan",
            "ci": "/ci/check",
            "upgrade": "/upgrade",
            "feature": "/features/{feature_id}",
            "health": "/health",
        }
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "features_loaded": len(baseline_store),
        "last_update": baseline_store.last_update.isoformat() if baseline_store.last_update else None,
    }


@app.post("/analyze")
def analyze_endpoint(request: AnalyzeRequest, resolver: SupportResolver = Depends(get_resolver)):
    """Analyze one blob of CSS, script or markup"""
    context = AnalysisContext(
        content=request.content,
        type=request.type,
        file_path=request.file_path,
        config=request.config,
    )
    return analyze_file(context, resolver).to_dict()


@app.post("/scan")
def scan_endpoint(request: ScanRequest, resolver: SupportResolver = Depends(get_resolver)):
    """Scan local files or directories and aggregate a summary"""
    _check_paths(request.paths)
    config = _load_scan_config(request.config_path, request.paths)
    extensions, exclude_dirs = _scan_filters(request)
    return scan_paths(request.paths, config, extensions, exclude_dirs, resolver=resolver).to_dict()


@app.post("/ci/check")
def ci_check(request: CICheckRequest, resolver: SupportResolver = Depends(get_resolver)):
    """CI/CD endpoint to check compliance"""
    _check_paths(request.paths)
    config = _load_scan_config(request.config_path, request.paths)
    extensions, exclude_dirs = _scan_filters(request)
    summary = scan_paths(request.paths, config, extensions, exclude_dirs, resolver=resolver)

    passed, message = ComplianceGate(request.min_safety_score, request.fail_on_risky).check(summary)
    return {
        "passed": passed,
        "message": message,
        "safetyScore": summary.safety_score,
        "summary": summary.to_dict(),
    }


@app.post("/upgrade")
def upgrade_endpoint(request: UpgradeRequest):
    """Suggest modern replacements for legacy idioms"""
    _check_paths(request.paths)
    extensions, exclude_dirs = _scan_filters(request, UPGRADE_EXTENSIONS)
    report = scan_for_upgrades(request.paths, request.confidence, extensions, exclude_dirs)
    return report.to_dict()


@app.get("/features/{feature_id}")
async def get_feature_status(feature_id: str, support_key: Optional[str] = None,
                             resolver: SupportResolver = Depends(get_resolver)):
    """Resolved Baseline status for one feature id"""
    if resolver.registry.get(feature_id) is None:
        raise HTTPException(status_code=404, detail=f"Feature '{feature_id}' not found")
    resolution = resolver.resolve(feature_id, support_key)
    details = asdict(resolution)
    details["id"] = feature_id
    details["support"] = resolution.support.to_dict()
    return details


# ============================================================================
# CLI INTERFACE
# ============================================================================

def _comma_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _add_filter_options(command: argparse.ArgumentParser, default_extensions):
    command.add_argument("--include", type=_comma_list, default=list(default_extensions),
                         help="File extensions to include (comma-separated)")
    command.add_argument("--exclude", type=_comma_list, default=sorted(DEFAULT_EXCLUDE_DIRS),
                         help="Directory names to exclude (comma-separated)")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="baseline-engine",
        description="Check your code for Baseline feature compatibility",
    )
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Analyze files or directories")
    scan.add_argument("paths", nargs="*", default=["src/"], help="Files or directories to analyze")
    scan.add_argument("-c", "--config", help="Path to configuration file")
    scan.add_argument("-o", "--output", help="Write the JSON report to this file")
    scan.add_argument("--min-score", type=float, default=0.0, help="Minimum safety score to pass")
    scan.add_argument("--fail-on-risky", action=argparse.BooleanOptionalAction, default=True,
                      help="Exit with code 1 if risky features are found")
    _add_filter_options(scan, DEFAULT_EXTENSIONS)

    upgrade = sub.add_parser("upgrade", help="Suggest upgrades for legacy web features")
    upgrade.add_argument("paths", nargs="*", default=["src/"], help="Files or directories to analyze for upgrades")
    upgrade.add_argument("--confidence", choices=CONFIDENCE_LEVELS, default=DEFAULT_CONFIDENCE,
                         help="Minimum confidence level")
    upgrade.add_argument("-o", "--output", help="Write the JSON suggestions to this file")
    _add_filter_options(upgrade, UPGRADE_EXTENSIONS)

    server = sub.add_parser("server", help="Start the REST API")
    server.add_argument("--host", default="0.0.0.0")
    server.add_argument("--port", type=int, default=8000)

    sub.add_parser("update-data", help="Download the latest web-features dataset")
    return parser


def _missing_paths(paths: List[str]) -> bool:
    missing = [p for p in paths if not Path(p).exists()]
    if missing:
        print(f"Error: path does not exist: {', '.join(missing)}", file=sys.stderr)
    return bool(missing)


def _write_output(output: str, path: Optional[str]):
    print(output)
    if path:
        with open(path, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"✓ Report saved to {path}", file=sys.stderr)


def _run_scan(args) -> int:
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if _missing_paths(args.paths):
        return 2

    summary = scan_paths(args.paths, config, normalize_extensions(args.include), args.exclude)
    if summary.total_files == 0:
        print("No files found to analyze", file=sys.stderr)
        return 1

    _write_output(json.dumps(summary.to_dict(), indent=2), args.output)

    passed, message = ComplianceGate(args.min_score, args.fail_on_risky).check(summary)
    print(message, file=sys.stderr)
    return 0 if passed else 1


def _run_upgrade(args) -> int:
    if _missing_paths(args.paths):
        return 2

    report = scan_for_upgrades(args.paths, args.confidence, normalize_extensions(args.include), args.exclude)
    if report.total_files == 0:
        print("No files found to analyze", file=sys.stderr)
        return 1

    _write_output(json.dumps(report.to_dict(), indent=2), args.output)

    if not report.suggestions:
        print("✅ No upgrade suggestions found. Your code looks modern!", file=sys.stderr)
        return 0
    for level, items in report.by_confidence().items():
        if items:
            print(f"{level.upper()} CONFIDENCE: {len(items)} suggestions", file=sys.stderr)
    print(f"📈 Summary: Found {len(report.suggestions)} upgrade opportunities", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "server":
        uvicorn.run(app, host=args.host, port=args.port)
        return 0
    if args.command == "update-data":
        return 0 if asyncio.run(baseline_store.fetch_baseline_data()) else 1
    if args.command == "upgrade":
        return _run_upgrade(args)
    return _run_scan(args)


if __name__ == "__main__":
    sys.exit(main())
