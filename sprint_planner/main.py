from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Tuple

from . import engine
from .export import schedule_table, sprint_export_name, sprint_table
from .io_utils import ensure_directory, load_config, load_issues, write_csv
from .models import PlanningConfig, PlanningError


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Dependency-aware sprint planner (CSV in/out)."
    )
    parser.add_argument(
        "--project-dir",
        help="Project directory containing input/ and output/ subfolders",
    )
    parser.add_argument("--issues", help="Path to issues CSV input (overrides project-dir default)")
    parser.add_argument(
        "--config",
        help="Path to configuration JSON file (overrides project-dir default; optional)",
    )
    parser.add_argument(
        "--outdir",
        default=None,
        help="Output directory for generated CSV files (default: <project-dir>/output or ./out)",
    )
    parser.add_argument("--buckets", type=int, help="Override config.bucket_count")
    parser.add_argument(
        "--points-per-sprint",
        type=float,
        help="Override config.points_per_sprint",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan and print summary without writing output CSV files",
    )
    return parser.parse_args(argv)


def _resolve_io_paths(args: argparse.Namespace) -> Tuple[Path, Optional[Path], Path]:
    project_dir = Path(args.project_dir).resolve() if args.project_dir else None
    if project_dir and not project_dir.exists():
        raise ValueError(f"project directory not found: {project_dir}")
    input_dir = project_dir / "input" if project_dir else None

    if args.issues:
        issues_path = Path(args.issues)
    elif input_dir:
        issues_path = input_dir / "issues.csv"
    else:
        raise ValueError("missing required input path: --issues (or provide --project-dir)")
    if not issues_path.exists():
        raise ValueError(f"issues file not found at {issues_path}")

    config_path: Optional[Path] = None
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            raise ValueError(f"config file not found at {config_path}")
    elif input_dir and (input_dir / "config.json").exists():
        config_path = input_dir / "config.json"

    if args.outdir:
        outdir = Path(args.outdir)
    elif project_dir:
        outdir = project_dir / "output"
    else:
        outdir = Path("out")

    return issues_path, config_path, outdir


def _apply_overrides(cfg: PlanningConfig, args: argparse.Namespace) -> PlanningConfig:
    if args.buckets is not None:
        if args.buckets <= 0:
            raise ValueError("--buckets must be positive")
        cfg = replace(cfg, bucket_count=args.buckets)
    if args.points_per_sprint is not None:
        if args.points_per_sprint <= 0:
            raise ValueError("--points-per-sprint must be positive")
        cfg = replace(cfg, points_per_sprint=args.points_per_sprint)
    return cfg


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")


def _print_dry_run_summary(result: engine.PlanResult, cfg: PlanningConfig) -> None:
    print(f"{sprint_export_name(cfg)} ({cfg.bucket_count} buckets)")
    for index, bucket in enumerate(result.buckets, start=1):
        if not bucket.issues:
            continue
        keys = ", ".join(bucket.keys())
        print(f"- Bucket {index} (weight {bucket.weight:g}): {keys}")
    sprints = sprint_table(result.buckets, cfg.points_per_sprint)
    print(f"\nSprints needed: {len(sprints.columns)}")


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    try:
        issues_path, config_path, outdir = _resolve_io_paths(args)
        cfg = load_config(config_path) if config_path else PlanningConfig()
        cfg = _apply_overrides(cfg, args)
        issues_df = load_issues(issues_path)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(2)

    _configure_logging(cfg.logging_level)
    try:
        result = engine.plan(issues_df, cfg)
    except PlanningError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    if args.dry_run:
        _print_dry_run_summary(result, cfg)
        return

    outdir_path = ensure_directory(outdir)
    sprint_path = outdir_path / "sprint_plan.csv"
    schedule_path = outdir_path / "bucket_schedule.csv"
    write_csv(sprint_table(result.buckets, cfg.points_per_sprint), sprint_path)
    write_csv(schedule_table(result, cfg), schedule_path)
    print(f"Wrote {sprint_path}")
    print(f"Wrote {schedule_path}")


if __name__ == "__main__":
    main()
