from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import IO, Iterable, Optional, Tuple, Union

import pandas as pd
from dateutil import parser as dateparser

from .models import DEFAULT_BUCKET_COUNT, DEFAULT_POINTS, POINTS_PER_SPRINT, PlanningConfig

DATE_FMT = "%Y-%m-%d"

_ISSUE_REQUIRED_COLUMNS = {"key"}
_ISSUE_OPTIONAL_COLUMNS = (
    "points",
    "priority",
    "summary",
    "sprint",
    "status",
    "type",
    "epic",
    "dependencies",
)

CsvSource = Union[str, Path, IO[str], IO[bytes]]


def _require_columns(df: pd.DataFrame, required: Iterable[str], source: str) -> None:
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"{source} missing required columns: {', '.join(missing)}")


def parse_dependency_field(value: object) -> Tuple[str, ...]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ()
    return tuple(token.strip() for token in str(value).split(",") if token.strip())


def load_issues(source: CsvSource) -> pd.DataFrame:
    """Read an issues CSV into a string-typed frame with every known column."""
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as exc:
        raise ValueError("issues file is empty") from exc
    df.columns = [str(col).strip().lower() for col in df.columns]
    if df.empty:
        raise ValueError("issues file is empty")
    _require_columns(df, _ISSUE_REQUIRED_COLUMNS, "issues.csv")
    for col in _ISSUE_OPTIONAL_COLUMNS:
        if col not in df.columns:
            df[col] = ""
    for col in ("key", "priority", "type", "epic"):
        df[col] = df[col].str.strip()
    blank = df.index[df["key"] == ""].tolist()
    if blank:
        rows = ", ".join(str(idx + 1) for idx in blank)
        raise ValueError(f"issue key is required (rows {rows})")
    duplicated = sorted(set(df.loc[df["key"].duplicated(), "key"]))
    if duplicated:
        raise ValueError(f"duplicate issue keys: {', '.join(duplicated)}")
    df["dependencies"] = df["dependencies"].map(parse_dependency_field)
    return df


def _parse_optional_date(value: object, field_name: str) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip() == "":
        return None
    try:
        return dateparser.isoparse(str(value)).date()
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid date in '{field_name}': {value}") from exc


def _positive_number(data: dict, key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    if value <= 0:
        raise ValueError(f"{key} must be positive")
    return float(value)


def _positive_int(data: dict, key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    if value <= 0:
        raise ValueError(f"{key} must be a positive integer")
    return value


def config_from_dict(data: dict) -> PlanningConfig:
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")
    logging_level = data.get("logging_level", "INFO")
    if not isinstance(logging_level, str):
        raise ValueError("logging_level must be a string")
    return PlanningConfig(
        bucket_count=_positive_int(data, "bucket_count", DEFAULT_BUCKET_COUNT),
        points_per_sprint=_positive_number(data, "points_per_sprint", POINTS_PER_SPRINT),
        default_points=_positive_number(data, "default_points", DEFAULT_POINTS),
        planning_start=_parse_optional_date(data.get("planning_start"), "planning_start"),
        sprint_length_weeks=_positive_int(data, "sprint_length_weeks", 1),
        logging_level=logging_level,
    )


def load_config(path: str | Path) -> PlanningConfig:
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"config file is not valid JSON: {exc}") from exc
    return config_from_dict(data)


def ensure_directory(path: str | Path) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_csv(df: pd.DataFrame, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
