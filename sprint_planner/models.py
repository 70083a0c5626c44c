from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Set, Tuple


PRIORITY_RANKS: Dict[str, int] = {"Low": 1, "Medium": 2, "High": 3, "Critical": 4}

STORY = "Story"
EPIC = "Epic"

DEFAULT_BUCKET_COUNT = 10
DEFAULT_POINTS = 0.5
POINTS_PER_SPRINT = 2.0


class PlanningError(RuntimeError):
    """Base for fatal errors that abort a planning run."""


@dataclass
class Issue:
    """One work item. Edge sets hold issue keys, never issue objects."""

    key: str
    points: float
    priority: str = ""
    summary: str = ""
    sprint: str = ""
    status: str = ""
    issue_type: str = STORY
    epic: str = ""
    dependency_keys: Tuple[str, ...] = ()
    dependencies: Set[str] = field(default_factory=set)
    dependency_of: Set[str] = field(default_factory=set)
    nested_dependencies: Set[str] = field(default_factory=set)
    nested_dependency_of: Set[str] = field(default_factory=set)

    @property
    def is_epic(self) -> bool:
        return self.issue_type == EPIC

    @property
    def fan_in(self) -> int:
        return len(self.nested_dependency_of)


@dataclass(frozen=True)
class CapturedIssue:
    """An issue committed to a bucket over ``[weight_before, weight_after)``."""

    issue_key: str
    weight_before: float
    weight_after: float


@dataclass
class Bucket:
    weight: float = 0.0
    issues: List[CapturedIssue] = field(default_factory=list)

    def keys(self) -> List[str]:
        return [captured.issue_key for captured in self.issues]


@dataclass(frozen=True)
class PlanningConfig:
    bucket_count: int = DEFAULT_BUCKET_COUNT
    points_per_sprint: float = POINTS_PER_SPRINT
    default_points: float = DEFAULT_POINTS
    planning_start: Optional[date] = None
    sprint_length_weeks: int = 1
    logging_level: str = "INFO"
