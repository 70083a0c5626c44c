"""Dependency graph construction, epic expansion and validation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set

from .models import Issue, PlanningError

logger = logging.getLogger(__name__)


class DependencyError(PlanningError):
    def __init__(self, issue_key: str, message: str) -> None:
        super().__init__(message)
        self.issue_key = issue_key


class SelfDependencyError(DependencyError):
    def __init__(self, issue_key: str) -> None:
        super().__init__(issue_key, f"Issue {issue_key} depends on itself")


class MissingDependencyError(DependencyError):
    def __init__(self, issue_key: str, dependency_key: str) -> None:
        super().__init__(
            issue_key, f"Issue {issue_key} depends on unknown issue {dependency_key}"
        )
        self.dependency_key = dependency_key


class CircularDependencyError(DependencyError):
    def __init__(self, issue_key: str, cycle: Sequence[str]) -> None:
        path = " -> ".join(cycle)
        super().__init__(issue_key, f"Circular dependency involving {issue_key}: {path}")
        self.cycle = tuple(cycle)


class KeyMismatchError(DependencyError):
    def __init__(self, map_key: str, issue_key: str) -> None:
        super().__init__(
            issue_key, f"Issue map key {map_key!r} does not match issue key {issue_key!r}"
        )
        self.map_key = map_key


class DuplicateIssueError(DependencyError):
    def __init__(self, issue_key: str) -> None:
        super().__init__(issue_key, f"Issue {issue_key} appears more than once")


@dataclass
class IssueGraph:
    issues: Dict[str, Issue] = field(default_factory=dict)
    epics: Dict[str, List[str]] = field(default_factory=dict)

    def get(self, key: str) -> Issue:
        return self.issues[key]

    def schedulable(self) -> List[Issue]:
        return [issue for issue in self.issues.values() if not issue.is_epic]


def _register(graph: IssueGraph, issue: Issue) -> None:
    if issue.key in graph.issues:
        raise DuplicateIssueError(issue.key)
    issue.dependencies = set()
    issue.dependency_of = set()
    issue.nested_dependencies = set()
    issue.nested_dependency_of = set()
    graph.issues[issue.key] = issue
    if issue.is_epic:
        graph.epics.setdefault(issue.key, [])
    if issue.epic:
        graph.epics.setdefault(issue.epic, []).append(issue.key)


def _link(issue: Issue, dependency: Issue) -> None:
    issue.dependencies.add(dependency.key)
    dependency.dependency_of.add(issue.key)


def _expand_direct_edges(graph: IssueGraph) -> None:
    for issue in graph.issues.values():
        for dependency_key in issue.dependency_keys:
            dependency = graph.issues.get(dependency_key)
            if dependency is None:
                raise MissingDependencyError(issue.key, dependency_key)
            if dependency_key == issue.key:
                raise SelfDependencyError(issue.key)
            if not dependency.is_epic:
                _link(issue, dependency)
                continue
            members = graph.epics.get(dependency.key, [])
            if not members:
                logger.warning(
                    "Issue %s depends on epic %s which has no issues; dependency ignored",
                    issue.key,
                    dependency.key,
                )
                continue
            for member_key in members:
                if member_key == issue.key:
                    raise CircularDependencyError(
                        issue.key, [issue.key, dependency.key, issue.key]
                    )
                _link(issue, graph.issues[member_key])


def compute_nested_dependencies(issues: Dict[str, Issue]) -> Dict[str, Set[str]]:
    """Transitive closure of ``Issue.dependencies`` for every issue.

    Iterative depth-first traversal; each closure is computed once and reused
    by every issue that reaches it. Re-entering a key that is still on the
    traversal stack raises CircularDependencyError with the offending path.
    """
    closures: Dict[str, Set[str]] = {}
    for root in issues:
        if root in closures:
            continue
        on_stack: Set[str] = {root}
        path: List[str] = [root]
        stack = [(root, iter(sorted(issues[root].dependencies)))]
        while stack:
            key, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                path.pop()
                on_stack.discard(key)
                closure: Set[str] = set()
                for dependency_key in issues[key].dependencies:
                    closure.add(dependency_key)
                    closure |= closures[dependency_key]
                closures[key] = closure
                continue
            if child in on_stack:
                start = path.index(child)
                raise CircularDependencyError(child, path[start:] + [child])
            if child in closures:
                continue
            if child not in issues:
                raise MissingDependencyError(key, child)
            on_stack.add(child)
            path.append(child)
            stack.append((child, iter(sorted(issues[child].dependencies))))
    return closures


def validate_graph(graph: IssueGraph) -> None:
    """Check map keys, nested dependency references and self-containment."""
    for map_key, issue in graph.issues.items():
        if issue.key != map_key:
            raise KeyMismatchError(map_key, issue.key)
        for dependency_key in sorted(issue.nested_dependencies):
            if dependency_key not in graph.issues:
                raise MissingDependencyError(issue.key, dependency_key)
        if issue.key in issue.nested_dependencies:
            raise CircularDependencyError(issue.key, [issue.key, issue.key])


def build_issue_graph(issues: Iterable[Issue]) -> IssueGraph:
    """Index issues, expand epic references and compute nested dependencies.

    Raises:
        SelfDependencyError: An issue lists its own key.
        MissingDependencyError: A dependency key names no known issue.
        CircularDependencyError: The direct edges contain a cycle.
        DuplicateIssueError: Two issues share a key.
        KeyMismatchError: The issue map is inconsistent.
    """
    graph = IssueGraph()
    for issue in issues:
        _register(graph, issue)
    _expand_direct_edges(graph)
    closures = compute_nested_dependencies(graph.issues)
    for key, closure in closures.items():
        issue = graph.issues[key]
        issue.nested_dependencies = set(closure)
        for dependency_key in closure:
            graph.issues[dependency_key].nested_dependency_of.add(key)
    validate_graph(graph)
    return graph
