"""Tests for the precedence-aware bucket scheduler."""

from __future__ import annotations

import logging

import pytest

from conftest import epic, placements, story
from sprint_planner.buckets import empty_buckets
from sprint_planner.graph import build_issue_graph
from sprint_planner.scheduler import UnschedulableIssuesError, schedule_issues


def _schedule(issues, bucket_count=10):
    graph = build_issue_graph(issues)
    return schedule_issues(graph.schedulable(), empty_buckets(bucket_count))


class TestPlacement:
    def test_dependency_follows_its_dependency(self):
        buckets = _schedule(
            [story("A", priority="High"), story("B", priority="Low", deps=["A"])]
        )
        placed = placements(buckets)

        assert placed["A"] == (0, 0, 1)
        assert placed["B"][1] >= 1
        assert placed["B"] == (0, 1, 2)

    def test_single_bucket_stacks_in_order(self):
        buckets = _schedule(
            [
                story("LOW", priority="Low"),
                story("HIGH", priority="High"),
                story("MED", priority="Medium"),
            ],
            bucket_count=1,
        )

        assert [c.issue_key for c in buckets[0].issues] == ["HIGH", "MED", "LOW"]
        assert [c.weight_after for c in buckets[0].issues] == [1, 2, 3]
        assert buckets[0].weight == 3

    def test_independent_issues_spread_across_buckets(self):
        buckets = _schedule(
            [story("X", priority="Critical"), story("Y", priority="High")],
            bucket_count=2,
        )
        placed = placements(buckets)

        assert placed["X"] == (0, 0, 1)
        assert placed["Y"] == (1, 0, 1)

    def test_dependent_packs_into_heaviest_fitting_bucket(self):
        buckets = _schedule(
            [
                story("A", points=2, priority="Critical"),
                story("B", points=1, priority="High"),
                story("C", points=1, priority="Low", deps=["A"]),
            ],
            bucket_count=2,
        )
        placed = placements(buckets)

        assert placed["A"] == (0, 0, 2)
        assert placed["B"] == (1, 0, 1)
        assert placed["C"] == (0, 2, 3)

    def test_falls_back_to_lightest_bucket(self):
        """No bucket is at or below the dependency floor, so the lightest is used."""
        buckets = _schedule(
            [
                story("A", points=1, priority="Low"),
                story("B", points=3, priority="Critical"),
                story("C", points=1, priority="Low", deps=["A"]),
            ],
            bucket_count=1,
        )
        placed = placements(buckets)

        assert placed["A"] == (0, 0, 1)
        assert placed["B"] == (0, 1, 4)
        assert placed["C"] == (0, 4, 5)

    def test_epics_are_never_scheduled(self):
        buckets = schedule_issues(
            [epic("E1"), story("A")], empty_buckets(3)
        )
        assert set(placements(buckets)) == {"A"}

    def test_default_bucket_list(self):
        buckets = schedule_issues([story("A")])
        assert len(buckets) == 10

    def test_nothing_to_schedule(self):
        buckets = schedule_issues([], empty_buckets(2))
        assert [b.weight for b in buckets] == [0, 0]

    def test_bucket_weight_tracks_last_issue(self):
        buckets = _schedule(
            [story("A", points=2), story("B", points=0.5, deps=["A"]), story("C")],
            bucket_count=3,
        )
        for bucket in buckets:
            expected = max((c.weight_after for c in bucket.issues), default=0)
            assert bucket.weight == expected

    def test_places_one_issue_per_pass(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="sprint_planner.scheduler"):
            _schedule([story("A"), story("B"), story("C", deps=["A"])], bucket_count=2)

        placed_lines = [r for r in caplog.records if r.getMessage().startswith("Placed")]
        assert [r.args[0] for r in placed_lines] == ["A", "B", "C"]


class TestNoProgress:
    def test_unready_issues_raise(self):
        ghost = story("X")
        ghost.nested_dependencies = {"GHOST"}
        waiting = story("Y")
        waiting.nested_dependencies = {"X"}

        with pytest.raises(UnschedulableIssuesError) as exc_info:
            schedule_issues([ghost, waiting], empty_buckets(2))

        assert set(exc_info.value.issue_keys) == {"X", "Y"}
        assert exc_info.value.placed == 0

    def test_reports_progress_before_stalling(self):
        ready = story("A", priority="Critical")
        stuck = story("B")
        stuck.nested_dependencies = {"E1"}

        with pytest.raises(UnschedulableIssuesError) as exc_info:
            schedule_issues([ready, stuck], empty_buckets(1))

        assert exc_info.value.issue_keys == ("B",)
        assert exc_info.value.placed == 1

    def test_zero_buckets(self):
        with pytest.raises(ValueError):
            schedule_issues([story("A")], [])
