"""Run-over-run trend analysis and grouping of problematic pods by issue type."""

from collections.abc import Sequence
from typing import TypeVar

from podtriage.triage.models import HistoryEntry, TrendPartition, TriageResult

UNKNOWN_ISSUE_TYPE = "Unknown"

T = TypeVar("T", bound=TriageResult)


def analyze_trends(history: Sequence[HistoryEntry], current: Sequence[TriageResult]) -> TrendPartition:
    """Compare the current problematic set with the most recent run in ``history``.

    Only the last entry is consulted.  Pods are matched on ``(name, namespace)``.

    Returns:
        recurring and new_issues in current order; resolved in previous-run order.
    """
    previous = history[-1].problematic_pods if history else []
    previous_keys = {p.key for p in previous}
    current_keys = {p.key for p in current}

    return TrendPartition(
        recurring=[p for p in current if p.key in previous_keys],
        new_issues=[p for p in current if p.key not in previous_keys],
        resolved=[p for p in previous if p.key not in current_keys],
    )


def primary_issue_type(pod: TriageResult) -> str:
    """The label a pod is grouped under: first reason, pod reason, or Unknown."""
    if pod.reasons:
        return pod.reasons[0]
    return pod.reason or UNKNOWN_ISSUE_TYPE


def group_by_issue_type(pods: Sequence[T]) -> dict[str, list[T]]:
    """Partition pods by primary issue type, preserving first-seen and in-group order."""
    groups: dict[str, list[T]] = {}
    for pod in pods:
        groups.setdefault(primary_issue_type(pod), []).append(pod)
    return groups
