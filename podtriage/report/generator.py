"""Pod health report generator.

Fetches every pod, triages the problematic ones, diffs them against the
previous run, then enriches each problematic pod with its events, logs and an
LLM summary.  Only the pod listing and persistence can fail a run; every
per-pod diagnostic degrades to an empty or sentinel value instead.
"""

import logging
import time
from collections.abc import Sequence
from datetime import UTC, datetime

from podtriage.cluster.client import get_pod_events, get_pod_logs, list_all_pods
from podtriage.config import get_settings
from podtriage.observability.metrics import PROBLEMATIC_PODS, RUN_DURATION, RUNS_TOTAL
from podtriage.report.email import notify
from podtriage.report.summarizer import summarize_pod
from podtriage.storage import atomic_write_json
from podtriage.triage.classifier import sort_by_severity, triage_pods
from podtriage.triage.history import HistoryStore
from podtriage.triage.models import EnrichedResult, HistoryEntry, Severity, TriageReport, TriageResult
from podtriage.triage.trends import analyze_trends, group_by_issue_type

logger = logging.getLogger(__name__)

HEALTHY_MESSAGE = "All pods are healthy (no CrashLoopBackOff, ImagePullBackOff, etc)."


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------


async def enrich_pod(pod: TriageResult) -> EnrichedResult:
    """Fetch events, then logs, then the LLM summary for one pod."""
    events = await get_pod_events(pod.namespace, pod.name)
    logs = await get_pod_logs(pod.namespace, pod.name)
    ai = await summarize_pod(pod, events, logs)
    return EnrichedResult(
        **pod.model_dump(),
        events=events,
        logs=logs,
        summary=ai.summary,
        suggestion=ai.suggestion,
        confidence=ai.confidence,
    )


def _severity_counts(pods: Sequence[TriageResult]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for severity in Severity:
        n = sum(1 for p in pods if p.severity is severity)
        if n:
            counts[severity.value] = n
    return counts


def _record_severity_gauge(pods: Sequence[TriageResult]) -> None:
    for severity in Severity:
        PROBLEMATIC_PODS.labels(severity=severity.value).set(sum(1 for p in pods if p.severity is severity))


# ---------------------------------------------------------------------------
# Digest formatter
# ---------------------------------------------------------------------------


def _format_trend_section(title: str, pods: Sequence[TriageResult]) -> list[str]:
    """Render one trend partition grouped by issue type. Empty partitions render nothing."""
    if not pods:
        return []
    lines = [f"{title} ({len(pods)}):"]
    for issue_type, group in group_by_issue_type(pods).items():
        lines.append(f"- {issue_type}:")
        for pod in group:
            lines.append(f"    - {pod.name} (Namespace: {pod.namespace})")
    lines.append("")
    return lines


def _format_pod_block(pod: EnrichedResult) -> list[str]:
    return [
        f"[{pod.severity}] Pod: {pod.name} (Namespace: {pod.namespace})",
        f"Status: {pod.phase}",
        f"Reason: {pod.reason}",
        f"Message: {pod.message}",
        f"Summary: {pod.summary}",
        f"Suggestion: {pod.suggestion}",
        f"Confidence: {pod.confidence:g}%",
        "---",
    ]


def format_digest(report: TriageReport) -> str:
    """Convert a TriageReport into the plain-text digest that gets emailed."""
    lines: list[str] = []
    lines.append("Kubernetes Pod Health Report")
    lines.append(f"Generated: {report.generated_at}")
    lines.append(f"Total pods: {report.total_pods}")
    lines.append("")

    if report.problematic_count == 0:
        lines.append(HEALTHY_MESSAGE)
        lines.append("")
        lines.extend(_format_trend_section("Resolved Issues", report.trends.resolved))
        return "\n".join(lines).rstrip() + "\n"

    lines.append(f"Found {report.problematic_count} problematic pods.")
    if report.severity_counts:
        parts = [f"{sev}: {count}" for sev, count in report.severity_counts.items()]
        lines.append(f"By severity: {', '.join(parts)}")
    lines.append("")

    lines.extend(_format_trend_section("Recurring Issues", report.trends.recurring))
    lines.extend(_format_trend_section("New Issues", report.trends.new_issues))
    lines.extend(_format_trend_section("Resolved Issues", report.trends.resolved))

    for issue_type, group in group_by_issue_type(report.results).items():
        lines.append(f"=== Issue Type: {issue_type} ({len(group)} pods) ===")
        for pod in group:
            lines.extend(_format_pod_block(pod))
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


# ---------------------------------------------------------------------------
# Top-level entry points
# ---------------------------------------------------------------------------


def _write_report(path: str, report: TriageReport) -> None:
    """Persist the structured report. Raises on failure."""
    atomic_write_json(path, report.model_dump(mode="json", exclude={"digest"}))
    logger.info("Report written to %s", path)


async def generate_report(*, send_email: bool = True) -> TriageReport:
    """Run one full triage pass and return the report.

    History is appended and saved on every run, including all-healthy runs,
    so the next run always diffs against this one.  When nothing is
    problematic no diagnostics or LLM calls are made.

    Args:
        send_email: Deliver the digest via email when configured.

    Raises:
        FetchError: If the pod list cannot be retrieved. History is untouched.
        OSError: If the history or report file cannot be written.
    """
    settings = get_settings()

    pods = await list_all_pods()
    problematic = triage_pods(pods)
    logger.info("Found %d problematic pods out of %d", len(problematic), len(pods))

    store = HistoryStore(settings.history_file)
    history = store.load()
    trends = analyze_trends(history, problematic)
    generated_at = datetime.now(UTC).isoformat()
    _ = store.append(history, HistoryEntry(timestamp=generated_at, problematic_pods=problematic))
    _record_severity_gauge(problematic)

    results: list[EnrichedResult] = []
    if problematic:
        ordered = sort_by_severity(problematic)
        for issue_type, group in group_by_issue_type(ordered).items():
            logger.info("Enriching %d pod(s) with issue type %s", len(group), issue_type)
            for pod in group:
                results.append(await enrich_pod(pod))

    report = TriageReport(
        generated_at=generated_at,
        total_pods=len(pods),
        problematic_count=len(problematic),
        severity_counts=_severity_counts(problematic),
        trends=trends,
        results=results,
    )
    report = report.model_copy(update={"digest": format_digest(report)})

    _write_report(settings.report_file, report)

    if send_email:
        emailed = await notify(settings.report_subject, report.digest)
        if not emailed:
            logger.warning("Report generated but not emailed")

    return report


async def run_triage(trigger: str, *, send_email: bool = True) -> TriageReport:
    """Generate a report and record run metrics. Re-raises any failure."""
    start = time.monotonic()
    try:
        report = await generate_report(send_email=send_email)
    except Exception:
        RUNS_TOTAL.labels(trigger=trigger, status="error").inc()
        RUN_DURATION.observe(time.monotonic() - start)
        raise
    RUNS_TOTAL.labels(trigger=trigger, status="success").inc()
    RUN_DURATION.observe(time.monotonic() - start)
    return report
