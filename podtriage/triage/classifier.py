"""Pod classification: is a pod problematic, and how bad is it.

Severity is the worst signal seen on any single container, not an aggregate
score.  A single Critical container outweighs any number of healthy ones.
"""

from collections.abc import Iterable

from podtriage.triage.models import ContainerStatus, PodSnapshot, Severity, TriageResult

RUNNING_PHASE = "Running"

ERROR_REASONS = frozenset(
    {
        "CrashLoopBackOff",
        "ImagePullBackOff",
        "ErrImagePull",
        "CreateContainerConfigError",
        "RunContainerError",
        "Error",
        "ContainerCannotRun",
        "OOMKilled",
        "Evicted",
        "DeadlineExceeded",
    }
)
CRITICAL_REASONS = frozenset({"CrashLoopBackOff", "OOMKilled", "ImagePullBackOff", "ContainerCannotRun"})
WARNING_REASONS = frozenset({"Completed", "Evicted", "DeadlineExceeded", "ErrImagePull", "Error"})

PROBLEMATIC_RESTART_THRESHOLD = 3
CRITICAL_RESTART_THRESHOLD = 5
WARNING_RESTART_THRESHOLD = 3


def _matches(cs: ContainerStatus, reasons: frozenset[str], restart_threshold: int) -> bool:
    return (
        cs.waiting_reason in reasons
        or cs.last_terminated_reason in reasons
        or cs.restart_count > restart_threshold
    )


def is_problematic(pod: PodSnapshot) -> bool:
    """Return True if the pod is not Running or any container shows an error signal."""
    if pod.phase != RUNNING_PHASE:
        return True
    return any(_matches(cs, ERROR_REASONS, PROBLEMATIC_RESTART_THRESHOLD) for cs in pod.container_statuses)


def _container_severity(cs: ContainerStatus) -> Severity | None:
    """Severity signalled by one container, or None if it matched nothing."""
    if _matches(cs, CRITICAL_REASONS, CRITICAL_RESTART_THRESHOLD):
        return Severity.CRITICAL
    if _matches(cs, WARNING_REASONS, WARNING_RESTART_THRESHOLD):
        return Severity.WARNING
    return None


def categorize_severity(pod: PodSnapshot) -> tuple[Severity, list[str]]:
    """Classify a pod's severity and collect the reasons that triggered it.

    Both the waiting and last-terminated reason of every matching container
    are recorded, in container order, with empty values dropped.  The pod
    phase only becomes a reason when no container matched at all, so a
    non-Running pod with Warning-level containers stays Warning.

    Returns:
        A ``(severity, reasons)`` tuple.
    """
    severity = Severity.INFO
    reasons: list[str] = []
    matched = False
    for cs in pod.container_statuses:
        container_severity = _container_severity(cs)
        if container_severity is None:
            continue
        matched = True
        severity = min(severity, container_severity, key=lambda s: s.rank)
        reasons.extend((cs.waiting_reason, cs.last_terminated_reason))

    if not matched and pod.phase != RUNNING_PHASE:
        reasons.append(pod.phase)

    return severity, [r for r in reasons if r]


def triage_pod(pod: PodSnapshot) -> TriageResult:
    """Build the immutable triage result for one pod."""
    severity, reasons = categorize_severity(pod)
    return TriageResult(
        name=pod.name,
        namespace=pod.namespace,
        phase=pod.phase,
        reason=pod.reason,
        message=pod.message,
        severity=severity,
        reasons=reasons,
    )


def triage_pods(pods: Iterable[PodSnapshot]) -> list[TriageResult]:
    """Triage the problematic pods, keeping input order."""
    return [triage_pod(pod) for pod in pods if is_problematic(pod)]


def sort_by_severity(results: Iterable[TriageResult]) -> list[TriageResult]:
    """Stable sort: Critical first, then Warning, then Info."""
    return sorted(results, key=lambda r: r.severity.rank)
