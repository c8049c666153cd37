"""Pydantic models for pod snapshots, triage results, history, and reports."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Severity(StrEnum):
    CRITICAL = "Critical"
    WARNING = "Warning"
    INFO = "Info"

    @property
    def rank(self) -> int:
        """Sort position: Critical first, Info last."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}


class ContainerStatus(BaseModel):
    """The parts of a container status the classifier looks at."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    waiting_reason: str = ""
    last_terminated_reason: str = ""
    restart_count: int = 0


class PodSnapshot(BaseModel):
    """One pod as fetched from the cluster. Read-only."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    phase: str = "Unknown"
    reason: str = ""
    message: str = ""
    container_statuses: list[ContainerStatus] = Field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.namespace)


class TriageResult(BaseModel):
    """Classification of a single problematic pod. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    phase: str
    reason: str = ""
    message: str = ""
    severity: Severity
    reasons: list[str] = Field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.namespace)


class HistoryEntry(BaseModel):
    """One triage run: when it happened and which pods were problematic."""

    timestamp: str  # ISO 8601
    problematic_pods: list[TriageResult] = Field(default_factory=list)


class TrendPartition(BaseModel):
    """Current problematic set compared against the previous run."""

    recurring: list[TriageResult] = Field(default_factory=list)
    new_issues: list[TriageResult] = Field(default_factory=list)
    resolved: list[TriageResult] = Field(default_factory=list)


class PodEvent(BaseModel):
    """A Kubernetes Event, trimmed to what is useful for diagnosis."""

    type: str = ""
    reason: str = ""
    message: str = ""
    count: int = 1
    last_timestamp: str = ""


class AISummary(BaseModel):
    """Structured reply from the LLM summarizer."""

    summary: str
    suggestion: str = ""
    confidence: float = Field(default=0, ge=0, le=100)


class EnrichedResult(TriageResult):
    """A triage result plus diagnostics and the LLM's explanation."""

    events: list[PodEvent] = Field(default_factory=list)
    logs: str = ""
    summary: str = ""
    suggestion: str = ""
    confidence: float = 0


class TriageReport(BaseModel):
    """Everything produced by one triage run."""

    generated_at: str  # ISO 8601
    total_pods: int
    problematic_count: int
    severity_counts: dict[str, int] = Field(default_factory=dict)
    trends: TrendPartition = Field(default_factory=TrendPartition)
    results: list[EnrichedResult] = Field(default_factory=list)
    digest: str = ""
