"""Prometheus metric definitions for pod triage self-instrumentation.

All metrics are module-level singletons registered with the default
prometheus_client registry.  Import them wherever instrumentation is needed.
"""

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# Run metrics
# ---------------------------------------------------------------------------

RUN_DURATION_BUCKETS = (1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0)

RUNS_TOTAL = Counter(
    "podtriage_runs_total",
    "Total number of triage runs",
    labelnames=["trigger", "status"],
)

RUN_DURATION = Histogram(
    "podtriage_run_duration_seconds",
    "Time taken by one triage run in seconds",
    buckets=RUN_DURATION_BUCKETS,
)

PROBLEMATIC_PODS = Gauge(
    "podtriage_problematic_pods",
    "Problematic pods found in the latest run",
    labelnames=["severity"],
)

# ---------------------------------------------------------------------------
# Collaborator metrics
# ---------------------------------------------------------------------------

DIAGNOSTIC_FETCH_FAILURES = Counter(
    "podtriage_diagnostic_fetch_failures_total",
    "Failed per-pod diagnostic fetches",
    labelnames=["kind"],
)

LLM_CALLS_TOTAL = Counter(
    "podtriage_llm_calls_total",
    "Total number of LLM summarization calls",
    labelnames=["status"],
)
