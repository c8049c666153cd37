"""LLM root-cause summaries for problematic pods.

One chat call per pod.  The model is asked for a JSON object; replies that
are fenced in markdown code blocks are unwrapped first.  Nothing here raises:
undecodable replies become a plain-text summary and call failures become a
fixed sentinel with zero confidence.
"""

import json
import logging
import re

from langchain_openai import ChatOpenAI
from pydantic import SecretStr, ValidationError

from podtriage.config import get_settings
from podtriage.observability.metrics import LLM_CALLS_TOTAL
from podtriage.triage.models import AISummary, PodEvent, TriageResult

logger = logging.getLogger(__name__)

CALL_FAILED_SUMMARY = "Failed to get summary from the LLM."
NO_RESPONSE_SUMMARY = "No response from the LLM."
UNSTRUCTURED_CONFIDENCE = 50

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` or ```json fence, if present."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    return match.group(1) if match else stripped


def parse_summary_reply(reply: str) -> AISummary:
    """Decode the model's reply into an AISummary.

    Falls back to the reply text as the summary (confidence 50) when it is
    not a JSON object with the expected fields.
    """
    content = strip_code_fence(reply)
    try:
        return AISummary.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError):
        logger.debug("LLM reply was not structured JSON; using raw text")
        return AISummary(summary=content, suggestion="", confidence=UNSTRUCTURED_CONFIDENCE)


def build_prompt(pod: TriageResult, events: list[PodEvent], logs: str) -> str:
    """Assemble the per-pod prompt, truncating events and logs to fit the context window."""
    settings = get_settings()
    recent_events = events[-settings.max_prompt_events :] if settings.max_prompt_events > 0 else []
    events_json = json.dumps([e.model_dump() for e in recent_events], indent=2)
    truncated_logs = logs[-settings.max_log_chars :] if settings.max_log_chars > 0 else ""
    return (
        f"Pod Name: {pod.name}\n"
        f"Namespace: {pod.namespace}\n"
        f"Phase: {pod.phase}\n"
        f"Severity: {pod.severity}\n"
        f"Reasons: {', '.join(pod.reasons) or 'none'}\n"
        f"Reason: {pod.reason}\n"
        f"Message: {pod.message}\n"
        f"Events:\n```json\n{events_json}\n```\n"
        f"Logs (tail):\n```\n{truncated_logs}\n```\n\n"
        "Summarize the reason this pod is not running or is unhealthy (including "
        "CrashLoopBackOff, ImagePullBackOff, etc), suggest possible fixes, and estimate "
        "a confidence score (0-100) for your fix suggestion. Respond only with JSON: "
        '{"summary": string, "suggestion": string, "confidence": number}'
    )


async def summarize_pod(pod: TriageResult, events: list[PodEvent], logs: str) -> AISummary:
    """Ask the LLM to explain one problematic pod. Never raises."""
    settings = get_settings()
    try:
        llm = ChatOpenAI(
            model=settings.openai_model,
            api_key=SecretStr(settings.openai_api_key),
            temperature=0.2,
            base_url=settings.openai_base_url or None,
            timeout=settings.llm_timeout_seconds,
            max_tokens=settings.llm_max_tokens,  # pyright: ignore[reportCallIssue]
        )
        response = await llm.ainvoke(build_prompt(pod, events, logs))
        content = str(response.content)
    except Exception:
        LLM_CALLS_TOTAL.labels(status="error").inc()
        logger.exception("LLM summary failed for pod %s/%s", pod.namespace, pod.name)
        return AISummary(summary=CALL_FAILED_SUMMARY, suggestion="", confidence=0)

    LLM_CALLS_TOTAL.labels(status="success").inc()
    if not content.strip():
        logger.warning("Empty LLM reply for pod %s/%s", pod.namespace, pod.name)
        return AISummary(summary=NO_RESPONSE_SUMMARY, suggestion="", confidence=0)
    return parse_summary_reply(content)
