"""Read-only access to the Kubernetes API: pod listing and per-pod diagnostics.

``list_all_pods`` raises ``FetchError`` when the pod list cannot be retrieved,
since there is nothing to triage without it.  The diagnostic fetchers never
raise: a failure is logged and yields an empty result.
"""

import logging
import ssl
from typing import Any

import httpx

from podtriage.config import get_settings
from podtriage.observability.metrics import DIAGNOSTIC_FETCH_FAILURES
from podtriage.storage import atomic_write_json
from podtriage.triage.models import ContainerStatus, PodEvent, PodSnapshot

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """The cluster's pod list could not be retrieved."""


# --- SSL / auth helpers ---


def _kube_ssl_verify() -> ssl.SSLContext | bool:
    """Build the SSL verification parameter for httpx.

    Returns False (skip verification) by default.
    If verify_ssl is True and a CA cert path is provided, returns an SSLContext.
    If verify_ssl is True with no cert, returns True (system CA bundle).
    """
    settings = get_settings()
    if not settings.kube_verify_ssl:
        return False
    if settings.kube_ca_cert:
        return ssl.create_default_context(cafile=settings.kube_ca_cert)
    return True


def _kube_headers() -> dict[str, str]:
    return {
        "Authorization": f"Bearer {get_settings().kube_token}",
        "Accept": "application/json",
    }


async def _kube_get(path: str, params: dict[str, str] | None = None) -> httpx.Response:
    """Authenticated GET against the Kubernetes API. Raises on non-2xx."""
    settings = get_settings()
    url = f"{settings.kube_api_server.rstrip('/')}{path}"
    async with httpx.AsyncClient(
        timeout=settings.request_timeout_seconds,
        verify=_kube_ssl_verify(),
    ) as client:
        response = await client.get(url, headers=_kube_headers(), params=params)
        _ = response.raise_for_status()
        return response


# --- Parsing ---


def _parse_container_status(raw: dict[str, Any]) -> ContainerStatus:
    state = raw.get("state") or {}
    last_state = raw.get("lastState") or {}
    waiting = state.get("waiting") or {}
    terminated = last_state.get("terminated") or {}
    return ContainerStatus(
        name=str(raw.get("name", "")),
        waiting_reason=str(waiting.get("reason") or ""),
        last_terminated_reason=str(terminated.get("reason") or ""),
        restart_count=int(raw.get("restartCount") or 0),
    )


def parse_pod(raw: dict[str, Any]) -> PodSnapshot:
    """Convert one item of a PodList into a PodSnapshot."""
    metadata = raw.get("metadata") or {}
    status = raw.get("status") or {}
    container_statuses = status.get("containerStatuses")
    if not isinstance(container_statuses, list):
        container_statuses = []
    return PodSnapshot(
        name=str(metadata.get("name", "")),
        namespace=str(metadata.get("namespace", "")),
        phase=str(status.get("phase") or "Unknown"),
        reason=str(status.get("reason") or ""),
        message=str(status.get("message") or ""),
        container_statuses=[_parse_container_status(cs) for cs in container_statuses if isinstance(cs, dict)],
    )


def parse_event(raw: dict[str, Any]) -> PodEvent:
    """Convert one item of an EventList into a PodEvent."""
    return PodEvent(
        type=str(raw.get("type") or ""),
        reason=str(raw.get("reason") or ""),
        message=str(raw.get("message") or ""),
        count=int(raw.get("count") or 1),
        last_timestamp=str(raw.get("lastTimestamp") or raw.get("eventTime") or ""),
    )


# --- Public API ---


def _dump_raw_pods(path: str, items: list[dict[str, Any]]) -> None:
    """Write the raw pod list for debugging (best-effort, never raises)."""
    try:
        atomic_write_json(path, items)
        logger.debug("Raw pod list written to %s", path)
    except Exception:
        logger.exception("Failed to write raw pod dump to %s", path)


async def list_all_pods() -> list[PodSnapshot]:
    """Fetch every pod in every namespace, in API order.

    When ``POD_DUMP_PATH`` is set, the raw PodList items are also written there.

    Raises:
        FetchError: If the API is unreachable or returns a non-success status.
    """
    try:
        response = await _kube_get("/api/v1/pods")
        body: dict[str, Any] = response.json()
    except httpx.HTTPStatusError as e:
        msg = f"Failed to fetch pods: HTTP {e.response.status_code} {e.response.reason_phrase}"
        raise FetchError(msg) from e
    except (httpx.HTTPError, ValueError) as e:
        msg = f"Failed to fetch pods: {e}"
        raise FetchError(msg) from e

    items = body.get("items") or []
    raw_pods = [item for item in items if isinstance(item, dict)]
    dump_path = get_settings().pod_dump_path
    if dump_path:
        _dump_raw_pods(dump_path, raw_pods)

    pods = [parse_pod(item) for item in raw_pods]
    logger.info("Fetched %d pods", len(pods))
    return pods


async def get_pod_events(namespace: str, name: str) -> list[PodEvent]:
    """Fetch the events involving one pod. Returns [] on any failure."""
    try:
        response = await _kube_get(
            f"/api/v1/namespaces/{namespace}/events",
            params={"fieldSelector": f"involvedObject.name={name}"},
        )
        body: dict[str, Any] = response.json()
        items = body.get("items") or []
        return [parse_event(item) for item in items if isinstance(item, dict)]
    except Exception as e:
        DIAGNOSTIC_FETCH_FAILURES.labels(kind="events").inc()
        logger.warning("Failed to fetch events for pod %s/%s: %s", namespace, name, e)
        return []


async def get_pod_logs(namespace: str, name: str) -> str:
    """Fetch the tail of one pod's logs. Returns "" on any failure."""
    settings = get_settings()
    try:
        response = await _kube_get(
            f"/api/v1/namespaces/{namespace}/pods/{name}/log",
            params={"tailLines": str(settings.log_tail_lines)},
        )
        return response.text
    except Exception as e:
        DIAGNOSTIC_FETCH_FAILURES.labels(kind="logs").inc()
        logger.warning("Failed to fetch logs for pod %s/%s: %s", namespace, name, e)
        return ""
