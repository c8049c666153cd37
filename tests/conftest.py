"""Shared pytest configuration and fixtures."""

from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from podtriage.config import Settings, get_settings
from podtriage.triage.models import ContainerStatus, PodSnapshot


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run e2e tests that hit a real cluster (requires .env with valid credentials)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="Need --run-e2e flag to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture(autouse=True)
def _no_dotenv(request: pytest.FixtureRequest) -> Generator[None]:
    """Block .env loading so tests that forget mock_settings fail locally, not just in CI.

    Sets Settings.model_config['env_file'] = None before each test (except e2e).
    Tests that use mock_settings bypass Settings() entirely, so this is transparent.
    """
    if "e2e" in request.keywords:
        yield
        return

    get_settings.cache_clear()
    original = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    try:
        yield
    finally:
        Settings.model_config["env_file"] = original
        get_settings.cache_clear()


@pytest.fixture
def mock_settings(tmp_path: Path) -> Generator[Any]:
    """Provide fake settings so tests don't need a .env file.

    Patches get_settings at every import site so cached references are overridden.
    History and report files live under the test's tmp_path.
    """
    fake_settings = type(
        "FakeSettings",
        (),
        {
            # Kubernetes
            "kube_api_server": "https://kube.test:6443",
            "kube_token": "kube-test-fake-token",
            "kube_verify_ssl": False,
            "kube_ca_cert": "",
            "request_timeout_seconds": 5.0,
            "log_tail_lines": 200,
            # LLM
            "openai_api_key": "sk-proj-test-fake",
            "openai_model": "gpt-4o-mini",
            "openai_base_url": "",
            "llm_timeout_seconds": 30.0,
            "llm_max_tokens": 400,
            "max_log_chars": 4000,
            "max_prompt_events": 20,
            # Persistence
            "history_file": str(tmp_path / "pod_health_history.json"),
            "report_file": str(tmp_path / "problematic_pods_report.json"),
            "pod_dump_path": "",
            # SMTP / Email
            "smtp_host": "smtp.test.com",
            "smtp_port": 587,
            "smtp_username": "test@test.com",
            "smtp_password": "test-password",
            "email_from": "",
            "report_recipient_email": "recipient@test.com",
            "report_subject": "Kubernetes Pod Health Report",
            # Schedule
            "triage_schedule_cron": "",
            "metrics_port": 9108,
        },
    )()
    with (
        patch("podtriage.config.get_settings", return_value=fake_settings),
        patch("podtriage.cluster.client.get_settings", return_value=fake_settings),
        patch("podtriage.report.summarizer.get_settings", return_value=fake_settings),
        patch("podtriage.report.email.get_settings", return_value=fake_settings),
        patch("podtriage.report.generator.get_settings", return_value=fake_settings),
        patch("podtriage.report.scheduler.get_settings", return_value=fake_settings),
        patch("podtriage.cli.get_settings", return_value=fake_settings),
    ):
        yield fake_settings


# ---------------------------------------------------------------------------
# Pod builders
# ---------------------------------------------------------------------------


def make_pod(
    name: str = "web-1",
    namespace: str = "default",
    phase: str = "Running",
    *containers: ContainerStatus,
    reason: str = "",
    message: str = "",
) -> PodSnapshot:
    """Build a PodSnapshot for classifier tests."""
    return PodSnapshot(
        name=name,
        namespace=namespace,
        phase=phase,
        reason=reason,
        message=message,
        container_statuses=list(containers),
    )


def container(waiting: str = "", terminated: str = "", restarts: int = 0, name: str = "app") -> ContainerStatus:
    """Build a ContainerStatus for classifier tests."""
    return ContainerStatus(name=name, waiting_reason=waiting, last_terminated_reason=terminated, restart_count=restarts)


def raw_pod(
    name: str,
    namespace: str = "default",
    phase: str | None = "Running",
    container_statuses: list[dict[str, Any]] | None = None,
    reason: str | None = None,
    message: str | None = None,
) -> dict[str, Any]:
    """Build a Kubernetes API Pod object as returned in a PodList."""
    status: dict[str, Any] = {}
    if phase is not None:
        status["phase"] = phase
    if reason is not None:
        status["reason"] = reason
    if message is not None:
        status["message"] = message
    if container_statuses is not None:
        status["containerStatuses"] = container_statuses
    return {"metadata": {"name": name, "namespace": namespace}, "status": status}


def raw_container(
    waiting: str | None = None,
    terminated: str | None = None,
    restarts: int = 0,
    name: str = "app",
) -> dict[str, Any]:
    """Build a Kubernetes API ContainerStatus object."""
    state: dict[str, Any] = {"running": {}} if waiting is None else {"waiting": {"reason": waiting}}
    last_state: dict[str, Any] = {} if terminated is None else {"terminated": {"reason": terminated}}
    return {"name": name, "state": state, "lastState": last_state, "restartCount": restarts}
