from functools import lru_cache
from typing import ClassVar

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # Kubernetes API (required)
    kube_api_server: str
    kube_token: str
    kube_verify_ssl: bool = False
    kube_ca_cert: str = ""
    request_timeout_seconds: float = 15.0
    log_tail_lines: int = 200

    # LLM summarizer
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = ""  # Optional OpenAI-compatible proxy URL
    llm_timeout_seconds: float = 60.0
    llm_max_tokens: int = 400
    max_log_chars: int = 4000
    max_prompt_events: int = 20

    # Persistence
    history_file: str = "pod_health_history.json"
    report_file: str = "problematic_pods_report.json"
    pod_dump_path: str = ""  # Raw pod list dump for debugging (empty = disabled)

    # SMTP / Email (optional, empty = email disabled)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = ""  # Defaults to smtp_username
    report_recipient_email: str = ""
    report_subject: str = "Kubernetes Pod Health Report"

    # Triage schedule (optional, empty = scheduler disabled)
    triage_schedule_cron: str = ""  # e.g. "*/30 * * * *"
    metrics_port: int = 9108

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings. Fails at first call, not at import time."""
    return Settings()  # type: ignore[call-arg]  # pyright: ignore[reportCallIssue]
