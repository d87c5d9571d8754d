"""Process settings, read once from the environment (and ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_TEMPLATES = str(Path(__file__).resolve().parent / "templates")


@dataclass(frozen=True)
class Settings:
    """App Settings"""

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8080"))
    telegram_token: str = os.getenv("TELEGRAM_TOKEN", "")
    telegram_chat_id: str = os.getenv("TELEGRAM_CHAT_ID", "")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "")
    alertmanager_url: str = os.getenv("ALERTMANAGER_URL", "")
    templates_path: str = os.getenv("TEMPLATES_PATH", _DEFAULT_TEMPLATES)
    jira_url: str = os.getenv("JIRA_URL", "http://localhost:9005")
    jira_user: str = os.getenv("JIRA_USER", "admin")
    jira_password: str = os.getenv("JIRA_PASSWORD", "admin")
    jira_project_key: str = os.getenv("JIRA_PROJECT_KEY", "INFRA")
    jira_issue_type_id: int = int(os.getenv("JIRA_ISSUE_TYPE_ID", "10001"))
    jira_reporter: str = os.getenv("JIRA_REPORTER", "admin")
    telegram_jira_map: str = os.getenv("TELEGRAM_JIRA_MAP", "")
    timezone: str = os.getenv("TIMEZONE", "UTC")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
