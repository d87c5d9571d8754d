"""Jinja2 templates for alert messages."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping

from fastapi.templating import Jinja2Templates

from tgrelay.config import settings


def label(labels: Mapping[str, Any] | None, name: str) -> str:
    """Template helper: value of label ``name`` or an empty string."""
    if not labels:
        return ""
    return str(labels.get(name) or "")


@lru_cache(maxsize=8)
def get_templates(directory: str | None = None) -> Jinja2Templates:
    """Template set rooted at ``directory`` (the configured path by default)."""
    templates = Jinja2Templates(directory=directory or settings.templates_path)
    templates.env.globals["label"] = label
    return templates
