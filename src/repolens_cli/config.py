"""Runtime settings read from the process environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL = "gemini-3-flash-preview"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GITHUB_API_URL = "https://api.github.com"
DEFAULT_HOME = Path.home() / ".repolens"


@dataclass
class Settings:
    """Environment-sourced configuration for a single CLI or server process."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    gemini_base_url: str = GEMINI_BASE_URL
    github_api_url: str = GITHUB_API_URL
    github_token: str | None = None
    home: Path = DEFAULT_HOME

    @classmethod
    def from_env(cls) -> Settings:
        # API_KEY is the older name, kept so existing .env files still work
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "",
            model=os.getenv("REPOLENS_MODEL") or DEFAULT_MODEL,
            gemini_base_url=os.getenv("GEMINI_BASE_URL") or GEMINI_BASE_URL,
            github_api_url=os.getenv("GITHUB_API_URL") or GITHUB_API_URL,
            github_token=os.getenv("GITHUB_TOKEN") or None,
            home=Path(os.getenv("REPOLENS_HOME") or DEFAULT_HOME),
        )
