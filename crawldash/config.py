"""Runtime settings for crawldash.

Every knob reads an environment variable with a default.  A `.env` file at the
repository root is read on import; variables already set in the process win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_ROOT / ".env", override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("CRAWLDASH_WORKSPACE", Path.home() / ".crawldash")
        )
    )

    @property
    def db_path(self) -> Path:
        """The crawl store inside the workspace."""
        return self.workspace_dir / "crawls.db"

    @property
    def schema_path(self) -> Path:
        return Path(__file__).with_name("db") / "schema.sql"

    # ------------------------------------------------------------------
    # AI extraction
    # ------------------------------------------------------------------
    ai_provider: str = field(
        default_factory=lambda: os.environ.get("AI_PROVIDER", "").strip().lower()
    )
    ai_enabled: bool = field(default_factory=lambda: _env_bool("AI_ENABLED", "true"))
    ai_model: str = field(default_factory=lambda: os.environ.get("AI_MODEL", ""))
    openai_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENAI_API_KEY", "")
    )
    anthropic_api_key: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", "")
    )
    openai_base_url: str = field(
        default_factory=lambda: os.environ.get("OPENAI_BASE_URL", "https://api.openai.com")
    )
    anthropic_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "ANTHROPIC_BASE_URL", "https://api.anthropic.com"
        )
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    ai_max_tokens: int = field(
        default_factory=lambda: int(os.environ.get("AI_MAX_TOKENS", "2000"))
    )
    ai_temperature: float = field(
        default_factory=lambda: float(os.environ.get("AI_TEMPERATURE", "0.1"))
    )
    ai_request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("AI_REQUEST_TIMEOUT", "60.0"))
    )

    # ------------------------------------------------------------------
    # Renderer
    # ------------------------------------------------------------------
    render_timeout_ms: int = field(
        default_factory=lambda: int(os.environ.get("RENDER_TIMEOUT_MS", "60000"))
    )
    render_settle_ms: int = field(
        default_factory=lambda: int(os.environ.get("RENDER_SETTLE_MS", "2000"))
    )
    default_renderer: str = field(
        default_factory=lambda: os.environ.get("DEFAULT_RENDERER", "browser")
    )
    max_concurrent_renders: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENT_RENDERS", "4"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO"))

    def ensure_workspace(self) -> None:
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from crawldash.config import settings
settings = Settings()
