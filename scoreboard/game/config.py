"""Scoring rules, caps, persistence and proxy settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_AI_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{model}"


@dataclass
class ServerConfig:
    # Versions
    server_version: str = "0.1.0"

    # Network
    host: str = "0.0.0.0"
    port: int = 8787
    cors_allow_all: bool = True
    cors_allowed_origins: list[str] = field(default_factory=list)

    # Anti-cheat / validation
    # The game accrues one point per frame at 60 fps.
    score_rate_per_sec: float = 60.0
    tolerance_sec: float = 3.0
    shrink_threshold: float = 0.85

    # Leaderboard
    max_entries: int = 100
    top_n: int = 5
    max_name_len: int = 32

    # Throttling (per remote address)
    throttle_enabled: bool = True
    throttle_rate_per_sec: float = 2.0
    throttle_burst: float = 20.0

    # Persistence
    sqlite_enabled: bool = True
    sqlite_path: str = "scoreboard.sqlite3"

    # Static assets
    static_dir: str = field(
        default_factory=lambda: os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "static"))
    )

    # Text generation proxy
    ai_account_id: str | None = None
    ai_api_token: str | None = None
    ai_model: str = "@cf/meta/llama-2-7b-chat-int8"
    ai_url_template: str = DEFAULT_AI_URL
    ai_max_tokens: int = 128
    ai_timeout_sec: float = 20.0

    log_level: str = "INFO"

    @property
    def tolerance_frames(self) -> float:
        return self.tolerance_sec * self.score_rate_per_sec

    def ai_url(self) -> str:
        return self.ai_url_template.format(account_id=self.ai_account_id or "", model=self.ai_model)

    @staticmethod
    def _parse_bool(v: str | None, default: bool) -> bool:
        if v is None:
            return default
        return v.strip().lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _parse_num(v: str | None, default, cast=float):
        if v is None or not v.strip():
            return default
        try:
            return cast(v)
        except ValueError:
            return default

    @classmethod
    def from_env(cls) -> "ServerConfig":
        env = os.environ
        cfg = cls()
        cfg.host = env.get("SCOREBOARD_HOST", cfg.host)
        cfg.port = cls._parse_num(env.get("SCOREBOARD_PORT"), cfg.port, int)
        cfg.cors_allow_all = cls._parse_bool(env.get("SCOREBOARD_CORS_ALLOW_ALL"), cfg.cors_allow_all)
        origins = env.get("SCOREBOARD_CORS_ORIGINS")
        if origins:
            cfg.cors_allowed_origins = [o.strip() for o in origins.split(",") if o.strip()]

        cfg.score_rate_per_sec = cls._parse_num(env.get("SCOREBOARD_SCORE_RATE"), cfg.score_rate_per_sec)
        cfg.tolerance_sec = cls._parse_num(env.get("SCOREBOARD_TOLERANCE_SEC"), cfg.tolerance_sec)
        cfg.shrink_threshold = cls._parse_num(env.get("SCOREBOARD_SHRINK_THRESHOLD"), cfg.shrink_threshold)
        cfg.max_entries = cls._parse_num(env.get("SCOREBOARD_MAX_ENTRIES"), cfg.max_entries, int)
        cfg.top_n = cls._parse_num(env.get("SCOREBOARD_TOP_N"), cfg.top_n, int)

        cfg.throttle_enabled = cls._parse_bool(env.get("SCOREBOARD_THROTTLE"), cfg.throttle_enabled)
        cfg.sqlite_enabled = cls._parse_bool(env.get("SCOREBOARD_SQLITE"), cfg.sqlite_enabled)
        cfg.sqlite_path = env.get("SCOREBOARD_SQLITE_PATH", cfg.sqlite_path)
        cfg.static_dir = env.get("SCOREBOARD_STATIC_DIR", cfg.static_dir)

        cfg.ai_account_id = env.get("ACCOUNT_ID") or None
        cfg.ai_api_token = env.get("API_TOKEN") or None
        cfg.ai_model = env.get("SCOREBOARD_AI_MODEL", cfg.ai_model)
        cfg.ai_url_template = env.get("SCOREBOARD_AI_URL", cfg.ai_url_template)

        cfg.log_level = env.get("SCOREBOARD_LOG_LEVEL", cfg.log_level).upper()
        return cfg
