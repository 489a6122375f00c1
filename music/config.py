"""Process settings read from the environment.

``bot.main`` loads ``.env`` with python-dotenv before calling
:meth:`Settings.from_env`, so either source works.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


def _int(env: Mapping[str, str], name: str, default: int | None) -> int | None:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    discord_token: str = ""
    spotify_client_id: str | None = None
    spotify_client_secret: str | None = None
    command_prefix: str = "/"
    search_limit: int = 5
    max_playback_failures: int = 10
    volume: float = 0.5
    locale: str = "en"
    metrics_port: int | None = None
    web_port: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        return cls(
            discord_token=env.get("DISCORD_TOKEN", ""),
            spotify_client_id=env.get("SPOTIFY_CLIENT_ID") or None,
            spotify_client_secret=env.get("SPOTIFY_CLIENT_SECRET") or None,
            command_prefix=env.get("COMMAND_PREFIX", "/"),
            search_limit=_int(env, "SEARCH_LIMIT", 5),
            max_playback_failures=_int(env, "MAX_PLAYBACK_FAILURES", 10),
            volume=_float(env, "DEFAULT_VOLUME", 0.5),
            locale=env.get("LOCALE", "en"),
            metrics_port=_int(env, "METRICS_PORT", None),
            web_port=_int(env, "WEB_PORT", None),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
