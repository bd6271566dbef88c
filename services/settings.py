"""
Engine settings.

Read from the environment, after loading the `.env` file at the project root.
Every value has a default matching production behavior.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

STORE_SUPABASE = "supabase"
STORE_MEMORY = "memory"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _bool_env(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True, slots=True)
class EngineSettings:
    prompt_min_delay_hours: int = 24
    prompt_max_delay_hours: int = 48
    prompt_poll_interval_minutes: int = 30
    prompt_reprompt_after_cancellation: bool = False
    contact_dedup_window_ms: int = 2000
    navigation_dedup_window_ms: int = 2000
    click_dedup_window_ms: int = 1000
    payload_dedup_window_ms: int = 2000
    review_text_max_length: int = 500
    store_backend: str = STORE_SUPABASE

    def __post_init__(self) -> None:
        if self.prompt_min_delay_hours >= self.prompt_max_delay_hours:
            raise ValueError("PROMPT_MIN_DELAY_HOURS must be smaller than PROMPT_MAX_DELAY_HOURS")
        if self.store_backend not in (STORE_SUPABASE, STORE_MEMORY):
            raise ValueError(f"ENGINE_STORE must be '{STORE_SUPABASE}' or '{STORE_MEMORY}'")

    @property
    def prompt_min_delay(self) -> timedelta:
        return timedelta(hours=self.prompt_min_delay_hours)

    @property
    def prompt_max_delay(self) -> timedelta:
        return timedelta(hours=self.prompt_max_delay_hours)

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        if env is None:
            load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")
            env = os.environ
        return EngineSettings(
            prompt_min_delay_hours=_int_env(env, "PROMPT_MIN_DELAY_HOURS", 24),
            prompt_max_delay_hours=_int_env(env, "PROMPT_MAX_DELAY_HOURS", 48),
            prompt_poll_interval_minutes=_int_env(env, "PROMPT_POLL_INTERVAL_MINUTES", 30),
            prompt_reprompt_after_cancellation=_bool_env(env, "PROMPT_REPROMPT_AFTER_CANCELLATION", False),
            contact_dedup_window_ms=_int_env(env, "CONTACT_DEDUP_WINDOW_MS", 2000),
            navigation_dedup_window_ms=_int_env(env, "NAVIGATION_DEDUP_WINDOW_MS", 2000),
            click_dedup_window_ms=_int_env(env, "CLICK_DEDUP_WINDOW_MS", 1000),
            payload_dedup_window_ms=_int_env(env, "PAYLOAD_DEDUP_WINDOW_MS", 2000),
            review_text_max_length=_int_env(env, "REVIEW_TEXT_MAX_LENGTH", 500),
            store_backend=(env.get("ENGINE_STORE") or STORE_SUPABASE).strip().lower(),
        )


__all__ = ["EngineSettings", "STORE_SUPABASE", "STORE_MEMORY"]
