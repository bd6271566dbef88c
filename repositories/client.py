"""
Supabase client initialization.

This module contains *only* the database connection setup. The client is built
lazily on first use so that importing repository modules (or running the test
suite against the in-memory store) never requires credentials.

Environment variables required for the Supabase-backed store:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from supabase import Client, create_client  # type: ignore[import-not-found]

# Load environment variables from the .env file at the project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _require_env(name: str, hint: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing environment variable: {name}. {hint}")
    return value


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Return the process-wide Supabase client, creating it on first call.

    Raises:
        RuntimeError: SUPABASE_URL or SUPABASE_KEY is not set.
    """

    url = _require_env("SUPABASE_URL", "Set SUPABASE_URL to your Supabase project URL.")
    key = _require_env("SUPABASE_KEY", "Set SUPABASE_KEY to your Supabase API key.")
    return create_client(url, key)


__all__ = ["get_supabase_client"]
