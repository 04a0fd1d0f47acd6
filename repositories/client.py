"""
Supabase client initialization.

This module contains the database connection setup and the shared query
execution helper. Repository modules call `get_supabase()` to obtain the
shared client; it is created on first use so that the pure domain and service
layers can be imported (and tested) without database credentials.

Environment variables required:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Mapping

from dotenv import load_dotenv
from postgrest.exceptions import APIError

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from domain.errors import PersistenceError

# Load environment variables from the .env file at the project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Return the process-wide Supabase client, creating it on first call."""

    # Read credentials from the environment to avoid hard-coding secrets in code.
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return create_client(supabase_url, supabase_key)


def execute(query: Any, action: str) -> List[Mapping[str, Any]]:
    """
    Run a PostgREST query builder and return its rows.

    supabase-py either raises APIError or (older versions) sets `response.error`;
    both are reported as PersistenceError naming the failed action.
    """

    try:
        response = query.execute()
    except APIError as e:
        raise PersistenceError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        raise PersistenceError(f"Failed to {action}: {error}")

    return getattr(response, "data", None) or []


__all__ = ["get_supabase", "execute"]
