import logging
from typing import Any, Dict, List, Optional

import requests
from postgrest import SyncPostgrestClient
from supabase import Client, create_client

from journal.app.common.config import get_config

logger = logging.getLogger(__name__)


class JournalDataError(RuntimeError):
    """A Supabase / PostgREST call failed."""


class SupabaseNotConfigured(JournalDataError):
    """SUPABASE_URL or SUPABASE_ANON_KEY is missing."""


_client: Optional[Client] = None


def _require_credentials():
    config = get_config()
    if not config.supabase_url or not config.supabase_anon_key:
        raise SupabaseNotConfigured("Supabase environment variables not set")
    return config


def get_client() -> Client:
    """Anon client shared by the process, used for auth lookups."""
    global _client
    if _client is None:
        config = _require_credentials()
        _client = create_client(config.supabase_url, config.supabase_anon_key)
    return _client


def client_for_token(token: str) -> SyncPostgrestClient:
    """
    PostgREST-only client that forwards the caller's JWT so row level
    security scopes every read and write to that user. Use it as a context
    manager so its HTTP session is closed with the request.
    """
    config = _require_credentials()
    return SyncPostgrestClient(
        f"{config.supabase_url}/rest/v1",
        headers={
            "Accept": "application/json",
            "Content-Type": "application/json",
            "apikey": config.supabase_anon_key,
            "Authorization": f"Bearer {token}",
        },
        timeout=config.request_timeout_sec,
    )


def reset_client() -> None:
    """Drop the cached client (tests)."""
    global _client
    _client = None


def run_query(query, action: str):
    """
    Execute a PostgREST query builder and wrap failures.
    """
    try:
        return query.execute()
    except Exception as e:
        logger.error(f"Supabase {action} failed: {e}")
        raise JournalDataError(f"Database error while trying to {action}") from e


def _headers(token: Optional[str]) -> Dict[str, str]:
    config = get_config()
    return {
        "apikey": config.supabase_anon_key,
        "Authorization": f"Bearer {token or config.supabase_anon_key}",
        "Content-Type": "application/json",
        "Prefer": "return=representation",
    }


def insert_rows(
    table: str,
    payload: List[Dict[str, Any]],
    token: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Insert rows into a Supabase table via REST API.
    """
    config = _require_credentials()
    url = f"{config.supabase_url}/rest/v1/{table}"
    response = requests.post(
        url,
        json=payload,
        headers=_headers(token),
        timeout=config.request_timeout_sec,
    )

    if not response.ok:
        raise JournalDataError(
            f"Supabase insert failed [{response.status_code}]: {response.text}"
        )
    return response.json() if response.content else []


def insert_row(
    table: str,
    payload: Dict[str, Any],
    token: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Insert a single row into a Supabase table via REST API.
    """
    rows = insert_rows(table, [payload], token=token)
    return rows[0] if rows else {}
