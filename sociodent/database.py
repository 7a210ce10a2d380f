"""
Canonical Supabase client module.

IMPORTANT: This is the ONLY module allowed to call create_client directly.
All other modules MUST go through get_supabase_client().
"""
import os
import logging
from typing import Dict, Tuple

import httpx
from supabase import create_client, Client
from supabase.client import ClientOptions

from .exceptions import StoreNotConfiguredError

logger = logging.getLogger(__name__)

# Timeouts (configured once, used throughout)
DEFAULT_DB_TIMEOUT = 30.0  # seconds
DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds

# Cached clients per schema
_supabase_clients: Dict[str, Client] = {}


def _get_credentials() -> Tuple[str, str]:
    """Get Supabase credentials from environment."""
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")

    if not supabase_url or not supabase_key:
        raise StoreNotConfiguredError(
            "supabase",
            "SUPABASE_URL and SUPABASE_ANON_KEY/SERVICE_ROLE_KEY must be set"
        )

    return supabase_url, supabase_key


def _build_http_client() -> httpx.Client:
    """Build sync HTTP client with HTTP/1.1 and tight timeouts."""
    return httpx.Client(
        http2=False,  # HTTP/1.1 avoids handshake delays
        timeout=httpx.Timeout(
            connect=DEFAULT_CONNECT_TIMEOUT,
            read=DEFAULT_DB_TIMEOUT,
            write=DEFAULT_DB_TIMEOUT,
            pool=DEFAULT_DB_TIMEOUT
        ),
        limits=httpx.Limits(
            max_connections=50,
            max_keepalive_connections=10,
            keepalive_expiry=30.0
        ),
        follow_redirects=True
    )


def get_supabase_client(schema: str = "public") -> Client:
    """
    Create or get cached Supabase client for specified schema.

    Args:
        schema: Database schema holding the appointments tables

    Returns:
        Configured sync Supabase client
    """
    if schema in _supabase_clients:
        return _supabase_clients[schema]

    supabase_url, supabase_key = _get_credentials()

    options = ClientOptions(
        schema=schema,
        auto_refresh_token=False,  # Service-role usage, no user session
        persist_session=False
    )

    client = create_client(supabase_url, supabase_key, options=options)

    try:
        http_client = _build_http_client()
        if hasattr(client, '_postgrest') and hasattr(client._postgrest, 'session'):
            client._postgrest.session = http_client
    except Exception as e:
        logger.warning(f"Could not apply HTTP optimization: {e}")

    _supabase_clients[schema] = client
    logger.info(f"Created Supabase client for schema: {schema}")

    return client


def reset_clients() -> None:
    """Drop cached clients (tests, credential rotation)."""
    _supabase_clients.clear()
