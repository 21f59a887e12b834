import logging
from threading import Lock
from typing import Optional

from postgrest.exceptions import APIError
from supabase import create_client, Client
from schoolhub.core.config import settings

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

_client: Optional[Client] = None
_lock = Lock()


def create_supabase_client() -> Client:
    """
    Create and validate Supabase client connection.

    Returns:
        Client: Configured Supabase client

    Raises:
        RuntimeError: If connection validation fails
    """
    try:
        # Service role key: row access is checked by schoolhub.core.policies
        supabase: Client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)

        # Validate connection by attempting a simple query
        supabase.table("profiles").select("id").limit(1).execute()
        logger.info("Supabase connection validated successfully")

        return supabase

    except Exception as e:
        error_msg = f"Failed to connect to Supabase: {str(e)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)


def get_supabase() -> Client:
    """Get the shared Supabase client, creating it on first use."""
    global _client
    if _client is None:
        with _lock:
            if _client is None:
                _client = create_supabase_client()
    return _client


def is_unique_violation(error: Exception) -> bool:
    """True when a PostgREST error is a unique-constraint violation."""
    return isinstance(error, APIError) and str(getattr(error, "code", "")) == UNIQUE_VIOLATION
