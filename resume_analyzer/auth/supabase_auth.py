"""Auth gates: Supabase JWT validation, and a fixed answer for local mode."""

import hashlib
import logging
from typing import Optional

from supabase import Client

from resume_analyzer.pipeline.contracts import AuthGate

logger = logging.getLogger(__name__)

ANONYMOUS_SESSION = "anonymous"


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer ...`` header."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.replace("Bearer ", "", 1).strip()
    return token or None


def session_key(token: Optional[str]) -> str:
    """Stable, non-reversible key for the session belonging to a token."""
    if not token:
        return ANONYMOUS_SESSION
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:32]


class SupabaseAuthGate(AuthGate):
    """Authenticated when Supabase resolves the bearer token to a user."""

    def __init__(self, client: Client, token: Optional[str]):
        self._client = client
        self._token = token

    async def is_authenticated(self) -> bool:
        if not self._token:
            return False
        try:
            user_response = self._client.auth.get_user(self._token)
        except Exception as e:
            logger.info(f"Token rejected: {e}")
            return False
        user = getattr(user_response, "user", None)
        if user is None:
            return False
        logger.debug(f"Authenticated user {user.id}")
        return True


class StaticAuthGate(AuthGate):
    """Local development gate: authenticated whenever a token is present."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    async def is_authenticated(self) -> bool:
        return bool(self._token)
