"""Anonymous player identity."""

import logging
import uuid
from typing import Any, Optional

from .preferences import IDENTITY_KEY, Preferences

logger = logging.getLogger(__name__)


class SupabaseAnonymousAuth:
    def __init__(self, client: Any):
        self.client = client

    def sign_in(self) -> str:
        response = self.client.auth.sign_in_anonymously()
        if response.user is None:
            raise RuntimeError("Anonymous sign-in returned no user")
        return response.user.id


def generate_random_id() -> str:
    return uuid.uuid4().hex


def resolve_identity(preferences: Preferences, auth: Optional[Any]) -> str:
    """Stored identity, else a fresh anonymous sign-in, else a random id.

    Only identities issued by the auth service are stored; the random fallback
    lasts for this process.
    """
    stored = preferences.get(IDENTITY_KEY)
    if stored:
        return stored

    if auth is None:
        logger.warning("No auth service configured; using a local random identity")
        return generate_random_id()

    try:
        identity = auth.sign_in()
    except Exception as e:
        logger.error(f"Error signing in anonymously: {e}")
        return generate_random_id()

    preferences.set(IDENTITY_KEY, identity)
    logger.info(f"Signed in anonymously as {identity}")
    return identity
