"""
Static bearer token check for the Countries gateway.
"""

import hmac
from typing import Optional

from shared.logging import get_logger


BEARER_PREFIX = "Bearer "


class AuthGuard:
    """Validates ``Authorization: Bearer <token>`` against one shared secret."""

    def __init__(self, secret: Optional[str]):
        self.secret = secret or None
        self.logger = get_logger("countries.auth_guard")
        if self.secret is None:
            self.logger.warning("No auth token configured; protected routes will reject every request")

    def validate(self, authorization: Optional[str]) -> bool:
        """Return True only for a well-formed header carrying the configured token.

        Callers must not tell the failure modes apart in their responses.
        """
        if self.secret is None or not authorization:
            return False

        if not authorization.startswith(BEARER_PREFIX):
            return False

        token = authorization[len(BEARER_PREFIX):]
        if not token:
            return False

        return hmac.compare_digest(token.encode("utf-8"), self.secret.encode("utf-8"))
