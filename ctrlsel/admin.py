"""
Shared-secret gate for admin operations.
"""

import hmac
import logging
from typing import Any, Optional

from ctrlsel.errors import AuthorizationError

logger = logging.getLogger(__name__)


class AdminGate:
    """Authorizes catalog mutations with a single shared secret."""

    def __init__(self, secret: Optional[str]):
        self._secret = secret or None
        if self._secret is None:
            logger.warning("No admin secret configured; admin operations are disabled")

    @property
    def enabled(self) -> bool:
        return self._secret is not None

    def is_authorized(self, provided: Any) -> bool:
        if self._secret is None or not isinstance(provided, str) or not provided:
            return False
        return hmac.compare_digest(provided.encode("utf-8"), self._secret.encode("utf-8"))

    def check(self, provided: Any) -> None:
        """
        Raises:
            AuthorizationError: If the secret is missing or does not match.
        """
        if not self.is_authorized(provided):
            logger.warning("Rejected admin request with invalid secret")
            raise AuthorizationError("Invalid admin secret")
