"""Admin authorization gate (shared secret, independent of user sessions)."""
import hmac
import logging
from typing import Optional

from nexus.config import DEFAULT_ADMIN_PASSWORD
from nexus.errors import Unauthorized


logger = logging.getLogger(__name__)

ADMIN_HEADER = "x-admin-password"


class AdminGate:
    """Compares the presented secret against the configured one."""

    def __init__(self, secret: str = DEFAULT_ADMIN_PASSWORD):
        self.secret = secret or DEFAULT_ADMIN_PASSWORD
        if self.secret == DEFAULT_ADMIN_PASSWORD:
            logger.warning("ADMIN_PASSWORD not set, using the built-in default")

    def authorize(self, provided: Optional[str]) -> None:
        """Raise Unauthorized unless `provided` matches exactly (after trimming)."""
        candidate = (provided or "").strip()
        if not hmac.compare_digest(candidate.encode("utf-8"), self.secret.encode("utf-8")):
            raise Unauthorized()
