"""JWT token creation and verification.

Access tokens are stateless and short-lived (1 hour by default). Nothing is
stored server-side: rotating the secret invalidates every outstanding token.

Claim set: {id, name, is_admin, role, iat, exp}.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import jwt
import structlog

from caoguia.auth.errors import TokenExpired, TokenInvalid
from caoguia.config import AuthConfig

logger = structlog.get_logger()

REQUIRED_CLAIMS = ("id", "role", "exp", "iat")


class TokenCodec:
    """Signs and verifies bearer tokens with a server-held symmetric secret."""

    def __init__(self, config: AuthConfig):
        self.config = config

    def encode(self, claims: dict[str, Any], issued_at: Optional[datetime] = None) -> str:
        """Sign claims into a token that expires after the configured lifetime."""
        now = issued_at or datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": now,
            "exp": now + self.config.token_lifetime,
        }
        return jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """Verify and decode a token.

        Raises TokenExpired for a stale but otherwise valid token and
        TokenInvalid for anything tampered, malformed, or signed with an
        algorithm other than the configured one.
        """
        try:
            return jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError as e:
            logger.info("auth.token_invalid", error=str(e))
            raise TokenInvalid()

    @property
    def lifetime_seconds(self) -> int:
        return int(self.config.token_lifetime.total_seconds())
