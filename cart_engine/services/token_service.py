# cart_engine/services/token_service.py
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from cart_engine.utils.settings import GUEST_TOKEN_TTL_SECONDS, JWT_ALGORITHM, SECRET_KEY
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)

GUEST_TOKEN_TYPE = "guest"


class TokenService:
    """
    -verification of access tokens issued by the auth service
    -mint/validate of signed guest tokens (sub = guest uuid)
    """

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        guest_ttl_seconds: int | None = None,
    ):
        self.secret_key = secret_key or SECRET_KEY
        self.algorithm = algorithm or JWT_ALGORITHM
        self.guest_ttl = timedelta(seconds=guest_ttl_seconds or GUEST_TOKEN_TTL_SECONDS)

    def _decode(self, token: str) -> dict:
        return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])

    def read_user_id(self, token: str) -> Optional[int]:
        try:
            payload = self._decode(token)
        except JWTError as e:
            logger.warning(f"Rejected access token: {e}")
            return None

        if payload.get("typ") == GUEST_TOKEN_TYPE:
            return None

        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Access token without a numeric subject")
            return None

    def mint_guest_token(self, guest_id: uuid.UUID) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(guest_id),
            "typ": GUEST_TOKEN_TYPE,
            "iat": now,
            "exp": now + self.guest_ttl,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def read_guest_id(self, token: str) -> Optional[uuid.UUID]:
        try:
            payload = self._decode(token)
        except JWTError as e:
            #expired or tampered, caller mints a new guest
            logger.info(f"Discarding guest token: {e}")
            return None

        if payload.get("typ") != GUEST_TOKEN_TYPE:
            return None

        try:
            return uuid.UUID(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None
