"""
FastAPI dependencies.

Client construction, authentication, and request identity.
"""

import hashlib
import uuid
from functools import lru_cache
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from shared.config import Settings, get_settings
from shared.database import DatabaseClient
from shared.logging import get_logger
from shared.redis_client import RedisClient
from shared.storage import StorageClient

logger = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)  # Don't auto-raise on missing token

ANON_COOKIE = "anon_user_id"
ANON_PREFIX = "anon:"
JWT_CACHE_TTL = 300  # 5 minutes


@lru_cache(maxsize=1)
def get_db() -> DatabaseClient:
    """Process-wide database client."""
    return DatabaseClient(get_settings())


@lru_cache(maxsize=1)
def get_storage() -> StorageClient:
    """Process-wide storage client."""
    return StorageClient(get_settings())


@lru_cache(maxsize=1)
def get_redis() -> Optional[RedisClient]:
    """Process-wide Redis client, or None when REDIS_URL is unset."""
    settings = get_settings()
    if not settings.redis_url:
        return None
    return RedisClient(settings)


class Identity(BaseModel):
    """
    Who a request acts for.

    A verified identity carries the JWT subject. An anonymous identity carries
    a client-supplied token that only correlates requests; it is never proof
    of ownership.
    """

    user_id: Optional[str] = None
    anon_id: Optional[str] = None
    # True when the anonymous id was minted for this request
    issued: bool = False

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    @property
    def key(self) -> str:
        """Stable key used for uploads and credit profiles."""
        if self.user_id:
            return self.user_id
        return f"{ANON_PREFIX}{self.anon_id}"


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    redis_client: Optional[RedisClient] = Depends(get_redis),
) -> Optional[dict]:
    """
    Validate a Supabase JWT when one is presented.

    Returns:
        Dictionary with user_id (and email when present), or None without a token

    Raises:
        HTTPException: If a token is presented but invalid
    """
    if not credentials:
        return None
    token = credentials.credentials

    token_hash = hashlib.sha256(token.encode()).hexdigest()
    cache_key = f"jwt_valid:{token_hash}"

    if redis_client is not None:
        try:
            user_data = await redis_client.get_json(cache_key)
            if user_data:
                logger.debug("JWT validated from cache", extra={"user_id": user_data.get("user_id")})
                return user_data
        except Exception as e:
            logger.warning("Failed to check JWT cache", exc_info=e)

    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            options={"verify_aud": False}  # Supabase tokens don't include audience claim
        )
    except JWTError as e:
        logger.warning(
            "JWT validation failed",
            extra={"error_type": type(e).__name__, "error_message": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user_id = payload.get("sub")  # Supabase uses "sub" for user_id
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user_id"
        )

    user_data = {"user_id": user_id}
    if payload.get("email"):
        user_data["email"] = payload["email"]

    if redis_client is not None:
        try:
            await redis_client.set_json(cache_key, user_data, ttl=JWT_CACHE_TTL)
        except Exception as e:
            logger.warning("Failed to cache JWT", exc_info=e)

    logger.debug("JWT validated successfully", extra={"user_id": user_id})
    return user_data


async def get_identity(
    response: Response,
    current_user: Optional[dict] = Depends(get_current_user),
    x_anon_id: Optional[str] = Header(default=None),
    anon_user_id: Optional[str] = Cookie(default=None),
) -> Identity:
    """
    Resolve the request identity.

    Falls back to the X-Anon-Id header, then the anon_user_id cookie. When
    neither is present a fresh anonymous id is issued as a cookie.
    """
    if current_user:
        return Identity(user_id=current_user["user_id"])

    anon_id = (x_anon_id or anon_user_id or "").strip()
    if not anon_id:
        identity = Identity(anon_id=str(uuid.uuid4()), issued=True)
        attach_identity_cookie(response, identity)
        logger.debug("Issued anonymous id", extra={"anon_id": identity.anon_id})
        return identity
    return Identity(anon_id=anon_id)


def attach_identity_cookie(response: Response, identity: Identity) -> Response:
    """
    Set the anonymous id cookie when this request issued it.

    Routes that build their own JSONResponse must pass it through here, since
    headers set on the injected Response are only merged into returned values.
    """
    if identity.issued:
        response.set_cookie(ANON_COOKIE, identity.anon_id, httponly=True, samesite="lax")
    return response
