import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext

from config import get_settings
from errors import Unauthenticated

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Not authenticated"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    owner_id: int
    handle: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def verify_dummy_password() -> None:
    # keeps login timing the same whether or not the email exists
    pwd_context.dummy_verify()


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.secret_key, salt="access-token")


def issue_token(identity: Identity) -> str:
    return _serializer().dumps({"u": identity.owner_id, "h": identity.handle})


def verify_token(token: Optional[str]) -> Identity:
    if not token:
        raise Unauthenticated(NOT_AUTHENTICATED)
    settings = get_settings()
    try:
        data = _serializer().loads(
            token, max_age=settings.token_max_age_hours * 3600
        )
    except SignatureExpired as exc:
        logger.info("token_rejected: reason=expired")
        raise Unauthenticated(NOT_AUTHENTICATED) from exc
    except BadSignature as exc:
        logger.info("token_rejected: reason=bad_signature")
        raise Unauthenticated(NOT_AUTHENTICATED) from exc

    owner_id = data.get("u") if isinstance(data, dict) else None
    if not isinstance(owner_id, int) or isinstance(owner_id, bool):
        raise Unauthenticated(NOT_AUTHENTICATED)
    return Identity(owner_id=owner_id, handle=str(data.get("h") or ""))


def current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Identity:
    """Dependency: resolve the caller or fail with 401."""
    try:
        return verify_token(credentials.credentials if credentials else None)
    except Unauthenticated as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
