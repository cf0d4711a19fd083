# core/security.py
from datetime import datetime, timedelta, UTC
from typing import Mapping, Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from core.settings import settings

# export environment variables
TOKEN_ALGORITHM = settings.TOKEN_ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES
ACCESS_TOKEN_SECRET_KEY = settings.ACCESS_TOKEN_SECRET_KEY
REFRESH_TOKEN_EXPIRE_MINUTES = settings.REFRESH_TOKEN_EXPIRE_MINUTES
REFRESH_TOKEN_SECRET_KEY = settings.REFRESH_TOKEN_SECRET_KEY

TOKEN_ISSUER = "portfolio-admin"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)

def create_token(data: dict, expires_delta: timedelta, secret_key: str):
    to_encode = data.copy()
    expire = datetime.now(UTC) + expires_delta
    to_encode.update({"exp": expire, "iss": TOKEN_ISSUER})
    return jwt.encode(to_encode, secret_key, algorithm=TOKEN_ALGORITHM)

def create_access_token(data: dict):
    return create_token(
        data,
        timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        ACCESS_TOKEN_SECRET_KEY
    )

def create_refresh_token(data: dict):
    return create_token(
        data,
        timedelta(minutes=REFRESH_TOKEN_EXPIRE_MINUTES),
        REFRESH_TOKEN_SECRET_KEY
    )

def decode_token(token: str, secret_key: str):
    return jwt.decode(token, secret_key, algorithms=[TOKEN_ALGORITHM], issuer=TOKEN_ISSUER)

def decode_access_token(token: str):
    return decode_token(token, ACCESS_TOKEN_SECRET_KEY)

def decode_refresh_token(token: str):
    return decode_token(token, REFRESH_TOKEN_SECRET_KEY)

def get_bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    authorization = headers.get("authorization") or headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()

def resolve_identity(headers: Mapping[str, str]) -> Optional[dict]:
    """Return the access-token payload for a request, or None when absent/invalid."""
    token = get_bearer_token(headers)
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload

def get_user_id_from_token(identity: Optional[Mapping]) -> str:
    if not identity:
        return "unknown"
    return identity.get("email") or identity.get("name") or identity.get("sub") or "unknown"
