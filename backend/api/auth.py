# api/auth.py
from fastapi import APIRouter, HTTPException, Depends, Body, Request
from jose import JWTError

from core.dispatch import get_store
from core.logger import get_logger
from core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    resolve_identity,
    verify_password,
)
from core.store import ContentStore
from models.db_models import AdminUser
from models.user_models import AdminUserOut, Token, TokenRefreshRequest, UserLogin

logger = get_logger(__name__)

router = APIRouter()

def token_claims(user: dict) -> dict:
    return {"sub": user["id"], "email": user["email"], "name": user.get("name")}

@router.post("/login", status_code=200, response_model=Token)
async def login(user: UserLogin, store: ContentStore = Depends(get_store)):
    found_user = await store.find_unique(AdminUser, {"email": user.email.strip().lower()})

    if not found_user or not verify_password(user.password, found_user["hashed_password"]):
        logger.warning(f"Failed admin login for {user.email}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not found_user["is_active"]:
        raise HTTPException(status_code=403, detail="User is disabled")

    claims = token_claims(found_user)
    logger.info(f"Admin login: {found_user['email']}")
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
        "token_type": "bearer",
    }

@router.post("/refresh", status_code=200, response_model=Token)
async def refresh_token(data: TokenRefreshRequest = Body(...)):
    try:
        payload = decode_refresh_token(data.refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    claims = {"sub": payload["sub"], "email": payload.get("email"), "name": payload.get("name")}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": data.refresh_token,
        "token_type": "bearer",
    }

@router.get("/me", status_code=200, response_model=AdminUserOut)
async def me(request: Request, store: ContentStore = Depends(get_store)):
    identity = resolve_identity(request.headers)
    if identity is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = await store.find_unique(AdminUser, {"id": identity["sub"]})
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
