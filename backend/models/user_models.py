# models/user_models.py
from typing import Optional

from pydantic import BaseModel

class UserLogin(BaseModel):
    email: str
    password: str

class AdminUserOut(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    is_active: bool

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str

class TokenRefreshRequest(BaseModel):
    refresh_token: str
