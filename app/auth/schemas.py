# app/auth/schemas.py
from typing import Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    user: Optional[str] = None
    active_officer_id: Optional[str] = None


class ActiveOfficerRequest(BaseModel):
    officer_id: Optional[str] = None
