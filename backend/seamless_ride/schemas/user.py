"""
Pydantic schemas for user-related request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    matric_number: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9/_-]+$")
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)


class UserLogin(BaseModel):
    matric_number: str
    password: str


class UserResponse(BaseModel):
    id: int
    full_name: str
    matric_number: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class MeResponse(BaseModel):
    user: Optional[UserResponse] = None
