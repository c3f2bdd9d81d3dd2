"""Authentication schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request body."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login response."""

    success: bool
    message: str
    role: str = Field(default="")


class OperatorResponse(BaseModel):
    id: int
    username: str
    display_name: str
    role: str
    can_process_finance: bool
    can_configure_tiers: bool
