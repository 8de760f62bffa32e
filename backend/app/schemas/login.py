"""Staff login request and token response."""

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    """Credentials posted by an admin or coach."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
