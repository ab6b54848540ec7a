"""
API request and response models for SessionGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models check shape only (required, type, coarse length bounds). The
password policy runs in the service so its first-violation message comes back
as a field-keyed 400, not a generic 422.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Identity

EMAIL_PATTERN = r"^\s*[^@\s]+@[^@\s]+\.[^@\s]+\s*$"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Names and emails are trimmed and lower-cased by the service, not here."""

    name: str = Field(min_length=2, max_length=100)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=1024)


class LoginRequest(BaseModel):
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=1024)


class RefreshRequest(BaseModel):
    """Optional body for POST /token/refresh. Mobile clients without a cookie jar send the token here."""

    refresh_token: Optional[str] = Field(default=None, alias="refreshToken", max_length=4096)

    model_config = ConfigDict(populate_by_name=True)


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    avatar: Optional[str] = Field(default=None, max_length=500)


class UpdatePasswordRequest(BaseModel):
    current_password: str = Field(alias="currentPassword", min_length=1, max_length=1024)
    new_password: str = Field(alias="newPassword", min_length=1, max_length=1024)

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public snapshot of an identity. Never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    role: str
    created_at: str
    updated_at: str

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserResponse":
        return cls(
            id=identity.id,
            name=identity.name,
            email=identity.email,
            avatar=identity.avatar,
            role=identity.role.value,
            created_at=identity.created_at or "",
            updated_at=identity.updated_at or "",
        )


class AuthData(BaseModel):
    user: UserResponse


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    data: Optional[AuthData] = None

    @classmethod
    def for_identity(cls, identity: Identity, message: str) -> "AuthResponse":
        return cls(message=message, data=AuthData(user=UserResponse.from_identity(identity)))


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorDetail(BaseModel):
    code: str
    message: str
    # Field-keyed messages for user-correctable input errors.
    fields: Optional[dict[str, list[str]]] = None
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Uniform error envelope returned by every exception handler."""

    success: bool = False
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
