"""
API request and response models for the LRM2E site REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
contact/models.py, which own the internal domain representation. Route
handlers map between the two.

JSON keys are camelCase (fullName, createdAt) to match the browser client;
Python attributes stay snake_case via alias_generator.

No response model declares a password or hash field. A User can only reach
the wire through UserResponse.from_user(), which copies the public fields.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import NewUser, User
from contact.models import ContactMessage


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(_CamelModel):
    """Request body for POST /api/register.

    There is deliberately no role field. Unknown keys (including "role") are
    ignored, so a caller cannot self-assign a role through this body.

    Text fields are trimmed; the password is taken byte for byte, exactly as
    LoginRequest and the HTML forms take it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    username: str = Field(min_length=3, max_length=64)
    email: EmailStr
    # max_length keeps scrypt input bounded.
    password: str = Field(min_length=6, max_length=255)
    full_name: Optional[str] = Field(default=None, max_length=255)
    department: Optional[str] = Field(default=None, max_length=255)
    position: Optional[str] = Field(default=None, max_length=255)

    @field_validator("username", "email", "full_name", "department", "position", mode="before")
    @classmethod
    def _strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    def to_new_user(self) -> NewUser:
        return NewUser(
            username=self.username,
            email=str(self.email),
            password=self.password,
            full_name=self.full_name,
            department=self.department,
            position=self.position,
        )


class LoginRequest(BaseModel):
    """Request body for POST /api/login.

    No minimum lengths here: a too-short password is just a wrong password,
    and answering 422 instead of 401 would tell the caller something.
    """

    username: str = Field(max_length=255)
    password: str = Field(max_length=255)


class RoleUpdate(BaseModel):
    """Request body for PATCH /api/admin/users/{id}.

    role is a plain string on purpose: Role.parse() in the service is the one
    validation point, and it answers 400 invalid_role rather than 422 for any
    string outside the enum, however long.
    """

    role: str


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserResponse(_CamelModel):
    """A stripped user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    username: str
    email: str
    role: str
    full_name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role.value,
            full_name=user.full_name,
            department=user.department,
            position=user.position,
            created_at=user.created_at or "",
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Contact messages
# ---------------------------------------------------------------------------


class ContactCreate(BaseModel):
    """Request body for POST /api/contact."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1, max_length=5000)

    def to_message(self) -> ContactMessage:
        return ContactMessage(name=self.name, email=str(self.email), subject=self.subject, message=self.message)


class ContactMessageResponse(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    name: str
    email: str
    subject: str
    message: str
    created_at: str

    @classmethod
    def from_message(cls, msg: ContactMessage) -> "ContactMessageResponse":
        return cls(
            id=msg.id,
            name=msg.name,
            email=msg.email,
            subject=msg.subject,
            message=msg.message,
            created_at=msg.created_at,
        )


class ContactCreatedResponse(BaseModel):
    """Response for POST /api/contact."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Message sent successfully"
    data: ContactMessageResponse


class ContactListResponse(BaseModel):
    """Response for GET /api/contact."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: list[ContactMessageResponse]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
