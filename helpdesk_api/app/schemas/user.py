"""
Pydantic models for user accounts.

Request bodies declare every field optional so that a missing field
reaches the service layer and produces a 400 with a readable message,
mirroring how the other domains validate.  ``UserRead`` never carries
the password hash.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ROLES = ("admin", "agent", "customer")
Role = Literal["admin", "agent", "customer"]


class UserSignup(BaseModel):
    """Schema for registering a user (self-signup or admin-created)."""

    fullname: Optional[str] = Field(None, examples=["Ada Lovelace"])
    email: Optional[str] = Field(None, examples=["ada@example.com"])
    password: Optional[str] = Field(None, examples=["strongpassword"])
    bio: Optional[str] = None
    role: Optional[str] = Field(None, description="admin, agent or customer; defaults to customer")
    avatarUrl: Optional[str] = None


class UserLogin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserProfileUpdate(BaseModel):
    """Fields a profile edit may change.  Omitted fields are left as is."""

    fullname: Optional[str] = None
    bio: Optional[str] = None
    role: Optional[str] = None
    avatarUrl: Optional[str] = None


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: str
    fullname: str
    email: str
    bio: str = ""
    role: Role = "customer"
    avatarUrl: str = ""
    createdAt: str
    updatedAt: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserRead


class UserEnvelope(BaseModel):
    user: UserRead


class UserUpdated(BaseModel):
    message: str
    user: UserRead


class UserList(BaseModel):
    users: List[UserRead]
