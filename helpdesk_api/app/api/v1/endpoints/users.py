"""
User endpoints for API v1.

Provide signup, login, profile management by e-mail and listing of
all profiles.  Signup and login return a signed bearer token; ``/me``
resolves that token back to the stored user.
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from helpdesk_api.app.core.exceptions import ServiceError
from helpdesk_api.app.core.security import get_current_user
from helpdesk_api.app.schemas.common import StatusMessage
from helpdesk_api.app.schemas.user import (
    AuthResponse,
    UserEnvelope,
    UserList,
    UserLogin,
    UserProfileUpdate,
    UserSignup,
    UserUpdated,
)
from helpdesk_api.app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(data: UserSignup) -> AuthResponse:
    """Register a user (self-signup or created by an admin) and return a token."""
    try:
        user, token = await UserService.signup(data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to register user")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return AuthResponse(message="User created successfully", token=token, user=user)


@router.post("/login", response_model=AuthResponse)
async def login(data: UserLogin) -> AuthResponse:
    """Authenticate by e-mail and password and return a token."""
    try:
        user, token = await UserService.login(data.email, data.password)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to log in")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return AuthResponse(message="Login successful", token=token, user=user)


@router.get("/me", response_model=UserEnvelope)
async def me(current_user: Dict[str, str] = Depends(get_current_user)) -> UserEnvelope:
    """Return the user identified by the bearer token."""
    try:
        return UserEnvelope(user=await UserService.get_by_id(current_user["id"]))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/profile", response_model=UserEnvelope)
async def get_profile(email: Optional[str] = Query(None)) -> UserEnvelope:
    try:
        return UserEnvelope(user=await UserService.get_by_email(email))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to load profile")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.put("/profile", response_model=UserUpdated)
async def update_profile(data: UserProfileUpdate, email: Optional[str] = Query(None)) -> UserUpdated:
    """Update fullname, bio, role or avatar of the user with ``email``."""
    try:
        user = await UserService.update_profile(email, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to update profile")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return UserUpdated(message="Profile updated successfully", user=user)


@router.delete("/profile", response_model=StatusMessage)
async def delete_profile(email: Optional[str] = Query(None)) -> StatusMessage:
    try:
        await UserService.delete_profile(email)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to delete profile")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return StatusMessage(message="Profile deleted successfully")


@router.get("/profiles", response_model=UserList)
async def list_profiles() -> UserList:
    """List every user.  Password hashes are never included."""
    try:
        return UserList(users=await UserService.list_users())
    except Exception:
        logger.exception("Failed to list profiles")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
