import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.database import get_session
from bookreview.dependencies import require_current_user
from bookreview.models import User
from bookreview.schemas.auth import (
    AuthData,
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    TokenData,
    TokenResponse,
)
from bookreview.schemas.user import UserProfile, UserResponse
from bookreview.security import create_access_token
from bookreview.services import accounts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(data: RegisterRequest, session: AsyncSession = Depends(get_session)):
    user = await accounts.create_user(session, data)
    return AuthResponse(
        message="User registered successfully",
        data=AuthData(user=UserResponse.model_validate(user), token=create_access_token(user.id)),
    )


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, session: AsyncSession = Depends(get_session)):
    user = await accounts.authenticate(session, data.email, data.password)
    if user is None:
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthResponse(
        message="Login successful",
        data=AuthData(user=UserResponse.model_validate(user), token=create_access_token(user.id)),
    )


@router.get("/profile", response_model=ProfileResponse)
async def profile(
    user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    counts = await accounts.review_counts(session, [user.id])
    profile_data = UserProfile.model_validate(user).model_copy(update={"review_count": counts.get(user.id, 0)})
    return ProfileResponse(data=profile_data)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(user: User = Depends(require_current_user)):
    return TokenResponse(data=TokenData(token=create_access_token(user.id)))
