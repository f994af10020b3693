from pydantic import Field

from bookreview.schemas.common import ApiModel
from bookreview.schemas.user import Email, UserCreate, UserProfile, UserResponse


class RegisterRequest(UserCreate):
    pass


class LoginRequest(ApiModel):
    email: Email
    password: str = Field(min_length=1)


class AuthData(ApiModel):
    user: UserResponse
    token: str


class AuthResponse(ApiModel):
    success: bool = True
    message: str
    data: AuthData


class TokenData(ApiModel):
    token: str


class TokenResponse(ApiModel):
    success: bool = True
    data: TokenData


class ProfileResponse(ApiModel):
    success: bool = True
    data: UserProfile
