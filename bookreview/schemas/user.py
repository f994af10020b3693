import re
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, EmailStr, Field, StringConstraints, field_validator

from bookreview.schemas.common import ApiModel
from bookreview.schemas.review import ReviewWithBook

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]

_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def normalize_email(value: str) -> str:
    return value.strip().lower()


Email = Annotated[EmailStr, AfterValidator(normalize_email)]


class UserCreate(ApiModel):
    email: Email
    password: str = Field(min_length=6, max_length=128)
    name: Name

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not _PASSWORD_PATTERN.match(value):
            raise ValueError(
                "Password must contain at least one lowercase letter, one uppercase letter, and one number"
            )
        return value


class UserUpdate(ApiModel):
    name: Name | None = None
    email: Email | None = None


class UserResponse(ApiModel):
    id: int
    email: str
    name: str
    created_at: datetime


class UserWithCount(UserResponse):
    review_count: int = 0


class UserProfile(UserWithCount):
    updated_at: datetime


class UserDetail(UserResponse):
    reviews: list[ReviewWithBook] = []
