from __future__ import annotations

from pydantic import BaseModel, Field

from hisab.common import Permission, Role, User, UserPayload


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPayload


class PasswordChangeRequest(BaseModel):
    new_password: str


class UserCreateRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str
    name: str = ""
    role: Role = Role.USER
    permissions: list[Permission] = []


class UserUpdateRequest(BaseModel):
    name: str
    role: Role
    permissions: list[Permission] = []


class MessageResponse(BaseModel):
    message: str


def user_response(user: User) -> UserPayload:
    """Serialize a user for API responses."""
    return UserPayload.from_user(user)
