"""
Account model definitions.

Accounts exist only to authenticate people; inside the notes core a
signed-in account is represented by a Principal.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, EmailStr, Field

from renotefy.identity import Principal


class UserCreate(BaseModel):
    """Registration form. Strength rules beyond length live in utils.validators."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Public profile; never carries the password hash."""
    id: str
    email: str
    name: str
    created_at: datetime


class User(BaseModel):
    """An account document as stored in the users collection."""
    id: str = Field(..., alias="_id")
    email: str
    name: str
    password_hash: str = Field(..., alias="passwordHash")
    created_at: datetime = Field(..., alias="createdAt")

    class Config:
        populate_by_name = True

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "User":
        return cls.model_validate(doc)

    def to_principal(self) -> Principal:
        return Principal(id=self.id, email=self.email, display_name=self.name)

    def to_response(self) -> UserResponse:
        return UserResponse(id=self.id, email=self.email, name=self.name, created_at=self.created_at)


class TokenResponse(BaseModel):
    """Bearer token handed out by register and login."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    expires_in: Optional[int] = None
