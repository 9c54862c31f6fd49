from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional
from enum import Enum

from models.roommate import RoommateProfile


class Role(str, Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"
    ADMIN = "admin"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Preferences(BaseModel):
    language: str = "vi"
    theme: Theme = Theme.LIGHT

    class Config:
        use_enum_values = True
        validate_default = True


class User(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    email: str
    password: str
    name: str
    role: Role = Role.TENANT
    phone: Optional[str] = None
    gender: Optional[str] = None
    avatar: str = ""
    verified: bool = False
    is_banned: bool = Field(False, alias="isBanned")
    ban_reason: Optional[str] = Field(None, alias="banReason")
    roommate_profile: Optional[RoommateProfile] = Field(None, alias="roommateProfile")
    preferences: Preferences = Field(default_factory=Preferences)

    class Config:
        populate_by_name = True
        use_enum_values = True
        validate_default = True


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    # Admin accounts are never self-registered
    role: Role = Role.TENANT

    class Config:
        use_enum_values = True
        validate_default = True

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("role")
    @classmethod
    def _no_admin_signup(cls, value):
        if value in (Role.ADMIN, Role.ADMIN.value):
            raise ValueError("role must be tenant or landlord")
        return value


class UserProfileUpdate(BaseModel):
    """Whitelisted fields a user may change on their own account."""
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    avatar: Optional[str] = None
    gender: Optional[str] = None

    class Config:
        extra = "ignore"


class PreferencesUpdate(BaseModel):
    language: Optional[str] = None
    theme: Optional[Theme] = None

    class Config:
        use_enum_values = True
        validate_default = True


class BanRequest(BaseModel):
    reason: Optional[str] = None


class AuthenticatedUser(BaseModel):
    """The caller resolved from an access token, passed explicitly to services."""
    id: str
    email: str
    name: Optional[str] = None
    role: Role = Role.TENANT

    class Config:
        use_enum_values = True
        validate_default = True
