from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

from models.roommate import RoommateProfile
from models.user import Preferences


class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    avatar: Optional[str] = ""
    verified: bool = False
    roommate_profile: Optional[RoommateProfile] = Field(None, alias="roommateProfile")
    preferences: Optional[Preferences] = None

    class Config:
        populate_by_name = True

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserResponse":
        return cls(
            id=str(doc["_id"]),
            email=doc.get("email"),
            name=doc.get("name"),
            role=doc.get("role"),
            phone=doc.get("phone"),
            gender=doc.get("gender"),
            avatar=doc.get("avatar", ""),
            verified=doc.get("verified", False),
            roommate_profile=doc.get("roommateProfile") or None,
            preferences=doc.get("preferences"),
        )


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class UpdateResponse(BaseModel):
    message: str
    user: UserResponse
