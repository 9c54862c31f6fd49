from pydantic import BaseModel, Field
from typing import List, Optional

from models.roommate import RoommateMatch, RoommateProfile


class MatchesResponse(BaseModel):
    matches: List[RoommateMatch]


class RoommateProfileView(BaseModel):
    id: str = Field(alias="_id")
    name: Optional[str] = None
    avatar: Optional[str] = None
    roommate_profile: Optional[RoommateProfile] = Field(None, alias="roommateProfile")

    class Config:
        populate_by_name = True


class RoommateProfileResponse(BaseModel):
    user: RoommateProfileView


class SavedRoommatesResponse(BaseModel):
    roommates: List[RoommateProfileView]


class SaveToggleResponse(BaseModel):
    message: str
    saved: bool
