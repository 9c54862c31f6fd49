from pydantic import BaseModel, Field, conint, field_validator
from typing import List, Optional, Union
from enum import Enum


class SleepSchedule(str, Enum):
    EARLY = "early"
    LATE = "late"
    FLEXIBLE = "flexible"


class NoiseLevel(str, Enum):
    QUIET = "quiet"
    MODERATE = "moderate"
    SOCIAL = "social"


class CookingFrequency(str, Enum):
    OFTEN = "often"
    SOMETIMES = "sometimes"
    RARELY = "rarely"


class Habits(BaseModel):
    sleep_schedule: Optional[SleepSchedule] = Field(None, alias="sleepSchedule")
    cleanliness: Optional[conint(ge=1, le=5)] = None
    noise: Optional[NoiseLevel] = None
    smoking: Optional[bool] = None
    pets: Optional[bool] = None
    cooking: Optional[CookingFrequency] = None

    class Config:
        populate_by_name = True
        use_enum_values = True


class Budget(BaseModel):
    # min > max is stored as given
    # ints stay ints so stored amounts round-trip unchanged
    min: Union[int, float]
    max: Union[int, float]

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


class RoommateProfile(BaseModel):
    university: Optional[str] = None
    major: Optional[str] = None
    habits: Optional[Habits] = None
    interests: List[str] = Field(default_factory=list)
    budget: Optional[Budget] = None
    special_needs: Optional[str] = Field(None, alias="specialNeeds")
    bio: Optional[str] = None
    looking_for_roommate: bool = Field(False, alias="lookingForRoommate")

    class Config:
        populate_by_name = True

    @field_validator("habits", "budget", mode="before")
    @classmethod
    def _empty_subdocument_is_absent(cls, value):
        if value == {}:
            return None
        return value

    @field_validator("interests", mode="before")
    @classmethod
    def _null_interests(cls, value):
        return [] if value is None else value

    def to_document(self) -> dict:
        """camelCase dict as stored under `roommateProfile` in MongoDB."""
        return self.model_dump(by_alias=True, exclude_none=True)


# --- Scoring / ranking results ---
class CompatibilityResult(BaseModel):
    candidate_user_id: str = Field(alias="candidateUserId")
    score: conint(ge=0, le=100)
    reasons: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class CandidateSummary(BaseModel):
    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    university: Optional[str] = None
    major: Optional[str] = None
    bio: Optional[str] = None
    budget: Optional[Budget] = None
    interests: List[str] = Field(default_factory=list)


class RoommateMatch(BaseModel):
    user: CandidateSummary
    compatibility_score: int = Field(alias="compatibilityScore")
    match_reasons: List[str] = Field(default_factory=list, alias="matchReasons")

    class Config:
        populate_by_name = True
