import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Path, Depends, Query
from pydantic import ValidationError

from db.repositories import UserRepository, SavedRoommateRepository, get_user_repository, get_saved_roommate_repository
from models.user import AuthenticatedUser
from routes.roommates.roommates_response_schemas import (
    MatchesResponse,
    RoommateProfileView,
    RoommateProfileResponse,
    SavedRoommatesResponse,
    SaveToggleResponse,
)
from services.exceptions import InvalidObjectIdError, ProfileIncompleteError
from services.roommate_matcher import RoommateMatcher
from utils.jwt_utils import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roommates", tags=["Match"])


def _profile_view(user_doc: dict) -> RoommateProfileView:
    return RoommateProfileView(
        id=str(user_doc["_id"]),
        name=user_doc.get("name"),
        avatar=user_doc.get("avatar"),
        roommate_profile=user_doc.get("roommateProfile") or None,
    )


@router.get("/find", response_model=MatchesResponse)
def find_roommates(
    top_n: Optional[int] = Query(None, ge=1, description="Return only the best N matches"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    """
    Rank every user looking for a roommate by compatibility with the logged-in user.
    """
    matcher = RoommateMatcher(users)
    try:
        matches = matcher.find_matches(current_user, top_n=top_n)
    except ProfileIncompleteError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ValidationError:
        logger.error("Stored roommate profile for user %s is invalid", current_user.id)
        raise HTTPException(status_code=422, detail="Your stored roommate profile is invalid. Please update it.")
    return MatchesResponse(matches=matches)


@router.post("/save/{roommate_id}", response_model=SaveToggleResponse)
def toggle_saved_roommate(
    roommate_id: str = Path(..., description="User ID of the roommate to save or unsave"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    saved: SavedRoommateRepository = Depends(get_saved_roommate_repository),
):
    if roommate_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot save yourself")
    try:
        roommate = users.find_by_id(roommate_id)
    except InvalidObjectIdError:
        raise HTTPException(status_code=400, detail="Invalid user ID format")
    if not roommate:
        raise HTTPException(status_code=404, detail="User not found")

    if saved.toggle(current_user.id, roommate_id):
        return SaveToggleResponse(message="Roommate saved", saved=True)
    return SaveToggleResponse(message="Roommate removed from saved", saved=False)


@router.get("/saved/list", response_model=SavedRoommatesResponse)
def list_saved_roommates(
    current_user: AuthenticatedUser = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    saved: SavedRoommateRepository = Depends(get_saved_roommate_repository),
):
    roommates = []
    for doc in users.find_many_by_ids(saved.list_ids(current_user.id)):
        try:
            roommates.append(_profile_view(doc))
        except ValidationError as e:
            logger.warning("Skipping saved roommate %s: malformed roommate profile (%d errors)",
                           doc.get("_id"), e.error_count())
    return SavedRoommatesResponse(roommates=roommates)


@router.get("/{user_id}", response_model=RoommateProfileResponse)
def get_roommate_profile(user_id: str = Path(..., description="User ID"), users: UserRepository = Depends(get_user_repository)):
    try:
        user_doc = users.find_by_id(user_id)
    except InvalidObjectIdError:
        raise HTTPException(status_code=400, detail="Invalid user ID format")
    if not user_doc:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        view = _profile_view(user_doc)
    except ValidationError:
        logger.warning("Stored roommate profile for user %s is invalid", user_id)
        raise HTTPException(status_code=422, detail="This user's roommate profile is invalid")
    return RoommateProfileResponse(user=view)
