from typing import Any, Dict, List, Optional
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from db.mongo import get_users_collection, get_saved_roommates_collection
from models.user import User
from services.exceptions import DuplicateEmailError, InvalidObjectIdError

# Never send password hashes out of the data-access layer unless asked for.
PUBLIC_PROJECTION = {"password": 0}


def to_object_id(value: str) -> ObjectId:
    # ObjectId(None) would mint a fresh id, so validate first
    if not ObjectId.is_valid(value):
        raise InvalidObjectIdError(value)
    return ObjectId(value)


class UserRepository:
    def __init__(self, collection):
        self.collection = collection

    def find_by_id(self, user_id: str, include_password: bool = False) -> Optional[Dict[str, Any]]:
        projection = None if include_password else PUBLIC_PROJECTION
        return self.collection.find_one({"_id": to_object_id(user_id)}, projection)

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"email": email.strip().lower()})

    def create(self, user: User) -> str:
        document = user.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
        try:
            result = self.collection.insert_one(document)
        except DuplicateKeyError:
            raise DuplicateEmailError(user.email)
        return str(result.inserted_id)

    def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """$set the given fields and return the updated document (no password)."""
        return self.collection.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$set": fields},
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )

    def set_roommate_profile(self, user_id: str, profile_document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_fields(user_id, {"roommateProfile": profile_document})

    def set_ban(self, user_id: str, banned: bool, reason: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return self.update_fields(user_id, {"isBanned": banned, "banReason": reason if banned else None})

    def find_roommate_candidates(self, exclude_user_id: str) -> List[Dict[str, Any]]:
        """Opted-in users other than `exclude_user_id`, in natural order."""
        query = {
            "_id": {"$ne": to_object_id(exclude_user_id)},
            "roommateProfile.lookingForRoommate": True,
        }
        return list(self.collection.find(query, PUBLIC_PROJECTION))

    def find_many_by_ids(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        """Users for the given ids, in the order of `user_ids`. Unknown or malformed ids are dropped."""
        object_ids = [ObjectId(u) for u in user_ids if ObjectId.is_valid(u)]
        if not object_ids:
            return []
        docs = {str(d["_id"]): d for d in self.collection.find({"_id": {"$in": object_ids}}, PUBLIC_PROJECTION)}
        return [docs[u] for u in user_ids if u in docs]


class SavedRoommateRepository:
    """One document per user: {"user_id": ..., "roommate_ids": [...]}."""

    def __init__(self, collection):
        self.collection = collection

    def list_ids(self, user_id: str) -> List[str]:
        doc = self.collection.find_one({"user_id": user_id})
        return doc.get("roommate_ids", []) if doc else []

    def toggle(self, user_id: str, roommate_id: str) -> bool:
        """Save or unsave `roommate_id`; returns True if it is saved afterwards."""
        if roommate_id in self.list_ids(user_id):
            self.collection.update_one({"user_id": user_id}, {"$pull": {"roommate_ids": roommate_id}})
            return False
        self.collection.update_one(
            {"user_id": user_id},
            {"$addToSet": {"roommate_ids": roommate_id}},
            upsert=True,
        )
        return True


# --- FastAPI dependencies ---
def get_user_repository() -> UserRepository:
    return UserRepository(get_users_collection())


def get_saved_roommate_repository() -> SavedRoommateRepository:
    return SavedRoommateRepository(get_saved_roommates_collection())
