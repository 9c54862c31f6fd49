"""
Pytest configuration and shared fixtures.
"""

import copy
import pytest
from typing import Any, Dict, List, Optional
from bson import ObjectId

from db.repositories import UserRepository, SavedRoommateRepository
from models.roommate import RoommateProfile
from models.user import User
from services.exceptions import DuplicateEmailError, InvalidObjectIdError


# ============================================================================
# In-memory stand-ins for the MongoDB-backed repositories
# ============================================================================

class FakeUserRepository(UserRepository):
    """Dict-backed UserRepository; ids are valid ObjectId strings."""

    def __init__(self):
        super().__init__(collection=None)
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.candidate_queries = 0

    def add(self, **fields) -> str:
        user_id = str(ObjectId())
        doc = {"email": f"{user_id}@example.com", "name": "Test User", "role": "tenant", "avatar": ""}
        doc.update(fields)
        doc["_id"] = user_id
        self.docs[user_id] = doc
        return user_id

    @staticmethod
    def _check_id(user_id: str):
        if not ObjectId.is_valid(user_id):
            raise InvalidObjectIdError(user_id)

    @staticmethod
    def _public(doc: Dict[str, Any]) -> Dict[str, Any]:
        doc = copy.deepcopy(doc)
        doc.pop("password", None)
        return doc

    def find_by_id(self, user_id: str, include_password: bool = False) -> Optional[Dict[str, Any]]:
        self._check_id(user_id)
        doc = self.docs.get(user_id)
        if doc is None:
            return None
        return copy.deepcopy(doc) if include_password else self._public(doc)

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = email.strip().lower()
        for doc in self.docs.values():
            if doc.get("email") == email:
                return copy.deepcopy(doc)
        return None

    def create(self, user: User) -> str:
        # mirrors the unique index on users.email
        if any(doc.get("email") == user.email for doc in self.docs.values()):
            raise DuplicateEmailError(user.email)
        return self.add(**user.model_dump(by_alias=True, exclude={"id"}, exclude_none=True))

    def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self._check_id(user_id)
        doc = self.docs.get(user_id)
        if doc is None:
            return None
        for key, value in fields.items():
            target = doc
            *parents, leaf = key.split(".")
            for part in parents:
                target = target.setdefault(part, {})
            target[leaf] = copy.deepcopy(value)
        return self._public(doc)

    def find_roommate_candidates(self, exclude_user_id: str) -> List[Dict[str, Any]]:
        self.candidate_queries += 1
        return [
            self._public(doc)
            for user_id, doc in self.docs.items()
            if user_id != exclude_user_id and (doc.get("roommateProfile") or {}).get("lookingForRoommate") is True
        ]

    def find_many_by_ids(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        return [self._public(self.docs[u]) for u in user_ids if u in self.docs]


class FakeSavedRoommatesCollection:
    """Just enough of a pymongo collection for SavedRoommateRepository."""

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    def find_one(self, query):
        doc = self.docs.get(query["user_id"])
        return copy.deepcopy(doc) if doc else None

    def update_one(self, query, update, upsert=False):
        user_id = query["user_id"]
        doc = self.docs.get(user_id)
        if doc is None:
            if not upsert:
                return
            doc = self.docs[user_id] = {"user_id": user_id, "roommate_ids": []}
        if "$addToSet" in update:
            value = update["$addToSet"]["roommate_ids"]
            if value not in doc["roommate_ids"]:
                doc["roommate_ids"].append(value)
        if "$pull" in update:
            value = update["$pull"]["roommate_ids"]
            doc["roommate_ids"] = [r for r in doc["roommate_ids"] if r != value]


# ============================================================================
# Profile Fixtures
# ============================================================================

def full_habits(**overrides) -> Dict[str, Any]:
    habits = {
        "sleepSchedule": "early",
        "cleanliness": 4,
        "noise": "quiet",
        "smoking": False,
        "pets": False,
        "cooking": "often",
    }
    habits.update(overrides)
    return habits


@pytest.fixture
def profile_a() -> RoommateProfile:
    return RoommateProfile.model_validate({
        "university": "X",
        "budget": {"min": 1000000, "max": 1500000},
        "habits": full_habits(),
        "interests": ["reading", "gaming"],
        "lookingForRoommate": True,
    })


@pytest.fixture
def profile_b() -> RoommateProfile:
    return RoommateProfile.model_validate({
        "university": "X",
        "budget": {"min": 1200000, "max": 1600000},
        "habits": full_habits(),
        "interests": ["gaming", "music"],
        "lookingForRoommate": True,
    })


# ============================================================================
# Repository / app Fixtures
# ============================================================================

@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def saved_repo() -> SavedRoommateRepository:
    return SavedRoommateRepository(FakeSavedRoommatesCollection())


@pytest.fixture
def client(user_repo, saved_repo):
    from fastapi.testclient import TestClient
    from db.repositories import get_user_repository, get_saved_roommate_repository
    from main import app

    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_saved_roommate_repository] = lambda: saved_repo
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user_repo):
    """Build a Bearer header for a user stored in `user_repo`."""
    from utils.jwt_utils import create_access_token

    def _headers(user_id: str) -> Dict[str, str]:
        doc = user_repo.docs[user_id]
        token = create_access_token(user_id, doc["email"], doc.get("role", "tenant"))
        return {"Authorization": f"Bearer {token}"}

    return _headers
