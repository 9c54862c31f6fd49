"""
Tests for db/repositories.py - MongoDB query construction.
"""

import pytest
from unittest.mock import MagicMock
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, OperationFailure

from conftest import FakeSavedRoommatesCollection
from db.mongo import ensure_indexes
from db.repositories import UserRepository, SavedRoommateRepository, to_object_id, PUBLIC_PROJECTION
from models.user import User
from services.exceptions import DuplicateEmailError, InvalidObjectIdError


class TestObjectIds:
    def test_valid(self):
        oid = ObjectId()
        assert to_object_id(str(oid)) == oid

    @pytest.mark.parametrize("value", ["nope", "", None])
    def test_invalid(self, value):
        with pytest.raises(InvalidObjectIdError):
            to_object_id(value)


class TestUserRepository:
    @pytest.fixture
    def collection(self):
        return MagicMock()

    def test_candidate_query_excludes_requester(self, collection):
        me = ObjectId()
        collection.find.return_value = iter([{"_id": ObjectId()}])

        result = UserRepository(collection).find_roommate_candidates(str(me))

        collection.find.assert_called_once_with(
            {"_id": {"$ne": me}, "roommateProfile.lookingForRoommate": True},
            PUBLIC_PROJECTION,
        )
        assert len(result) == 1

    def test_find_by_id_hides_password(self, collection):
        oid = ObjectId()
        UserRepository(collection).find_by_id(str(oid))
        collection.find_one.assert_called_once_with({"_id": oid}, PUBLIC_PROJECTION)

    def test_find_by_email_normalizes(self, collection):
        UserRepository(collection).find_by_email(" An@Example.com ")
        collection.find_one.assert_called_once_with({"email": "an@example.com"})

    def test_set_roommate_profile_replaces_subdocument(self, collection):
        oid = ObjectId()
        UserRepository(collection).set_roommate_profile(str(oid), {"university": "X"})
        collection.find_one_and_update.assert_called_once_with(
            {"_id": oid},
            {"$set": {"roommateProfile": {"university": "X"}}},
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )

    def test_unban_clears_reason(self, collection):
        oid = ObjectId()
        UserRepository(collection).set_ban(str(oid), False, "spam")
        update = collection.find_one_and_update.call_args.args[1]
        assert update == {"$set": {"isBanned": False, "banReason": None}}

    def test_create(self, collection):
        new_id = ObjectId()
        collection.insert_one.return_value.inserted_id = new_id

        user_id = UserRepository(collection).create(User(email="a@example.com", password="h", name="An"))

        assert user_id == str(new_id)
        document = collection.insert_one.call_args.args[0]
        assert "_id" not in document
        assert document["role"] == "tenant"

    def test_create_duplicate_email(self, collection):
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error collection: users index: email_1")
        with pytest.raises(DuplicateEmailError) as exc:
            UserRepository(collection).create(User(email="a@example.com", password="h", name="An"))
        assert exc.value.email == "a@example.com"

    def test_find_many_keeps_requested_order(self, collection):
        first, second = ObjectId(), ObjectId()
        collection.find.return_value = [{"_id": second}, {"_id": first}]

        docs = UserRepository(collection).find_many_by_ids([str(first), "garbage", str(second)])

        assert [d["_id"] for d in docs] == [first, second]

    def test_find_many_with_no_valid_ids(self, collection):
        assert UserRepository(collection).find_many_by_ids(["garbage"]) == []
        collection.find.assert_not_called()


class TestSavedRoommateRepository:
    def test_toggle(self):
        repo = SavedRoommateRepository(FakeSavedRoommatesCollection())

        assert repo.toggle("me", "r1") is True
        assert repo.toggle("me", "r2") is True
        assert repo.list_ids("me") == ["r1", "r2"]

        assert repo.toggle("me", "r1") is False
        assert repo.list_ids("me") == ["r2"]

    def test_empty(self):
        assert SavedRoommateRepository(FakeSavedRoommatesCollection()).list_ids("nobody") == []


class TestIndexes:
    def test_unique_email_index(self):
        collection = MagicMock()
        assert ensure_indexes(collection) is True
        collection.create_index.assert_called_once_with("email", unique=True)

    def test_index_failure_is_reported(self):
        collection = MagicMock()
        collection.create_index.side_effect = OperationFailure("E11000 duplicate key error")
        assert ensure_indexes(collection) is False
