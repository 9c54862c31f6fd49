import logging
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from utils.config import MONGO_URI, MONGO_DB_NAME, MONGO_TIMEOUT_MS

logger = logging.getLogger(__name__)

# MongoClient connects lazily; nothing touches the network until the first operation.
client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=MONGO_TIMEOUT_MS)

db = client[MONGO_DB_NAME]
users_collection = db["users"]
saved_roommates_collection = db["saved_roommates"]


def get_users_collection():
    return users_collection


def get_saved_roommates_collection():
    return saved_roommates_collection


def check_connection():
    """Check if MongoDB connection works"""
    try:
        client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.error("MongoDB connection failed: %s", e)
        return False


def ensure_indexes(collection=None):
    """Create the unique index on users.email; returns False if MongoDB refused."""
    collection = collection if collection is not None else users_collection
    try:
        collection.create_index("email", unique=True)
        return True
    except PyMongoError as e:
        logger.error("Could not create users.email index: %s", e)
        return False
