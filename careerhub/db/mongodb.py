"""
MongoDB Connection Utility

The document backend keeps one collection per entity. Documents use the
service-assigned id as `_id`, so ids look the same on both backends.

Uniqueness rules live in unique indexes, which makes duplicate
applications / submissions fail atomically inside MongoDB instead of
relying on a read-then-write check.
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from careerhub.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


# Collection name constants (avoid typos)
COLLECTIONS = {
    "questions": "questions",
    "tests": "aptitude_tests",
    "results": "test_results",
    "applications": "applications",
    "colleges": "colleges",
    "courses": "courses",
    "students": "students",
}


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        settings = get_settings()
        timeout_ms = int(settings.backend_timeout_seconds * 1000)
        _client = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
        )
    return _client


def get_mongo_db() -> Database:
    """Get the careerhub_docs database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def get_collection(db: Database, name: str) -> Collection:
    """Get a collection by its logical name (see COLLECTIONS)."""
    return db[COLLECTIONS[name]]


def test_mongo_connection(db: Database = None) -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        db = db if db is not None else get_mongo_db()
        # ping command checks connection
        db.command("ping")
        return True
    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        return False


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for query performance and uniqueness rules.
    Call this once during app startup.
    """
    db = db if db is not None else get_mongo_db()

    get_collection(db, "questions").create_index([("college_id", ASCENDING), ("created_at", ASCENDING)])

    get_collection(db, "tests").create_index([("college_id", ASCENDING), ("status", ASCENDING)])

    # One result per (test, student)
    results = get_collection(db, "results")
    results.create_index([("test_id", ASCENDING), ("student_id", ASCENDING)], unique=True)
    results.create_index([("student_id", ASCENDING), ("date", DESCENDING)])

    # One application per (student, course)
    applications = get_collection(db, "applications")
    applications.create_index([("student_id", ASCENDING), ("course_id", ASCENDING)], unique=True)
    applications.create_index([("college_id", ASCENDING), ("created_at", DESCENDING)])
    applications.create_index("course_id")

    colleges = get_collection(db, "colleges")
    colleges.create_index("profile_id", unique=True)
    colleges.create_index([("is_verified", ASCENDING), ("name", ASCENDING)])

    get_collection(db, "courses").create_index("college_id")

    students = get_collection(db, "students")
    students.create_index("profile_id", unique=True)
    students.create_index("email", unique=True)

    logger.info("MongoDB indexes created successfully")
