"""
Database module - PostgreSQL and MongoDB connections.
"""
from careerhub.db.postgres import get_db_session, test_postgres_connection, init_postgres_schema
from careerhub.db.mongodb import get_mongo_db, test_mongo_connection, init_mongo_indexes

__all__ = [
    "get_db_session",
    "test_postgres_connection",
    "init_postgres_schema",
    "get_mongo_db",
    "test_mongo_connection",
    "init_mongo_indexes",
]
