"""
Storage layer - one store per entity, two interchangeable backends.

    stores = build_stores(get_settings())
    stores.questions.get(question_id)
"""

import logging
from typing import Optional

from careerhub.core.config import Settings
from careerhub.stores.base import Stores

logger = logging.getLogger(__name__)


def build_stores(settings: Settings, profile_id: Optional[str] = None, service: bool = False) -> Stores:
    """
    Stores for the configured backend. profile_id scopes PostgreSQL
    row-level security; service=True is the unrestricted operator context.
    """
    if settings.storage_backend == "postgres":
        from careerhub.db.postgres import get_session_factory
        from careerhub.stores.sql import build_sql_stores
        return build_sql_stores(get_session_factory(), profile_id, service)

    from careerhub.db.mongodb import get_mongo_db
    from careerhub.stores.mongo import build_mongo_stores
    return build_mongo_stores(get_mongo_db())


def init_storage(settings: Settings) -> None:
    """Create indexes / tables for the configured backend. Call once at startup."""
    if settings.storage_backend == "postgres":
        from careerhub.db.postgres import init_postgres_schema
        init_postgres_schema(enable_rls=settings.postgres_enable_rls)
    else:
        from careerhub.db.mongodb import init_mongo_indexes
        init_mongo_indexes()
    logger.info(f"Storage initialised ({settings.storage_backend})")


__all__ = ["Stores", "build_stores", "init_storage"]
