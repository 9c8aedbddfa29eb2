import logging
from contextlib import contextmanager
from typing import Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from careerhub.core.config import Settings, get_settings
from careerhub.db.tables import metadata, RLS_STATEMENTS

logger = logging.getLogger(__name__)

_engine: Engine = None
_session_factory: sessionmaker = None


def create_db_engine(settings: Settings) -> Engine:
    """
    Create engine with connection pool.
    Every wait is bounded by backend_timeout_seconds: pool checkout,
    TCP connect, and statement execution.
    """
    timeout = settings.backend_timeout_seconds
    return create_engine(
        settings.postgres_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=timeout,
        pool_pre_ping=True,
        connect_args={
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        },
        echo=settings.debug  # Log SQL queries in debug mode
    )


def get_engine() -> Engine:
    """Get or create the engine (singleton pattern)"""
    global _engine
    if _engine is None:
        _engine = create_db_engine(get_settings())
    return _engine


def get_session_factory() -> sessionmaker:
    """Session factory bound to the shared engine"""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _session_factory


def rls_session_settings(profile_id: Optional[str] = None, service: bool = False) -> Dict[str, str]:
    """Transaction-local settings the row-level security policies read."""
    values = {}
    if profile_id:
        values["app.profile_id"] = profile_id
    if service:
        values["app.service"] = "on"
    return values


@contextmanager
def get_db_session(
    session_factory: Optional[sessionmaker] = None,
    profile_id: Optional[str] = None,
    service: bool = False,
):
    """
    Context manager for database sessions.
    On PostgreSQL, row-level security policies see the profile_id (or the
    service context) for the whole transaction.
    Usage:
        with get_db_session() as db:
            db.execute(select(colleges))
    """
    session: Session = (session_factory or get_session_factory())()
    try:
        if session.get_bind().dialect.name == "postgresql":
            for name, value in rls_session_settings(profile_id, service).items():
                session.execute(
                    text("SELECT set_config(:name, :value, true)"),
                    {"name": name, "value": value}
                )
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def test_postgres_connection(session_factory: Optional[sessionmaker] = None) -> bool:
    """
    Test if the relational backend is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session(session_factory) as db:
            result = db.execute(text("SELECT 1 as test"))
            row = result.fetchone()
            return row[0] == 1
    except Exception as e:
        logger.warning(f"PostgreSQL connection failed: {e}")
        return False


def init_postgres_schema(engine: Optional[Engine] = None, enable_rls: bool = False) -> None:
    """
    Create tables (idempotent) and, on PostgreSQL, optionally install the
    row-level security policies.
    """
    engine = engine if engine is not None else get_engine()
    metadata.create_all(engine)
    if enable_rls and engine.dialect.name == "postgresql":
        with engine.begin() as conn:
            for statement in RLS_STATEMENTS:
                conn.execute(text(statement))
        logger.info("Row-level security policies installed")
    logger.info("Relational schema ready")
