from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from slotbook.core.config import settings


def _serialize_sqlite_writers(engine: Engine) -> None:
    """Open every SQLite transaction with BEGIN IMMEDIATE.

    SQLite ignores FOR UPDATE and pysqlite defers BEGIN until the first
    write. Taking the write lock up front queues writers the way row locks
    do on PostgreSQL.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str) -> Engine:
    """Create an engine with per-backend connection options."""
    backend = make_url(database_url).get_backend_name()
    connect_args = {}
    if backend.startswith("postgresql"):
        connect_args["options"] = "-c timezone=utc"
    elif backend == "sqlite":
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = 30
    engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    if backend == "sqlite":
        _serialize_sqlite_writers(engine)
    return engine


engine = build_engine(settings.DATABASE_URL)
