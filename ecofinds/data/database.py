# ecofinds/data/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ecofinds.utils.settings import DATABASE_URL, SQLITE_BUSY_TIMEOUT

Base = declarative_base()


def make_engine(url: str = DATABASE_URL) -> Engine:
    """
    Engine for the given url.

    SQLite has no row locks, so every transaction is opened with
    BEGIN IMMEDIATE: concurrent writers queue on the database write lock
    instead of failing with "database is locked" halfway through a checkout.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = make_engine()
SessionLocal = make_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = engine) -> None:
    # models must be imported before create_all so they are registered on Base.metadata
    import ecofinds.data.models  # noqa: F401

    Base.metadata.create_all(bind=bind)
