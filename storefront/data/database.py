# storefront/data/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.utils.logging import get_logger
from storefront.utils.retry import db_retry
from storefront.utils.settings import Settings

logger = get_logger(__name__)

Base = declarative_base()


def _configure_sqlite(engine: Engine) -> None:
    # pysqlite's own transaction handling is switched off so that every
    # transaction starts with BEGIN IMMEDIATE: writers are serialized at
    # begin, which is what row locks give us on PostgreSQL.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_engine(settings: Settings) -> Engine:
    url = settings.database_url
    kwargs = {"echo": settings.db_echo, "future": True}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine, attempts: int = 5) -> None:
    """
    Creates the tables, waiting for the database to come up if needed.
    """
    # register every model on Base.metadata
    import storefront.data.models  # noqa: F401

    @db_retry(attempts)
    def _create_all():
        logger.info(f"Creating tables: {sorted(Base.metadata.tables.keys())}")
        Base.metadata.create_all(bind=engine)

    _create_all()
    logger.info("Database tables ready")
