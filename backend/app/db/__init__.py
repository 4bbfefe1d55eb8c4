import importlib
import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings

log = logging.getLogger("db")

DATABASE_URL = settings.DATABASE_URL

# execution option read by the sqlite begin hook; other dialects ignore it
WRITE_LOCK_OPTION = "lovecakes_write_lock"

_connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # sessions are opened in the request thread and closed from the dependency teardown
    _connect_args["check_same_thread"] = False
    # seconds a writer waits for the database lock before failing
    _connect_args["timeout"] = settings.SQLITE_BUSY_TIMEOUT

engine = create_engine(DATABASE_URL, future=True, echo=settings.DB_ECHO, connect_args=_connect_args)

if engine.dialect.name == "sqlite":
    # pysqlite issues its own BEGIN lazily, which breaks SAVEPOINT semantics.
    # Let SQLAlchemy own transaction boundaries instead.
    @event.listens_for(engine, "connect")
    def _sqlite_on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_on_begin(conn):
        # write transactions take the RESERVED lock up front so concurrent writers queue on the busy timeout
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# every model module must be imported before create_all so metadata is populated
MODEL_MODULES = [
    "app.models.catalog",
    "app.models.confectioner",
    "app.models.product",
    "app.models.review",
    "app.models.cart",
    "app.models.cart_item",
]


def _reset_requested() -> bool:
    return os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes")


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Behavior:
      - If `reset` is true or the RESET_DB env var is set to 1/true/yes, drop & recreate tables.
      - Otherwise only missing tables are created.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset or _reset_requested():
        log.info("Resetting database schema at %s", engine.url.render_as_string(hide_password=True))
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.debug("Database initialized with tables: %s", sorted(Base.metadata.tables))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
