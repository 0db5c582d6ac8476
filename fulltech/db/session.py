from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from fulltech.core.config import get_settings

settings = get_settings()


def build_engine(database_url: str, **kwargs) -> Engine:
    is_sqlite = database_url.startswith("sqlite")
    built = create_engine(
        database_url,
        pool_pre_ping=True,
        future=True,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        **kwargs,
    )
    if is_sqlite:
        # SQLite ignores foreign keys unless asked per connection.
        @event.listens_for(built, "connect")
        def _enable_foreign_keys(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return built


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
