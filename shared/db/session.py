from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from shared.db.settings import get_db_settings


def build_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    settings = get_db_settings()
    url = database_url or settings.database_url
    connect_args = {}
    if url.startswith("sqlite"):
        # Requests are served from a thread pool; the engine is shared across them.
        connect_args["check_same_thread"] = False
    engine = create_engine(
        url,
        echo=settings.echo if echo is None else echo,
        connect_args=connect_args,
    )
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
