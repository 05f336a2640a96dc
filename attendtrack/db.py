import logging
import os

from sqlmodel import Session, SQLModel, create_engine

from .config import settings

log = logging.getLogger(__name__)


def _resolve_database_url(url: str) -> str:
    # Anchor relative SQLite paths to the working directory so the app and
    # the seed script agree on the same file.
    if url.startswith("sqlite:///") and not url.startswith("sqlite:////"):
        rel = url.split("///", 1)[-1]
        if rel and rel != ":memory:" and not os.path.isabs(rel):
            return f"sqlite:///{os.path.abspath(os.path.join(os.getcwd(), rel))}"
    return url


DATABASE_URL = _resolve_database_url(settings.DATABASE_URL)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=settings.SQL_ECHO, connect_args=connect_args)


def get_session():
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Create all tables registered on the SQLModel metadata."""
    from . import models  # noqa: F401  (registers table classes)

    SQLModel.metadata.create_all(engine)
    log.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
