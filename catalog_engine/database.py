# catalog_engine/database.py
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from catalog_engine.core.config import get_settings


def build_engine(db_url: str) -> Engine:
    """
    Build the SQLAlchemy engine for the primary store.

    Postgres (Supabase pooler):
      - sslmode=require   : enforce SSL when running in the cloud
      - pool_size=1       : keep only 1 connection to the Supabase pooler
      - max_overflow=0    : do not open extra connections beyond the pool
      - pool_pre_ping=True: validate connections before using them

    Reason:
    Supabase Session mode limits the number of clients. If each backend
    process opens many connections (SQLAlchemy default pool_size 5+),
    you can easily hit:
      "MaxClientsInSessionMode: max clients reached"

    Any other URL (e.g. sqlite for local runs) is used as-is.
    """
    if not db_url.startswith("postgres"):
        return create_engine(db_url, echo=False)

    # Append sslmode=require if it is not already present
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    return create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


engine = build_engine(get_settings().DATABASE_URL)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Services own the transaction: they commit or roll back the whole
    unit of work themselves.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
