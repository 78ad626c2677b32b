from sqlmodel import create_engine, Session

import os

DATABASE_URL = os.getenv("POSTGRES_URI")
if not DATABASE_URL or DATABASE_URL == "":
    raise ValueError("DATABASE URL not set")

# Record store queries run in worker threads
connect_args = (
    {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "").lower() in ("1", "true"),
    connect_args=connect_args,
)


def get_session():
    with Session(engine) as session:
        yield session
