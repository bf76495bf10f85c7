from __future__ import annotations
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./app.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
	# SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
	if isinstance(dbapi_connection, sqlite3.Connection):
		cursor = dbapi_connection.cursor()
		cursor.execute("PRAGMA foreign_keys=ON")
		cursor.close()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


def init_db(bind: Engine | None = None) -> None:
	# Importing models registers every table on Base.metadata
	from . import models  # noqa: F401
	Base.metadata.create_all(bind=bind or engine)
