# reminders/database.py
from datetime import datetime
from sqlalchemy import create_engine, Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import config

# =========================================================
# DATABASE SETUP
# =========================================================
Base = declarative_base()


def make_engine(url: str = None):
    url = url or config.DATABASE_URL
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory SQLite must share one connection across threads
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url)


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_database(engine) -> None:
    Base.metadata.create_all(bind=engine)

# =========================================================
# DATABASE MODELS
# =========================================================
class PreferencesRecord(Base):
    __tablename__ = "notification_preferences"
    id = Column(Integer, primary_key=True)
    user_key = Column(String(100), unique=True, nullable=False)
    preferences = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
