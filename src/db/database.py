from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from src.core.topics import GrammarTopic
from src.db.models import Base, GrammarTopicRecord

settings = get_settings()

# Sync engine/session
engine = create_engine(settings.database_url, echo=settings.log_level == "DEBUG", pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_engine() -> Engine:
    """Get the database engine."""
    return engine


def init_db(bind: Engine | None = None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables initialized")


def seed_topics(session: Session, topics: list[GrammarTopic]) -> int:
    """Insert catalog topics that are not stored yet. Returns the number added."""
    existing = set(session.scalars(select(GrammarTopicRecord.id)))
    added = 0
    for topic in topics:
        if topic.id in existing:
            continue
        session.add(GrammarTopicRecord.from_domain(topic))
        added += 1
    session.flush()
    if added:
        logger.info(f"Seeded {added} grammar topics")
    return added


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
