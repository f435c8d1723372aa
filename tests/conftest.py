"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import os
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Keep the module-level engine away from any real database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from src.core.topics import CefrBand, GrammarTopic  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory SQLite)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def rng():
    """Seeded random source for reproducible selection."""
    return random.Random(42)


@pytest.fixture
def topics():
    """Small catalog: three A1, two A2, two B1 topics."""
    return [
        GrammarTopic(id=1, level=CefrBand.A1, name_de="Präsens", name_en="Present tense", order_index=1, weight=1.5),
        GrammarTopic(id=2, level=CefrBand.A1, name_de="Akkusativ", name_en="Accusative", order_index=2, weight=1.2),
        GrammarTopic(id=3, level=CefrBand.A1, name_de="Negation", name_en="Negation", order_index=3, weight=1.0),
        GrammarTopic(id=4, level=CefrBand.A2, name_de="Perfekt", name_en="Perfect tense", order_index=1, weight=1.6),
        GrammarTopic(id=5, level=CefrBand.A2, name_de="Dativ", name_en="Dative", order_index=2, weight=1.5),
        GrammarTopic(id=6, level=CefrBand.B1, name_de="Passiv", name_en="Passive voice", order_index=1, weight=1.5),
        GrammarTopic(id=7, level=CefrBand.B1, name_de="Relativsätze", name_en="Relative clauses", order_index=2, weight=1.6),
    ]


@pytest.fixture
def db_session(topics):
    """In-memory SQLite session with tables created and the small catalog seeded."""
    from src.db.database import init_db, seed_topics

    engine = create_engine("sqlite://")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_db(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    seed_topics(session, topics)
    session.commit()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
