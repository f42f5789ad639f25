"""Pytest fixtures and configuration for studyblocks tests."""

import pytest
import random
import uuid
from datetime import date, datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from studyblocks.database.database import Base
from studyblocks.database import models  # noqa: F401
from studyblocks.database.schedule_preferences_repository import SchedulePreferencesRepository
from studyblocks.database.study_block_repository import StudyBlockRepository
from studyblocks.database.subject_repository import SubjectRepository
from studyblocks.database.user_repository import UserRepository
from studyblocks.models.study_block import StudyBlock
from studyblocks.models.subject import Subject


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# A Monday, so weekday/weekend capacities are predictable
START_DATE = date(2024, 1, 1)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture(scope="function")
def db_session(test_user_id):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    Also creates a test user in the database.
    """
    from studyblocks.database.models import UserDB

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    event.listen(engine, "connect", set_sqlite_pragmas)

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    # Create test user (required for foreign key constraints)
    now = datetime.utcnow()
    session.add(
        UserDB(
            id=test_user_id,
            email="test@example.com",
            display_name="Test User",
            created_at=now,
            last_sync_at=now,
        )
    )
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def subject_repository(db_session: Session):
    return SubjectRepository(db_session)


@pytest.fixture
def block_repository(db_session: Session):
    return StudyBlockRepository(db_session)


@pytest.fixture
def user_repository(db_session: Session):
    return UserRepository(db_session)


@pytest.fixture
def preferences_repository(db_session: Session):
    return SchedulePreferencesRepository(db_session)


@pytest.fixture
def seeded_rng():
    """Deterministic random source for the allocator shuffle."""
    return random.Random(1234)


@pytest.fixture
def sample_subject_base(test_user_id):
    """Base subject data that can be overridden per test."""
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "name": "Mathematics",
        "icon": "🧮",
        "confidence": 5,
        "block_duration_minutes": 60,
        "xp": 0,
        "level": 1,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def make_subject(sample_subject_base):
    """Factory for Subject objects with fresh ids."""
    def _make(**overrides) -> Subject:
        return Subject(**{**sample_subject_base, "id": str(uuid.uuid4()), **overrides})
    return _make


@pytest.fixture
def make_block(test_user_id):
    """Factory for StudyBlock objects belonging to a subject."""
    def _make(subject: Subject, **overrides) -> StudyBlock:
        data = {
            "id": str(uuid.uuid4()),
            "user_id": test_user_id,
            "subject_id": subject.id,
            "subject_name": subject.name,
            "subject_icon": subject.icon,
            "block_number": 1,
            "duration_minutes": 60,
            "scheduled_date": START_DATE,
            "total_blocks_for_subject": 1,
        }
        data.update(overrides)
        return StudyBlock(**data)
    return _make
