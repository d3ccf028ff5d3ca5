"""
Paranoid Test Configuration

Provides pytest fixtures for an in-memory SQLite database, per-test sessions
rolled back afterwards, and the models exercised by the test suite.
"""

import pytest
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import sessionmaker, Session

from paranoid.config import reset_settings
from paranoid.db import create_db_engine
from paranoid.models import Base, ParanoidMixin


class Widget(ParanoidMixin, Base):
    __tablename__ = "widgets"

    default_timezone = "local"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)


class UtcWidget(ParanoidMixin, Base):
    __tablename__ = "utc_widgets"

    default_timezone = "utc"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)


class Gadget(Base):
    """Plain model without soft delete"""

    __tablename__ = "gadgets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100))


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(scope="session")
def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_db_engine("sqlite://", echo=False)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """
    Create a new database session for each test function.
    Rolls back all changes after the test completes.
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    SessionLocal = sessionmaker(bind=connection)
    session = SessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def make_widget(db_session: Session):
    def _make(title: str = "widget", model=Widget):
        record = model(title=title)
        db_session.add(record)
        db_session.flush()
        return record

    return _make
