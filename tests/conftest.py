"""Shared test fixtures for the docshelf test suite.

Every test gets its own in-memory SQLite database (StaticPool, foreign keys
on) with all tables created, so tests are fully isolated and need no
external services.
"""

import os

# Point the module-level engine at memory and keep logs readable before any
# docshelf import reads the settings.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FORMAT"] = "text"

from typing import Optional

import pytest
from sqlalchemy.orm import Session, sessionmaker

from docshelf.core.roles import CREATE_DOCUMENTS
from docshelf.database import build_engine, init_db
from docshelf.models import Area, Category, Document, User, UserPermission
from docshelf.repositories import UnitOfWork
from docshelf.services import AccessFacade


@pytest.fixture()
def engine():
    """Fresh in-memory database per test."""
    test_engine = build_engine("sqlite://")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def db(engine):
    """Per-test database session."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture()
def uow(db) -> UnitOfWork:
    return UnitOfWork(db)


@pytest.fixture()
def facade(db) -> AccessFacade:
    return AccessFacade(db)


def make_area(db: Session, name: str = "Engineering", description: Optional[str] = None) -> Area:
    """Factory for areas."""
    area = Area(name=name, description=description)
    db.add(area)
    db.commit()
    return area


def make_user(
    db: Session,
    email: str = "user@example.com",
    role: str = "normal",
    area: Optional[Area] = None,
    can_create: bool = True,
    is_leader: bool = False,
) -> User:
    """Factory for users. Normal users get the create_documents grant unless told otherwise."""
    user = User(
        email=email,
        display_name=email.split("@")[0],
        role=role,
        area_id=area.id if area else None,
        is_leader=is_leader,
    )
    db.add(user)
    db.flush()
    if can_create and role == "normal":
        db.add(UserPermission(user_id=user.id, permission=CREATE_DOCUMENTS))
    db.commit()
    return user


def make_category(
    db: Session,
    owner: User,
    name: str = "Folder",
    parent: Optional[Category] = None,
    is_deleted: bool = False,
) -> Category:
    """Factory for categories."""
    category = Category(
        owner_id=owner.id,
        name=name,
        parent_id=parent.id if parent else None,
        is_deleted=is_deleted,
    )
    db.add(category)
    db.commit()
    return category


def make_document(
    db: Session,
    owner: User,
    title: str = "Test Document",
    content: str = "Hello world.",
    category: Optional[Category] = None,
    is_deleted: bool = False,
) -> Document:
    """Factory for documents. Writes the row directly; no version is recorded."""
    document = Document(
        owner_id=owner.id,
        title=title,
        content=content,
        category_id=category.id if category else None,
        is_deleted=is_deleted,
    )
    db.add(document)
    db.commit()
    return document
