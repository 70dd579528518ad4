"""SQLAlchemy declarative base for entity models.

Entity classes map themselves; the repository only needs their mapper.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all entity models."""

    pass
