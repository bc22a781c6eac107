"""
src/DB/base_class.py
=================================
SQLAlchemy Base Model Definition
=================================

Declarative base (SQLAlchemy 2.0 style) shared by every model. Models that
do not declare ``__tablename__`` get their lowercase class name; the
journey models declare explicit plural names.
"""

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models in the application.

    All models inherit from it so they are registered in ``Base.metadata``
    and discovered by Alembic.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Default table name: lowercase class name."""
        return cls.__name__.lower()
