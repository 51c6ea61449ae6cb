"""
Database Connection Manager.

This module handles the low-level details of connecting to the database.
It exposes the SQLModel engine which will be used by the key-value store.
"""

from sqlalchemy.engine import Engine
from sqlmodel import create_engine, SQLModel
from ...config import settings

# echo=False to keep stored drafts out of the logs
engine = create_engine(settings.DATABASE_URL, echo=False)


def init_db(target: Engine = engine):
    """
    Idempotent initialization.
    Creates tables if they do not exist.
    """
    SQLModel.metadata.create_all(target)
