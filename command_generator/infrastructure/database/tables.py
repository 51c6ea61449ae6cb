"""
Database Table Definitions.

This module defines the SQL schema using SQLModel.
We use the 'DBModel' suffix to distinguish these persistence models
from the Pydantic state models (GuidanceState, GeneratorDraft).
"""

from datetime import datetime

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from ...state.models import utcnow


class KeyValueDBModel(SQLModel, table=True):
    """
    Persistence model for named storage slots.
    Maps 1-to-1 with the 'kv_slots' table.
    """

    __tablename__ = "kv_slots"

    key: str = Field(primary_key=True)

    # Opaque serialized record (JSON text); each slot is overwritten wholesale.
    value: str = Field(sa_column=Column(Text, nullable=False))

    updated_at: datetime = Field(default_factory=utcnow)
