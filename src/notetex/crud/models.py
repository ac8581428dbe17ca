"""Database table definitions for the conversion history"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


class ConversionStatus(str, Enum):
    """Outcome of recording a conversion against the previous one for the same note"""
    created = "created"
    updated = "updated"
    unchanged = "unchanged"


class Conversion(SQLModel, table=True):
    """Latest .tex output produced for a source note"""
    __tablename__ = "conversions"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    source_path: str = Field(..., sa_column=Column(Text, nullable=False, unique=True))
    output_path: str = Field(..., sa_column=Column(Text, nullable=False))
    source_hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    output_hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    status: ConversionStatus = Field(default=ConversionStatus.created, nullable=False)
    compiled: Optional[bool] = Field(default=None, description="None when compilation was not attempted")
    runs: int = Field(default=1, nullable=False, description="Number of conversions recorded for the note")
    converted_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
