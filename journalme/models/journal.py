"""
Journal, Task and Goal Models

Plain CRUD records. The only rules worth enforcing are non-empty text
and a known goal horizon.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class GoalHorizon(str, Enum):
    """How far out a goal looks."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class JournalEntry(BaseModel):
    """A free-text reflection."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    content: str = Field(..., min_length=1, max_length=20000)
    created_at: datetime = Field(default_factory=datetime.now)


class Task(BaseModel):
    """
    A discipline task for today.

    Tasks are archived (never deleted) at the day boundary so the
    board starts clean each morning.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    label: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=50)
    completed: bool = False
    is_archived: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class Goal(BaseModel):
    """A longer-horizon goal."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    label: str = Field(..., min_length=1, max_length=200)
    horizon: GoalHorizon
    completed: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class AdvisorUsage(BaseModel):
    """How many advisor calls were made on a given day."""

    day: date
    count: int = Field(default=0, ge=0)
