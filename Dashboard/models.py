# backend/Dashboard/models.py
import math
from datetime import datetime, timezone

from pydantic import field_validator
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class DataPointBase(SQLModel):
    label: str = Field(min_length=1)
    value: float
    # always UTC; dates without an offset are taken as UTC
    date: datetime = Field(sa_type=DateTime(timezone=True))

    @field_validator("value")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("value must be a finite number")
        return v

    @field_validator("date")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class DataPoint(DataPointBase, table=True):
    id: int | None = Field(default=None, primary_key=True)


class DataPointCreate(DataPointBase):
    pass


class DataPointRead(DataPointBase):
    id: int
