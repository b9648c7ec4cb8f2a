from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from ..db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


def enum_values(enum_cls):
    """Persist enum values ("on_hold") rather than member names ("ON_HOLD")."""
    return [member.value for member in enum_cls]


class UUIDBaseModel(Base):
    """Base model with UUID primary key"""
    __abstract__ = True

    id = Column(String, primary_key=True, default=new_uuid, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower()


class TimestampedModel(UUIDBaseModel):
    """UUID model that also tracks its last update"""
    __abstract__ = True

    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )
