import uuid
from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID

from .database import Base
from .timeutils import utcnow


class Process(Base):
    __tablename__ = "process_metadata"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # join key for every derived namespace; renamed only through the lifecycle coordinator
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, default="pending", nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
