from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint

from realip.core.db import Base
from realip.core.time import utcnow


class Option(Base):
    """Key/value row; holds process secrets that must survive restarts."""

    __tablename__ = "options"
    __table_args__ = (
        UniqueConstraint("key", name="uq_options_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, nullable=False)
    value = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
