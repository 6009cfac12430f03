from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from hr_calltracker.database import Base

class KeyValueEntry(Base):
    __tablename__ = "key_value_entries"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)  # JSON document
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
