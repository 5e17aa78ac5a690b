# models.py

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from database import Base


class LocalStoreEntry(Base):
    """
    One key of the installation-local store. Values are JSON text; the
    override map, the cached record lists and the saved filters all live here.
    """
    __tablename__ = "local_store"
    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
