from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from config.database.session import Base


class DashboardStoreORM(Base):
    __tablename__ = "dashboard_store"

    storage_key = Column(String(100), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
