"""SQLAlchemy ORM models for locally stored report snapshots"""

import uuid
from sqlalchemy import Column, Text, DateTime, Date, JSON, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ReportLog(Base):
    """Snapshot of a generated report (nightly digest, collections overview, ...)"""

    __tablename__ = "report_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    report_type = Column(Text, nullable=False, index=True)
    report_date = Column(Date, nullable=False)
    payload = Column(JSON, nullable=False)
    logged_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
