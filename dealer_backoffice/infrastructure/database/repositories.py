"""Data access layer for report logs"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from dealer_backoffice.infrastructure.database.models import ReportLog


class ReportLogRepository:
    """Repository for report snapshots"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, report_type: str, report_date: date, payload: Dict[str, Any]) -> ReportLog:
        """Persist a report snapshot"""
        entry = ReportLog(report_type=report_type, report_date=report_date, payload=payload)
        self.db.add(entry)
        self.db.flush()  # Get ID and logged_at without committing
        self.db.refresh(entry)
        return entry

    def list_by_type(self, report_type: str, limit: int = 50) -> List[ReportLog]:
        """Newest report date first; same-day snapshots newest first"""
        return (
            self.db.query(ReportLog)
            .filter(ReportLog.report_type == report_type)
            .order_by(ReportLog.report_date.desc(), ReportLog.logged_at.desc())
            .limit(limit)
            .all()
        )

    def get(self, log_id: uuid.UUID) -> Optional[ReportLog]:
        return self.db.query(ReportLog).filter(ReportLog.id == log_id).first()

    def delete(self, log_id: uuid.UUID) -> bool:
        """Remove a snapshot; False when it does not exist"""
        entry = self.get(log_id)
        if entry is None:
            return False
        self.db.delete(entry)
        self.db.flush()
        return True
