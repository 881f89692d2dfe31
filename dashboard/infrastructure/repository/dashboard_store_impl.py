from datetime import datetime
from typing import Optional

from config.database.session import SessionLocal
from dashboard.application.port.dashboard_store_port import DashboardStorePort
from dashboard.infrastructure.orm.models import DashboardStoreORM


class DashboardStoreImpl(DashboardStorePort):
    """키-값 저장소. 대시보드 결과와 필터 두 개의 키만 사용한다."""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with self.session_factory() as db:
            orm = db.get(DashboardStoreORM, key)
            return orm.payload if orm is not None else None

    def put(self, key: str, value: str) -> None:
        with self.session_factory() as db:
            orm = db.get(DashboardStoreORM, key)
            if orm is None:
                orm = DashboardStoreORM(storage_key=key)
                db.add(orm)
            orm.payload = value
            orm.updated_at = datetime.utcnow()
            db.commit()

    def delete(self, key: str) -> None:
        with self.session_factory() as db:
            orm = db.get(DashboardStoreORM, key)
            if orm is not None:
                db.delete(orm)
                db.commit()
