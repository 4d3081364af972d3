"""Admin accounts, the activity log and platform-wide counts"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from ...models import AdminActivityLog, AdminUser as AdminUserModel
from ...models import Booking, Notification, Partner, Review, Service, User
from ...shared.repository import SqlAlchemyRepository
from .entities import AdminActivity, AdminUser

logger = logging.getLogger(__name__)


class AdminRepository(ABC):
    @abstractmethod
    def create_admin(self, admin: AdminUser) -> AdminUser: ...

    @abstractmethod
    def find_admin(self, uid: str) -> Optional[AdminUser]: ...

    @abstractmethod
    def record_login(self, uid: str) -> AdminUser: ...

    @abstractmethod
    def log_activity(
        self, admin_id: str, activity_type: str, description: str, metadata: Optional[dict] = None
    ) -> AdminActivity: ...

    @abstractmethod
    def get_activity(self, admin_id: Optional[str], limit: int) -> list[AdminActivity]: ...

    @abstractmethod
    def count_users(
        self,
        role: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> int: ...

    @abstractmethod
    def collection_counts(self) -> dict[str, int]: ...

    @abstractmethod
    def ping_database(self) -> float: ...


def _admin_to_entity(row: AdminUserModel) -> AdminUser:
    return AdminUser(
        uid=row.uid,
        email=row.email,
        display_name=row.display_name,
        role=row.role,
        permissions=list(row.permissions or []),
        is_active=row.is_active,
        last_login_at=row.last_login_at,
        created_at=row.created_at,
    )


def _activity_to_entity(row: AdminActivityLog) -> AdminActivity:
    return AdminActivity(
        id=row.id,
        admin_id=row.admin_id,
        activity_type=row.activity_type,
        description=row.description,
        metadata=dict(row.details or {}),
        created_at=row.created_at,
    )


class SqlAlchemyAdminRepository(SqlAlchemyRepository, AdminRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def create_admin(self, admin: AdminUser) -> AdminUser:
        with self.guard("creating admin"):
            row = AdminUserModel(
                uid=admin.uid,
                email=admin.email.strip().lower(),
                display_name=admin.display_name,
                role=admin.role,
                permissions=list(admin.permissions),
                is_active=admin.is_active,
            )
            self.db.add(row)
            self.commit(row)
        logger.info(f"✅ Admin {admin.email} created with role {admin.role}")
        return _admin_to_entity(row)

    def find_admin(self, uid: str) -> Optional[AdminUser]:
        with self.guard("loading admin"):
            row = self.db.query(AdminUserModel).filter(AdminUserModel.uid == uid).first()
        return _admin_to_entity(row) if row else None

    def record_login(self, uid: str) -> AdminUser:
        with self.guard("recording admin login"):
            row = self.db.query(AdminUserModel).filter(AdminUserModel.uid == uid).first()
            row.last_login_at = datetime.utcnow()
            self.commit(row)
        return _admin_to_entity(row)

    def log_activity(
        self, admin_id: str, activity_type: str, description: str, metadata: Optional[dict] = None
    ) -> AdminActivity:
        with self.guard("logging admin activity"):
            row = AdminActivityLog(
                admin_id=admin_id,
                activity_type=activity_type,
                description=description,
                details=dict(metadata or {}),
            )
            self.db.add(row)
            self.commit(row)
        return _activity_to_entity(row)

    def get_activity(self, admin_id: Optional[str], limit: int) -> list[AdminActivity]:
        query = self.db.query(AdminActivityLog)
        if admin_id:
            query = query.filter(AdminActivityLog.admin_id == admin_id)
        with self.guard("loading admin activity"):
            rows = query.order_by(AdminActivityLog.created_at.desc()).limit(limit).all()
        return [_activity_to_entity(r) for r in rows]

    def count_users(
        self,
        role: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> int:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if created_from:
            query = query.filter(User.created_at >= created_from)
        if created_to:
            query = query.filter(User.created_at <= created_to)
        with self.guard("counting users"):
            return query.count()

    def collection_counts(self) -> dict[str, int]:
        with self.guard("counting records"):
            return {
                "users": self.db.query(User).count(),
                "partners": self.db.query(Partner).count(),
                "services": self.db.query(Service).count(),
                "bookings": self.db.query(Booking).count(),
                "reviews": self.db.query(Review).count(),
                "notifications": self.db.query(Notification).count(),
            }

    def ping_database(self) -> float:
        """Round-trip latency of a trivial query, in milliseconds"""
        started = time.perf_counter()
        with self.guard("pinging database"):
            self.db.execute(text("SELECT 1"))
        return round((time.perf_counter() - started) * 1000, 2)
