"""Service catalog repository - contract and SQLAlchemy implementation"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...cache import Cache, cached
from ...cache import cache as default_cache
from ...config import SERVICES_CACHE_TTL
from ...models import Service as ServiceModel
from ...shared.failures import DataFailure
from ...shared.repository import SqlAlchemyRepository
from .entities import Service, ServiceSearchCriteria

logger = logging.getLogger(__name__)

CACHE_PATTERN = "services:*"


class ServiceRepository(ABC):
    @abstractmethod
    def get_all_services(self) -> list[Service]: ...

    @abstractmethod
    def get_service_by_id(self, service_id: str) -> Service: ...

    @abstractmethod
    def get_services_by_category(self, category: str) -> list[Service]: ...

    @abstractmethod
    def search_services(self, criteria: ServiceSearchCriteria) -> list[Service]: ...

    @abstractmethod
    def get_popular_services(self, limit: int) -> list[Service]: ...

    @abstractmethod
    def increment_booking_count(self, service_id: str) -> None: ...

    @abstractmethod
    def upsert_services(self, services: list[Service]) -> int: ...


def _to_entity(row: ServiceModel) -> Service:
    return Service(
        id=row.id,
        name=row.name,
        description=row.description or "",
        category=row.category,
        icon_url=row.icon_url,
        base_price=row.base_price,
        duration_minutes=row.duration_minutes,
        requirements=list(row.requirements or []),
        benefits=list(row.benefits or []),
        is_active=row.is_active,
        sort_order=row.sort_order,
        booking_count=row.booking_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyServiceRepository(SqlAlchemyRepository, ServiceRepository):
    def __init__(self, db: Session, cache: Optional[Cache] = None):
        super().__init__(db)
        self.cache = cache if cache is not None else default_cache

    @cached(key_builder=lambda: "services:all", ttl=SERVICES_CACHE_TTL)
    def _active_services(self) -> list[dict]:
        with self.guard("loading services"):
            rows = (
                self.db.query(ServiceModel)
                .filter(ServiceModel.is_active.is_(True))
                .order_by(ServiceModel.sort_order.asc(), ServiceModel.name.asc())
                .all()
            )
        return [_to_entity(r).to_dict() for r in rows]

    @cached(key_builder=lambda category: f"services:category:{category}", ttl=SERVICES_CACHE_TTL)
    def _services_in_category(self, category: str) -> list[dict]:
        with self.guard("loading services by category"):
            rows = (
                self.db.query(ServiceModel)
                .filter(ServiceModel.category == category, ServiceModel.is_active.is_(True))
                .order_by(ServiceModel.sort_order.asc())
                .all()
            )
        return [_to_entity(r).to_dict() for r in rows]

    @cached(key_builder=lambda limit: f"services:popular:{limit}", ttl=SERVICES_CACHE_TTL)
    def _popular_services(self, limit: int) -> list[dict]:
        with self.guard("loading popular services"):
            rows = (
                self.db.query(ServiceModel)
                .filter(ServiceModel.is_active.is_(True))
                .order_by(ServiceModel.booking_count.desc(), ServiceModel.sort_order.asc())
                .limit(limit)
                .all()
            )
        return [_to_entity(r).to_dict() for r in rows]

    def get_all_services(self) -> list[Service]:
        return [Service.from_dict(d) for d in self._active_services()]

    def get_services_by_category(self, category: str) -> list[Service]:
        return [Service.from_dict(d) for d in self._services_in_category(category)]

    def get_popular_services(self, limit: int) -> list[Service]:
        return [Service.from_dict(d) for d in self._popular_services(limit)]

    def get_service_by_id(self, service_id: str) -> Service:
        with self.guard("loading service"):
            row = self.db.query(ServiceModel).filter(ServiceModel.id == service_id).first()
        if not row:
            raise DataFailure(f"Service not found: {service_id}")
        return _to_entity(row)

    def search_services(self, criteria: ServiceSearchCriteria) -> list[Service]:
        query = self.db.query(ServiceModel)
        if criteria.is_active:
            query = query.filter(ServiceModel.is_active.is_(True))
        if criteria.query:
            pattern = f"%{criteria.query.strip()}%"
            query = query.filter(
                or_(ServiceModel.name.ilike(pattern), ServiceModel.description.ilike(pattern))
            )
        if criteria.category:
            query = query.filter(ServiceModel.category == criteria.category.lower())
        if criteria.min_price is not None:
            query = query.filter(ServiceModel.base_price >= criteria.min_price)
        if criteria.max_price is not None:
            query = query.filter(ServiceModel.base_price <= criteria.max_price)
        if criteria.max_duration is not None:
            query = query.filter(ServiceModel.duration_minutes <= criteria.max_duration)

        with self.guard("searching services"):
            rows = query.order_by(ServiceModel.sort_order.asc()).all()
        return [_to_entity(r) for r in rows]

    def increment_booking_count(self, service_id: str) -> None:
        with self.guard("updating service booking count"):
            self.db.query(ServiceModel).filter(ServiceModel.id == service_id).update(
                {ServiceModel.booking_count: ServiceModel.booking_count + 1}
            )
            self.db.commit()
        self._invalidate()

    def upsert_services(self, services: list[Service]) -> int:
        """Insert services that don't exist yet; returns how many were added"""
        added = 0
        with self.guard("seeding services"):
            existing = {sid for (sid,) in self.db.query(ServiceModel.id).all()}
            for service in services:
                if service.id in existing:
                    continue
                self.db.add(
                    ServiceModel(
                        id=service.id,
                        name=service.name,
                        description=service.description,
                        category=service.category,
                        icon_url=service.icon_url,
                        base_price=service.base_price,
                        duration_minutes=service.duration_minutes,
                        requirements=list(service.requirements),
                        benefits=list(service.benefits),
                        is_active=service.is_active,
                        sort_order=service.sort_order,
                    )
                )
                added += 1
            self.db.commit()
        self._invalidate()
        logger.info(f"✅ Seeded {added} services")
        return added

    def _invalidate(self) -> None:
        self.cache.delete_pattern(CACHE_PATTERN)
