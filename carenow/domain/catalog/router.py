"""Service catalog endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...auth import get_current_admin
from ...dependencies import get_admin_repository, get_service_repository
from ..admin.entities import ActivityType, AdminPermission, AdminUser
from ..admin.repository import AdminRepository
from ..admin.usecases import require_permission
from .entities import ServiceSearchCriteria
from .repository import ServiceRepository
from .schemas import SeedResponse, ServiceResponse
from .usecases import (
    GetAllServices,
    GetPopularServices,
    GetServiceById,
    GetServicesByCategory,
    PopularServicesParams,
    SearchServices,
    SeedServiceCatalog,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])


def _responses(services) -> list[ServiceResponse]:
    return [ServiceResponse.model_validate(s) for s in services]


@router.get("", response_model=list[ServiceResponse])
async def list_services(repository: ServiceRepository = Depends(get_service_repository)):
    """Active services ordered for display"""
    return _responses(GetAllServices(repository)().unwrap())


@router.get("/search", response_model=list[ServiceResponse])
async def search_services(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None),
    max_price: Optional[float] = Query(None),
    max_duration: Optional[int] = Query(None),
    repository: ServiceRepository = Depends(get_service_repository),
):
    criteria = ServiceSearchCriteria(
        query=q,
        category=category,
        min_price=min_price,
        max_price=max_price,
        max_duration=max_duration,
    )
    return _responses(SearchServices(repository)(criteria).unwrap())


@router.get("/popular", response_model=list[ServiceResponse])
async def popular_services(
    limit: int = Query(10),
    repository: ServiceRepository = Depends(get_service_repository),
):
    return _responses(GetPopularServices(repository)(PopularServicesParams(limit)).unwrap())


@router.get("/category/{category}", response_model=list[ServiceResponse])
async def services_by_category(
    category: str, repository: ServiceRepository = Depends(get_service_repository)
):
    return _responses(GetServicesByCategory(repository)(category).unwrap())


@router.post("/seed", response_model=SeedResponse)
async def seed_services(
    admin: AdminUser = Depends(get_current_admin),
    repository: ServiceRepository = Depends(get_service_repository),
    admins: AdminRepository = Depends(get_admin_repository),
):
    """Insert the default catalog (admin only)"""
    require_permission(admin, AdminPermission.MANAGE_SERVICES)
    inserted = SeedServiceCatalog(repository)().unwrap()
    admins.log_activity(admin.uid, ActivityType.SEED_SERVICES, f"Seeded {inserted} services")
    return SeedResponse(inserted=inserted)


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: str, repository: ServiceRepository = Depends(get_service_repository)):
    return ServiceResponse.model_validate(GetServiceById(repository)(service_id).unwrap())
