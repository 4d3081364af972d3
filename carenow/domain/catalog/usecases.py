import logging
from dataclasses import dataclass

from ...shared.usecase import UseCase
from ...shared.validators import ensure, is_blank, is_valid_service_category
from .data import DEFAULT_SERVICES
from .entities import Service, ServiceSearchCriteria
from .repository import ServiceRepository

logger = logging.getLogger(__name__)

MAX_POPULAR_LIMIT = 50
MAX_DURATION_MINUTES = 1440


class GetAllServices(UseCase):
    def __init__(self, repository: ServiceRepository):
        self.repository = repository

    def execute(self, params) -> list[Service]:
        return self.repository.get_all_services()


class GetServiceById(UseCase):
    def __init__(self, repository: ServiceRepository):
        self.repository = repository

    def execute(self, service_id: str) -> Service:
        ensure(not is_blank(service_id), "Service ID cannot be empty")
        return self.repository.get_service_by_id(service_id)


class GetServicesByCategory(UseCase):
    def __init__(self, repository: ServiceRepository):
        self.repository = repository

    def execute(self, category: str) -> list[Service]:
        ensure(not is_blank(category), "Category cannot be empty")
        ensure(is_valid_service_category(category), f"Invalid service category: {category}")
        return self.repository.get_services_by_category(category.lower())


class SearchServices(UseCase):
    def __init__(self, repository: ServiceRepository):
        self.repository = repository

    def execute(self, criteria: ServiceSearchCriteria) -> list[Service]:
        if criteria.query is not None:
            ensure(
                len(criteria.query.strip()) >= 2,
                "Search query must be at least 2 characters",
            )
        if criteria.category is not None:
            ensure(
                is_valid_service_category(criteria.category),
                f"Invalid service category: {criteria.category}",
            )
        if criteria.min_price is not None:
            ensure(criteria.min_price >= 0, "Minimum price cannot be negative")
        if criteria.max_price is not None:
            ensure(criteria.max_price >= 0, "Maximum price cannot be negative")
        if criteria.min_price is not None and criteria.max_price is not None:
            ensure(
                criteria.min_price <= criteria.max_price,
                "Minimum price cannot be greater than maximum price",
            )
        if criteria.max_duration is not None:
            ensure(
                0 < criteria.max_duration <= MAX_DURATION_MINUTES,
                "Maximum duration must be between 1 and 1440 minutes",
            )
        return self.repository.search_services(criteria)


@dataclass
class PopularServicesParams:
    limit: int = 10


class GetPopularServices(UseCase):
    def __init__(self, repository: ServiceRepository):
        self.repository = repository

    def execute(self, params: PopularServicesParams) -> list[Service]:
        ensure(
            0 < params.limit <= MAX_POPULAR_LIMIT,
            f"Limit must be between 1 and {MAX_POPULAR_LIMIT}",
        )
        return self.repository.get_popular_services(params.limit)


class SeedServiceCatalog(UseCase):
    """Install the predefined catalog; existing services are left untouched"""

    def __init__(self, repository: ServiceRepository):
        self.repository = repository

    def execute(self, params) -> int:
        added = self.repository.upsert_services(DEFAULT_SERVICES)
        logger.info(f"📥 Service catalog seeded ({added} new)")
        return added
