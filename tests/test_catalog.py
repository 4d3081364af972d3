from carenow.domain.catalog.entities import Service, ServiceSearchCriteria, format_vnd
from carenow.domain.catalog.usecases import (
    GetAllServices,
    GetPopularServices,
    GetServiceById,
    GetServicesByCategory,
    PopularServicesParams,
    SearchServices,
    SeedServiceCatalog,
)
from carenow.shared.failures import DataFailure, ValidationFailure


def test_seed_is_idempotent(services):
    assert SeedServiceCatalog(services)().unwrap() == 8
    assert SeedServiceCatalog(services)().unwrap() == 0
    assert len(GetAllServices(services)().unwrap()) == 8


def test_listing_is_cached_and_invalidated(catalog, memory_cache):
    GetAllServices(catalog)().unwrap()
    assert "services:all" in memory_cache.store

    catalog.increment_booking_count("pet_care_basic")
    assert "services:all" not in memory_cache.store


def test_get_service_by_id(catalog):
    service = GetServiceById(catalog)("medical_care_basic").unwrap()
    assert service.category == "medical_care"

    result = GetServiceById(catalog)("missing")
    assert isinstance(result.failure, DataFailure)
    assert result.failure.status_code == 404


def test_services_by_category_rejects_unknown_category(catalog):
    assert [s.id for s in GetServicesByCategory(catalog)("Pet_Care").unwrap()] == ["pet_care_basic"]
    assert isinstance(GetServicesByCategory(catalog)("gardening").failure, ValidationFailure)


def test_search_filters(catalog):
    found = SearchServices(catalog)(ServiceSearchCriteria(max_price=90000)).unwrap()
    assert {s.id for s in found} == {"pet_care_basic", "housekeeping_basic", "companion_care_basic"}

    found = SearchServices(catalog)(ServiceSearchCriteria(category="child_care")).unwrap()
    assert [s.id for s in found] == ["child_care_basic"]


def test_search_validation(catalog):
    search = SearchServices(catalog)
    assert search(ServiceSearchCriteria(query="a")).is_failure
    assert search(ServiceSearchCriteria(min_price=200, max_price=100)).is_failure
    assert search(ServiceSearchCriteria(max_duration=0)).is_failure
    assert search(ServiceSearchCriteria(min_price=-1)).is_failure


def test_popular_services_follow_booking_count(catalog):
    for _ in range(3):
        catalog.increment_booking_count("pet_care_basic")
    catalog.increment_booking_count("child_care_basic")

    popular = GetPopularServices(catalog)(PopularServicesParams(limit=2)).unwrap()
    assert [s.id for s in popular] == ["pet_care_basic", "child_care_basic"]
    assert GetPopularServices(catalog)(PopularServicesParams(limit=51)).is_failure


def test_service_display_helpers():
    service = Service(id="x", name="X", category="pet_care", base_price=150000, duration_minutes=90)
    assert format_vnd(150000) == "150.000đ"
    assert service.formatted_price == "150.000đ/giờ"
    assert service.formatted_duration == "1h 30m"
    assert service.calculate_price(2.5) == 375000
