"""
Composition root.

Each collaborator is built once per process and handed to routers through
FastAPI dependencies; tests replace them with app.dependency_overrides.
"""
from functools import lru_cache

from hr_calltracker.core.config import settings
from hr_calltracker.database import SessionLocal
from hr_calltracker.services.conflict_detector import CallConflictDetector
from hr_calltracker.services.employee_analytics import EmployeeAnalyticsService
from hr_calltracker.services.notification import DatabaseNotificationDispatcher
from hr_calltracker.services.repository import CallTrackerRepository
from hr_calltracker.services.scheduling_engine import SchedulingEngine
from hr_calltracker.services.storage import InMemoryStore, KeyValueStore, SqlKeyValueStore


@lru_cache
def get_store() -> KeyValueStore:
    if settings.storage_backend == "memory":
        return InMemoryStore()
    return SqlKeyValueStore(SessionLocal)


@lru_cache
def get_repository() -> CallTrackerRepository:
    return CallTrackerRepository(get_store())


@lru_cache
def get_conflict_detector() -> CallConflictDetector:
    return CallConflictDetector(get_repository())


@lru_cache
def get_scheduling_engine() -> SchedulingEngine:
    return SchedulingEngine(
        store=get_store(),
        repository=get_repository(),
        conflict_detector=get_conflict_detector(),
        dispatcher=DatabaseNotificationDispatcher(SessionLocal),
    )


@lru_cache
def get_analytics_service() -> EmployeeAnalyticsService:
    return EmployeeAnalyticsService(get_repository())


__all__ = [
    "get_store",
    "get_repository",
    "get_conflict_detector",
    "get_scheduling_engine",
    "get_analytics_service",
]
