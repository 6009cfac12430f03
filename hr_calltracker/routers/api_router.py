from fastapi import APIRouter
from hr_calltracker.routers import calls, notifications, scheduling

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(scheduling.router, tags=["Scheduling"])
api_router.include_router(calls.router, tags=["Calls"])
api_router.include_router(notifications.router, tags=["Notifications"])
