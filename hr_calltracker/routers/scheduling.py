from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from hr_calltracker.core.schemas import ApiResponse
from hr_calltracker.dependencies import get_analytics_service, get_scheduling_engine
from hr_calltracker.schemas.call import Call
from hr_calltracker.schemas.employee import Employee
from hr_calltracker.schemas.scheduling import (
    CompanyEvent,
    CompanyEventCreate,
    DismissRequest,
    SchedulingRule,
    SchedulingSuggestion,
)
from hr_calltracker.services.employee_analytics import EmployeeAnalyticsService
from hr_calltracker.services.scheduling_engine import SchedulingEngine

router = APIRouter(prefix="/scheduling", tags=["Scheduling"])

@router.get("/suggestions", response_model=List[SchedulingSuggestion])
def list_pending_suggestions(engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return engine.get_pending_suggestions()

@router.post("/suggestions/generate", response_model=List[SchedulingSuggestion])
async def generate_suggestions(engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return await engine.generate_suggestions()

@router.post("/suggestions/cleanup", response_model=ApiResponse[int])
def cleanup_suggestions(
    older_than_days: Optional[int] = Query(default=None, ge=0),
    engine: SchedulingEngine = Depends(get_scheduling_engine)
):
    removed = engine.cleanup_suggestions(older_than_days)
    return ApiResponse.ok(removed, metadata={"older_than_days": older_than_days})

@router.get("/suggestions/{suggestion_id}", response_model=SchedulingSuggestion)
def get_suggestion(suggestion_id: str, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return engine.get_suggestion(suggestion_id)

@router.post("/suggestions/{suggestion_id}/accept", response_model=Optional[Call])
async def accept_suggestion(suggestion_id: str, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return await engine.accept_suggestion(suggestion_id)

@router.post("/suggestions/{suggestion_id}/dismiss", response_model=SchedulingSuggestion)
def dismiss_suggestion(
    suggestion_id: str,
    body: Optional[DismissRequest] = None,
    engine: SchedulingEngine = Depends(get_scheduling_engine)
):
    return engine.dismiss_suggestion(suggestion_id, body.reason if body else None)

@router.get("/rules", response_model=List[SchedulingRule])
def list_rules(engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return engine.get_rules()

@router.get("/events", response_model=List[CompanyEvent])
def list_company_events(engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return engine.get_company_events()

@router.post("/events", response_model=CompanyEvent, status_code=201)
def add_company_event(event: CompanyEventCreate, engine: SchedulingEngine = Depends(get_scheduling_engine)):
    return engine.add_company_event(event)

@router.post("/analytics/refresh", response_model=List[Employee])
def refresh_employee_analytics(analytics: EmployeeAnalyticsService = Depends(get_analytics_service)):
    return analytics.refresh()
