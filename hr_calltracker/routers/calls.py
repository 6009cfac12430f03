from fastapi import APIRouter, Depends

from hr_calltracker.dependencies import get_conflict_detector
from hr_calltracker.schemas.conflicts import (
    AlternativeTime,
    ConflictCheck,
    ConflictReport,
    SlotRequest,
    SlotResponse,
)
from hr_calltracker.services.conflict_detector import CallConflictDetector

router = APIRouter(prefix="/calls", tags=["Calls"])

@router.get("/conflicts", response_model=ConflictReport)
def detect_all_conflicts(detector: CallConflictDetector = Depends(get_conflict_detector)):
    """All groups of scheduled calls closer than the minimum gap."""
    return detector.detect_all_conflicts()

@router.post("/conflicts/check", response_model=ConflictCheck)
def check_conflict(request: SlotRequest, detector: CallConflictDetector = Depends(get_conflict_detector)):
    return detector.has_conflict(request.proposed_at, request.exclude_call_id)

@router.post("/slots/find", response_model=SlotResponse)
def find_available_slot(request: SlotRequest, detector: CallConflictDetector = Depends(get_conflict_detector)):
    return SlotResponse(slot=detector.find_available_slot(request.proposed_at, request.exclude_call_id))

@router.post("/slots/alternative", response_model=AlternativeTime)
def suggest_alternative_time(request: SlotRequest, detector: CallConflictDetector = Depends(get_conflict_detector)):
    return detector.suggest_alternative_time(request.proposed_at, request.exclude_call_id)

@router.get("/{call_id}/conflicts", response_model=ConflictCheck)
def get_call_conflicts(call_id: str, detector: CallConflictDetector = Depends(get_conflict_detector)):
    return detector.get_call_conflicts(call_id)
