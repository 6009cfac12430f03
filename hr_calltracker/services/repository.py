import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from hr_calltracker.core.exceptions import MalformedRecordError, NotFoundError
from hr_calltracker.schemas.call import Call
from hr_calltracker.schemas.employee import Employee
from hr_calltracker.services.storage import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "employees": "hr-tracker-employees",
    "calls": "hr-tracker-calls",
}

M = TypeVar("M", bound=BaseModel)


def parse_records(model: Type[M], raw_records: Any, record_type: str) -> List[M]:
    """
    Validate a stored list of records. Records that fail validation are
    logged and skipped so one bad entry never hides the others.
    """
    if not raw_records:
        return []
    if not isinstance(raw_records, list):
        logger.warning(f"Stored {record_type} collection is not a list, ignoring it")
        return []

    parsed = []
    for raw in raw_records:
        try:
            parsed.append(model.model_validate(raw))
        except ValidationError as e:
            record_id = raw.get("id") if isinstance(raw, dict) else None
            error = MalformedRecordError(record_type, record_id, f"{e.error_count()} validation error(s)")
            logger.warning(error.message)
    return parsed


def to_wire_keys(model: Type[BaseModel], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Translate attribute names in a partial update to their stored aliases."""
    wire = {}
    for name, value in changes.items():
        field = model.model_fields.get(name)
        wire[field.alias if field and field.alias else name] = value
    return wire


class CallTrackerRepository:
    """
    Employee and call records kept as two JSON lists in a key-value store.
    Writes are all-or-nothing per call: the whole list is rewritten.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    # --- Employees ---

    def _raw_employees(self) -> List[Dict[str, Any]]:
        return self.store.get(STORAGE_KEYS["employees"]) or []

    def get_employees(self) -> List[Employee]:
        return parse_records(Employee, self._raw_employees(), "employee")

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        return next((e for e in self.get_employees() if e.id == employee_id), None)

    def set_employees(self, employees: List[Employee]) -> None:
        self.store.set(STORAGE_KEYS["employees"], [e.to_record() for e in employees])

    def add_employee(self, employee: Employee) -> Employee:
        raw = self._raw_employees()
        raw.append(employee.to_record())
        self.store.set(STORAGE_KEYS["employees"], raw)
        return employee

    def update_employee(self, employee_id: str, changes: Dict[str, Any]) -> Employee:
        return self._update(STORAGE_KEYS["employees"], Employee, "employee", employee_id, changes)

    # --- Calls ---

    def _raw_calls(self) -> List[Dict[str, Any]]:
        return self.store.get(STORAGE_KEYS["calls"]) or []

    def get_calls(self) -> List[Call]:
        return parse_records(Call, self._raw_calls(), "call")

    def get_call(self, call_id: str) -> Optional[Call]:
        return next((c for c in self.get_calls() if c.id == call_id), None)

    def get_calls_by_employee(self, employee_id: str) -> List[Call]:
        return [c for c in self.get_calls() if c.employee_id == employee_id]

    def set_calls(self, calls: List[Call]) -> None:
        self.store.set(STORAGE_KEYS["calls"], [c.to_record() for c in calls])

    def add_call(self, call: Call) -> Call:
        raw = self._raw_calls()
        raw.append(call.to_record())
        self.store.set(STORAGE_KEYS["calls"], raw)
        logger.info(f"Call {call.id} added for employee {call.employee_id}")
        return call

    def update_call(self, call_id: str, changes: Dict[str, Any]) -> Call:
        return self._update(STORAGE_KEYS["calls"], Call, "call", call_id, changes)

    def _update(self, key: str, model: Type[M], record_type: str, record_id: str, changes: Dict[str, Any]) -> M:
        raw_records = self.store.get(key) or []
        for index, raw in enumerate(raw_records):
            if isinstance(raw, dict) and raw.get("id") == record_id:
                merged = {**raw, **to_wire_keys(model, changes)}
                try:
                    updated = model.model_validate(merged)
                except ValidationError as e:
                    raise MalformedRecordError(record_type, record_id, str(e)) from e
                raw_records[index] = updated.to_record()
                self.store.set(key, raw_records)
                return updated
        raise NotFoundError(record_type.capitalize(), record_id)
