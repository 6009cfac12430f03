from datetime import timedelta

from hr_calltracker.database import init_db
from hr_calltracker.dependencies import get_repository
from hr_calltracker.schemas.call import Call, CallStatus
from hr_calltracker.schemas.employee import CallFrequency, Employee
from hr_calltracker.services import business_calendar as bc

init_db()
repository = get_repository()
tz = bc.get_timezone()
now = bc.now_local(tz)

def create_employee(employee_id, **fields):
    # Check if employee already exists to keep the script re-runnable
    if repository.get_employee(employee_id):
        print(f"Employee {employee_id} already exists. Skipping.")
        return
    repository.add_employee(Employee(id=employee_id, **fields))
    print(f"Created employee -> {employee_id}")

def create_completed_call(call_id, employee_id, days_ago, rating):
    if repository.get_call(call_id):
        print(f"Call {call_id} already exists. Skipping.")
        return
    done = bc.at_time(bc.add_days(now, -days_ago, tz), 11, tz)
    repository.add_call(Call(
        id=call_id,
        employee_id=employee_id,
        scheduled_at=done,
        completed_at=done,
        duration_minutes=30,
        rating=rating,
        status=CallStatus.COMPLETED,
    ))
    print(f"Created call {call_id} for {employee_id}")

def create_scheduled_call(call_id, employee_id, days_ahead, hour, minute=0):
    if repository.get_call(call_id):
        print(f"Call {call_id} already exists. Skipping.")
        return
    when = bc.roll_to_business_day(bc.at_time(bc.add_days(now, days_ahead, tz), hour, tz, minute), tz)
    repository.add_call(Call(id=call_id, employee_id=employee_id, scheduled_at=when, status=CallStatus.SCHEDULED))
    print(f"Scheduled call {call_id} for {employee_id}")

# Low performance, otherwise up to date
create_employee(
    "demo-emp-1",
    first_name="Marco",
    last_name="Bianchi",
    department="Vendite",
    position="Account Manager",
    performance_score=3.5,
)
create_completed_call("demo-call-1", "demo-emp-1", days_ago=12, rating=4)

# Contract expiring within a month
create_employee(
    "demo-emp-2",
    first_name="Laura",
    last_name="Conti",
    department="Marketing",
    position="Content Specialist",
    performance_score=7.5,
    contract_expiry_date=bc.add_days(now, 25, tz),
)
create_completed_call("demo-call-2", "demo-emp-2", days_ago=20, rating=5)

# Weekly check-ins, overdue and unhappy on the last call
create_employee(
    "demo-emp-3",
    first_name="Davide",
    last_name="Ferrari",
    department="Sviluppo",
    position="Junior Developer",
    performance_score=6.5,
    preferred_call_frequency=CallFrequency.WEEKLY,
)
create_completed_call("demo-call-3", "demo-emp-3", days_ago=15, rating=2)

# New hire, never called
create_employee(
    "demo-emp-4",
    first_name="Giulia",
    last_name="Romano",
    department="Sviluppo",
    position="Backend Developer",
    hire_date=bc.add_days(now, -20, tz).date().isoformat(),
)

# Two calls too close together
create_scheduled_call("demo-call-4", "demo-emp-2", days_ahead=2, hour=10)
create_scheduled_call("demo-call-5", "demo-emp-3", days_ahead=2, hour=10, minute=20)

print("Demo data ready")
