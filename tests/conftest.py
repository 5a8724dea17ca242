from __future__ import annotations

from dataclasses import fields, replace
from datetime import date, datetime
from typing import Iterable, Optional

import pytest
from werkzeug.security import generate_password_hash

from src.latex_manager.latex_manager.attendance.model import AttendanceRecord, AttendanceRow, HistoryPage
from src.latex_manager.latex_manager.bills.model import Bill, BillPage, NewBill
from src.latex_manager.latex_manager.container import wire_services
from src.latex_manager.latex_manager.core.enums import AttendanceSource, AttendanceStatus, BillStatus, Role, TaskStatus
from src.latex_manager.latex_manager.core.exceptions import ConflictError
from src.latex_manager.latex_manager.delivery.model import DeliveryTask, NewDeliveryTask
from src.latex_manager.latex_manager.main import create_app
from src.latex_manager.latex_manager.users.model import StaffSummary, User

DEVICE_KEY = "test-device-key"

# Hashing with the default scrypt parameters is slow; tests only need a valid hash.
_PASSWORD_HASHES: dict[str, str] = {}


def _hash(password: str) -> str:
    if password not in _PASSWORD_HASHES:
        _PASSWORD_HASHES[password] = generate_password_hash(password, method="pbkdf2:sha256:1000")
    return _PASSWORD_HASHES[password]


def _summary(u: User) -> StaffSummary:
    return StaffSummary(
        user_id=u.user_id, full_name=u.full_name, email=u.email, role=u.role, staff_id=u.staff_id, phone=u.phone
    )


class InMemoryUsers:
    def __init__(self):
        self._by_id: dict[int, User] = {}
        self._next_id = 1

    def add(
        self,
        *,
        full_name: str,
        email: str,
        role: Role,
        password: str = "secret123",
        staff_id: Optional[str] = None,
        rfid_uid: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        user_id = self.create_user(
            full_name=full_name, email=email, password_hash=_hash(password), role=role, staff_id=staff_id
        )
        user = replace(self._by_id[user_id], rfid_uid=rfid_uid, is_active=is_active)
        self._by_id[user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.email == email), None)

    def get_by_rfid_uid(self, rfid_uid: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.rfid_uid == rfid_uid), None)

    def create_user(self, *, full_name, email, password_hash, role, staff_id=None, phone=None) -> int:
        for u in self._by_id.values():
            if u.email == email or (staff_id and u.staff_id == staff_id):
                raise ConflictError("Email or staff ID already registered")
        user_id = self._next_id
        self._next_id += 1
        self._by_id[user_id] = User(
            user_id=user_id,
            full_name=full_name,
            email=email,
            password_hash=password_hash,
            role=Role(role),
            staff_id=staff_id,
            phone=phone,
            created_at=datetime(2026, 1, 1, 8, 0, 0),
        )
        return user_id

    def set_rfid_uid(self, user_id: int, rfid_uid: Optional[str]) -> bool:
        holder = self.get_by_rfid_uid(rfid_uid) if rfid_uid else None
        if holder and holder.user_id != user_id:
            raise ConflictError("RFID card is already assigned to another user")
        if user_id not in self._by_id:
            return False
        self._by_id[user_id] = replace(self._by_id[user_id], rfid_uid=rfid_uid)
        return True

    def list_by_roles(self, roles: Iterable[Role], *, active_only: bool = True) -> list[StaffSummary]:
        wanted = {Role(r) for r in roles}
        users = [u for u in self._by_id.values() if u.role in wanted and (u.is_active or not active_only)]
        return [_summary(u) for u in sorted(users, key=lambda u: u.full_name)]


class InMemoryBills:
    def __init__(self):
        self._bills: dict[int, Bill] = {}
        self._next_id = 1

    def get_by_id(self, bill_id: int) -> Optional[Bill]:
        return self._bills.get(int(bill_id))

    def last_number_with_prefix(self, prefix: str) -> Optional[str]:
        numbers = sorted(b.bill_number for b in self._bills.values() if b.bill_number.startswith(prefix))
        return numbers[-1] if numbers else None

    def create(self, bill: NewBill, *, bill_number: str, created_at: datetime) -> int:
        if any(b.bill_number == bill_number for b in self._bills.values()):
            raise ConflictError("Bill number already exists")
        bill_id = self._next_id
        self._next_id += 1
        self._bills[bill_id] = Bill(
            bill_id=bill_id,
            bill_number=bill_number,
            status=BillStatus.PENDING,
            created_at=created_at,
            **{f.name: getattr(bill, f.name) for f in fields(bill)},
        )
        return bill_id

    def decide(self, *, bill_id, status, decided_by, decided_at, manager_notes=None, rejection_reason=None) -> bool:
        bill = self._bills.get(int(bill_id))
        if not bill or bill.status != BillStatus.PENDING:
            return False
        self._bills[bill.bill_id] = replace(
            bill,
            status=status,
            verified_by=decided_by,
            verified_at=decided_at,
            manager_notes=manager_notes,
            rejection_reason=rejection_reason,
        )
        return True

    def list_bills(self, *, customer_user_id=None, created_by=None, status=None, limit=20, offset=0) -> BillPage:
        items = [
            b
            for b in self._bills.values()
            if (customer_user_id is None or b.customer_user_id == customer_user_id)
            and (created_by is None or b.created_by == created_by)
            and (status is None or b.status == status)
        ]
        items.sort(key=lambda b: (b.created_at, b.bill_id), reverse=True)
        return BillPage(items=items[offset : offset + limit], total=len(items), limit=limit, offset=offset)

    def iter_all(self) -> list[Bill]:
        return sorted(self._bills.values(), key=lambda b: b.bill_id)

    def overwrite(self, bill: Bill) -> None:
        self._bills[bill.bill_id] = bill


class InMemoryAttendance:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self._by_user_date: dict[tuple[int, date], AttendanceRecord] = {}
        self._id = 0

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._by_user_date.get((user_id, work_date))

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        source: AttendanceSource,
        location=None,
        notes=None,
        marked_by=None,
    ) -> int:
        if (user_id, work_date) in self._by_user_date:
            raise ConflictError("Already checked in today")
        self._id += 1
        self._by_user_date[(user_id, work_date)] = AttendanceRecord(
            attendance_id=self._id,
            user_id=user_id,
            work_date=work_date,
            check_in_time=check_in_time,
            check_out_time=None,
            status=status,
            source=source,
            location=location,
            notes=notes,
            marked_by=marked_by,
        )
        return self._id

    def close_checkout(self, *, attendance_id: int, check_out_time: datetime, notes=None, marked_by=None) -> bool:
        for k, v in list(self._by_user_date.items()):
            if v.attendance_id == attendance_id and v.is_open:
                self._by_user_date[k] = replace(
                    v,
                    check_out_time=check_out_time,
                    notes=notes if notes is not None else v.notes,
                    marked_by=marked_by if marked_by is not None else v.marked_by,
                )
                return True
        return False

    def list_history(self, *, user_id, start_date=None, end_date=None, limit=10, offset=0) -> HistoryPage:
        items = [
            r
            for r in self._by_user_date.values()
            if r.user_id == user_id
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
        ]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return HistoryPage(items=items[offset : offset + limit], total=len(items), limit=limit, offset=offset)

    def list_for_date(self, work_date: date, *, source=None) -> list[AttendanceRow]:
        rows = [
            AttendanceRow(record=r, staff=_summary(self._users.get_by_id(r.user_id)))
            for r in self._by_user_date.values()
            if r.work_date == work_date and (source is None or r.source == source)
        ]
        rows.sort(key=lambda row: row.record.check_in_time, reverse=True)
        return rows


class InMemoryDeliveryTasks:
    def __init__(self):
        self._tasks: dict[int, DeliveryTask] = {}
        self._next_id = 1

    def get_by_id(self, task_id: int) -> Optional[DeliveryTask]:
        return self._tasks.get(int(task_id))

    def create(self, task: NewDeliveryTask, *, created_at: datetime) -> int:
        task_id = self._next_id
        self._next_id += 1
        self._tasks[task_id] = DeliveryTask(
            task_id=task_id,
            status=TaskStatus.ASSIGNED,
            created_at=created_at,
            updated_at=created_at,
            **{f.name: getattr(task, f.name) for f in fields(task)},
        )
        return task_id

    def update_status(self, *, task_id, expected, status, updated_at) -> bool:
        task = self._tasks.get(int(task_id))
        if not task or task.status != expected:
            return False
        self._tasks[task.task_id] = replace(task, status=status, updated_at=updated_at)
        return True

    def list_tasks(self, *, assigned_to=None, status=None, limit=50) -> list[DeliveryTask]:
        items = [
            t
            for t in self._tasks.values()
            if (assigned_to is None or t.assigned_to == assigned_to) and (status is None or t.status == status)
        ]
        items.sort(key=lambda t: (t.created_at, t.task_id), reverse=True)
        return items[:limit]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 8, 55, 0)


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def people(users_repo: InMemoryUsers) -> dict[str, User]:
    return {
        "manager": users_repo.add(full_name="Mai Manager", email="manager@latex.local", role=Role.MANAGER, staff_id="MGR001"),
        "accountant": users_repo.add(
            full_name="An Accountant", email="accountant@latex.local", role=Role.ACCOUNTANT, staff_id="ACC001"
        ),
        "staff": users_repo.add(
            full_name="Son Staff", email="staff@latex.local", role=Role.STAFF, staff_id="STF001", rfid_uid="04A1B2C3"
        ),
        "customer": users_repo.add(full_name="Cuong Customer", email="customer@latex.local", role=Role.CUSTOMER),
        "other_customer": users_repo.add(full_name="Other Customer", email="other@latex.local", role=Role.CUSTOMER),
    }


@pytest.fixture
def bills_repo() -> InMemoryBills:
    return InMemoryBills()


@pytest.fixture
def attendance_repo(users_repo: InMemoryUsers) -> InMemoryAttendance:
    return InMemoryAttendance(users_repo)


@pytest.fixture
def delivery_repo() -> InMemoryDeliveryTasks:
    return InMemoryDeliveryTasks()


@pytest.fixture
def container(users_repo, bills_repo, attendance_repo, delivery_repo, people):
    return wire_services(
        users_repo=users_repo,
        bills_repo=bills_repo,
        attendance_repo=attendance_repo,
        delivery_repo=delivery_repo,
        secret_key="test-secret",
        token_max_age_seconds=3600,
        rfid_device_key=DEVICE_KEY,
    )


@pytest.fixture
def app(container):
    return create_app(container=container, settings_module="config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(container, people):
    def _headers(who: str) -> dict[str, str]:
        user = people[who]
        token = container.token_service.issue(user_id=user.user_id, role=user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
