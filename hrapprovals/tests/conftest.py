"""
Pytest configuration and fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["TZ"] = "Europe/London"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hrapprovals.main import app  # noqa: E402
from hrapprovals.db.base import Base  # noqa: E402
from hrapprovals.core.deps import get_db  # noqa: E402
from hrapprovals.models import Department, Employee, Role  # noqa: E402


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def department(db):
    dept = Department(name="Operations", active=True)
    db.add(dept)
    db.commit()
    db.refresh(dept)
    return dept


@pytest.fixture
def make_employee(db, department):
    """Factory: make_employee("Name", Role.MANAGER, manager=other)"""
    counter = {"n": 0}

    def _make(name, role=Role.EMPLOYEE, manager=None, active=True, department_id="default"):
        counter["n"] += 1
        employee = Employee(
            emp_code=f"E{counter['n']:03d}",
            name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            role=Role(role).value,
            department_id=department.id if department_id == "default" else department_id,
            manager_id=manager.id if manager is not None else None,
            active=active,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def org(make_employee):
    """
    admin
    hr
    senior (SENIOR_MANAGER)
      manager (MANAGER)
        alice, bob (EMPLOYEE)
    """
    admin = make_employee("Admin", Role.ADMIN)
    hr = make_employee("Hannah HR", Role.HR)
    senior = make_employee("Sam Senior", Role.SENIOR_MANAGER)
    manager = make_employee("Morgan Manager", Role.MANAGER, manager=senior)
    alice = make_employee("Alice", Role.EMPLOYEE, manager=manager)
    bob = make_employee("Bob", Role.EMPLOYEE, manager=manager)
    return {
        "admin": admin,
        "hr": hr,
        "senior": senior,
        "manager": manager,
        "alice": alice,
        "bob": bob,
    }
