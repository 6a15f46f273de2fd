"""Pytest fixtures for EduConnect integration tests.

This module provides fixtures for testing API endpoints against a real
database. The test environment configures an in-memory SQLite database; the
schema is created before each test and dropped after it, so every test starts
from an empty database.

Usage:
    def test_get_classroom(client: TestClient, admin_headers: dict[str, str], classroom_factory):
        room = classroom_factory(name="A101")
        response = client.get(f"/api/classrooms/{room.classroom_id}", headers=admin_headers)
        assert response.status_code == 200
"""

from __future__ import annotations

import datetime
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import educonnect
from educonnect.core import EduConnectContainer, TimestampProvider
from educonnect.model import AcademicYear, Classroom, ComponentType, DeploymentEnvironment, Grade, RoomType, \
    SchoolClass, Semester, Subject, TimetableSlot, User, UserRole
from educonnect.storage import classroom as classroom_storage
from educonnect.storage import grade as grade_storage
from educonnect.storage import school as school_storage
from educonnect.storage import schoolclass as class_storage
from educonnect.storage import timetable as timetable_storage
from educonnect.storage import user as user_storage
from educonnect.storage.table import metadata

TEST_JWT_SECRET = "test-jwt-secret-for-integration-tests"
TEST_PASSWORD = "password123"

RouteModules = (
    "educonnect.web.educonnect.main",
    "educonnect.web.educonnect.route.audit",
    "educonnect.web.educonnect.route.auth",
    "educonnect.web.educonnect.route.classroom",
    "educonnect.web.educonnect.route.feedback",
    "educonnect.web.educonnect.route.grade",
    "educonnect.web.educonnect.route.leave",
    "educonnect.web.educonnect.route.notification",
    "educonnect.web.educonnect.route.school",
    "educonnect.web.educonnect.route.schoolclass",
    "educonnect.web.educonnect.route.timetable",
    "educonnect.web.educonnect.route.user",
    "educonnect.auth.middleware",
    "educonnect.auth.jwt",
)


@pytest.fixture(scope="session")
def container() -> t.Generator[EduConnectContainer]:
    """Boot the DI container for the test session.

    Uses the Test environment, whose storage configuration points at an
    in-memory SQLite database shared by every connection.
    """
    ct = EduConnectContainer()
    root = Path(os.path.dirname(educonnect.__file__)).parent

    EduConnectContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    # the test environment has no secrets file
    ct.secrets.override({"auth": {"jwt": p.Secret(TEST_JWT_SECRET)}})
    ct.config.web.educonnect.auth.jwt_algorithm.override("HS256")
    ct.config.web.educonnect.auth.access_token_expire_minutes.override(30)

    yield ct

    ct.shutdown_resources()


@pytest.fixture(scope="session")
def app(container: EduConnectContainer) -> FastAPI:
    """Create the FastAPI application for testing, with every route module wired."""
    from educonnect.core.config.web import EduConnectWebSettings
    from educonnect.web.educonnect.main import _create_app  # pyright: ignore[reportPrivateUsage]

    container.wire(modules=list(RouteModules))

    return _create_app(
        config=EduConnectWebSettings(**container.config.web.educonnect()),
        env=DeploymentEnvironment.Test,
        root_path=t.cast(Path, container.root()),
    )


@pytest.fixture
def db_session(container: EduConnectContainer) -> t.Generator[Session]:
    """Provide a session on a freshly created schema.

    autobegin=False matches production, so test code opens transactions
    with session.begin() exactly as the application does.
    """
    engine = container.storage().persistent().engine()
    metadata.create_all(engine)

    session = Session(bind=engine, autobegin=False, expire_on_commit=False)

    yield session

    session.close()
    metadata.drop_all(engine)


@pytest.fixture
def client(app: FastAPI, container: EduConnectContainer, db_session: Session) -> t.Generator[TestClient]:
    """Provide a TestClient whose requests use the test's session."""
    container.storage().persistent().session.override(db_session)

    with TestClient(app) as test_client:
        yield test_client

    container.storage().persistent().session.reset_override()


@pytest.fixture
def utcnow() -> TimestampProvider:
    """Provide a timestamp provider for tests."""
    return lambda: datetime.datetime.now(datetime.UTC)


# Users


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Factory fixture for creating users with sensible defaults.

    Emails are derived from the name unless given, so several users of the
    same role can be created without collisions.

    Usage:
        def test_something(user_factory):
            teacher = user_factory(role=UserRole.Teacher, full_name="Tran Van B")
    """
    counter = iter(range(1, 10_000))

    def create_user(
        role: UserRole = UserRole.Student,
        full_name: str | None = None,
        email: str | None = None,
        password: str = TEST_PASSWORD,
        employee_code: str | None = None,
        student_code: str | None = None,
    ) -> User:
        n = next(counter)
        full_name = full_name or f"{role.value.title()} {n}"
        email = email or f"{role.value}{n}@school.edu.vn"
        if role is UserRole.Student and student_code is None:
            student_code = f"HS{n:04d}"
        with db_session.begin():
            return user_storage.create(
                email=email,
                full_name=full_name,
                role=role,
                password=p.Secret(password),
                employee_code=employee_code,
                student_code=student_code,
                session=db_session,
            )

    return create_user


@pytest.fixture
def admin(user_factory: t.Callable[..., User]) -> User:
    return user_factory(role=UserRole.Admin, full_name="School Admin", email="admin@school.edu.vn")


@pytest.fixture
def teacher(user_factory: t.Callable[..., User]) -> User:
    return user_factory(role=UserRole.Teacher, full_name="Nguyen Thi Lan", email="lan@school.edu.vn")


@pytest.fixture
def student(user_factory: t.Callable[..., User]) -> User:
    return user_factory(role=UserRole.Student, full_name="Le Minh An", email="an@school.edu.vn")


@pytest.fixture
def parent(user_factory: t.Callable[..., User], student: User, db_session: Session) -> User:
    """A parent linked to `student`."""
    user = user_factory(role=UserRole.Parent, full_name="Le Van Binh", email="binh@school.edu.vn")
    with db_session.begin():
        user_storage.link_parent(user.user_id, student.user_id, relationship="father", session=db_session)
    return user


# Authentication


@pytest.fixture
def auth_headers(app: FastAPI, container: EduConnectContainer) -> t.Callable[[User], dict[str, str]]:
    """Build bearer headers for a user.

    Depends on app so the JWT configuration overrides are in place.
    """

    def headers_for(user: User) -> dict[str, str]:
        token = container.auth().jwt_manager().create_access_token(user.user_id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return headers_for


@pytest.fixture
def admin_headers(auth_headers: t.Callable[[User], dict[str, str]], admin: User) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture
def teacher_headers(auth_headers: t.Callable[[User], dict[str, str]], teacher: User) -> dict[str, str]:
    return auth_headers(teacher)


@pytest.fixture
def parent_headers(auth_headers: t.Callable[[User], dict[str, str]], parent: User) -> dict[str, str]:
    return auth_headers(parent)


@pytest.fixture
def student_headers(auth_headers: t.Callable[[User], dict[str, str]], student: User) -> dict[str, str]:
    return auth_headers(student)


# School structure


@pytest.fixture
def academic_year(db_session: Session) -> AcademicYear:
    with db_session.begin():
        return school_storage.create_year(
            name="2026-2027",
            start_date=datetime.date(2026, 9, 1),
            end_date=datetime.date(2027, 5, 31),
            is_current=True,
            session=db_session,
        )


@pytest.fixture
def semester(db_session: Session, academic_year: AcademicYear) -> Semester:
    with db_session.begin():
        return school_storage.create_semester(
            academic_year_id=academic_year.academic_year_id,
            name="Semester 1",
            start_date=datetime.date(2026, 9, 1),
            end_date=datetime.date(2027, 1, 15),
            session=db_session,
        )


@pytest.fixture
def subject_factory(db_session: Session) -> t.Callable[..., Subject]:
    def create_subject(code: str = "MATH", name: str = "Mathematics", category: str | None = None) -> Subject:
        with db_session.begin():
            return school_storage.create_subject(code=code, name=name, category=category, session=db_session)

    return create_subject


@pytest.fixture
def subject(subject_factory: t.Callable[..., Subject]) -> Subject:
    return subject_factory()


@pytest.fixture
def classroom_factory(db_session: Session) -> t.Callable[..., Classroom]:
    def create_classroom(
        name: str = "A101",
        building: str | None = "A",
        floor: int | None = 1,
        capacity: int = 40,
        room_type: RoomType = RoomType.Standard,
    ) -> Classroom:
        with db_session.begin():
            return classroom_storage.create(
                {"name": name, "building": building, "floor": floor, "capacity": capacity, "room_type": room_type},
                session=db_session,
            )

    return create_classroom


@pytest.fixture
def classroom(classroom_factory: t.Callable[..., Classroom]) -> Classroom:
    return classroom_factory()


@pytest.fixture
def class_factory(db_session: Session, academic_year: AcademicYear, semester: Semester) -> t.Callable[..., SchoolClass]:
    def create_class(name: str = "10A1", homeroom_teacher: User | None = None) -> SchoolClass:
        with db_session.begin():
            return class_storage.create(
                name=name,
                academic_year_id=academic_year.academic_year_id,
                semester_id=semester.semester_id,
                homeroom_teacher_id=homeroom_teacher.user_id if homeroom_teacher else None,
                session=db_session,
            )

    return create_class


@pytest.fixture
def school_class(
    db_session: Session,
    class_factory: t.Callable[..., SchoolClass],
    teacher: User,
    student: User,
    subject: Subject,
) -> SchoolClass:
    """A class whose homeroom teacher also teaches `subject`, with `student` enrolled."""
    klass = class_factory(homeroom_teacher=teacher)
    with db_session.begin():
        class_storage.enroll(student.user_id, klass.class_id, session=db_session)
        class_storage.assign_teacher(teacher.user_id, klass.class_id, subject.subject_id, session=db_session)
    return klass


# Timetable and grades


@pytest.fixture
def slot_factory(
    db_session: Session,
    semester: Semester,
) -> t.Callable[..., TimetableSlot]:
    def create_slot(
        school_class: SchoolClass,
        subject: Subject,
        teacher: User,
        classroom: Classroom,
        day_of_week: int = 1,
        start_time: datetime.time = datetime.time(8, 0),
        end_time: datetime.time = datetime.time(8, 45),
        week_number: int = 1,
    ) -> TimetableSlot:
        with db_session.begin():
            return timetable_storage.create(
                {
                    "class_id": school_class.class_id,
                    "subject_id": subject.subject_id,
                    "teacher_id": teacher.user_id,
                    "classroom_id": classroom.classroom_id,
                    "semester_id": semester.semester_id,
                    "day_of_week": day_of_week,
                    "start_time": start_time,
                    "end_time": end_time,
                    "week_number": week_number,
                },
                session=db_session,
            )

    return create_slot


@pytest.fixture
def grade_factory(db_session: Session, semester: Semester) -> t.Callable[..., Grade]:
    def create_grade(
        student: User,
        school_class: SchoolClass,
        subject: Subject,
        component_type: ComponentType = ComponentType.Regular,
        grade_value: float | None = 8.0,
    ) -> Grade:
        with db_session.begin():
            return grade_storage.put(
                student_id=student.user_id,
                class_id=school_class.class_id,
                subject_id=subject.subject_id,
                semester_id=semester.semester_id,
                component_type=component_type,
                grade_value=grade_value,
                session=db_session,
            )

    return create_grade
