"""CLI commands for managing user accounts."""

from __future__ import annotations

import secrets

import pydantic as p
from sqlalchemy.orm import Session

import educonnect.lib.cli as click
from educonnect.core import di
from educonnect.model import User, UserID, UserRole
from educonnect.storage import user as user_storage


def _echo_user(user: User) -> None:
    click.echo(f"{user.full_name}")
    click.echo(f"  ID: {user.user_id}")
    click.echo(f"  Email: {user.email}")
    click.echo(f"  Role: {user.role.value}")
    if user.employee_code:
        click.echo(f"  Employee code: {user.employee_code}")
    if user.student_code:
        click.echo(f"  Student code: {user.student_code}")
    click.echo(f"  Active: {'yes' if user.is_active else 'no'}")


@click.group("user")
def user():
    """Manage user accounts."""
    ...


@user.command("create")
@click.argument("email")
@click.argument("name")
@click.option("--role", "-r", type=click.EnumType(UserRole), required=True, help="Account role")
@click.option("--password", "-p", help="Password (if not provided, a random one is generated)")
@click.option("--employee-code", help="Staff code, for teachers")
@click.option("--student-code", help="Student code, for students")
@di.inject
def user_create(
    email: str,
    name: str,
    role: UserRole,
    password: str | None,
    employee_code: str | None,
    student_code: str | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Create a new user account.

    EMAIL is the user's email address (used for login).
    NAME is the user's full name.
    """
    generated_password = None
    if not password:
        generated_password = secrets.token_urlsafe(12)
        password = generated_password

    with session.begin():
        if user_storage.get(email=email, session=session) is not None:
            click.echo(f"Error: User with email '{email}' already exists.", err=True)
            raise SystemExit(1)

        new_user = user_storage.create(
            email=email,
            full_name=name,
            role=role,
            password=p.Secret(password),
            employee_code=employee_code,
            student_code=student_code,
            session=session,
        )

    click.echo("Created user:")
    _echo_user(new_user)
    if generated_password:
        click.echo(f"  Generated password: {generated_password}")


@user.command("show")
@click.option("--email", "-e", cls=click.RequiredXOROption, required_xor=["user_id"], help="Email address")
@click.option("--id", "user_id", cls=click.RequiredXOROption, required_xor=["email"], help="User ID")
@di.inject
def user_show(
    email: str | None,
    user_id: str | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Show a user account."""
    with session.begin():
        if email is not None:
            found = user_storage.get(email=email, session=session)
        else:
            found = user_storage.get(user_id=UserID(user_id), session=session)
    if found is None:
        click.echo("Error: User not found.", err=True)
        raise SystemExit(1)
    _echo_user(found)


@user.command("link-parent")
@click.argument("parent_email")
@click.argument("student_email")
@click.option("--relationship", help="e.g. mother, father, guardian")
@di.inject
def user_link_parent(
    parent_email: str,
    student_email: str,
    relationship: str | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Link a parent account to a student account."""
    with session.begin():
        parent = user_storage.get(email=parent_email, session=session)
        if parent is None or parent.role is not UserRole.Parent:
            click.echo(f"Error: No parent with email '{parent_email}'.", err=True)
            raise SystemExit(1)
        student = user_storage.get(email=student_email, session=session)
        if student is None or student.role is not UserRole.Student:
            click.echo(f"Error: No student with email '{student_email}'.", err=True)
            raise SystemExit(1)
        user_storage.link_parent(parent.user_id, student.user_id, relationship=relationship, session=session)

    click.echo(f"Linked {parent.full_name} to {student.full_name}")
