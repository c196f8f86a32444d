"""CLI tools for case management administration."""

import click

from casecore.core.security import create_access_token
from casecore.db.base import Base
from casecore.db.enums import Role
from casecore.db.models import Office, User
from casecore.db.session import SessionLocal, engine


@click.group()
def cli():
    """Case management CLI tools."""
    pass


@cli.command("init-db")
def init_db():
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
    click.echo("✓ Tables created")


@cli.command("create-office")
@click.option("--name", required=True, help="Office name")
@click.option("--code", required=True, help="Short unique office code")
def create_office(name: str, code: str):
    """
    Create an office.

    Example:
        python -m casecore.cli create-office --name "Centro" --code "ctr"
    """
    db = SessionLocal()
    try:
        code = code.lower().strip()
        if db.query(Office).filter(Office.code == code).first():
            raise click.ClickException(f"Office with code '{code}' already exists")

        office = Office(name=name, code=code)
        db.add(office)
        db.commit()
        click.echo(f"✓ Created office: {name}")
        click.echo(f"  ID: {office.id}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@cli.command("create-user")
@click.option("--email", required=True)
@click.option("--name", "display_name", required=True)
@click.option(
    "--role",
    required=True,
    type=click.Choice([r.value for r in Role]),
)
@click.option("--office-code", default=None, help="Office the user belongs to")
@click.option("--department", default=None, help="Case category the user works in")
def create_user(email: str, display_name: str, role: str, office_code: str | None, department: str | None):
    """Create a user (staff, manager, admin or client)."""
    db = SessionLocal()
    try:
        email = email.lower().strip()
        if db.query(User).filter(User.email == email).first():
            raise click.ClickException(f"User {email} already exists")

        office_id = None
        if office_code:
            office = db.query(Office).filter(Office.code == office_code.lower()).first()
            if not office:
                raise click.ClickException(f"Unknown office code '{office_code}'")
            office_id = office.id

        user = User(
            email=email,
            display_name=display_name,
            role=role,
            office_id=office_id,
            department=department,
        )
        db.add(user)
        db.commit()
        click.echo(f"✓ Created {role}: {email}")
        click.echo(f"  ID: {user.id}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@cli.command("issue-token")
@click.option("--email", required=True)
@click.option("--hours", default=None, type=int, help="Token lifetime (defaults to JWT_EXPIRES_HOURS)")
def issue_token(email: str, hours: int | None):
    """Mint a session token for a user (development only)."""
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower().strip()).first()
        if not user:
            raise click.ClickException(f"User {email} not found")
        if not user.is_active:
            raise click.ClickException(f"User {email} is disabled")
        token = create_access_token(
            user_id=user.id,
            role=user.role,
            office_id=user.office_id,
            department=user.department,
            expires_hours=hours,
        )
        click.echo(token)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
