"""CLI tools for aidtrack administration."""

import click
from sqlalchemy.exc import SQLAlchemyError

from aidtrack.core.security import create_session_token
from aidtrack.db.base import Base
from aidtrack.db.enums import Role
from aidtrack.db.session import SessionLocal, engine
from aidtrack.services import org_service, user_service


@click.group()
def cli():
    """aidtrack CLI tools."""


def _validate_slug(slug: str) -> str:
    slug = slug.lower().strip()
    if not slug.replace("-", "").replace("_", "").isalnum():
        raise click.ClickException("Slug must be alphanumeric (with optional hyphens/underscores)")
    return slug


@cli.command()
def init_db():
    """
    Create all tables directly from the models.

    Meant for the embedded SQLite setup; PostgreSQL deployments should run
    `alembic upgrade head` instead.
    """
    Base.metadata.create_all(bind=engine)
    click.echo("✓ Database schema created")


@cli.command()
@click.option("--name", required=True, help="Organization name")
@click.option("--slug", required=True, help="URL-friendly slug (lowercase, no spaces)")
@click.option("--admin-email", required=True, help="Admin email address")
@click.option("--admin-name", required=True, help="Admin display name")
def create_org(name: str, slug: str, admin_email: str, admin_name: str):
    """
    Create organization and its first admin.

    This is the bootstrap command for setting up a new association.

    Example:
        aidtrack create-org --name "Entraide Nord" --slug entraide-nord \\
            --admin-email admin@example.org --admin-name "Claire"
    """
    slug = _validate_slug(slug)
    db = SessionLocal()
    try:
        if org_service.get_org_by_slug(db, slug):
            raise click.ClickException(f"Organization with slug '{slug}' already exists")
        if user_service.get_user_by_email(db, admin_email):
            raise click.ClickException(f"A user with email {admin_email} already exists")

        org = org_service.create_org(db, name=name, slug=slug)
        admin = user_service.create_user(db, org.id, admin_name, admin_email, Role.ADMIN)

        click.echo(f"✓ Created organization: {name}")
        click.echo(f"  ID: {org.id}")
        click.echo(f"  Slug: {slug}")
        click.echo(f"✓ Created admin {admin.email} ({admin.id})")
        click.echo("→ Run `aidtrack issue-token --email ...` to get a session token")
    except SQLAlchemyError as e:
        db.rollback()
        raise click.ClickException(f"Database error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--org-slug", required=True, help="Organization slug")
@click.option("--email", required=True, help="User email address")
@click.option("--name", required=True, help="Display name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.VOLUNTEER.value,
    show_default=True,
)
def create_user(org_slug: str, email: str, name: str, role: str):
    """Add a user to an existing organization."""
    db = SessionLocal()
    try:
        org = org_service.get_org_by_slug(db, org_slug)
        if not org:
            raise click.ClickException(f"Organization '{org_slug}' not found")
        try:
            user = user_service.create_user(db, org.id, name, email, Role(role))
        except user_service.DuplicateEmailError as e:
            raise click.ClickException(str(e))
        click.echo(f"✓ Created {user.role} {user.email} ({user.id}) in {org.slug}")
    except SQLAlchemyError as e:
        db.rollback()
        raise click.ClickException(f"Database error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to issue a token for")
def issue_token(email: str):
    """
    Print a signed session token for a user.

    Send it as the `aidtrack_session` cookie or an `Authorization: Bearer`
    header. It expires after JWT_EXPIRES_HOURS.
    """
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            raise click.ClickException(f"User {email} not found")
        if not user.is_active:
            raise click.ClickException(f"User {email} is disabled")
        click.echo(
            create_session_token(
                user_id=user.id,
                org_id=user.organization_id,
                role=user.role,
                token_version=user.token_version,
            )
        )
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user.

    Bumps token_version so every token issued so far is rejected.
    """
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            raise click.ClickException(f"User {email} not found")
        old_version = user.token_version
        user_service.revoke_all_sessions(db, user)
        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
