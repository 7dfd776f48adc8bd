"""CLI tools for visitor intake administration."""

import click

from app.core.results import run_action
from app.db.enums import MEMBERSHIP_TO_PLATFORM_ROLE, Role
from app.db.models import Location, Membership, Organization, User
from app.db.session import SessionLocal


@click.group()
def cli():
    """Visitor intake CLI tools."""
    pass


@cli.command()
@click.option("--name", required=True, help="Church name")
@click.option("--slug", required=True, help="URL-friendly slug (lowercase, no spaces)")
@click.option("--owner-email", required=True, help="Owner email address")
@click.option("--owner-name", required=True, help="Owner display name")
@click.option("--location", "location_name", default=None, help="Optional first campus name")
def create_org(name: str, slug: str, owner_email: str, owner_name: str, location_name: str | None):
    """
    Create a church organization with its owner account.

    Example:
        python -m app.cli create-org --name "Grace Church" --slug "grace" \\
            --owner-email "pastor@grace.org" --owner-name "Pat Pastor" --location "Main Campus"
    """
    db = SessionLocal()
    try:
        # Validate slug format
        slug = slug.lower().strip()
        if not slug.replace("-", "").replace("_", "").isalnum():
            click.echo("❌ Slug must be alphanumeric (with optional hyphens/underscores)")
            return

        existing = db.query(Organization).filter(Organization.slug == slug).first()
        if existing:
            click.echo(f"❌ Organization with slug '{slug}' already exists")
            return

        email = owner_email.lower().strip()
        if db.query(User).filter(User.email == email).first():
            click.echo(f"❌ User already exists: {email}")
            return

        org = Organization(name=name, slug=slug)
        db.add(org)
        db.flush()

        location = None
        if location_name:
            location_slug = location_name.lower().strip().replace(" ", "-")
            location = Location(organization_id=org.id, name=location_name, slug=location_slug)
            db.add(location)
            db.flush()

        owner = User(
            email=email,
            display_name=owner_name,
            platform_role=MEMBERSHIP_TO_PLATFORM_ROLE[Role.OWNER].value,
            default_location_id=location.id if location else None,
            can_see_all_locations=True,
        )
        db.add(owner)
        db.flush()
        db.add(Membership(user_id=owner.id, organization_id=org.id, role=Role.OWNER.value))
        db.commit()

        click.echo(f"✓ Created organization: {name}")
        click.echo(f"  ID: {org.id}")
        click.echo(f"  Slug: {slug}")
        if location:
            click.echo(f"✓ Created location: {location.name}")
        click.echo(f"✓ Created owner {email}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m app.cli revoke-sessions --email "user@example.com"
    """
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            click.echo(f"❌ User not found: {email}")
            return

        old_version = user.token_version
        user.token_version += 1
        db.commit()

        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
def cleanup_scan_tokens():
    """
    Delete expired QR code scan tokens.

    Safe to run repeatedly; recommended hourly via cron.

    Example:
        python -m app.cli cleanup-scan-tokens
    """
    from app.services import scan_session_service

    db = SessionLocal()
    try:
        result = run_action(
            scan_session_service.cleanup_expired_tokens,
            db,
            success_message="Expired scan tokens cleaned up",
        )
        if not result.is_success:
            db.rollback()
            click.echo(f"❌ Error: {result.message}")
            raise SystemExit(1)
        db.commit()
        click.echo(f"✓ {result.message}: {result.data}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
