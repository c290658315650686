"""CLI tools for brokerage CRM administration."""

import click

from brokerage_crm.db.enums import Role
from brokerage_crm.db.session import SessionLocal


@click.group()
def cli():
    """Brokerage CRM CLI tools."""
    pass


@cli.command()
@click.option("--name", required=True, help="Brokerage name")
@click.option("--slug", required=True, help="URL-friendly slug (lowercase, no spaces)")
def create_org(name: str, slug: str):
    """
    Create an organization (brokerage) and seed its default pipeline phases.

    Example:
        brokerage-crm create-org --name "Corretora Alfa" --slug "alfa"
    """
    from brokerage_crm.services import org_service, pipeline_service

    db = SessionLocal()
    try:
        slug = slug.lower().strip()
        if not slug.replace("-", "").replace("_", "").isalnum():
            click.echo("❌ Slug must be alphanumeric (with optional hyphens/underscores)")
            return

        org = org_service.create_org(db, name=name, slug=slug)
        phases = pipeline_service.get_or_create_default_phases(db, org.id)

        click.echo(f"✓ Created organization: {org.name}")
        click.echo(f"  ID: {org.id}")
        click.echo(f"  Slug: {org.slug}")
        click.echo(f"✓ Seeded {len(phases)} pipeline phases")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--org-slug", required=True, help="Organization slug")
@click.option("--email", required=True, help="User email address")
@click.option("--name", "display_name", required=True, help="Display name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.CORRETOR.value,
    show_default=True,
)
def create_user(org_slug: str, email: str, display_name: str, role: str):
    """
    Create a user with membership in an organization.

    Example:
        brokerage-crm create-user --org-slug alfa --email ana@alfa.com.br --name "Ana" --role admin
    """
    from brokerage_crm.services import org_service, user_service

    db = SessionLocal()
    try:
        org = org_service.get_org_by_slug(db, org_slug)
        if not org:
            click.echo(f"❌ Organization not found: {org_slug}")
            return

        user = user_service.create_user(
            db, org_id=org.id, email=email, display_name=display_name, role=Role(role)
        )
        click.echo(f"✓ Created user {user.email} in {org.slug} with role: {role}")
        click.echo(f"  ID: {user.id}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email")
def issue_token(email: str):
    """
    Print a session token for a user (send as the crm_session cookie
    or an Authorization: Bearer header).

    Example:
        brokerage-crm issue-token --email ana@alfa.com.br
    """
    from brokerage_crm.core.security import create_session_token
    from brokerage_crm.services import user_service

    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user or not user.membership:
            click.echo(f"❌ User not found or has no organization: {email}")
            return
        if not user.is_active:
            click.echo(f"❌ User is disabled: {email}")
            return

        token = create_session_token(
            user_id=user.id,
            org_id=user.membership.organization_id,
            role=user.membership.role,
            token_version=user.token_version,
        )
        click.echo(token)

    except Exception as e:
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        brokerage-crm revoke-sessions --email "ana@alfa.com.br"
    """
    from brokerage_crm.services import user_service

    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            return

        old_version = user.token_version
        user_service.revoke_all_sessions(db, user.id)

        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--org-slug", required=True, help="Organization slug")
def seed_phases(org_slug: str):
    """
    Seed the default pipeline phases for an organization that has none.

    Example:
        brokerage-crm seed-phases --org-slug alfa
    """
    from brokerage_crm.services import org_service, pipeline_service

    db = SessionLocal()
    try:
        org = org_service.get_org_by_slug(db, org_slug)
        if not org:
            click.echo(f"❌ Organization not found: {org_slug}")
            return

        phases = pipeline_service.get_or_create_default_phases(db, org.id)
        for phase in phases:
            marker = " (sistema)" if phase.sistema else ""
            click.echo(f"  {phase.ordem}. {phase.nome} [{phase.chave}]{marker}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--org-slug", default=None, help="Only this organization (default: all)")
def check_alerts(org_slug: str | None):
    """
    Run the alert checks (renewals, overdue tasks, claims, commissions, birthdays).

    Meant to be scheduled (e.g. daily cron). Safe to re-run: existing alerts
    are not repeated.

    Example:
        brokerage-crm check-alerts --org-slug alfa
    """
    from brokerage_crm.services import alert_service, org_service

    db = SessionLocal()
    try:
        if org_slug:
            org = org_service.get_org_by_slug(db, org_slug)
            if not org:
                click.echo(f"❌ Organization not found: {org_slug}")
                return
            results = {org.slug: alert_service.run_checks(db, org.id)["total"]}
        else:
            results = alert_service.run_checks_for_all_orgs(db)

        for slug, created in results.items():
            click.echo(f"✓ {slug}: {created} alert(s) created")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--days", type=int, default=None, help="Retention in days (default: ALERT_RETENTION_DAYS)")
def purge_alerts(days: int | None):
    """
    Delete read alerts older than the retention period.

    Example:
        brokerage-crm purge-alerts --days 90
    """
    from brokerage_crm.services import alert_service

    db = SessionLocal()
    try:
        count = alert_service.purge_old_alerts(db, days=days)
        click.echo(f"✓ Removed {count} read alert(s)")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
