from certificados.app import create_app, db
import os
import time

from flask_migrate import Migrate
from flask.cli import FlaskGroup
import click
from sqlalchemy import func
from flask import current_app
from certificados.errors import CertificadosError
from certificados.models import IssuedCertificate, User
from certificados.services.contacts import sync_contact_index as sync_index
from certificados.services.slug_cache import get_known_slugs


migrate = Migrate()


def create_gcp_app():
    app = create_app()
    migrate.init_app(app, db)
    return app


cli = FlaskGroup(create_app=create_gcp_app)


@cli.command("refresh_slugs")
def refresh_slugs():
    """Force-refresh the cached FluentCRM custom field slugs."""
    slugs = get_known_slugs(force_refresh=True)
    if not slugs:
        click.echo("No custom field slugs available", err=True)
        return
    for slug in slugs:
        click.echo(slug)
    click.echo(f"total={len(slugs)}")


@cli.command("sync_contact_index")
def sync_contact_index():
    """Upsert cedula cross-reference rows from the FluentCRM subscriber list."""
    try:
        summary = sync_index()
    except CertificadosError as exc:
        db.session.rollback()
        click.echo(f"{exc.message} ({exc.detail or type(exc).__name__})", err=True)
        raise SystemExit(1)
    click.echo(
        "seen={seen} created={created} updated={updated} removed={removed} skipped={skipped}".format(
            **summary
        )
    )


@cli.command("purge_orphan_certs")
@click.option(
    "--dry-run", is_flag=True, help="List orphaned certificate PDFs without deleting"
)
@click.option(
    "--min-age",
    default=60,
    show_default=True,
    type=click.IntRange(min=0),
    help="Minutes a PDF must exist before it may be purged",
)
def purge_orphan_certs(dry_run: bool, min_age: int):
    """Delete certificate PDFs that have no ledger row.

    Files younger than --min-age are kept: a generation in flight holds an
    empty reserved file until its PDF is written and recorded. A PDF whose
    ledger insert failed also has no row although its URL was handed out;
    once older than --min-age it is purged like any other orphan.
    """
    cert_root = current_app.config["CERTIFICATES_DIR"]
    if not os.path.isdir(cert_root):
        click.echo("Certificate directory missing", err=True)
        return
    known = {
        name for (name,) in db.session.query(IssuedCertificate.filename).all()
    }
    cutoff = time.time() - min_age * 60
    total = deleted = kept = recent = errors = 0
    samples: list[str] = []
    for name in sorted(os.listdir(cert_root)):
        full_path = os.path.join(cert_root, name)
        if not name.lower().endswith(".pdf") or not os.path.isfile(full_path):
            continue
        total += 1
        if name in known:
            kept += 1
            continue
        try:
            modified = os.path.getmtime(full_path)
        except FileNotFoundError:
            continue
        if modified > cutoff:
            recent += 1
            continue
        if len(samples) < 5:
            samples.append(full_path)
        if dry_run:
            continue
        try:
            os.remove(full_path)
            deleted += 1
        except OSError:
            errors += 1
            current_app.logger.exception("[CERT-PURGE] failed to remove %s", full_path)
    summary = (
        f"scanned={total} deleted={deleted} kept={kept} recent={recent} errors={errors}"
    )
    for path in samples:
        click.echo(path)
    click.echo(summary)
    current_app.logger.info("[CERT-PURGE] %s", summary)


@cli.command("create_admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", "full_name", default=None)
def create_admin(email: str, password: str, full_name: str | None):
    """Create a staff administrator, or promote and reset an existing one."""
    email = email.strip().lower()
    user = (
        db.session.query(User)
        .filter(func.lower(User.email) == email)
        .one_or_none()
    )
    created = user is None
    if created:
        user = User(email=email, full_name=full_name or email)
        db.session.add(user)
    elif full_name:
        user.full_name = full_name
    user.is_admin = True
    user.set_password(password)
    db.session.commit()
    click.echo(f"{'created' if created else 'updated'} admin {email}")


if __name__ == "__main__":
    cli()
