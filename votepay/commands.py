import click

from votepay.extensions import db
from votepay.services.gateway import get_payment_gateway
from votepay.services.voting import sweep_pending_votes


def register_commands(app):
    @app.cli.command("sweep-pending")
    @click.option(
        "--older-than",
        type=int,
        default=None,
        help="Only check votes pending for at least this many seconds.",
    )
    def sweep_pending(older_than):
        """Settle pending votes whose gateway callback never arrived."""
        if not app.config["GATEWAY_STATUS_URL"]:
            raise click.ClickException("GATEWAY_STATUS_URL is not configured.")

        if older_than is None:
            older_than = app.config["PENDING_SWEEP_AGE_SECONDS"]

        settled = sweep_pending_votes(
            db.session,
            get_payment_gateway(),
            older_than,
            keep_failed=app.config["KEEP_FAILED_VOTES"],
        )
        for external_id, status in settled.items():
            click.echo(f"{external_id}: {status}")
        click.echo(f"Settled {len(settled)} pending vote(s).")
