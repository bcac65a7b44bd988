from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from votepay.errors import GatewayFailure, PendingVoteNotFound, PersistenceFailed
from votepay.models import Vote
from votepay.models.vote import STATUS_COMPLETED, STATUS_FAILED, STATUS_PENDING, utcnow

SUCCESS_STATUS = "COMPLETED"
# Gateway statuses that are not a verdict yet; the sweep leaves these alone.
IN_FLIGHT_STATUSES = {"PENDING", "PROCESSING", "INITIATED"}


def handle_callback(session, external_id, transaction_status, keep_failed=False):
    """Apply the gateway's verdict to the pending vote for ``external_id``.

    ``"COMPLETED"`` completes the vote; anything else removes it (or marks it
    ``failed`` with ``keep_failed``). Returns the vote's final status.
    The lookup and the transition share one transaction and the transition
    only applies to a row still in ``pending``, so a replayed or concurrent
    callback gets ``PendingVoteNotFound`` instead of a second transition.
    """
    try:
        vote = (
            session.query(Vote)
            .filter_by(external_id=external_id, status=STATUS_PENDING)
            .with_for_update()
            .first()
        )
        if vote is None:
            session.rollback()
            raise PendingVoteNotFound(external_id)

        still_pending = session.query(Vote).filter(
            Vote.id == vote.id, Vote.status == STATUS_PENDING
        )
        if transaction_status == SUCCESS_STATUS:
            final_status = STATUS_COMPLETED
            affected = still_pending.update({Vote.status: STATUS_COMPLETED})
        elif keep_failed:
            final_status = STATUS_FAILED
            affected = still_pending.update({Vote.status: STATUS_FAILED})
        else:
            final_status = STATUS_FAILED
            affected = still_pending.delete()

        if affected != 1:
            session.rollback()
            raise PendingVoteNotFound(external_id)

        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceFailed(
            "Failed to update vote status", {"external_id": external_id}
        ) from exc

    current_app.logger.info(
        "Vote %s finalized as %s (gateway status %r)",
        external_id,
        final_status,
        transaction_status,
    )
    return final_status


def sweep_pending_votes(session, gateway, older_than_seconds, keep_failed=False, now=None):
    """Re-ask the gateway about pending votes whose callback never arrived.

    Every definitive answer goes through ``handle_callback``. Returns a
    mapping of external id to final status for the votes it settled.
    """
    cutoff = (now or utcnow()) - timedelta(seconds=older_than_seconds)
    stale_ids = [
        external_id
        for (external_id,) in session.query(Vote.external_id)
        .filter(Vote.status == STATUS_PENDING, Vote.created_at <= cutoff)
        .order_by(Vote.id)
        .all()
    ]
    session.rollback()

    settled = {}
    for external_id in stale_ids:
        try:
            transaction_status = gateway.query_status(external_id)
        except GatewayFailure as exc:
            current_app.logger.warning("Status lookup for %s failed: %s", external_id, exc)
            continue

        if not isinstance(transaction_status, str):
            if transaction_status is not None:
                current_app.logger.warning(
                    "Ignoring non-text status %r for %s", transaction_status, external_id
                )
            continue
        if not transaction_status or transaction_status.upper() in IN_FLIGHT_STATUSES:
            continue

        try:
            settled[external_id] = handle_callback(
                session, external_id, transaction_status, keep_failed=keep_failed
            )
        except PendingVoteNotFound:
            # A callback got there first.
            continue
        except PersistenceFailed as exc:
            current_app.logger.error("Could not settle %s: %s", external_id, exc)
            continue

    current_app.logger.info(
        "Pending sweep checked %d vote(s), settled %d", len(stale_ids), len(settled)
    )
    return settled
