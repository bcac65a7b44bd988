from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from votepay.errors import CandidateNotFound, PersistenceFailed, ValidationFailed
from votepay.models import Candidate, Vote, Voter
from votepay.models.vote import STATUS_PENDING
from votepay.services.gateway import generate_external_id


def get_or_create_voter(session, name, phone, deduplicate=False):
    if deduplicate:
        voter = session.query(Voter).filter_by(name=name, phone=phone).first()
        if voter is not None:
            return voter

    voter = Voter(name=name, phone=phone)
    try:
        session.add(voter)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceFailed("Failed to create voter") from exc
    return voter


def submit_vote(
    session,
    gateway,
    voter_name,
    voter_phone,
    candidate_id,
    amount,
    external_id_prefix="FEDCO",
    deduplicate_voters=False,
):
    """Record a vote intent and push the matching payment request.

    The vote is stored as ``pending`` and only counts once the gateway
    callback confirms the payment. Returns the external transaction id.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationFailed("Amount must be a positive integer", {"amount": amount})

    candidate = session.get(Candidate, candidate_id)
    if candidate is None:
        raise CandidateNotFound(candidate_id)

    voter = get_or_create_voter(
        session, voter_name, voter_phone, deduplicate=deduplicate_voters
    )

    external_id = generate_external_id(external_id_prefix)
    gateway.initiate_payment(voter_phone, amount, external_id)

    vote = Vote(
        voter_id=voter.id,
        candidate_id=candidate.id,
        external_id=external_id,
        status=STATUS_PENDING,
        amount=amount,
    )
    try:
        session.add(vote)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        # The gateway already has this transaction; its callback will not match.
        current_app.logger.exception(
            "Pending vote for %s was not saved after payment initiation", external_id
        )
        raise PersistenceFailed(
            "Failed to save pending vote", {"external_id": external_id}
        ) from exc

    current_app.logger.info(
        "Vote %s pending payment: candidate=%s amount=%s",
        external_id,
        candidate.id,
        amount,
    )
    return external_id
