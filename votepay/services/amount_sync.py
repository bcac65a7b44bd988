"""
Amount corrections from pasted gateway transaction reports.

Reports are free text with a ``{Key:Value ...}`` block, e.g.
``Txn ok {ExternalId:FEDCO_17 Amount:50 NetAmount:48 Currency:KES}``.
"""

import re

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from votepay.errors import PersistenceFailed, ValidationFailed, VoteNotFound
from votepay.models import Vote

REPORT_FIELD_RE = re.compile(r"(\w+):([a-zA-Z0-9\-_]+)")
INTEGER_FIELDS = ("Amount", "NetAmount")


def parse_transaction_report(text):
    start = text.find("{")
    if start == -1:
        raise ValidationFailed("invalid input format")

    raw = text[start:]
    end = raw.rfind("}")
    if end == -1:
        raise ValidationFailed("missing closing brace")
    raw = raw[: end + 1]

    fields = {}
    for key, value in REPORT_FIELD_RE.findall(raw):
        if key in INTEGER_FIELDS:
            try:
                fields[key] = int(value)
            except ValueError as exc:
                raise ValidationFailed(f"invalid amount format: {value}") from exc
        else:
            fields[key] = value
    return fields


def update_vote_amount(session, fields):
    external_id = fields.get("ExternalId")
    if not isinstance(external_id, str) or not external_id:
        raise ValidationFailed("ExternalId is missing or not a string")

    new_amount = fields.get("Amount")
    if not isinstance(new_amount, int):
        raise ValidationFailed("Amount is missing or not an integer")

    vote = session.query(Vote).filter_by(external_id=external_id).first()
    if vote is None:
        raise VoteNotFound(external_id)

    previous = vote.amount
    vote.amount = new_amount
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceFailed(
            "failed to update amount", {"external_id": external_id}
        ) from exc

    current_app.logger.info(
        "Vote %s amount corrected from %s to %s", external_id, previous, new_amount
    )
    return vote
