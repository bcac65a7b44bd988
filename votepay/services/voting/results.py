from sqlalchemy import and_, distinct, func

from votepay.models import Candidate, Category, Position, Vote, Voter
from votepay.models.vote import STATUS_COMPLETED


def vote_percentage(vote_count, all_vote_count):
    if all_vote_count <= 0:
        return 0
    return vote_count * 100 // all_vote_count


def _position_total_amount(session, position_id):
    return (
        session.query(func.coalesce(func.sum(Vote.amount), 0))
        .join(Candidate, Candidate.id == Vote.candidate_id)
        .filter(Candidate.position_id == position_id, Vote.status == STATUS_COMPLETED)
        .scalar()
    )


def _candidate_voters(session, candidate_id):
    votes = func.count(Vote.id).label("votes")
    rows = (
        session.query(Voter.name, Voter.phone, votes)
        .join(Vote, Vote.voter_id == Voter.id)
        .filter(Vote.candidate_id == candidate_id, Vote.status == STATUS_COMPLETED)
        .group_by(Voter.id, Voter.name, Voter.phone)
        .order_by(Voter.id)
        .all()
    )
    return [{"name": row.name, "phone": row.phone, "votes": row.votes} for row in rows]


def tally_position(session, position, unit_price):
    all_vote_count = int(_position_total_amount(session, position.id)) // unit_price

    voters_count = func.count(distinct(Vote.voter_id)).label("voters_count")
    amount = func.coalesce(func.sum(Vote.amount), 0).label("amount")
    rows = (
        session.query(Candidate.id, Candidate.name, voters_count, amount)
        .outerjoin(
            Vote,
            and_(Vote.candidate_id == Candidate.id, Vote.status == STATUS_COMPLETED),
        )
        .filter(Candidate.position_id == position.id)
        .group_by(Candidate.id, Candidate.name)
        .order_by(voters_count.desc(), Candidate.id)
        .all()
    )

    candidate_results = []
    for row in rows:
        vote_count = int(row.amount) // unit_price
        candidate_results.append(
            {
                "id": row.id,
                "name": row.name,
                "all_vote_count": all_vote_count,
                "vote_count": vote_count,
                "vote_percentage": vote_percentage(vote_count, all_vote_count),
                "voters_count": row.voters_count,
                "amount": int(row.amount),
                "voters": _candidate_voters(session, row.id),
            }
        )

    return {"id": position.id, "name": position.name, "candidates": candidate_results}


def compute_standings(session, unit_price=10):
    """Standings per category and position, from completed votes only.

    A candidate's ``vote_count`` is its paid amount divided by
    ``unit_price``; ``vote_percentage`` is its truncated share of the
    position's votes.
    """
    results = []
    for category in session.query(Category).order_by(Category.id).all():
        positions = (
            session.query(Position)
            .filter_by(category_id=category.id)
            .order_by(Position.id)
            .all()
        )
        results.append(
            {
                "id": category.id,
                "name": category.name,
                "positions": [
                    tally_position(session, position, unit_price) for position in positions
                ],
            }
        )
    return results


def compute_voters_summary(session):
    votes = func.count(Vote.id).label("votes")
    rows = (
        session.query(Voter.name, Voter.phone, votes)
        .join(Vote, Vote.voter_id == Voter.id)
        .filter(Vote.status == STATUS_COMPLETED)
        .group_by(Voter.id, Voter.name, Voter.phone)
        .order_by(votes.desc(), Voter.id)
        .all()
    )

    total_votes = (
        session.query(func.count(Vote.id))
        .filter(Vote.status == STATUS_COMPLETED)
        .scalar()
    )
    total_voters = (
        session.query(func.count(distinct(Vote.voter_id)))
        .filter(Vote.status == STATUS_COMPLETED)
        .scalar()
    )

    return {
        "total_voters": total_voters,
        "total_votes": total_votes,
        "voters": [
            {"name": row.name, "phone": row.phone, "votes": row.votes} for row in rows
        ],
    }
