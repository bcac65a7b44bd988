from votepay.services.voting.intent import get_or_create_voter, submit_vote
from votepay.services.voting.reconcile import handle_callback, sweep_pending_votes
from votepay.services.voting.results import compute_standings, compute_voters_summary

__all__ = [
    "compute_standings",
    "compute_voters_summary",
    "get_or_create_voter",
    "handle_callback",
    "submit_vote",
    "sweep_pending_votes",
]
