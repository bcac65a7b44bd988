"""
Exception hierarchy for the voting and payment services.

Services raise these; the HTTP layer turns them into JSON error bodies
using ``status_code``. ``context`` carries identifiers for logging.
"""


class VotepayError(Exception):
    status_code = 500

    def __init__(self, message, context=None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self):
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class NotFound(VotepayError):
    status_code = 404


class CandidateNotFound(NotFound):
    def __init__(self, candidate_id):
        super().__init__("Candidate not found", {"candidate_id": candidate_id})


class CategoryNotFound(NotFound):
    def __init__(self, category_id):
        super().__init__("Category not found", {"category_id": category_id})


class PositionNotFound(NotFound):
    def __init__(self, position_id):
        super().__init__("Position not found", {"position_id": position_id})


class PendingVoteNotFound(NotFound):
    def __init__(self, external_id):
        super().__init__("Pending vote not found", {"external_id": external_id})


class VoteNotFound(NotFound):
    def __init__(self, external_id):
        super().__init__(
            f"vote with ExternalId {external_id} not found",
            {"external_id": external_id},
        )


class ValidationFailed(VotepayError):
    status_code = 400


class GatewayFailure(VotepayError):
    """Transport error, timeout or non-2xx reply from the payment gateway."""

    status_code = 502


class GatewayInitiationFailed(GatewayFailure):
    pass


class PersistenceFailure(VotepayError):
    status_code = 500


class PersistenceFailed(PersistenceFailure):
    pass
