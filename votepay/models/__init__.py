from votepay.models.candidate import Candidate
from votepay.models.category import Category
from votepay.models.position import Position
from votepay.models.vote import Vote
from votepay.models.voter import Voter

__all__ = [
    "Category",
    "Position",
    "Candidate",
    "Voter",
    "Vote",
]
