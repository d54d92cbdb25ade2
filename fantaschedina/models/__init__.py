from fantaschedina import db  # noqa: F401 - imported for model imports

from .match import Match
from .prediction import Prediction, PredictionRejected
from .prize_distribution import PrizeDistribution
from .team import Team
from .user import User
from .winner_payout import WinnerPayout

__all__ = [
    "User",
    "Match",
    "Prediction",
    "PredictionRejected",
    "Team",
    "PrizeDistribution",
    "WinnerPayout",
]
