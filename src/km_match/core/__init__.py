from .problem import WeightMatrix
from .solver import Matcher, MatchResult, match
from .state import SolverState

__all__ = ["WeightMatrix", "SolverState", "Matcher", "MatchResult", "match"]
