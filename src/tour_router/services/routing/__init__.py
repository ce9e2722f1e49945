"""Route optimization, gap filling and sequence reconciliation."""

from .cache import NullRouteCache, OptimizationCache, RouteCache, optimization_cache
from .gap_filler import GapFiller
from .models import Gap, OptimizationConstraints, RouteResult, RouteStop, ScoredCandidate
from .optimizer import RouteOptimizer, optimize_route, score_existing_route
from .scoring import CandidateScorer
from .sequence import SequenceNormalizer, WritePlan, normalize_sequence

__all__ = [
    "CandidateScorer",
    "GapFiller",
    "RouteOptimizer",
    "SequenceNormalizer",
    "optimize_route",
    "normalize_sequence",
    "score_existing_route",
    "OptimizationCache",
    "NullRouteCache",
    "RouteCache",
    "optimization_cache",
    "OptimizationConstraints",
    "Gap",
    "RouteResult",
    "RouteStop",
    "ScoredCandidate",
    "WritePlan",
]
