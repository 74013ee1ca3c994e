"""
Candidate pool filtering and scoring.

Filtering removes cards the deck may not use; scoring ranks what remains.
"""

from deckwright.filtering.pool_filter import (
    PoolFilterReport,
    filter_pool,
    format_legal,
    within_budget,
    within_identity,
)
from deckwright.filtering.scoring import ScoredCard, rank_cards, score_card, top_cards

__all__ = [
    "PoolFilterReport",
    "ScoredCard",
    "filter_pool",
    "format_legal",
    "rank_cards",
    "score_card",
    "top_cards",
    "within_budget",
    "within_identity",
]
