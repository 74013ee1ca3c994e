"""
Deckwright services.

Pipeline phases: tagging, synergy grouping, quota selection, mana base
and curve balancing. The orchestrator lives in `deck_builder`.
"""

from deckwright.services.card_tagger import (
    Classifier,
    HeuristicClassifier,
    MemoizingClassifier,
    TagTable,
    tag_card,
    tag_pool,
)
from deckwright.services.curve_balancer import (
    CurveBalanceResult,
    balance_curve,
    fill_curve_gaps,
)
from deckwright.services.mana_base import ManaBase, build_mana_base
from deckwright.services.quota_selector import SelectionResult, select_cards
from deckwright.services.synergy_grouper import (
    SynergyGroup,
    card_synergy,
    deck_synergy,
    group_synergies,
)

__all__ = [
    "Classifier",
    "CurveBalanceResult",
    "HeuristicClassifier",
    "ManaBase",
    "MemoizingClassifier",
    "SelectionResult",
    "SynergyGroup",
    "TagTable",
    "balance_curve",
    "build_mana_base",
    "card_synergy",
    "deck_synergy",
    "fill_curve_gaps",
    "group_synergies",
    "select_cards",
    "tag_card",
    "tag_pool",
]
