"""
Pool Filter: reduce the candidate pool to cards the deck may legally use.

A card survives iff every predicate holds:
1. Color identity within the requested identity (empty = unrestricted)
2. Not excluded by id
3. Price within the budget ceiling (unknown price passes)
4. Legal in the format (caller-supplied fact) and not on the ban list
5. Available (owned quantity > 0 when ownership is modeled)

INVARIANTS:
- Filtering is monotonic (only removes cards, never adds)
- Predicates are independent; order does not change the result
- Pool order is preserved
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from deckwright.models.card import Card
from deckwright.models.requirements import LEGAL_STATUSES, DeckRequirements, FormatRules

logger = logging.getLogger(__name__)

# Caller-supplied legality lookup
LegalityCheck = Callable[[Card], bool]


@dataclass
class PoolFilterReport:
    """How many cards each predicate rejected (a card may fail several)."""

    total_cards: int = 0
    rejected_color: int = 0
    rejected_excluded: int = 0
    rejected_budget: int = 0
    rejected_legality: int = 0
    rejected_unavailable: int = 0
    final_pool_size: int = 0
    rejected_ids: list[str] = field(default_factory=list)


def within_identity(card: Card, identity: frozenset[str]) -> bool:
    """Empty requested identity means colorless-unrestricted mode."""
    if not identity:
        return True
    return set(card.color_identity) <= identity


def within_budget(card: Card, budget: float | None) -> bool:
    if budget is None or card.price is None:
        return True
    return card.price <= budget


def format_legal(card: Card, rules: FormatRules) -> bool:
    """
    Default legality lookup from the card's provider-supplied legalities.

    Cards without any legality data are treated as legal; the engine does
    not derive legality itself.
    """
    if card.name in rules.ban_list:
        return False
    if not card.legalities:
        return True
    return card.legalities.get(rules.format.value) in LEGAL_STATUSES


def filter_pool(
    pool: Sequence[Card],
    requirements: DeckRequirements,
    legality: LegalityCheck | None = None,
    identity: frozenset[str] | None = None,
) -> tuple[list[Card], PoolFilterReport]:
    """
    Filter a candidate pool against deck requirements.

    Args:
        pool: Candidate cards, in pool order
        requirements: Deck requirements
        legality: Optional legality lookup replacing the default
        identity: Optional identity overriding requirements.color_identity
            (used once a commander narrows the deck's colors)

    Returns:
        (surviving cards in pool order, report)
    """
    rules = requirements.rules
    identity = requirements.color_identity if identity is None else identity
    report = PoolFilterReport(total_cards=len(pool))
    survivors: list[Card] = []

    for card in pool:
        checks = {
            "color": within_identity(card, identity),
            "excluded": card.id not in requirements.exclude,
            "budget": within_budget(card, requirements.budget),
            "legality": (legality(card) if legality else format_legal(card, rules)),
            "unavailable": card.is_available,
        }
        if all(checks.values()):
            survivors.append(card)
            continue

        report.rejected_ids.append(card.id)
        for name, passed in checks.items():
            if not passed:
                attr = f"rejected_{name}"
                setattr(report, attr, getattr(report, attr) + 1)

    report.final_pool_size = len(survivors)

    logger.info(
        "pool_filtered",
        extra={
            "total": report.total_cards,
            "rejected_color": report.rejected_color,
            "rejected_excluded": report.rejected_excluded,
            "rejected_budget": report.rejected_budget,
            "rejected_legality": report.rejected_legality,
            "rejected_unavailable": report.rejected_unavailable,
            "final": report.final_pool_size,
        },
    )

    return survivors, report
