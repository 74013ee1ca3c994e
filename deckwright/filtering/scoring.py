"""
Card scoring.

A deterministic weighted sum of rarity, market price and mana-value fit.
Higher is better.

INVARIANTS:
- score_card() is a pure function of the card
- Ranking is stable: equal scores keep pool order (first seen wins)
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from deckwright.models.card import Card, Rarity

RARITY_SCORES: dict[Rarity, float] = {
    Rarity.MYTHIC: 3.0,
    Rarity.RARE: 2.0,
    Rarity.UNCOMMON: 1.0,
    Rarity.COMMON: 0.0,
}

# (exclusive lower bound in USD, bonus), checked highest first
PRICE_TIERS: tuple[tuple[float, float], ...] = (
    (10.0, 3.0),
    (5.0, 2.0),
    (1.0, 1.0),
)
BULK_PRICE = 0.10
BULK_PENALTY = -3.0

SWEET_SPOT_MIN = 2
SWEET_SPOT_MAX = 4
SWEET_SPOT_BONUS = 2.0


@dataclass(frozen=True, slots=True)
class ScoredCard:
    """
    A card with its desirability score.

    `index` is the card's position in the pool and breaks ties.
    """

    card: Card
    score: float
    index: int
    breakdown: dict[str, float] = field(default_factory=dict, compare=False, hash=False)

    def sort_key(self) -> tuple[float, int]:
        """Score descending, then pool order."""
        return (-self.score, self.index)


def _score_rarity(card: Card) -> float:
    return RARITY_SCORES.get(card.rarity, 0.0)


def _score_price(card: Card) -> float:
    """
    Price as a proxy for power and demand.

    Unknown prices are neutral. Near-zero prices mark likely filler.
    """
    if card.price is None:
        return 0.0
    for threshold, bonus in PRICE_TIERS:
        if card.price > threshold:
            return bonus
    if card.price < BULK_PRICE:
        return BULK_PENALTY
    return 0.0


def _score_mana_value(card: Card) -> float:
    if SWEET_SPOT_MIN <= card.mana_value <= SWEET_SPOT_MAX:
        return SWEET_SPOT_BONUS
    return 0.0


def score_breakdown(card: Card) -> dict[str, float]:
    """Per-component contributions to a card's score."""
    return {
        "rarity": _score_rarity(card),
        "price": _score_price(card),
        "mana_value": _score_mana_value(card),
    }


def score_card(card: Card) -> float:
    """Scalar desirability score for a card."""
    return sum(score_breakdown(card).values())


def rank_cards(cards: Iterable[Card]) -> list[ScoredCard]:
    """
    Score and sort cards, highest first.

    Ties keep input order, so results are reproducible for a given pool
    ordering.
    """
    scored = [
        ScoredCard(card=card, score=score_card(card), index=i, breakdown=score_breakdown(card))
        for i, card in enumerate(cards)
    ]
    scored.sort(key=ScoredCard.sort_key)
    return scored


def top_cards(ranked: Sequence[ScoredCard], n: int) -> list[Card]:
    """The first `n` cards of a ranking."""
    return [s.card for s in ranked[:n]]
