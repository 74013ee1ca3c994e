"""
Deck analysis.

Pure aggregation over a finished deck: curve, color pips, primary types,
mechanic density, threshold-derived strengths and weaknesses, and short
template suggestions. No free-form text is generated here.

INVARIANTS:
- Empty decks and empty groups produce an empty analysis, never an error
- Output ordering is deterministic (WUBRG colors, mechanics by count desc
  then name)
"""

import logging
from collections.abc import Sequence

from deckwright.config import (
    EXPENSIVE_MANA_VALUE,
    HIGH_CURVE_AVERAGE,
    MAX_EXPENSIVE_CARDS,
    MIN_EARLY_GAME_CARDS,
    STRENGTH_MECHANIC_COUNT,
)
from deckwright.models.card import COLOR_ORDER, Card
from deckwright.models.deck import DeckAnalysis, MechanicSynergy
from deckwright.services.card_tagger import TagTable

logger = logging.getLogger(__name__)

HIGH_CURVE_WEAKNESS = "High mana curve may cause slow starts"
EARLY_GAME_WEAKNESS = "Not enough early game"
EXPENSIVE_WEAKNESS = "Too many expensive spells"

EARLY_GAME_SUGGESTION = "Consider adding more 1-2 mana spells for better curve"
EXPENSIVE_SUGGESTION = "Replace some high-cost cards with cheaper alternatives"

BASE_POWER = 5
MIN_POWER = 1
MAX_POWER = 10


def _with_commander(cards: Sequence[Card], commander: Card | None) -> list[Card]:
    return [commander, *cards] if commander else list(cards)


def _mana_value_key(card: Card) -> int:
    return int(card.mana_value) if card.mana_value > 0 else 0


def card_mechanics(card: Card, tags: TagTable) -> set[str]:
    """Role tags plus lower-cased keyword abilities."""
    return set(tags.tags_for(card)) | {k.lower() for k in card.keywords}


def mechanic_synergies(cards: Sequence[Card], tags: TagTable) -> tuple[MechanicSynergy, ...]:
    """Per-mechanic card counts and density (count / deck size), densest first."""
    if not cards:
        return ()
    counts: dict[str, int] = {}
    for card in cards:
        for mechanic in card_mechanics(card, tags):
            counts[mechanic] = counts.get(mechanic, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(
        MechanicSynergy(mechanic=m, count=n, score=round(n / len(cards), 4)) for m, n in ranked
    )


def find_weaknesses(curve: dict[int, int], average_mana_value: float) -> list[str]:
    weaknesses = []
    if average_mana_value > HIGH_CURVE_AVERAGE:
        weaknesses.append(HIGH_CURVE_WEAKNESS)
    if curve.get(1, 0) + curve.get(2, 0) < MIN_EARLY_GAME_CARDS:
        weaknesses.append(EARLY_GAME_WEAKNESS)
    expensive = sum(n for mv, n in curve.items() if mv >= EXPENSIVE_MANA_VALUE)
    if expensive > MAX_EXPENSIVE_CARDS:
        weaknesses.append(EXPENSIVE_WEAKNESS)
    return weaknesses


def find_strengths(synergies: Sequence[MechanicSynergy]) -> list[str]:
    return [
        f"Strong {s.mechanic} synergy with {s.count} cards"
        for s in synergies
        if s.count >= STRENGTH_MECHANIC_COUNT
    ]


def analyze_deck(
    cards: Sequence[Card],
    tags: TagTable,
    commander: Card | None = None,
) -> DeckAnalysis:
    """
    Compute statistics for a deck.

    Args:
        cards: Main deck cards (copies appear once per copy)
        tags: Tag table from the build that produced the deck
        commander: Commander card, counted as part of the deck

    Returns:
        DeckAnalysis
    """
    deck = _with_commander(cards, commander)
    nonland = [c for c in deck if not c.is_land]

    curve: dict[int, int] = {}
    for card in nonland:
        key = _mana_value_key(card)
        curve[key] = curve.get(key, 0) + 1

    pips = dict.fromkeys(COLOR_ORDER, 0)
    for card in nonland:
        for color, n in card.color_pips().items():
            pips[color] += n
    color_distribution = {c: n for c, n in pips.items() if n > 0}

    type_distribution: dict[str, int] = {}
    for card in deck:
        primary = card.primary_type or "Unknown"
        type_distribution[primary] = type_distribution.get(primary, 0) + 1

    average = sum(c.mana_value for c in nonland) / len(nonland) if nonland else 0.0
    synergies = mechanic_synergies(deck, tags)

    analysis = DeckAnalysis(
        curve=dict(sorted(curve.items())),
        color_distribution=color_distribution,
        type_distribution=dict(sorted(type_distribution.items())),
        mechanic_synergies=synergies,
        weaknesses=tuple(find_weaknesses(curve, average)),
        strengths=tuple(find_strengths(synergies)),
        total_value=round(sum(c.price for c in deck if c.price is not None), 2),
        average_mana_value=round(average, 2),
    )

    logger.info(
        "deck_analyzed",
        extra={
            "cards": len(deck),
            "average_mana_value": analysis.average_mana_value,
            "weaknesses": len(analysis.weaknesses),
            "strengths": len(analysis.strengths),
        },
    )
    return analysis


def estimate_power_level(cards: Sequence[Card], commander: Card | None = None) -> int:
    """
    Rough 1-10 power estimate from average price and curve.

    Base 5; +1 above $10 average and +1 more above $25; +1 below an average
    mana value of 3 and +1 more below 2.5. Unknown prices count as zero.
    """
    spells = [c for c in _with_commander(cards, commander) if not c.is_land]
    if not spells:
        return BASE_POWER

    power = BASE_POWER
    average_price = sum(c.price or 0.0 for c in spells) / len(spells)
    if average_price > 10:
        power += 1
    if average_price > 25:
        power += 1

    average_mv = sum(c.mana_value for c in spells) / len(spells)
    if average_mv < 3:
        power += 1
    if average_mv < 2.5:
        power += 1

    return max(MIN_POWER, min(MAX_POWER, power))


def generate_suggestions(analysis: DeckAnalysis) -> list[str]:
    """Template suggestions keyed off the analysis."""
    suggestions = []
    if EARLY_GAME_WEAKNESS in analysis.weaknesses:
        suggestions.append(EARLY_GAME_SUGGESTION)
    if EXPENSIVE_WEAKNESS in analysis.weaknesses:
        suggestions.append(EXPENSIVE_SUGGESTION)
    if analysis.mechanic_synergies:
        top = analysis.mechanic_synergies[0]
        if top.count < STRENGTH_MECHANIC_COUNT:
            suggestions.append(f"Consider adding more {top.mechanic} cards for better synergy")
    return suggestions
