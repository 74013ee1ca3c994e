"""
Mana base optimizer.

Sizes the land base from the nonland curve and fills it:
1. Multi-color ("dual") lands covering needed colors, up to a cap
2. Basic lands split across colors in proportion to color pips
3. Any remaining lands in the pool, best score first

A land pool that cannot reach the target count is a soft shortfall.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from deckwright.filtering.scoring import rank_cards
from deckwright.models.card import COLOR_ORDER, COLOR_TO_BASIC_LAND, Card, sort_colors
from deckwright.models.failure import PoolInsufficientError
from deckwright.models.requirements import DeckRequirements
from deckwright.services.quota_selector import copies_allowed

logger = logging.getLogger(__name__)

NEUTRAL_MANA_VALUE = 3.0


@dataclass
class ManaBase:
    """Lands chosen for a deck."""

    lands: list[Card] = field(default_factory=list)
    land_count: int = 0
    pip_counts: dict[str, int] = field(default_factory=dict)
    dual_count: int = 0
    basic_count: int = 0
    shortfalls: list[PoolInsufficientError] = field(default_factory=list)


def average_mana_value(cards: Sequence[Card]) -> float:
    """Mean mana value of nonland cards (neutral 3.0 when there are none)."""
    nonland = [c for c in cards if not c.is_land]
    if not nonland:
        return NEUTRAL_MANA_VALUE
    return sum(c.mana_value for c in nonland) / len(nonland)


def count_color_pips(cards: Sequence[Card]) -> dict[str, int]:
    """Total color pips across nonland cards, WUBRG order."""
    pips = dict.fromkeys(COLOR_ORDER, 0)
    for card in cards:
        if card.is_land:
            continue
        for color, n in card.color_pips().items():
            pips[color] += n
    return pips


def land_target(cards: Sequence[Card], requirements: DeckRequirements) -> int:
    """Land count for the deck's size and nonland curve."""
    plan = requirements.rules.land_plan
    return plan.land_count(average_mana_value(cards), requirements.required_size())


def allocate_basics(count: int, weights: dict[str, int]) -> dict[str, int]:
    """
    Split `count` basics across colors in proportion to `weights`.

    Largest-remainder method; fractional ties go to the earlier color in
    WUBRG order. Colors with zero weight receive nothing.
    """
    total = sum(weights.values())
    if count <= 0 or total <= 0:
        return {}

    shares = {c: count * w / total for c, w in weights.items() if w > 0}
    allocation = {c: int(share) for c, share in shares.items()}
    leftover = count - sum(allocation.values())

    order = sorted(
        shares,
        key=lambda c: (-(shares[c] - allocation[c]), COLOR_ORDER.index(c)),
    )
    for color in order[:leftover]:
        allocation[color] += 1
    return allocation


def _find_basics(land_pool: Sequence[Card]) -> dict[str, Card]:
    """First basic land in pool order for each color."""
    basics: dict[str, Card] = {}
    for card in land_pool:
        if not card.is_basic_land:
            continue
        for color, name in COLOR_TO_BASIC_LAND.items():
            if color not in basics and (card.name == name or name in card.subtypes):
                basics[color] = card
    return basics


def _needed_colors(pips: dict[str, int], identity: frozenset[str]) -> tuple[str, ...]:
    colors = tuple(c for c in COLOR_ORDER if pips.get(c, 0) > 0)
    return colors or sort_colors(identity)


def build_mana_base(
    nonland: Sequence[Card],
    requirements: DeckRequirements,
    land_pool: Sequence[Card],
    *,
    land_count: int | None = None,
    fixed_lands: Sequence[Card] = (),
    dual_cap: int = 12,
    identity: frozenset[str] | None = None,
) -> ManaBase:
    """
    Choose lands for a nonland selection.

    Args:
        nonland: Selected nonland cards
        requirements: Deck requirements (format land plan, deck size)
        land_pool: Filtered land candidates, in pool order
        land_count: Explicit land target (defaults to the land plan formula)
        fixed_lands: Lands already in the deck (must-include); they count
            toward the target
        dual_cap: Maximum multi-color lands before basics
        identity: Effective color identity (used when no pips are present)

    Returns:
        ManaBase with fixed lands first, then duals, basics and fallbacks
    """
    rules = requirements.rules
    identity = requirements.color_identity if identity is None else identity
    target = land_target(nonland, requirements) if land_count is None else land_count
    pips = count_color_pips(nonland)
    needed = set(_needed_colors(pips, identity))

    lands: list[Card] = list(fixed_lands)
    copies: dict[str, int] = {}
    for card in lands:
        copies[card.id] = copies.get(card.id, 0) + 1

    def take(card: Card, wanted: int) -> int:
        room = copies_allowed(card, rules) - copies.get(card.id, 0)
        n = max(min(wanted, room, target - len(lands)), 0)
        lands.extend([card] * n)
        if n:
            copies[card.id] = copies.get(card.id, 0) + n
        return n

    # 1. Duals: produce two or more colors, at least one of them needed
    ranked = [s.card for s in rank_cards(c for c in land_pool if c.is_land)]
    duals = [
        c
        for c in ranked
        if not c.is_basic_land
        and len(c.produced_colors()) >= 2
        and c.produced_colors() & needed
    ]
    duals.sort(key=lambda c: -len(c.produced_colors() & needed))

    dual_count = 0
    for card in duals:
        if dual_count >= dual_cap or len(lands) >= target:
            break
        dual_count += take(card, dual_cap - dual_count)

    # 2. Basics in proportion to pips
    basics = _find_basics(land_pool)
    weights = {c: (pips.get(c, 0) or 1) for c in sort_colors(needed) if c in basics}
    basic_count = 0
    remaining = target - len(lands)
    while remaining > 0 and weights:
        allocation = allocate_basics(remaining, weights)
        placed = 0
        for color in sort_colors(set(allocation)):
            placed += take(basics[color], allocation[color])
        basic_count += placed
        # Colors whose owned basics ran out give their share to the rest
        weights = {
            c: w
            for c, w in weights.items()
            if copies_allowed(basics[c], rules) > copies.get(basics[c].id, 0)
        }
        remaining = target - len(lands)
        if placed == 0:
            break

    # 3. Anything else that taps for mana
    for card in ranked:
        if len(lands) >= target:
            break
        take(card, target - len(lands))

    result = ManaBase(
        lands=lands,
        land_count=target,
        pip_counts=pips,
        dual_count=dual_count,
        basic_count=basic_count,
    )
    if len(lands) < target:
        result.shortfalls.append(
            PoolInsufficientError(role="lands", required=target, available=len(lands))
        )
        logger.warning(
            "land_shortfall",
            extra={"required": target, "available": len(lands)},
        )

    logger.info(
        "mana_base_built",
        extra={
            "land_count": target,
            "lands": len(lands),
            "duals": dual_count,
            "basics": basic_count,
            "pips": pips,
        },
    )
    return result
