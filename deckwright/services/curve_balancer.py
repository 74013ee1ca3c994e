"""
Curve balancer.

Trims a selection toward a target mana-value histogram, then refills the
freed space into buckets still below their target.

INVARIANTS:
- balance_curve never adds cards
- Never removes protected (must-include, commander) cards
- Within an over-full bucket the lowest-scoring cards go first; equal
  scores remove the later card
- fill_curve_gaps never pushes a bucket past its target
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from deckwright.filtering.scoring import ScoredCard, rank_cards
from deckwright.models.card import Card
from deckwright.services.quota_selector import DeckSelection, RoleCaps, add_copies

logger = logging.getLogger(__name__)


def curve_bucket(mana_value: float, top_bucket: int) -> int:
    """
    Histogram bucket for a mana value.

    Zero-cost cards sit in bucket 0; everything at or above `top_bucket`
    shares the open top bucket.
    """
    if mana_value <= 0:
        return 0
    return min(int(mana_value), top_bucket)


def curve_histogram(cards: Iterable[Card], top_bucket: int) -> dict[int, int]:
    """Nonland card count per bucket."""
    curve: dict[int, int] = {}
    for card in cards:
        if card.is_land:
            continue
        bucket = curve_bucket(card.mana_value, top_bucket)
        curve[bucket] = curve.get(bucket, 0) + 1
    return dict(sorted(curve.items()))


@dataclass
class CurveBalanceResult:
    kept: list[Card] = field(default_factory=list)
    removed: list[Card] = field(default_factory=list)
    change_log: list[str] = field(default_factory=list)


def balance_curve(
    selection: Sequence[Card],
    target_curve: dict[int, int],
    *,
    protected_ids: Iterable[str] = (),
) -> CurveBalanceResult:
    """
    Remove excess cards from over-full mana-value buckets.

    Args:
        selection: Selected cards (copies appear once per copy)
        target_curve: Bucket -> target count; the highest key is open-ended
        protected_ids: Ids that must never be removed

    Returns:
        CurveBalanceResult with kept cards in their original order
    """
    protected = frozenset(protected_ids)
    if not target_curve:
        return CurveBalanceResult(kept=list(selection))

    top_bucket = max(target_curve)
    current = curve_histogram(selection, top_bucket)
    ranked = rank_cards(selection)

    drop: set[int] = set()
    result = CurveBalanceResult()
    for bucket, target in sorted(target_curve.items()):
        excess = current.get(bucket, 0) - target
        if excess <= 0:
            continue
        # Worst first: walk the ranking from the bottom
        removable = [
            s
            for s in reversed(ranked)
            if not s.card.is_land
            and s.card.id not in protected
            and curve_bucket(s.card.mana_value, top_bucket) == bucket
        ]
        for scored in removable[:excess]:
            drop.add(scored.index)
        removed = min(excess, len(removable))
        if removed:
            label = f"{bucket}+" if bucket == top_bucket else str(bucket)
            result.change_log.append(f"removed {removed} cards at mana value {label}")

    result.kept = [card for i, card in enumerate(selection) if i not in drop]
    result.removed = [card for i, card in enumerate(selection) if i in drop]

    logger.info(
        "curve_balanced",
        extra={
            "before": len(selection),
            "after": len(result.kept),
            "removed": len(result.removed),
        },
    )
    return result


def fill_curve_gaps(
    selection: DeckSelection,
    ranked: Sequence[ScoredCard],
    target_size: int,
    target_curve: dict[int, int],
    *,
    skip_ids: frozenset[str] = frozenset(),
    caps: RoleCaps | None = None,
) -> int:
    """
    Add the best-ranked cards whose bucket is still below target.

    Buckets without a target (zero-cost spells in the default curves)
    are never filled here. Returns the number of cards added.
    """
    if not target_curve:
        return 0
    top_bucket = max(target_curve)
    current = curve_histogram(selection.cards, top_bucket)
    added = 0
    for scored in ranked:
        space = target_size - len(selection)
        if space <= 0:
            break
        card = scored.card
        if card.is_land or card.id in skip_ids or selection.room_for(card) <= 0:
            continue
        bucket = curve_bucket(card.mana_value, top_bucket)
        open_slots = target_curve.get(bucket, 0) - current.get(bucket, 0)
        if open_slots <= 0:
            continue
        copies = add_copies(selection, card, min(space, open_slots), caps)
        current[bucket] = current.get(bucket, 0) + copies
        added += copies
    return added
