"""
Synergy grouping.

Clusters cards that reinforce each other, along two axes:
- shared role tag (>= 3 cards, best 8 kept)
- shared creature subtype (>= 4 creatures, best 6 kept)

Groups may overlap. Below the thresholds no group is created, so a single
coincidental match never counts as synergy.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from deckwright.config import (
    ARCHETYPE_RELEVANCE,
    COLOR_RELEVANCE,
    MAX_PAIR_SYNERGY,
    MAX_SUBTYPE_GROUP_SIZE,
    MAX_TAG_GROUP_SIZE,
    MIN_SUBTYPE_GROUP_SIZE,
    MIN_TAG_GROUP_SIZE,
    SAME_TYPE_WEIGHT,
    SHARED_COLOR_WEIGHT,
    SHARED_KEYWORD_WEIGHT,
    SHARED_TAG_WEIGHT,
    THEME_RELEVANCE,
)
from deckwright.filtering.scoring import rank_cards, top_cards
from deckwright.models.card import Card
from deckwright.models.requirements import DeckRequirements
from deckwright.services.card_tagger import TagTable

logger = logging.getLogger(__name__)

TAG_AXIS = "tag"
SUBTYPE_AXIS = "subtype"

# Oracle-text phrases that signal an archetype label
ARCHETYPE_INDICATORS: dict[str, list[str]] = {
    "aggro": ["haste", "first strike", "menace", "prowess", "attacks"],
    "control": ["counter target", "destroy target", "exile target", "draw a card"],
    "combo": ["untap", "add {", "copy", "search your library"],
    "midrange": ["enters", "gain life", "dies"],
}


@dataclass(frozen=True)
class SynergyGroup:
    """Cards sharing one classification axis, best-scoring first."""

    axis: str
    key: str
    cards: tuple[Card, ...]

    def __len__(self) -> int:
        return len(self.cards)


@dataclass(frozen=True)
class RankedGroup:
    """A synergy group with its selection priority."""

    group: SynergyGroup
    score: float
    relevance: float

    @property
    def priority(self) -> float:
        return self.score * self.relevance


def _top(cards: list[Card], limit: int) -> tuple[Card, ...]:
    """Best `limit` cards by score, pool order breaking ties."""
    return tuple(top_cards(rank_cards(cards), limit))


def group_synergies(pool: Sequence[Card], tags: TagTable) -> list[SynergyGroup]:
    """
    Build synergy groups from a pool.

    Tag groups come first, then subtype groups; within each axis groups
    are ordered by the pool position of their first card.
    """
    by_tag: dict[str, list[Card]] = {}
    by_subtype: dict[str, list[Card]] = {}

    for card in pool:
        for tag in sorted(tags.tags_for(card)):
            by_tag.setdefault(tag, []).append(card)
        if card.is_creature:
            for subtype in dict.fromkeys(card.subtypes):
                by_subtype.setdefault(subtype, []).append(card)

    groups = [
        SynergyGroup(axis=TAG_AXIS, key=tag, cards=_top(cards, MAX_TAG_GROUP_SIZE))
        for tag, cards in by_tag.items()
        if len(cards) >= MIN_TAG_GROUP_SIZE
    ]
    groups.extend(
        SynergyGroup(axis=SUBTYPE_AXIS, key=subtype, cards=_top(cards, MAX_SUBTYPE_GROUP_SIZE))
        for subtype, cards in by_subtype.items()
        if len(cards) >= MIN_SUBTYPE_GROUP_SIZE
    )

    logger.info(
        "synergy_groups_built",
        extra={
            "tag_groups": sum(1 for g in groups if g.axis == TAG_AXIS),
            "subtype_groups": sum(1 for g in groups if g.axis == SUBTYPE_AXIS),
        },
    )
    return groups


def card_synergy(first: Card, second: Card, tags: TagTable) -> float:
    """
    Pairwise synergy between two cards, 0-1.

    Shared tags, keywords and colors each add a fixed partial weight per
    shared element; the same primary type adds a flat bonus.
    """
    shared_tags = tags.tags_for(first) & tags.tags_for(second)
    shared_keywords = {k.lower() for k in first.keywords} & {k.lower() for k in second.keywords}
    shared_colors = set(first.colors) & set(second.colors)

    synergy = (
        len(shared_tags) * SHARED_TAG_WEIGHT
        + len(shared_keywords) * SHARED_KEYWORD_WEIGHT
        + len(shared_colors) * SHARED_COLOR_WEIGHT
    )
    if first.primary_type == second.primary_type:
        synergy += SAME_TYPE_WEIGHT

    return min(synergy, MAX_PAIR_SYNERGY)


def group_synergy(group: Iterable[Card], selected: Sequence[Card], tags: TagTable) -> float:
    """Mean pairwise synergy between a group's cards and the selected cards."""
    total = 0.0
    comparisons = 0
    for candidate in group:
        for chosen in selected:
            if candidate.id == chosen.id:
                continue
            total += card_synergy(candidate, chosen, tags)
            comparisons += 1
    return total / comparisons if comparisons else 0.0


def deck_synergy(cards: Sequence[Card], tags: TagTable) -> float:
    """Mean pairwise synergy across a whole deck, 0-1."""
    if len(cards) < 2:
        return 0.0
    total = 0.0
    comparisons = 0
    for i, first in enumerate(cards):
        for second in cards[i + 1 :]:
            total += card_synergy(first, second, tags)
            comparisons += 1
    return total / comparisons


def matches_label(card: Card, tags: TagTable, label: str) -> bool:
    """
    Check whether a card supports an archetype or theme label.

    Matches role tags, keywords, creature subtypes, archetype indicator
    phrases, then plain text in the type line or oracle text.
    """
    needle = label.strip().lower()
    if not needle:
        return False
    if needle in tags.tags_for(card):
        return True
    if needle in {k.lower() for k in card.keywords}:
        return True
    if needle in {s.lower() for s in card.subtypes}:
        return True

    oracle = card.oracle_text.lower()
    indicators = ARCHETYPE_INDICATORS.get(needle)
    if indicators and any(phrase in oracle for phrase in indicators):
        return True

    return needle in card.type_line.lower() or needle in oracle


def group_relevance(
    group: SynergyGroup,
    requirements: DeckRequirements,
    tags: TagTable,
) -> float:
    """
    How well a group matches the requested archetype, themes and colors, 0-1.

    Averaged per card so large groups are not favored by size alone.
    """
    if not group.cards:
        return 0.0

    relevance = 0.0
    for card in group.cards:
        if requirements.archetype and matches_label(card, tags, requirements.archetype):
            relevance += ARCHETYPE_RELEVANCE
        for theme in requirements.themes:
            if matches_label(card, tags, theme):
                relevance += THEME_RELEVANCE
        if set(card.color_identity) & requirements.color_identity:
            relevance += COLOR_RELEVANCE

    return min(relevance / len(group.cards), 1.0)


def rank_groups(
    groups: Sequence[SynergyGroup],
    selected: Sequence[Card],
    requirements: DeckRequirements,
    tags: TagTable,
) -> list[RankedGroup]:
    """
    Rank groups by groupScore x groupRelevance, highest first.

    Ties fall back to relevance, then to the original group order.
    """
    ranked = [
        RankedGroup(
            group=group,
            score=group_synergy(group.cards, selected, tags),
            relevance=group_relevance(group, requirements, tags),
        )
        for group in groups
    ]
    order = sorted(
        range(len(ranked)),
        key=lambda i: (-ranked[i].priority, -ranked[i].relevance, i),
    )
    return [ranked[i] for i in order]
