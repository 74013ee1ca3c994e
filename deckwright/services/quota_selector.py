"""
Quota selector.

Greedy, phase-ordered selection of nonland cards:
1. Must-include cards, unconditionally (one copy each)
2. Role minimums in priority order (ramp, draw, removal, sweepers,
   creatures, archetype, theme, then any extra plan roles)
3. Synergy groups, best groupScore x groupRelevance first
4. Filler: highest-scoring remaining cards regardless of role

INVARIANTS:
- Candidates are always visited in ranked order (score desc, pool order)
- A shortfall against a role minimum is recorded, never raised
- Role maximums are only enforced when the caller asks for it
- Copy limits are never exceeded
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from deckwright.filtering.scoring import ScoredCard, rank_cards
from deckwright.models.card import Card
from deckwright.models.failure import PoolInsufficientError
from deckwright.models.quotas import ROLE_TAGS, RoleQuotaTable
from deckwright.models.requirements import DeckRequirements, FormatRules
from deckwright.services.card_tagger import TagTable
from deckwright.services.synergy_grouper import SynergyGroup, matches_label, rank_groups

logger = logging.getLogger(__name__)

RoleMatcher = Callable[[Card], bool]


def copies_allowed(card: Card, rules: FormatRules) -> int:
    """
    Maximum copies of a card the deck may hold.

    Basic lands are exempt from the format limit; owned quantity still caps
    every card when ownership is modeled.
    """
    if card.is_basic_land:
        limit = card.quantity if card.quantity is not None else 10**6
    else:
        limit = 1 if rules.singleton else rules.copy_limit
        if card.quantity is not None:
            limit = min(limit, card.quantity)
    return max(limit, 0)


def role_matcher(role: str, requirements: DeckRequirements, tags: TagTable) -> RoleMatcher:
    """Predicate deciding whether a card fills a role."""
    if role in ROLE_TAGS:
        tag = ROLE_TAGS[role]
        return lambda card: tags.has(card, tag)
    if role == "creatures":
        return lambda card: card.is_creature
    if role == "archetype":
        archetype = requirements.archetype or ""
        return lambda card: bool(archetype) and matches_label(card, tags, archetype)
    if role == "theme":
        themes = requirements.themes
        return lambda card: any(matches_label(card, tags, theme) for theme in themes)
    # Extra plan roles are named after a tag ("counterspell", "tutor")
    return lambda card: tags.has(card, role) or matches_label(card, tags, role)


class DeckSelection:
    """
    Mutable selection being built by the selector phases.

    Cards are kept in insertion order; repeated entries are extra copies.
    Pinned ids (the must-include list) are held to a single copy.
    """

    def __init__(self, rules: FormatRules, pinned_ids: Iterable[str] = ()) -> None:
        self.rules = rules
        self.pinned_ids = frozenset(pinned_ids)
        self.cards: list[Card] = []
        self._copies: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self.cards)

    def __contains__(self, card: Card) -> bool:
        return card.id in self._copies

    def copies(self, card: Card) -> int:
        return self._copies.get(card.id, 0)

    def room_for(self, card: Card) -> int:
        limit = copies_allowed(card, self.rules)
        if card.id in self.pinned_ids:
            limit = min(limit, 1)
        return limit - self.copies(card)

    def add(self, card: Card, copies: int = 1) -> int:
        """Add up to `copies` copies, respecting the copy limit. Returns copies added."""
        copies = min(copies, self.room_for(card))
        for _ in range(max(copies, 0)):
            self.cards.append(card)
        if copies > 0:
            self._copies[card.id] = self.copies(card) + copies
        return max(copies, 0)

    def remove(self, card: Card) -> None:
        """Remove every copy of a card."""
        self.cards = [c for c in self.cards if c.id != card.id]
        self._copies.pop(card.id, None)


@dataclass
class SelectionResult:
    """Outcome of the selection phases."""

    cards: list[Card] = field(default_factory=list)
    role_counts: dict[str, int] = field(default_factory=dict)
    shortfalls: list[PoolInsufficientError] = field(default_factory=list)
    missing_must_include: list[str] = field(default_factory=list)
    change_log: list[str] = field(default_factory=list)


def count_roles(
    cards: Iterable[Card],
    quotas: RoleQuotaTable,
    requirements: DeckRequirements,
    tags: TagTable,
) -> dict[str, int]:
    """Number of selected cards (copies included) filling each quota role."""
    cards = list(cards)
    counts: dict[str, int] = {}
    for role in quotas:
        matches = role_matcher(role, requirements, tags)
        counts[role] = sum(1 for card in cards if matches(card))
    return counts


class RoleCaps:
    """Tracks role maximums when the caller asks for them to be enforced."""

    def __init__(
        self,
        quotas: RoleQuotaTable,
        requirements: DeckRequirements,
        tags: TagTable,
        selection: DeckSelection,
        enforce: bool,
    ) -> None:
        self.enforce = enforce
        self.quotas = quotas
        self.matchers = {role: role_matcher(role, requirements, tags) for role in quotas}
        self.counts = count_roles(selection.cards, quotas, requirements, tags)

    def headroom(self, card: Card) -> int | None:
        """Copies of `card` the maximums still allow (None = unlimited)."""
        if not self.enforce:
            return None
        room: int | None = None
        for role, matches in self.matchers.items():
            if matches(card):
                left = self.quotas.quotas[role].max - self.counts[role]
                room = left if room is None else min(room, left)
        return room

    def record(self, card: Card, copies: int) -> None:
        for role, matches in self.matchers.items():
            if matches(card):
                self.counts[role] += copies


def add_copies(
    selection: DeckSelection,
    card: Card,
    wanted: int,
    caps: RoleCaps | None,
) -> int:
    """Add up to `wanted` copies within copy limits and role caps. Returns copies added."""
    if caps is not None:
        headroom = caps.headroom(card)
        if headroom is not None:
            wanted = min(wanted, headroom)
    if wanted <= 0:
        return 0
    added = selection.add(card, wanted)
    if caps is not None and added:
        caps.record(card, added)
    return added


def fill_remaining(
    selection: DeckSelection,
    ranked: Sequence[ScoredCard],
    target_size: int,
    *,
    skip_ids: frozenset[str] = frozenset(),
    caps: RoleCaps | None = None,
) -> int:
    """
    Filler phase: add the highest-scoring cards with copies still allowed.

    Non-singleton formats take as many copies as the copy limit, owned
    quantity and remaining space allow. Returns the number of cards added.
    """
    added = 0
    for scored in ranked:
        space = target_size - len(selection)
        if space <= 0:
            break
        card = scored.card
        if card.id in skip_ids or selection.room_for(card) <= 0:
            continue
        added += add_copies(selection, card, space, caps)
    return added


def _fill_role(
    minimum: int,
    selection: DeckSelection,
    ranked: Sequence[ScoredCard],
    matches: RoleMatcher,
    target_size: int,
    caps: RoleCaps,
) -> tuple[int, int]:
    """Add one copy of top-scoring role cards up to the minimum. Returns (have, added)."""
    have = sum(1 for card in selection.cards if matches(card))
    added = 0
    for scored in ranked:
        if have >= minimum or len(selection) >= target_size:
            break
        card = scored.card
        if card in selection or not matches(card):
            continue
        if add_copies(selection, card, 1, caps):
            have += 1
            added += 1
    return have, added


def _fill_from_groups(
    groups: Sequence[SynergyGroup],
    selection: DeckSelection,
    requirements: DeckRequirements,
    tags: TagTable,
    target_size: int,
    caps: RoleCaps,
) -> tuple[int, int]:
    """Add cards from the best synergy groups. Returns (cards added, groups used)."""
    added = 0
    used = 0
    for ranked_group in rank_groups(groups, selection.cards, requirements, tags):
        if len(selection) >= target_size:
            break
        from_group = 0
        for card in ranked_group.group.cards:
            space = target_size - len(selection)
            if space <= 0:
                break
            if card in selection:
                continue
            from_group += add_copies(selection, card, space, caps)
        if from_group:
            added += from_group
            used += 1
    return added, used


def select_cards(
    pool: Sequence[Card],
    quotas: RoleQuotaTable,
    requirements: DeckRequirements,
    tags: TagTable,
    target_size: int,
    *,
    groups: Sequence[SynergyGroup] = (),
    enforce_max: bool = False,
) -> SelectionResult:
    """
    Select nonland cards from a filtered pool.

    Args:
        pool: Filtered nonland candidates, in pool order
        quotas: Role quota table, iterated in fill order
        requirements: Deck requirements (must-include, labels, format)
        tags: Per-build tag table
        target_size: Nonland card count to aim for
        groups: Synergy groups built from the same pool
        enforce_max: Treat role maximums as hard caps

    Returns:
        SelectionResult with cards in selection order
    """
    rules = requirements.rules
    result = SelectionResult()
    selection = DeckSelection(rules, pinned_ids=requirements.must_include)
    ranked = rank_cards(pool)
    by_id = {card.id: card for card in pool}

    # Phase 1: must-include
    included = 0
    for card_id in dict.fromkeys(requirements.must_include):
        card = by_id.get(card_id)
        if card is None:
            result.missing_must_include.append(card_id)
            continue
        included += selection.add(card, 1)
    if included:
        result.change_log.append(f"added {included} must-include cards")

    caps = RoleCaps(quotas, requirements, tags, selection, enforce_max)

    # Phase 2: role minimums
    for role, quota in quotas.items():
        if quota.min == 0:
            continue
        matches = role_matcher(role, requirements, tags)
        have, added = _fill_role(quota.min, selection, ranked, matches, target_size, caps)
        if added:
            result.change_log.append(f"added {added} {role} cards")
        if have < quota.min and len(selection) < target_size:
            shortfall = PoolInsufficientError(role=role, required=quota.min, available=have)
            result.shortfalls.append(shortfall)
            logger.warning(
                "quota_shortfall",
                extra={"role": role, "required": quota.min, "available": have},
            )

    # Phase 3: synergy groups
    if groups and len(selection) < target_size:
        added, used = _fill_from_groups(groups, selection, requirements, tags, target_size, caps)
        if added:
            result.change_log.append(f"added {added} cards from {used} synergy groups")

    # Phase 4: filler
    filled = fill_remaining(selection, ranked, target_size, caps=caps)
    if filled:
        result.change_log.append(f"added {filled} filler cards")

    result.cards = list(selection.cards)
    result.role_counts = count_roles(result.cards, quotas, requirements, tags)

    logger.info(
        "quotas_filled",
        extra={
            "selected": len(result.cards),
            "target": target_size,
            "shortfalls": len(result.shortfalls),
            "role_counts": result.role_counts,
        },
    )
    return result
