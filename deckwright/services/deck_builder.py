"""
Deck build orchestrator.

Sequences the pipeline as a strict state machine:

    Filtering -> Tagging -> Selecting -> ManaBase -> CurveBalance
    -> Analyzing -> Validated | Failed

INVARIANTS:
- build_deck() never raises; every fault becomes a FailureDetail
- Transitions are sequential and never retried within one invocation
- Deck size is a HARD CONSTRAINT: a successful build has exactly the
  required size, commander included
- Shortfalls against quotas or the land target are warnings, not failures
- The engine holds no state between invocations (the optional tag cache
  only ever returns what the classifier would compute)
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any

from deckwright.analysis.deck_analyzer import (
    analyze_deck,
    estimate_power_level,
    generate_suggestions,
)
from deckwright.config import settings
from deckwright.filtering.pool_filter import LegalityCheck, filter_pool, within_identity
from deckwright.filtering.scoring import rank_cards
from deckwright.models.card import VALID_COLORS, Card
from deckwright.models.card_record import load_pool
from deckwright.models.deck import BuildResult, BuildState, GeneratedDeck
from deckwright.models.failure import (
    ConfigurationError,
    DeckValidationError,
    FailureKind,
    KnownError,
    SizeInvariantError,
    create_unknown_failure,
)
from deckwright.models.quotas import RoleQuota, RoleQuotaTable, resolve_quotas
from deckwright.models.requirements import DeckRequirements
from deckwright.services.card_tagger import Classifier, MemoizingClassifier, tag_pool
from deckwright.services.curve_balancer import balance_curve, fill_curve_gaps
from deckwright.services.mana_base import build_mana_base, land_target
from deckwright.services.quota_selector import (
    DeckSelection,
    RoleCaps,
    copies_allowed,
    fill_remaining,
    select_cards,
)
from deckwright.services.synergy_grouper import deck_synergy, group_synergies

logger = logging.getLogger(__name__)

COMMANDER_TEXT = "can be your commander"
MIN_POWER_LEVEL = 1
MAX_POWER_LEVEL = 10

# Shared across builds only when settings.memoize_tags is on
_shared_classifier = MemoizingClassifier()


def is_commander_candidate(card: Card) -> bool:
    """Legendary creatures, or cards whose text lets them lead a deck."""
    if card.is_land:
        return False
    if card.is_legendary and card.is_creature:
        return True
    return COMMANDER_TEXT in card.oracle_text.lower()


def pick_commander(pool: Sequence[Card]) -> Card | None:
    """Highest-scoring commander candidate; earlier cards win ties."""
    ranked = rank_cards(c for c in pool if is_commander_candidate(c))
    return ranked[0].card if ranked else None


def detect_archetype(commander: Card) -> str | None:
    """
    Infer an archetype plan from what the commander does.

    Rules are checked in order and the first match wins: counters, tokens,
    spellslinging and counter/draw control, then equipment and auras
    (aggro). Returns None when nothing points at a plan, which leaves the
    format defaults in place.
    """
    text = commander.oracle_text.lower()
    type_line = commander.type_line.lower()

    if "proliferate" in text or "+1/+1 counter" in text:
        return "counters"
    if "create" in text and "token" in text:
        return "tokens"
    if any(word in text for word in ("instant", "sorcery", "spell")):
        return "control"
    if "counter target" in text or ("U" in commander.color_identity and "draw" in text):
        return "control"
    if any(word in text for word in ("equip", "aura", "attached")) or "knight" in type_line:
        return "aggro"
    return None


def validate_requirements(requirements: DeckRequirements, pool: Sequence[Card]) -> None:
    """
    Reject malformed requirements before any work is done.

    Raises:
        ConfigurationError: On the first problem found
    """
    rules = requirements.rules

    unknown = set(requirements.color_identity) - VALID_COLORS
    if unknown:
        raise ConfigurationError(
            "Color identity contains unknown colors",
            detail=", ".join(sorted(unknown)),
        )

    if not MIN_POWER_LEVEL <= requirements.power_level <= MAX_POWER_LEVEL:
        raise ConfigurationError(
            f"Power level must be between {MIN_POWER_LEVEL} and {MAX_POWER_LEVEL}",
            detail=str(requirements.power_level),
        )

    if requirements.budget is not None and requirements.budget < 0:
        raise ConfigurationError("Budget cannot be negative", detail=str(requirements.budget))

    min_size, max_size = requirements.min_size, requirements.max_size
    if min_size is not None and max_size is not None and min_size > max_size:
        raise ConfigurationError(
            "Minimum deck size exceeds maximum deck size",
            detail=f"{min_size} > {max_size}",
        )
    for size in (min_size, max_size):
        if size is None:
            continue
        too_small = size < rules.min_deck_size
        too_large = rules.max_deck_size is not None and size > rules.max_deck_size
        if too_small or too_large:
            raise ConfigurationError(
                f"Deck size {size} is not allowed in {rules.format.value}",
                detail=f"allowed: {rules.min_deck_size}-{rules.max_deck_size or 'unbounded'}",
            )

    conflicting = sorted(set(requirements.must_include) & requirements.exclude)
    if conflicting:
        raise ConfigurationError(
            "Cards are both required and excluded",
            detail=", ".join(conflicting),
        )

    by_id = {card.id: card for card in pool}
    identity = requirements.color_identity
    if identity:
        for card_id in requirements.must_include:
            card = by_id.get(card_id)
            if card is not None and not within_identity(card, identity):
                raise ConfigurationError(
                    f"Required card '{card.name}' is outside the color identity",
                    detail=f"{card_id}: {''.join(card.color_identity)}",
                )

    main_size = requirements.required_size() - (1 if rules.has_commander else 0)
    required = len(dict.fromkeys(requirements.must_include))
    if required > main_size:
        raise ConfigurationError(
            "More required cards than the deck can hold",
            detail=f"{required} > {main_size}",
        )

    if requirements.commander_id is not None:
        if not rules.has_commander:
            raise ConfigurationError(
                f"{rules.format.value} decks do not have a commander",
                detail=requirements.commander_id,
            )
        commander = by_id.get(requirements.commander_id)
        if commander is None or not is_commander_candidate(commander):
            raise ConfigurationError(
                "Requested commander is not a legal commander in the pool",
                detail=requirements.commander_id,
            )
        if requirements.commander_id in requirements.exclude:
            raise ConfigurationError(
                "Requested commander is excluded",
                detail=requirements.commander_id,
            )


def enforce_deck_size(
    cards: Sequence[Card],
    target_size: int,
    protected_ids: Iterable[str] = (),
) -> list[Card]:
    """
    Bring a main deck to exactly `target_size` cards.

    Oversized decks are trimmed deterministically: unprotected nonland
    cards go first, lowest score first (later cards first on ties), then
    lands the same way. Undersized decks are never padded here.

    Raises:
        SizeInvariantError: If the deck is too small, or cannot be trimmed
            without removing protected cards
    """
    if len(cards) < target_size:
        raise SizeInvariantError(
            requested_size=target_size,
            actual_size=len(cards),
            detail="filler phase exhausted the legal pool",
        )
    excess = len(cards) - target_size
    if excess == 0:
        return list(cards)

    protected = frozenset(protected_ids)
    ranked = rank_cards(cards)
    bottom_up = [s for s in reversed(ranked) if s.card.id not in protected]
    order = [s for s in bottom_up if not s.card.is_land] + [
        s for s in bottom_up if s.card.is_land
    ]
    if len(order) < excess:
        raise SizeInvariantError(
            requested_size=target_size,
            actual_size=len(cards),
            detail="required cards alone exceed the deck size",
        )

    drop = {s.index for s in order[:excess]}
    return [card for i, card in enumerate(cards) if i not in drop]


def validate_deck(
    deck: GeneratedDeck,
    requirements: DeckRequirements,
    identity: frozenset[str],
    legal_ids: Iterable[str],
) -> None:
    """
    Final structural checks on a finished deck.

    Args:
        deck: The deck to check
        requirements: Requirements it was built for
        identity: Effective color identity (empty = unrestricted)
        legal_ids: Ids of every card in the filtered legal pool

    Raises:
        SizeInvariantError: Wrong total size
        DeckValidationError: Color identity, exclusion, copy limit or
            must-include violation
    """
    rules = requirements.rules
    required = requirements.required_size()
    if deck.total_cards() != required:
        raise SizeInvariantError(requested_size=required, actual_size=deck.total_cards())

    everything = list(deck.cards) + ([deck.commander] if deck.commander else [])
    copies: dict[str, int] = {}
    for card in everything:
        copies[card.id] = copies.get(card.id, 0) + 1

        if identity and not within_identity(card, identity):
            raise DeckValidationError(
                FailureKind.COLOR_IDENTITY_VIOLATION,
                card.id,
                f"color identity {''.join(card.color_identity)} outside {''.join(sorted(identity))}",
            )
        if card.id in requirements.exclude:
            raise DeckValidationError(FailureKind.EXCLUSION_VIOLATION, card.id, "card is excluded")

    by_id = {card.id: card for card in everything}
    for card_id, count in copies.items():
        if count > copies_allowed(by_id[card_id], rules):
            raise DeckValidationError(
                FailureKind.COPY_LIMIT_VIOLATION,
                card_id,
                f"{count} copies exceed the {rules.format.value} limit",
            )

    # Basic lands fill the mana base freely; requiring one only demands presence
    legal = set(legal_ids)
    for card_id in dict.fromkeys(requirements.must_include):
        if card_id not in legal:
            continue
        count = copies.get(card_id, 0)
        basic = card_id in by_id and by_id[card_id].is_basic_land
        if count == 0 or (count > 1 and not basic):
            raise DeckValidationError(
                FailureKind.MUST_INCLUDE_VIOLATION,
                card_id,
                f"required card appears {count} times",
            )


class _Pipeline:
    """One build invocation: its state, change log and warnings."""

    def __init__(self) -> None:
        self.state = BuildState.PENDING
        self.change_log: list[str] = []
        self.warnings: list[str] = []

    def enter(self, state: BuildState) -> None:
        logger.debug("build_state", extra={"from": self.state.value, "to": state.value})
        self.state = state

    def warn(self, message: str) -> None:
        self.warnings.append(message)


def _resolve_commander(
    filtered: list[Card],
    requirements: DeckRequirements,
    pipeline: _Pipeline,
) -> Card | None:
    if requirements.commander_id is None:
        commander = pick_commander(filtered)
        if commander is None:
            pipeline.warn("No commander candidate in the pool; building without a commander")
        return commander

    for card in filtered:
        if card.id == requirements.commander_id:
            return card
    raise ConfigurationError(
        "Requested commander did not pass the pool filter",
        detail=requirements.commander_id,
    )


def build_deck(
    pool: Sequence[Card | Mapping[str, Any]],
    requirements: DeckRequirements,
    plan: RoleQuotaTable | Mapping[str, RoleQuota] | None = None,
    *,
    classifier: Classifier | None = None,
    legality: LegalityCheck | None = None,
    dual_land_cap: int | None = None,
    enforce_role_max: bool | None = None,
) -> BuildResult:
    """
    Build a deck from a candidate pool.

    Args:
        pool: Candidate cards (Card instances or raw provider records), in
            pool order; the order defines every tie-break
        requirements: What to build
        plan: Optional quota overrides
        classifier: Tagging strategy (defaults to the oracle-text heuristics)
        legality: Optional legality lookup replacing the card legalities
        dual_land_cap: Overrides settings.dual_land_cap
        enforce_role_max: Overrides settings.enforce_role_max

    Returns:
        BuildResult in state VALIDATED with a deck, or FAILED with failures
    """
    pipeline = _Pipeline()
    rules = requirements.rules
    dual_cap = settings.dual_land_cap if dual_land_cap is None else dual_land_cap
    enforce_max = settings.enforce_role_max if enforce_role_max is None else enforce_role_max
    if classifier is None and settings.memoize_tags:
        classifier = _shared_classifier

    logger.info(
        "deck_build_started",
        extra={
            "pool_size": len(pool),
            "format": rules.format.value,
            "colors": "".join(sorted(requirements.color_identity)),
        },
    )

    try:
        cards = load_pool(pool)
        validate_requirements(requirements, cards)

        # Filtering
        pipeline.enter(BuildState.FILTERING)
        filtered, report = filter_pool(cards, requirements, legality=legality)
        pipeline.change_log.append(
            f"kept {report.final_pool_size} of {report.total_cards} cards after filtering"
        )

        commander = None
        identity = requirements.color_identity
        if rules.has_commander:
            commander = _resolve_commander(filtered, requirements, pipeline)
        if commander is not None:
            pipeline.change_log.append(f"chose {commander.name} as commander")
            if not identity:
                identity = frozenset(commander.color_identity)
                filtered = [c for c in filtered if within_identity(c, identity)]
            filtered = [c for c in filtered if c.id != commander.id]
            if requirements.archetype is None:
                inferred = detect_archetype(commander)
                if inferred is not None:
                    requirements = replace(requirements, archetype=inferred)
                    pipeline.change_log.append(
                        f"inferred {inferred} archetype from {commander.name}"
                    )

        # Tagging
        pipeline.enter(BuildState.TAGGING)
        tags = tag_pool(filtered, classifier)

        # Selecting
        pipeline.enter(BuildState.SELECTING)
        nonland_pool = [c for c in filtered if not c.is_land]
        land_pool = [c for c in filtered if c.is_land]
        land_ids = {c.id for c in land_pool}
        fixed_lands = [
            c
            for card_id in dict.fromkeys(requirements.must_include)
            for c in land_pool
            if c.id == card_id
        ]

        main_size = requirements.required_size() - (1 if commander else 0)
        provisional_lands = max(land_target(nonland_pool, requirements), len(fixed_lands))
        quotas = resolve_quotas(requirements, plan)
        groups = group_synergies(nonland_pool, tags)

        selection = select_cards(
            nonland_pool,
            quotas,
            requirements,
            tags,
            max(main_size - provisional_lands, 0),
            groups=groups,
            enforce_max=enforce_max,
        )
        pipeline.change_log.extend(selection.change_log)
        for shortfall in selection.shortfalls:
            pipeline.warn(shortfall.message)
        commander_id = commander.id if commander else None
        for card_id in selection.missing_must_include:
            if card_id not in land_ids and card_id != commander_id:
                pipeline.warn(f"Required card '{card_id}' is not in the legal pool")

        # Mana base
        pipeline.enter(BuildState.MANA_BASE)
        mana = build_mana_base(
            selection.cards,
            requirements,
            land_pool,
            fixed_lands=fixed_lands,
            dual_cap=dual_cap,
            identity=identity,
        )
        pipeline.change_log.append(
            f"added {len(mana.lands)} lands ({mana.dual_count} multi-color, "
            f"{mana.basic_count} basic)"
        )
        for shortfall in mana.shortfalls:
            pipeline.warn(shortfall.message)

        # Curve balance
        pipeline.enter(BuildState.CURVE_BALANCE)
        protected = set(requirements.must_include)
        if commander_id:
            protected.add(commander_id)
        target_curve = rules.target_curve(requirements.archetype)
        balanced = balance_curve(selection.cards, target_curve, protected_ids=protected)
        pipeline.change_log.extend(balanced.change_log)

        # Open curve slots first; removed cards only as a last resort
        refill = DeckSelection(rules, pinned_ids=requirements.must_include)
        for card in balanced.kept:
            refill.add(card)
        caps = RoleCaps(quotas, requirements, tags, refill, enforce_max)
        ranked = rank_cards(nonland_pool)
        nonland_goal = main_size - len(mana.lands)
        removed_ids = frozenset(c.id for c in balanced.removed)
        gaps = fill_curve_gaps(
            refill, ranked, nonland_goal, target_curve, skip_ids=removed_ids, caps=caps
        )
        if gaps:
            pipeline.change_log.append(f"added {gaps} cards to open curve slots")
        refilled = fill_remaining(refill, ranked, nonland_goal, skip_ids=removed_ids, caps=caps)
        refilled += fill_remaining(refill, ranked, nonland_goal, caps=caps)
        if refilled:
            pipeline.change_log.append(f"added {refilled} filler cards after curve balancing")

        main_deck = enforce_deck_size(refill.cards + mana.lands, main_size, protected)

        # Analyzing
        pipeline.enter(BuildState.ANALYZING)
        analysis = analyze_deck(main_deck, tags, commander)
        spells = [c for c in main_deck if not c.is_land] + ([commander] if commander else [])
        deck = GeneratedDeck(
            cards=tuple(main_deck),
            commander=commander,
            synergy_score=round(deck_synergy(spells, tags), 4),
            power_level=estimate_power_level(main_deck, commander),
            analysis=analysis,
            suggestions=tuple(generate_suggestions(analysis)),
        )
        legal_ids = {c.id for c in filtered} | ({commander_id} if commander_id else set())
        validate_deck(deck, requirements, identity, legal_ids)

    except KnownError as e:
        failed_during = pipeline.state
        pipeline.enter(BuildState.FAILED)
        logger.info(
            "deck_build_failed",
            extra={"kind": e.kind.value, "failed_during": failed_during.value},
        )
        return BuildResult(
            state=BuildState.FAILED,
            failures=(e.to_detail(),),
            warnings=tuple(pipeline.warnings),
            change_log=tuple(pipeline.change_log),
            failed_during=failed_during,
        )
    except Exception as e:
        failed_during = pipeline.state
        pipeline.enter(BuildState.FAILED)
        logger.exception(
            "deck_build_exception",
            extra={"error": str(e), "failed_during": failed_during.value},
        )
        return BuildResult(
            state=BuildState.FAILED,
            failures=(create_unknown_failure(e),),
            warnings=tuple(pipeline.warnings),
            change_log=tuple(pipeline.change_log),
            failed_during=failed_during,
        )

    pipeline.enter(BuildState.VALIDATED)
    logger.info(
        "deck_build_finished",
        extra={
            "cards": deck.total_cards(),
            "lands": len(deck.lands),
            "warnings": len(pipeline.warnings),
            "synergy_score": deck.synergy_score,
            "power_level": deck.power_level,
        },
    )
    return BuildResult(
        state=BuildState.VALIDATED,
        deck=deck,
        warnings=tuple(pipeline.warnings),
        change_log=tuple(pipeline.change_log),
    )
