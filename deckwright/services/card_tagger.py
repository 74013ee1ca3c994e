"""
Card tagging.

Classifies a card into functional role tags from its oracle text and type
line. Classification is a swappable strategy: anything implementing
`Classifier` can replace the heuristics without touching selection or
analysis.

INVARIANTS:
- classify() is a pure function of the card
- Tags are assigned once per build and never removed
- Tags live in a per-build TagTable, never on the shared Card
"""

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from threading import Lock
from typing import Protocol

from deckwright.models.card import Card

logger = logging.getLogger(__name__)

RAMP = "ramp"
DRAW = "draw"
REMOVAL_SPOT = "removal-spot"
REMOVAL_SWEEPER = "removal-sweeper"
COUNTERSPELL = "counterspell"
TOKENS = "tokens"
COUNTERS = "counters"
PROLIFERATE = "proliferate"
TUTOR = "tutor"
RECURSION = "recursion"
SACRIFICE = "sacrifice"

ROLE_TAGS: tuple[str, ...] = (
    RAMP,
    DRAW,
    REMOVAL_SPOT,
    REMOVAL_SWEEPER,
    COUNTERSPELL,
    TOKENS,
    COUNTERS,
    PROLIFERATE,
    TUTOR,
    RECURSION,
    SACRIFICE,
)

_DESTROY_VERB = re.compile(r"\b(destroy|exile)\b")
_GLOBAL_QUALIFIER = re.compile(r"\b(all|each)\b")
_PT_COUNTER = re.compile(r"[+-]\d+/[+-]\d+ counter")
_ADD_MANA_SYMBOL = re.compile(r"\badd \{")
_FETCH_LAND = re.compile(r"search your library for (a|up to \w+) basic land")
_TUTOR = re.compile(r"search your library for (a|an) (card|\w+ card)")
_RECURSION = re.compile(r"return [^.]* from your graveyard")
_SAC_OUTLET = re.compile(r"sacrifice (a|another) (creature|permanent|artifact)")


class Classifier(Protocol):
    """Strategy that maps a card to its role tags."""

    def classify(self, card: Card) -> frozenset[str]: ...


class HeuristicClassifier:
    """
    Oracle-text heuristics.

    Case-insensitive substring and keyword checks, each rule evaluated
    independently. Known limitation: a destroy clause and an unrelated
    "all" elsewhere in the text tags the card as a sweeper.

    Lands are not tagged ramp by default: every land taps for mana, so the
    tag would say nothing about a deck's acceleration. Pass
    `tag_land_ramp=True` to apply the mana rules to lands as well.
    """

    def __init__(self, tag_land_ramp: bool = False) -> None:
        self.tag_land_ramp = tag_land_ramp

    def classify(self, card: Card) -> frozenset[str]:
        text = card.oracle_text.lower()
        keywords = {k.lower() for k in card.keywords}
        tags: set[str] = set()

        if self.tag_land_ramp or not card.is_land:
            if ("add" in text and "mana" in text) or _ADD_MANA_SYMBOL.search(text):
                tags.add(RAMP)
            if _FETCH_LAND.search(text):
                tags.add(RAMP)

        if "draw" in text:
            tags.add(DRAW)

        if _DESTROY_VERB.search(text):
            if _GLOBAL_QUALIFIER.search(text):
                tags.add(REMOVAL_SWEEPER)
            else:
                tags.add(REMOVAL_SPOT)

        if "counter target" in text:
            tags.add(COUNTERSPELL)
        if "token" in text:
            tags.add(TOKENS)
        if "counter" in text and _PT_COUNTER.search(text):
            tags.add(COUNTERS)
        if "proliferate" in text or "proliferate" in keywords:
            tags.add(PROLIFERATE)

        if _TUTOR.search(text):
            tags.add(TUTOR)
        if _RECURSION.search(text):
            tags.add(RECURSION)
        if _SAC_OUTLET.search(text):
            tags.add(SACRIFICE)

        return frozenset(tags)


def tag_card(card: Card, classifier: Classifier | None = None) -> frozenset[str]:
    """Tag one card with the default heuristics (or a supplied classifier)."""
    return (classifier if classifier is not None else _DEFAULT_CLASSIFIER).classify(card)


class MemoizingClassifier:
    """
    Classifier wrapper that caches tags by card id.

    Safe to share between concurrent builds: lookups and inserts are
    guarded by a lock, and cached values are immutable frozensets.
    Card ids must identify card content (the same id never maps to
    different oracle text).
    """

    def __init__(self, inner: Classifier | None = None) -> None:
        self._inner = inner if inner is not None else HeuristicClassifier()
        self._cache: dict[str, frozenset[str]] = {}
        self._lock = Lock()

    def classify(self, card: Card) -> frozenset[str]:
        with self._lock:
            cached = self._cache.get(card.id)
        if cached is not None:
            return cached

        tags = self._inner.classify(card)
        with self._lock:
            return self._cache.setdefault(card.id, tags)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class TagTable(Mapping[str, frozenset[str]]):
    """
    Per-build side table: card id -> role tags.

    Built once during the tagging phase and read-only afterwards.
    Unknown ids map to no tags.
    """

    def __init__(self, tags: Mapping[str, frozenset[str]] | None = None) -> None:
        self._tags: dict[str, frozenset[str]] = dict(tags or {})

    def __getitem__(self, card_id: str) -> frozenset[str]:
        return self._tags[card_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def tags_for(self, card: Card) -> frozenset[str]:
        return self._tags.get(card.id, frozenset())

    def has(self, card: Card, tag: str) -> bool:
        return tag in self.tags_for(card)

    def tag_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for tags in self._tags.values():
            for tag in tags:
                counts[tag] = counts.get(tag, 0) + 1
        return counts


def tag_pool(cards: Iterable[Card], classifier: Classifier | None = None) -> TagTable:
    """Tag every card in a pool into a fresh TagTable."""
    if classifier is None:
        classifier = _DEFAULT_CLASSIFIER
    table = TagTable({card.id: classifier.classify(card) for card in cards})
    logger.info(
        "pool_tagged",
        extra={"cards": len(table), "tag_counts": table.tag_counts()},
    )
    return table


_DEFAULT_CLASSIFIER = HeuristicClassifier()
