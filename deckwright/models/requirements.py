"""
Deck requirements and format rules.

DeckRequirements is the caller's declarative description of the deck to
build. FormatRules holds everything the engine knows about a format: size,
copy limits, commander rules, land plan and default curve.
"""

import math
from dataclasses import dataclass, field
from enum import Enum


class DeckFormat(str, Enum):
    """Supported deck construction formats."""

    STANDARD = "standard"
    PIONEER = "pioneer"
    MODERN = "modern"
    LEGACY = "legacy"
    VINTAGE = "vintage"
    PAUPER = "pauper"
    COMMANDER = "commander"
    BRAWL = "brawl"


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3)."""
    return math.floor(value + 0.5)


@dataclass(frozen=True, slots=True)
class LandPlan:
    """
    Land count formula for a format.

    land_count = clamp(round(base + (avg_mv - 3) * per_mana_value), minimum, maximum)

    All four numbers are expressed for a deck of `reference_size` cards and
    scale proportionally for other deck sizes.
    """

    base: float = 24
    per_mana_value: float = 2
    minimum: int = 20
    maximum: int = 30
    reference_size: int = 100

    def land_count(self, average_mana_value: float, deck_size: int) -> int:
        scale = deck_size / self.reference_size
        raw = round_half_up((self.base + (average_mana_value - 3) * self.per_mana_value) * scale)
        low = round_half_up(self.minimum * scale)
        high = round_half_up(self.maximum * scale)
        return max(low, min(high, raw))


# Target mana curves (mana value bucket -> nonland card count).
# The highest key is an open bucket: 7 means "7 or more".
COMMANDER_CURVE: dict[int, int] = {1: 8, 2: 12, 3: 15, 4: 12, 5: 8, 6: 6, 7: 4}

# 60-card archetype curves; 6 means "6 or more"
ARCHETYPE_CURVES: dict[str, dict[int, int]] = {
    "aggro": {1: 10, 2: 12, 3: 8, 4: 4, 5: 2, 6: 0},
    "midrange": {1: 4, 2: 8, 3: 10, 4: 8, 5: 4, 6: 2},
    "control": {1: 2, 2: 6, 3: 8, 4: 10, 5: 6, 6: 4},
    "combo": {1: 6, 2: 8, 3: 8, 4: 6, 5: 4, 6: 4},
}

CONSTRUCTED_LAND_PLAN = LandPlan(base=24, per_mana_value=2, minimum=20, maximum=26, reference_size=60)
COMMANDER_LAND_PLAN = LandPlan(base=24, per_mana_value=2, minimum=20, maximum=30, reference_size=100)

# Legality statuses that allow a card in a deck
LEGAL_STATUSES = frozenset({"legal", "restricted"})


@dataclass(frozen=True, slots=True)
class FormatRules:
    """
    Construction rules for one format.

    Attributes:
        format: The format these rules describe
        deck_size: Default required deck size (commander included)
        min_deck_size: Smallest size a caller may request
        max_deck_size: Largest size a caller may request (None = unbounded)
        singleton: At most one copy of each non-basic card
        copy_limit: Maximum copies of a non-basic card
        has_commander: The deck is led by a commander
        ban_list: Card names never allowed
        land_plan: Land count formula
    """

    format: DeckFormat
    deck_size: int
    min_deck_size: int
    max_deck_size: int | None
    singleton: bool
    copy_limit: int
    has_commander: bool
    ban_list: frozenset[str] = frozenset()
    land_plan: LandPlan = CONSTRUCTED_LAND_PLAN

    def target_curve(self, archetype: str | None = None) -> dict[int, int]:
        """Default target curve for this format and archetype."""
        if self.has_commander:
            return dict(COMMANDER_CURVE)
        if archetype and archetype.lower() in ARCHETYPE_CURVES:
            return dict(ARCHETYPE_CURVES[archetype.lower()])
        return dict(ARCHETYPE_CURVES["midrange"])


def _constructed(fmt: DeckFormat, ban_list: frozenset[str] = frozenset()) -> FormatRules:
    return FormatRules(
        format=fmt,
        deck_size=60,
        min_deck_size=60,
        max_deck_size=None,
        singleton=False,
        copy_limit=4,
        has_commander=False,
        ban_list=ban_list,
        land_plan=CONSTRUCTED_LAND_PLAN,
    )


FORMAT_RULES: dict[DeckFormat, FormatRules] = {
    DeckFormat.STANDARD: _constructed(DeckFormat.STANDARD),
    DeckFormat.PIONEER: _constructed(DeckFormat.PIONEER),
    DeckFormat.MODERN: _constructed(DeckFormat.MODERN),
    DeckFormat.LEGACY: _constructed(DeckFormat.LEGACY),
    DeckFormat.VINTAGE: _constructed(DeckFormat.VINTAGE),
    DeckFormat.PAUPER: _constructed(DeckFormat.PAUPER),
    DeckFormat.COMMANDER: FormatRules(
        format=DeckFormat.COMMANDER,
        deck_size=100,
        min_deck_size=100,
        max_deck_size=100,
        singleton=True,
        copy_limit=1,
        has_commander=True,
        ban_list=frozenset(
            {
                "Ancestral Recall",
                "Balance",
                "Biorhythm",
                "Black Lotus",
                "Braids, Cabal Minion",
                "Chaos Orb",
                "Coalition Victory",
                "Channel",
                "Emrakul, the Aeons Torn",
                "Fastbond",
            }
        ),
        land_plan=COMMANDER_LAND_PLAN,
    ),
    DeckFormat.BRAWL: FormatRules(
        format=DeckFormat.BRAWL,
        deck_size=100,
        min_deck_size=100,
        max_deck_size=100,
        singleton=True,
        copy_limit=1,
        has_commander=True,
        land_plan=COMMANDER_LAND_PLAN,
    ),
}


def get_format_rules(fmt: DeckFormat) -> FormatRules:
    """Look up the rules for a format."""
    return FORMAT_RULES[fmt]


@dataclass(frozen=True, slots=True)
class DeckRequirements:
    """
    What the caller wants built.

    Attributes:
        color_identity: Allowed colors (empty = unrestricted)
        format: Target format
        power_level: Target power on a 1-10 scale
        archetype: Optional archetype label ("tokens", "control")
        themes: Optional theme labels ("proliferate", "Elf")
        must_include: Card ids that must appear exactly once
        exclude: Card ids that must never appear
        budget: Per-card price ceiling in USD (None = no ceiling)
        min_size: Explicit minimum deck size
        max_size: Explicit maximum deck size
        commander_id: Explicit commander (commander formats only)
    """

    color_identity: frozenset[str] = frozenset()
    format: DeckFormat = DeckFormat.COMMANDER
    power_level: int = 5
    archetype: str | None = None
    themes: tuple[str, ...] = ()
    must_include: tuple[str, ...] = ()
    exclude: frozenset[str] = field(default_factory=frozenset)
    budget: float | None = None
    min_size: int | None = None
    max_size: int | None = None
    commander_id: str | None = None

    @property
    def rules(self) -> FormatRules:
        return get_format_rules(self.format)

    def required_size(self) -> int:
        """Deck size the finished build must have, commander included."""
        if self.max_size is not None:
            return self.max_size
        if self.min_size is not None:
            return self.min_size
        return self.rules.deck_size
