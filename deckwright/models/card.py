"""
Card model.

A Card is an immutable description of a single printed card. Role tags are
NOT stored on the card: they live in a per-build side table (see
`deckwright.services.card_tagger.TagTable`) so a cached, shared pool can be
reused across builds without tags leaking between them.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

# Canonical WUBRG order, used for every deterministic color iteration
COLOR_ORDER: tuple[str, ...] = ("W", "U", "B", "R", "G")
VALID_COLORS: frozenset[str] = frozenset(COLOR_ORDER)

COLOR_TO_BASIC_LAND = {
    "W": "Plains",
    "U": "Island",
    "B": "Swamp",
    "R": "Mountain",
    "G": "Forest",
}

# Type line separator between types and subtypes ("Creature — Elf Druid")
TYPE_SEPARATOR = "—"

# Mana symbols such as {2}, {U}, {W/U}, {G/P}
_MANA_SYMBOL = re.compile(r"\{([^}]+)\}")

# "Add {G}", "Add {W} or {U}", "Add one mana of any color"
_ADD_CLAUSE = re.compile(r"add ([^.]*)", re.IGNORECASE)


class Rarity(str, Enum):
    """Printed rarity."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    MYTHIC = "mythic"


def sort_colors(colors: set[str] | frozenset[str]) -> tuple[str, ...]:
    """Return colors in WUBRG order."""
    return tuple(c for c in COLOR_ORDER if c in colors)


def count_pips(mana_cost: str) -> dict[str, int]:
    """
    Count colored pips in a mana cost string.

    Hybrid symbols count once for each color they contain, so {W/U}
    contributes one W pip and one U pip.
    """
    pips: dict[str, int] = dict.fromkeys(COLOR_ORDER, 0)
    for symbol in _MANA_SYMBOL.findall(mana_cost.upper()):
        for part in symbol.split("/"):
            if part in VALID_COLORS:
                pips[part] += 1
    return pips


@dataclass(frozen=True, slots=True)
class Card:
    """
    A single printed card.

    Attributes:
        id: Stable identifier (used for exclusion, must-include, dedup)
        name: Card name
        mana_value: Total mana cost ignoring color (non-negative)
        type_line: Full type line ("Legendary Creature — Elf Druid")
        colors: Colors of the card's mana cost
        color_identity: Colors the card is restricted to in commander decks
        oracle_text: Rules text
        rarity: Printed rarity
        price: Market price in USD, None when unknown
        mana_cost: Pip string ("{1}{G}{G}"), may be empty
        keywords: Keyword abilities ("Flying", "Proliferate")
        legalities: Format -> legality status supplied by the data provider
        quantity: Owned/available copies, None when ownership is not modeled
    """

    id: str
    name: str
    mana_value: float = 0.0
    type_line: str = ""
    colors: tuple[str, ...] = ()
    color_identity: tuple[str, ...] = ()
    oracle_text: str = ""
    rarity: Rarity = Rarity.COMMON
    price: float | None = None
    mana_cost: str = ""
    keywords: tuple[str, ...] = ()
    legalities: Mapping[str, str] = field(default_factory=dict, hash=False)
    quantity: int | None = None

    @property
    def is_land(self) -> bool:
        return "Land" in self.type_line

    @property
    def is_basic_land(self) -> bool:
        return "Basic" in self.type_line and self.is_land

    @property
    def is_creature(self) -> bool:
        return "Creature" in self.type_line

    @property
    def is_legendary(self) -> bool:
        return "Legendary" in self.type_line

    @property
    def primary_type(self) -> str:
        """Type line up to the em-dash ("Legendary Creature")."""
        return self.type_line.split(TYPE_SEPARATOR)[0].strip()

    @property
    def subtypes(self) -> tuple[str, ...]:
        """Tokens after the type line's em-dash ("Elf", "Druid")."""
        parts = self.type_line.split(TYPE_SEPARATOR, 1)
        if len(parts) < 2:
            return ()
        return tuple(parts[1].split())

    @property
    def is_available(self) -> bool:
        """False only when ownership is modeled and no copies remain."""
        return self.quantity is None or self.quantity > 0

    def color_pips(self) -> dict[str, int]:
        """
        Count color pips for this card.

        Falls back to one pip per card color when no mana cost is known.
        """
        if self.mana_cost:
            return count_pips(self.mana_cost)
        return {c: (1 if c in self.colors else 0) for c in COLOR_ORDER}

    def produced_colors(self) -> frozenset[str]:
        """
        Colors of mana this card can produce.

        Uses the color identity when present (Scryfall encodes a dual land's
        colors there), otherwise reads "Add ..." clauses from the oracle text.
        """
        if self.color_identity:
            return frozenset(self.color_identity)

        produced: set[str] = set()
        for clause in _ADD_CLAUSE.findall(self.oracle_text):
            if "any color" in clause.lower():
                return VALID_COLORS
            produced.update(c for c, n in count_pips(clause).items() if n > 0)

        for color, basic in COLOR_TO_BASIC_LAND.items():
            if basic in self.subtypes:
                produced.add(color)

        return frozenset(produced)
